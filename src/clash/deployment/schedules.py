"""
Vesting schedule deployment.

Drives the contract registry from the JSON schedule definitions:

1. deploy_vesting_schedules: one VestingSchedule per definition, anchored at
   ``tge - daysBeforeTge``, its unlock curve appended once and its balance
   funded once
2. assign_vesting_schedule_members: register each definition's members

Both steps are idempotent. Contract addresses and assignment flags are
written back into the definitions through the ``update_schedules``
callback after every change, so an interrupted run can simply be repeated.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Callable, Sequence

from pydantic import ValidationError

from clash.core.config import get_settings
from clash.core.constants import SECONDS_PER_DAY
from clash.core.contracts.registry import ContractRegistry
from clash.core.contracts.vesting import VestingSchedule
from clash.core.input_validation_schemas import VestingConfigurationInput, VestingScheduleInput
from clash.core.structured_logger import StructuredLogger, get_structured_logger
from clash.core.units import format_clash, to_base_units
from clash.core.vesting_exceptions import ConfigurationError, DeploymentError

UpdateSchedules = Callable[[Sequence[VestingScheduleInput]], None]


# ==================== Files ====================


def load_vesting_schedules(path: str | os.PathLike[str]) -> list[VestingScheduleInput]:
    """
    Load and validate schedule definitions.

    Raises:
        ConfigurationError: If the file is missing or malformed
    """
    source = Path(path)
    try:
        raw = json.loads(source.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Vesting schedules file not found: {source}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Vesting schedules file is not valid JSON: {source}") from exc
    if not isinstance(raw, list):
        raise ConfigurationError(f"Vesting schedules file must hold a list: {source}")
    try:
        return [VestingScheduleInput.model_validate(item) for item in raw]
    except ValidationError as exc:
        raise ConfigurationError(
            f"Invalid vesting schedule definition in {source}",
            details={"errors": exc.errors(include_url=False)},
        ) from exc


def save_vesting_schedules(
    path: str | os.PathLike[str], schedules: Sequence[VestingScheduleInput]
) -> None:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = [schedule.to_json_dict() for schedule in schedules]
    target.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def load_vesting_configuration(path: str | os.PathLike[str]) -> VestingConfigurationInput:
    """
    Load the vesting configuration (TGE timestamp).

    Raises:
        ConfigurationError: If the file is missing or malformed
    """
    source = Path(path)
    try:
        raw = json.loads(source.read_text(encoding="utf-8"))
        return VestingConfigurationInput.model_validate(raw)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Vesting configuration file not found: {source}") from exc
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ConfigurationError(f"Invalid vesting configuration: {source}") from exc


# ==================== Deployment ====================


def schedule_start_time(tge_timestamp: int, days_before_tge: int) -> int:
    """Start of a schedule that opens ``days_before_tge`` days ahead of the TGE."""
    return tge_timestamp - days_before_tge * SECONDS_PER_DAY


def deploy_vesting_schedules(
    registry: ContractRegistry,
    publisher: str,
    schedules: Sequence[VestingScheduleInput],
    configuration: VestingConfigurationInput,
    update_schedules: UpdateSchedules,
    token_address: str | None = None,
    logger: StructuredLogger | None = None,
) -> list[VestingSchedule]:
    """
    Deploy, configure and fund every schedule definition.

    Args:
        registry: Contract registry to deploy into
        publisher: Deployer address; owns the schedules and funds them
        schedules: Schedule definitions (``contract_address`` is filled in)
        configuration: Vesting configuration holding the TGE timestamp
        update_schedules: Persists the definitions after each deployment
        token_address: CLASH token; defaults to the configured token address
        logger: Structured logger

    Returns:
        The deployed (or reused) schedule contracts, in definition order

    Raises:
        ConfigurationError: Token address or TGE timestamp missing
        DeploymentError: A recorded contract address is unknown to the registry
        VestingError, TokenTransferError: A contract call was rejected
    """
    logger = logger or get_structured_logger()
    token_address = token_address or get_settings().token_address
    if not token_address:
        raise ConfigurationError("Clash address is not set")
    token = registry.get_token(token_address)
    if token is None:
        raise ConfigurationError(
            f"Clash token {token_address} is not deployed", details={"token": token_address}
        )
    if not configuration.tge_timestamp:
        raise ConfigurationError("TGE timestamp is not set")

    contracts: list[VestingSchedule] = []
    for definition in schedules:
        if definition.contract_address:
            schedule = registry.get_schedule(definition.contract_address)
            if schedule is None:
                raise DeploymentError(
                    f"Vesting contract for {definition.name} not found",
                    details={"address": definition.contract_address},
                )
            logger.info(
                f"Vesting contract for {definition.name} already deployed to {schedule.address}.",
                schedule=definition.name,
            )
        else:
            start = schedule_start_time(configuration.tge_timestamp, definition.days_before_tge)
            schedule = registry.deploy_vesting_schedule(
                creator=publisher, token_address=token.address, start=start, name=definition.name
            )
            logger.schedule_deployed(definition.name, schedule.address, start, token.address)
            definition.contract_address = schedule.address
            update_schedules(schedules)
            logger.info("Updated vesting schedules")
        contracts.append(schedule)

        if schedule.get_unlock_events():
            logger.info(
                "Skip adding unlock events to vesting schedule. Unlock events already added",
                schedule=definition.name,
            )
        else:
            schedule.append_unlock_events(
                publisher,
                [event.percent_x100 for event in definition.unlock_events],
                [event.unlock_time for event in definition.unlock_events],
            )
            logger.info("Unlock Events added", schedule=definition.name)

        if schedule.held_balance() > 0:
            logger.info(
                f"Skip transferring ${token.symbol} to vesting schedule. Balance is not 0",
                schedule=definition.name,
            )
        else:
            amount = to_base_units(definition.tokens_allocated)
            token.transfer(publisher, schedule.address, amount)
            logger.info(
                f"Transferred {format_clash(amount)} ${token.symbol} to vesting schedule",
                schedule=definition.name,
                amount=str(amount),
            )

    return contracts


def assign_vesting_schedule_members(
    registry: ContractRegistry,
    publisher: str,
    schedules: Sequence[VestingScheduleInput],
    update_schedules: UpdateSchedules,
    logger: StructuredLogger | None = None,
) -> list[VestingScheduleInput]:
    """
    Register each definition's members as beneficiaries.

    A definition with any member already marked ``assigned`` is skipped.
    Members without an address or allocation are ignored.

    Raises:
        DeploymentError: A definition has not been deployed yet
        VestingError: The schedule rejected the beneficiaries
    """
    logger = logger or get_structured_logger()

    for definition in schedules:
        if not definition.contract_address:
            raise DeploymentError(f"Vesting schedule {definition.name} has not been deployed")
        schedule = registry.get_schedule(definition.contract_address)
        if schedule is None:
            raise DeploymentError(
                f"Vesting contract for {definition.name} not found",
                details={"address": definition.contract_address},
            )

        if any(member.assigned for member in definition.members):
            logger.info(
                f"Members already assigned to {definition.name} vesting schedule.",
                schedule=definition.name,
            )
            continue

        available = [member for member in definition.members if member.is_assignable]
        if not available:
            logger.warn(f"No members to assign to {definition.name}", schedule=definition.name)
            continue

        amounts = [to_base_units(member.tokens_allocated) for member in available]
        schedule.add_beneficiaries(publisher, [member.address for member in available], amounts)
        for member in available:
            member.assigned = True

        logger.members_assigned(
            definition.name, [member.address for member in available], sum(amounts)
        )
        update_schedules(schedules)

    return list(schedules)
