#!/usr/bin/env python3
"""
Clash Vesting CLI Commands - Operator Interface

Commands operate on a local contract registry state file:
- Deploy the CLASH token and the vesting schedules
- Assign schedule members
- Inspect schedules, claim and sweep at the current or a simulated time
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import click
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from clash.core.config import get_settings
from clash.core.contracts.registry import ContractRegistry, deploy_clash_token
from clash.core.contracts.vesting import VestingSchedule
from clash.core.logging_config import setup_logging
from clash.core.structured_logger import LogContext, get_structured_logger
from clash.core.units import format_clash, format_percent_x100, to_base_units
from clash.core.vesting_exceptions import ClashError
from clash.deployment.schedules import (
    assign_vesting_schedule_members,
    deploy_vesting_schedules,
    load_vesting_configuration,
    load_vesting_schedules,
    save_vesting_schedules,
)

logger = logging.getLogger(__name__)
console = Console()


def _handle_cli_error(exc: Exception, json_output: bool = False, exit_code: int = 1) -> None:
    """Centralized CLI error handler for consistent messaging/exit codes."""
    logger.error("CLI error: %s", exc, exc_info=True)
    if json_output:
        if isinstance(exc, ClashError):
            payload = exc.to_dict()
        else:
            payload = {"error": type(exc).__name__, "message": str(exc)}
        click.echo(json.dumps(payload, indent=2, default=str))
    else:
        console.print(f"[bold red]Error:[/] {exc}")
    sys.exit(exit_code)


def _format_time(timestamp: int | None) -> str:
    if timestamp is None:
        return "N/A"
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def _registry(ctx: click.Context) -> ContractRegistry:
    if "registry" not in ctx.obj:
        ctx.obj["registry"] = ContractRegistry.load(ctx.obj["state_path"])
    return ctx.obj["registry"]


def _save(ctx: click.Context) -> None:
    _registry(ctx).save(ctx.obj["state_path"])


def _schedule(ctx: click.Context, address: str) -> VestingSchedule:
    schedule = _registry(ctx).get_schedule(address)
    if schedule is None:
        raise click.ClickException(f"Unknown vesting schedule {address}")
    return schedule


def _emit(ctx: click.Context, payload: dict[str, Any], message: str) -> None:
    if ctx.obj["json_output"]:
        click.echo(json.dumps(payload, indent=2, default=str))
    else:
        console.print(message)


@click.group()
@click.option(
    "--state",
    "state_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Registry state file (defaults to CLASH_STATE_PATH)",
)
@click.option("--json-output", is_flag=True, help="Emit machine readable JSON")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Log to stderr at this level",
)
@click.pass_context
def cli(ctx: click.Context, state_path: Path | None, json_output: bool, log_level: str | None):
    """Clash token vesting operator commands."""
    ctx.ensure_object(dict)
    try:
        settings = get_settings()
    except ClashError as exc:
        _handle_cli_error(exc, json_output)
    setup_logging(
        name="clash",
        log_file=str(Path(settings.log_dir) / "clash.json") if settings.log_dir else None,
        level=log_level or settings.log_level,
        environment=settings.network.value,
        enable_console=log_level is not None,
    )
    ctx.obj["settings"] = settings
    ctx.obj["state_path"] = state_path or settings.state_path
    ctx.obj["json_output"] = json_output


@cli.command("deploy-token")
@click.option("--publisher", required=True, help="Address receiving the full CLASH supply")
@click.pass_context
def deploy_token(ctx: click.Context, publisher: str):
    """
    Deploy the CLASH token.

    Example:
        clash-vesting deploy-token --publisher 0xPUBLISHER
    """
    try:
        token = deploy_clash_token(_registry(ctx), publisher)
        _save(ctx)
        _emit(
            ctx,
            {"address": token.address, "total_supply": str(token.total_supply)},
            f"[bold green]ClashToken deployed to[/] {token.address}\n"
            f"Please update env\nCLASH_TOKEN_ADDRESS={token.address}",
        )
    except ClashError as exc:
        _handle_cli_error(exc, ctx.obj["json_output"])


@cli.command("deploy-schedules")
@click.option("--publisher", required=True, help="Deployer and owner of the schedules")
@click.option("--schedules", "schedules_path", type=click.Path(path_type=Path), help="Schedule definitions JSON")
@click.option("--configuration", "configuration_path", type=click.Path(path_type=Path), help="Vesting configuration JSON")
@click.option("--token", "token_address", help="CLASH token address (defaults to CLASH_TOKEN_ADDRESS)")
@click.pass_context
def deploy_schedules(
    ctx: click.Context,
    publisher: str,
    schedules_path: Path | None,
    configuration_path: Path | None,
    token_address: str | None,
):
    """
    Deploy, configure and fund every vesting schedule.

    Contract addresses are written back into the schedule definitions file.
    """
    settings = ctx.obj["settings"]
    schedules_path = schedules_path or settings.schedules_path
    configuration_path = configuration_path or settings.configuration_path
    registry = _registry(ctx)

    def update_schedules(schedules):
        save_vesting_schedules(schedules_path, schedules)
        _save(ctx)

    try:
        with LogContext():
            schedules = load_vesting_schedules(schedules_path)
            configuration = load_vesting_configuration(configuration_path)
            contracts = deploy_vesting_schedules(
                registry,
                publisher,
                schedules,
                configuration,
                update_schedules,
                token_address=token_address or settings.token_address,
                logger=get_structured_logger(log_dir=settings.log_dir),
            )
        update_schedules(schedules)
        addresses = [contract.address for contract in contracts]
        _emit(
            ctx,
            {"schedules": [contract.summary() for contract in contracts]},
            "[bold green]Vesting schedules deployed[/]\n"
            f"Please update env\nCLASH_VESTING_SCHEDULES={','.join(addresses)}",
        )
    except ClashError as exc:
        _handle_cli_error(exc, ctx.obj["json_output"])


@cli.command("assign-members")
@click.option("--publisher", required=True, help="Owner of the schedules")
@click.option("--schedules", "schedules_path", type=click.Path(path_type=Path), help="Schedule definitions JSON")
@click.pass_context
def assign_members(ctx: click.Context, publisher: str, schedules_path: Path | None):
    """Register the members of every deployed schedule as beneficiaries."""
    settings = ctx.obj["settings"]
    schedules_path = schedules_path or settings.schedules_path

    def update_schedules(schedules):
        save_vesting_schedules(schedules_path, schedules)
        _save(ctx)

    try:
        with LogContext():
            schedules = load_vesting_schedules(schedules_path)
            assign_vesting_schedule_members(
                _registry(ctx),
                publisher,
                schedules,
                update_schedules,
                logger=get_structured_logger(log_dir=settings.log_dir),
            )
        assigned = {
            schedule.name: [member.address for member in schedule.members if member.assigned]
            for schedule in schedules
        }
        _emit(ctx, {"assigned": assigned}, "[bold green]Members assigned[/]")
    except ClashError as exc:
        _handle_cli_error(exc, ctx.obj["json_output"])


@cli.command("add-unlock-events")
@click.option("--schedule", "schedule_address", required=True, help="Vesting schedule address")
@click.option("--caller", required=True, help="Schedule owner")
@click.option("--event", "events", multiple=True, required=True, help="UNLOCK_TIME:PERCENT_X100, repeatable")
@click.pass_context
def add_unlock_events(ctx: click.Context, schedule_address: str, caller: str, events: tuple[str, ...]):
    """
    Append unlock events to a schedule's curve.

    Example:
        clash-vesting add-unlock-events --schedule 0x.. --caller 0x.. --event 1735689600:400
    """
    try:
        times, percentages = [], []
        for item in events:
            unlock_time, _, percent = item.partition(":")
            times.append(int(unlock_time))
            percentages.append(int(percent))
    except ValueError:
        raise click.BadParameter("events must look like UNLOCK_TIME:PERCENT_X100", param_hint="--event")

    try:
        schedule = _schedule(ctx, schedule_address)
        appended = schedule.append_unlock_events(caller, percentages, times)
        _save(ctx)
        _emit(
            ctx,
            {"appended": [event.to_dict() for event in appended]},
            f"[bold green]{len(appended)} unlock events added to[/] {schedule.name}",
        )
    except (ClashError, click.ClickException) as exc:
        _handle_cli_error(exc, ctx.obj["json_output"])


@cli.command("add-beneficiaries")
@click.option("--schedule", "schedule_address", required=True, help="Vesting schedule address")
@click.option("--caller", required=True, help="Schedule owner")
@click.option("--member", "members", multiple=True, required=True, help="ADDRESS:WHOLE_TOKENS, repeatable")
@click.pass_context
def add_beneficiaries(ctx: click.Context, schedule_address: str, caller: str, members: tuple[str, ...]):
    """Register beneficiaries or top up their allocations."""
    try:
        addresses, amounts = [], []
        for item in members:
            address, _, tokens = item.rpartition(":")
            addresses.append(address)
            amounts.append(to_base_units(tokens))
    except ValueError:
        raise click.BadParameter("members must look like ADDRESS:WHOLE_TOKENS", param_hint="--member")

    try:
        schedule = _schedule(ctx, schedule_address)
        schedule.add_beneficiaries(caller, addresses, amounts)
        _save(ctx)
        _emit(
            ctx,
            {"beneficiaries": {a: str(schedule.token_amount(a)) for a in addresses}},
            f"[bold green]{len(addresses)} beneficiaries added to[/] {schedule.name}",
        )
    except (ClashError, click.ClickException) as exc:
        _handle_cli_error(exc, ctx.obj["json_output"])


@cli.command("status")
@click.option("--schedule", "schedule_address", required=True, help="Vesting schedule address")
@click.option("--at", "at_time", type=int, help="Evaluate at this unix timestamp")
@click.pass_context
def status(ctx: click.Context, schedule_address: str, at_time: int | None):
    """Show a schedule's curve, beneficiaries and claimable amounts."""
    try:
        schedule = _schedule(ctx, schedule_address)
    except click.ClickException as exc:
        _handle_cli_error(exc, ctx.obj["json_output"])
        return

    now = at_time if at_time is not None else _registry(ctx).time_provider()
    summary = schedule.summary(now)
    beneficiaries = [
        {
            "address": beneficiary,
            "allocated": schedule.token_amount(beneficiary),
            "released": schedule.released_amount(beneficiary),
            "claimable": schedule.claimable_amount(beneficiary, now),
        }
        for beneficiary in schedule.get_beneficiaries()
    ]

    if ctx.obj["json_output"]:
        click.echo(
            json.dumps(
                {
                    "schedule": summary,
                    "unlock_events": [event.to_dict() for event in schedule.get_unlock_events()],
                    "beneficiaries": beneficiaries,
                },
                indent=2,
                default=str,
            )
        )
        return

    overview = Table(show_header=False, box=box.ROUNDED)
    overview.add_row("[bold cyan]Name", schedule.name)
    overview.add_row("[bold cyan]Address", schedule.address)
    overview.add_row("[bold cyan]State", summary["state"])
    overview.add_row("[bold cyan]Start", _format_time(schedule.start))
    overview.add_row("[bold cyan]Unlocked", format_percent_x100(summary["claimable_percent_x100"]))
    overview.add_row("[bold green]Held", f"{format_clash(summary['held_balance'])} {schedule.token.symbol}")
    overview.add_row("[bold green]Allocated", f"{format_clash(summary['total_allocated'])} {schedule.token.symbol}")
    overview.add_row("[bold green]Released", f"{format_clash(summary['total_released'])} {schedule.token.symbol}")
    console.print(Panel(overview, title=f"[bold green]Vesting {schedule.name}", border_style="green"))

    curve = Table(title="Unlock Events", box=box.ROUNDED)
    curve.add_column("Unlock Time", style="cyan", no_wrap=True)
    curve.add_column("Percent", style="magenta", justify="right")
    curve.add_column("Unlocked", style="green")
    for event in schedule.get_unlock_events():
        curve.add_row(
            _format_time(event.unlock_time),
            format_percent_x100(event.percent_x100),
            "yes" if event.unlock_time <= now and now >= schedule.start else "no",
        )
    console.print(curve)

    if beneficiaries:
        members = Table(title="Beneficiaries", box=box.ROUNDED)
        members.add_column("Address", style="yellow")
        members.add_column("Allocated", justify="right")
        members.add_column("Released", justify="right")
        members.add_column("Claimable", style="green", justify="right")
        for row in beneficiaries:
            members.add_row(
                row["address"],
                format_clash(row["allocated"]),
                format_clash(row["released"]),
                format_clash(row["claimable"]),
            )
        console.print(members)


@cli.command("claim")
@click.option("--schedule", "schedule_address", required=True, help="Vesting schedule address")
@click.option("--beneficiary", required=True, help="Beneficiary claiming for themselves")
@click.option("--at", "at_time", type=int, help="Claim at this unix timestamp")
@click.pass_context
def claim(ctx: click.Context, schedule_address: str, beneficiary: str, at_time: int | None):
    """Release everything unlocked for a beneficiary."""
    try:
        schedule = _schedule(ctx, schedule_address)
        amount = schedule.claim_tokens(beneficiary, current_time=at_time)
        _save(ctx)
        get_structured_logger(log_dir=ctx.obj["settings"].log_dir).tokens_claimed(
            schedule.name, beneficiary, amount
        )
        _emit(
            ctx,
            {
                "beneficiary": beneficiary.lower(),
                "amount": str(amount),
                "released": str(schedule.released_amount(beneficiary)),
            },
            f"[bold green]Claimed[/] {format_clash(amount)} {schedule.token.symbol}",
        )
    except (ClashError, click.ClickException) as exc:
        _handle_cli_error(exc, ctx.obj["json_output"])


@cli.command("withdraw")
@click.option("--schedule", "schedule_address", required=True, help="Vesting schedule address")
@click.option("--caller", required=True, help="Schedule owner")
@click.option("--token", "token_address", required=True, help="Token to sweep")
@click.option("--at", "at_time", type=int, help="Withdraw at this unix timestamp")
@click.pass_context
def withdraw(ctx: click.Context, schedule_address: str, caller: str, token_address: str, at_time: int | None):
    """Sweep a matured schedule's entire token balance to its owner."""
    try:
        schedule = _schedule(ctx, schedule_address)
        amount = schedule.withdraw_all_erc20(caller, token_address, current_time=at_time)
        _save(ctx)
        get_structured_logger(log_dir=ctx.obj["settings"].log_dir).withdrawal(
            schedule.name, token_address, amount
        )
        _emit(
            ctx,
            {"token": token_address.lower(), "amount": str(amount), "to": schedule.owner},
            f"[bold yellow]Withdrew[/] {format_clash(amount)} to {schedule.owner}",
        )
    except (ClashError, click.ClickException) as exc:
        _handle_cli_error(exc, ctx.obj["json_output"])


@cli.command("balance")
@click.option("--token", "token_address", help="Token address (defaults to CLASH_TOKEN_ADDRESS)")
@click.option("--account", required=True, help="Account to query")
@click.pass_context
def balance(ctx: click.Context, token_address: str | None, account: str):
    """Show an account's token balance."""
    token_address = token_address or ctx.obj["settings"].token_address
    token = _registry(ctx).get_token(token_address or "")
    if token is None:
        _handle_cli_error(click.ClickException(f"Unknown token {token_address}"), ctx.obj["json_output"])
        return
    amount = token.balance_of(account)
    _emit(
        ctx,
        {"token": token.address, "account": account.lower(), "balance": str(amount)},
        f"{account}: {format_clash(amount)} {token.symbol}",
    )
