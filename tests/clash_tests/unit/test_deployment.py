"""
Tests for JSON-driven schedule deployment and member assignment.
"""

import json

import pytest

from clash.core.input_validation_schemas import VestingConfigurationInput, VestingScheduleInput
from clash.core.vesting_exceptions import ConfigurationError, DeploymentError
from clash.deployment.schedules import (
    assign_vesting_schedule_members,
    deploy_vesting_schedules,
    load_vesting_configuration,
    load_vesting_schedules,
    save_vesting_schedules,
    schedule_start_time,
)
from tests.clash_tests.helpers import DAY, MONTH, OTHER_USER, PUBLISHER, TGE, USER, tokens


def _definitions():
    return [
        VestingScheduleInput.model_validate(
            {
                "name": "Team",
                "daysBeforeTge": 0,
                "tokensAllocated": 1000,
                "unlockEvents": [
                    {"percentX100": 400, "unlockTime": TGE},
                    {"percentX100": 9600, "unlockTime": TGE + MONTH},
                ],
                "members": [
                    {"address": USER, "tokensAllocated": 600, "name": "Alice"},
                    {"address": OTHER_USER, "tokensAllocated": 400, "name": "Bob"},
                ],
            }
        ),
        VestingScheduleInput.model_validate(
            {
                "name": "Seed",
                "daysBeforeTge": 7,
                "tokensAllocated": 500,
                "unlockEvents": [{"percentX100": 10000, "unlockTime": TGE - 7 * DAY}],
                "members": [
                    {"address": USER, "tokensAllocated": 500, "name": "Alice"},
                    {"address": "", "tokensAllocated": 0, "name": "Reserved"},
                ],
            }
        ),
    ]


@pytest.fixture
def configuration():
    return VestingConfigurationInput(tgeTimestamp=TGE)


@pytest.fixture
def updates():
    return []


@pytest.fixture
def deployed(registry, clash_token, configuration, updates, stub_logger):
    schedules = _definitions()
    contracts = deploy_vesting_schedules(
        registry,
        PUBLISHER,
        schedules,
        configuration,
        updates.append,
        token_address=clash_token.address,
        logger=stub_logger,
    )
    return schedules, contracts


def test_schedule_start_time():
    assert schedule_start_time(TGE, 0) == TGE
    assert schedule_start_time(TGE, 7) == TGE - 7 * DAY


def test_deploy_creates_configures_and_funds(deployed, clash_token, updates):
    schedules, contracts = deployed
    team, seed = contracts

    assert [c.name for c in contracts] == ["Team", "Seed"]
    assert team.start == TGE
    assert seed.start == TGE - 7 * DAY
    assert schedules[0].contract_address == team.address
    assert schedules[1].contract_address == seed.address
    assert team.held_balance() == tokens(1000)
    assert seed.held_balance() == tokens(500)
    assert [e.percent_x100 for e in team.get_unlock_events()] == [400, 9600]
    assert len(updates) == 2


def test_deploy_is_idempotent(deployed, registry, clash_token, configuration, stub_logger):
    schedules, contracts = deployed
    publisher_balance = clash_token.balance_of(PUBLISHER)
    extra_updates = []

    again = deploy_vesting_schedules(
        registry,
        PUBLISHER,
        schedules,
        configuration,
        extra_updates.append,
        token_address=clash_token.address,
        logger=stub_logger,
    )

    assert [c.address for c in again] == [c.address for c in contracts]
    assert len(registry.schedules) == 2
    assert len(again[0].get_unlock_events()) == 2
    assert clash_token.balance_of(PUBLISHER) == publisher_balance
    assert extra_updates == []
    assert any("Unlock events already added" in m for m in stub_logger.messages())


def test_deploy_requires_token_address(registry, configuration, stub_logger, monkeypatch):
    monkeypatch.delenv("CLASH_TOKEN_ADDRESS", raising=False)
    monkeypatch.delenv("BASE_CLASH_TOKEN_ADDRESS", raising=False)
    monkeypatch.setattr("clash.core.config.load_dotenv", lambda: None)

    with pytest.raises(ConfigurationError) as exc_info:
        deploy_vesting_schedules(registry, PUBLISHER, _definitions(), configuration, lambda s: None, logger=stub_logger)
    assert exc_info.value.message == "Clash address is not set"


def test_deploy_reads_token_address_from_environment(registry, clash_token, configuration, stub_logger, monkeypatch):
    monkeypatch.setenv("CLASH_TOKEN_ADDRESS", clash_token.address)

    contracts = deploy_vesting_schedules(
        registry, PUBLISHER, _definitions(), configuration, lambda s: None, logger=stub_logger
    )
    assert len(contracts) == 2


def test_deploy_rejects_unknown_token(registry, configuration, stub_logger):
    with pytest.raises(ConfigurationError):
        deploy_vesting_schedules(
            registry,
            PUBLISHER,
            _definitions(),
            configuration,
            lambda s: None,
            token_address="0x" + "7" * 40,
            logger=stub_logger,
        )


def test_deploy_requires_tge(registry, clash_token, stub_logger):
    with pytest.raises(ConfigurationError) as exc_info:
        deploy_vesting_schedules(
            registry,
            PUBLISHER,
            _definitions(),
            VestingConfigurationInput(),
            lambda s: None,
            token_address=clash_token.address,
            logger=stub_logger,
        )
    assert exc_info.value.message == "TGE timestamp is not set"


def test_deploy_rejects_missing_recorded_contract(registry, clash_token, configuration, stub_logger):
    schedules = _definitions()
    schedules[0].contract_address = "0x" + "5" * 40

    with pytest.raises(DeploymentError):
        deploy_vesting_schedules(
            registry,
            PUBLISHER,
            schedules,
            configuration,
            lambda s: None,
            token_address=clash_token.address,
            logger=stub_logger,
        )


def test_assign_members(deployed, registry, stub_logger, clock):
    schedules, contracts = deployed
    updates = []

    assign_vesting_schedule_members(registry, PUBLISHER, schedules, updates.append, logger=stub_logger)

    team, seed = contracts
    assert team.get_beneficiaries() == [USER, OTHER_USER]
    assert team.token_amount(USER) == tokens(600)
    assert seed.get_beneficiaries() == [USER]
    assert all(m.assigned for m in schedules[0].members)
    assert schedules[1].members[1].assigned is False
    assert len(updates) == 2

    clock.set(TGE + MONTH)
    assert seed.claim_tokens(USER) == tokens(500)


def test_assign_members_skips_assigned_schedules(deployed, registry, stub_logger):
    schedules, contracts = deployed
    assign_vesting_schedule_members(registry, PUBLISHER, schedules, lambda s: None, logger=stub_logger)

    assign_vesting_schedule_members(registry, PUBLISHER, schedules, lambda s: None, logger=stub_logger)

    assert contracts[0].token_amount(USER) == tokens(600)
    assert any("Members already assigned" in m for m in stub_logger.messages())


def test_assign_members_requires_deployment(registry, stub_logger):
    with pytest.raises(DeploymentError):
        assign_vesting_schedule_members(registry, PUBLISHER, _definitions(), lambda s: None, logger=stub_logger)


def test_schedule_file_round_trip(tmp_path, deployed):
    schedules, _ = deployed
    path = tmp_path / "schedules.json"

    save_vesting_schedules(path, schedules)
    raw = json.loads(path.read_text())
    assert raw[0]["contractAddress"] == schedules[0].contract_address
    assert raw[0]["unlockEvents"][0] == {"percentX100": 400, "unlockTime": TGE}

    loaded = load_vesting_schedules(path)
    assert [s.name for s in loaded] == ["Team", "Seed"]
    assert loaded[1].days_before_tge == 7


def test_load_schedules_errors(tmp_path):
    with pytest.raises(ConfigurationError):
        load_vesting_schedules(tmp_path / "missing.json")

    bad_json = tmp_path / "bad.json"
    bad_json.write_text("{not json")
    with pytest.raises(ConfigurationError):
        load_vesting_schedules(bad_json)

    not_a_list = tmp_path / "object.json"
    not_a_list.write_text(json.dumps({"name": "Team"}))
    with pytest.raises(ConfigurationError):
        load_vesting_schedules(not_a_list)

    invalid = tmp_path / "invalid.json"
    invalid.write_text(json.dumps([{"name": "Team"}]))
    with pytest.raises(ConfigurationError) as exc_info:
        load_vesting_schedules(invalid)
    assert exc_info.value.details["errors"]


def test_load_configuration(tmp_path):
    path = tmp_path / "configuration.json"
    path.write_text(json.dumps({"tgeTimestamp": TGE}))

    assert load_vesting_configuration(path).tge_timestamp == TGE
    with pytest.raises(ConfigurationError):
        load_vesting_configuration(tmp_path / "missing.json")
