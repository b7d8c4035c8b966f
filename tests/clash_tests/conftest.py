"""
Shared fixtures for Clash vesting tests.
"""

from __future__ import annotations

import pytest

from clash.core.contracts.registry import ContractRegistry, deploy_clash_token
from tests.clash_tests.helpers import PUBLISHER, TGE, ManualClock, StubLogger, tokens


@pytest.fixture
def clock():
    return ManualClock(start_time=TGE)


@pytest.fixture
def registry(clock):
    return ContractRegistry(time_provider=clock.now)


@pytest.fixture
def clash_token(registry):
    return deploy_clash_token(registry, PUBLISHER)


@pytest.fixture
def schedule(registry, clash_token):
    return registry.deploy_vesting_schedule(
        creator=PUBLISHER, token_address=clash_token.address, start=TGE, name="Team"
    )


@pytest.fixture
def funded_schedule(schedule, clash_token):
    clash_token.transfer(PUBLISHER, schedule.address, tokens(1000))
    return schedule


@pytest.fixture
def stub_logger():
    return StubLogger()
