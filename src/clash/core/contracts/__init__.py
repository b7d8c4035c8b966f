"""
Clash contracts: token ledger, unlock curve, vesting schedule and registry.
"""

from clash.core.contracts.erc20 import ERC20Token, TokenEvent
from clash.core.contracts.ownable import Ownable
from clash.core.contracts.registry import ContractRegistry, deploy_clash_token
from clash.core.contracts.unlock_curve import UnlockCurve, UnlockEvent
from clash.core.contracts.vesting import ScheduleState, VestingEvent, VestingSchedule

__all__ = [
    "ContractRegistry",
    "ERC20Token",
    "Ownable",
    "ScheduleState",
    "TokenEvent",
    "UnlockCurve",
    "UnlockEvent",
    "VestingEvent",
    "VestingSchedule",
    "deploy_clash_token",
]
