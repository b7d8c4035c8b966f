"""
Clash - Token Vesting Engine

Fixed-supply CLASH token ledger plus the vesting schedules that release it
to beneficiaries along a cumulative unlock curve anchored to the TGE.

Main Components:
- Contracts: ERC20 ledger, unlock curve, vesting schedule, contract registry
- Deployment: JSON-driven schedule deployment and member assignment
- CLI: operator commands for deploying, inspecting, claiming and sweeping
"""

__version__ = "0.1.0"
__author__ = "Clash Development Team"

from clash.core.contracts.erc20 import ERC20Token
from clash.core.contracts.registry import ContractRegistry
from clash.core.contracts.unlock_curve import UnlockCurve, UnlockEvent
from clash.core.contracts.vesting import ScheduleState, VestingEvent, VestingSchedule

__all__ = [
    "ContractRegistry",
    "ERC20Token",
    "ScheduleState",
    "UnlockCurve",
    "UnlockEvent",
    "VestingEvent",
    "VestingSchedule",
]
