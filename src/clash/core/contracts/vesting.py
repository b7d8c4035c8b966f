"""
Token vesting schedule contract.

A VestingSchedule holds a balance of one ERC20 token and releases it to
registered beneficiaries as its unlock curve progresses:

- The owner extends the unlock curve (append-only)
- The owner registers beneficiaries and tops up their allocations
- Beneficiaries claim whatever has unlocked since their last claim
- Once the final unlock time has passed the owner may sweep any token

All amounts are integers in the token's smallest unit and all percentage
math is fixed-point (x100), truncating toward zero.

Every public mutating call runs under one schedule-wide lock, so calls are
fully serialized and a rejected call leaves no partial state behind.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Sequence

from clash.core.constants import PERCENT_X100_SCALE, ZERO_ADDRESS
from clash.core.contracts.erc20 import ERC20Token
from clash.core.contracts.ownable import Ownable
from clash.core.contracts.unlock_curve import UnlockCurve, UnlockEvent
from clash.core.vesting_exceptions import (
    AlreadyFullyReleasedError,
    InsufficientFundsError,
    InvalidParamsError,
    NothingAllocatedError,
    NothingToWithdrawError,
    VestingNotEndedError,
    ZeroAddressError,
    ZeroAmountError,
)

logger = logging.getLogger(__name__)

TimeProvider = Callable[[], int]
TokenResolver = Callable[[str], "ERC20Token | None"]


class ScheduleState(Enum):
    """Time-driven lifecycle of a schedule."""

    CREATED = "created"
    CURVE_BUILDING = "curve_building"
    ACTIVE = "active"
    MATURED = "matured"


@dataclass
class VestingEvent:
    """Audit record emitted by every successful mutation."""

    event_type: str  # "UnlockEventsAdded", "AllocationAdded", "TokensClaimed", "Withdrawal"
    data: dict[str, Any]
    timestamp: int = field(default_factory=lambda: int(time.time()))


class VestingSchedule(Ownable):
    """
    Vesting ledger for a single schedule (e.g. "Team", "Advisors").

    Args:
        token: Token being vested
        start: Schedule anchor timestamp (TGE minus any pre-TGE offset)
        name: Human readable schedule name
        owner: Administrator address
        address: Contract address holding the vested balance
        time_provider: Returns the current unix time; defaults to wall clock
        token_resolver: Looks up other tokens by address for sweeping
    """

    def __init__(
        self,
        token: ERC20Token,
        start: int,
        name: str,
        owner: str,
        address: str,
        time_provider: TimeProvider | None = None,
        token_resolver: TokenResolver | None = None,
    ):
        if not address or address.lower() == ZERO_ADDRESS:
            raise ZeroAddressError("Vesting: contract address cannot be 0")
        self._init_owner(owner)
        self.token = token
        self.name = name
        self.address = address.lower()
        self._curve = UnlockCurve(start)
        self._beneficiaries: list[str] = []
        self._token_amounts: dict[str, int] = {}
        self._released_amounts: dict[str, int] = {}
        self._time_provider = time_provider or (lambda: int(time.time()))
        self._token_resolver = token_resolver
        self._lock = threading.RLock()
        self.events: list[VestingEvent] = []

    # ==================== Time ====================

    def _current_time(self) -> int:
        timestamp = self._time_provider()
        try:
            return int(timestamp)
        except (TypeError, ValueError) as exc:
            raise ValueError("time_provider must return an integer timestamp") from exc

    def _resolve_time(self, current_time: int | None) -> int:
        return self._current_time() if current_time is None else int(current_time)

    # ==================== View Functions ====================

    @property
    def start(self) -> int:
        return self._curve.start

    @property
    def vesting_name(self) -> str:
        return self.name

    @property
    def total_allocated(self) -> int:
        return sum(self._token_amounts.values())

    @property
    def total_released(self) -> int:
        return sum(self._released_amounts.values())

    @property
    def outstanding_amount(self) -> int:
        """Allocated tokens not yet released."""
        return self.total_allocated - self.total_released

    @property
    def last_unlock_time(self) -> int | None:
        return self._curve.last_unlock_time

    def held_balance(self) -> int:
        """Balance of the vested token held by this schedule."""
        return self.token.balance_of(self.address)

    def get_unlock_events(self) -> tuple[UnlockEvent, ...]:
        return self._curve.events

    def get_beneficiaries(self) -> list[str]:
        """Beneficiaries in registration order."""
        return list(self._beneficiaries)

    def token_amount(self, beneficiary: str) -> int:
        return self._token_amounts.get(self._normalize(beneficiary), 0)

    def released_amount(self, beneficiary: str) -> int:
        return self._released_amounts.get(self._normalize(beneficiary), 0)

    def claimable_percent(self, now: int | None = None) -> int:
        """Cumulative percentX100 unlocked at ``now`` (0 before start)."""
        return self._curve.claimable_percent(self._resolve_time(now))

    def claimable_amount(self, beneficiary: str, now: int | None = None) -> int:
        """
        Tokens unlocked for a beneficiary but not yet released.

        floor(allocation * claimablePercent / 10000) - released, clamped at 0.
        """
        beneficiary_norm = self._normalize(beneficiary)
        allocation = self._token_amounts.get(beneficiary_norm, 0)
        if allocation == 0:
            return 0
        unlocked = allocation * self.claimable_percent(now) // PERCENT_X100_SCALE
        return max(0, unlocked - self._released_amounts.get(beneficiary_norm, 0))

    def state(self, now: int | None = None) -> ScheduleState:
        now = self._resolve_time(now)
        if len(self._curve) == 0:
            return ScheduleState.CREATED
        if now < self.start:
            return ScheduleState.CURVE_BUILDING
        if self._curve.is_matured(now):
            return ScheduleState.MATURED
        return ScheduleState.ACTIVE

    def summary(self, now: int | None = None) -> dict[str, Any]:
        """Snapshot of the schedule for reporting."""
        now = self._resolve_time(now)
        return {
            "name": self.name,
            "address": self.address,
            "token": self.token.address,
            "owner": self.owner,
            "start": self.start,
            "state": self.state(now).value,
            "claimable_percent_x100": self.claimable_percent(now),
            "total_percent_x100": self._curve.total_percent,
            "last_unlock_time": self.last_unlock_time,
            "held_balance": self.held_balance(),
            "total_allocated": self.total_allocated,
            "total_released": self.total_released,
            "beneficiaries": len(self._beneficiaries),
        }

    # ==================== Administration ====================

    def append_unlock_events(
        self, caller: str, percentages: Sequence[int], times: Sequence[int]
    ) -> tuple[UnlockEvent, ...]:
        """
        Extend the unlock curve (owner only).

        Raises:
            UnauthorizedError: Caller is not the owner
            InvalidParamsError, UnlockBeforeStartError, UnlockOutOfOrderError,
            InvalidPercentError: See UnlockCurve.append
        """
        with self._lock:
            self._require_owner(caller)
            appended = self._curve.append(percentages, times)
            self._emit(
                "UnlockEventsAdded",
                {
                    "percentages": [event.percent_x100 for event in appended],
                    "times": [event.unlock_time for event in appended],
                },
            )

        logger.info(
            "Unlock events added",
            extra={
                "event": "vesting.unlock_events_added",
                "schedule": self.name,
                "count": len(appended),
                "total_percent_x100": self._curve.total_percent,
            },
        )
        return appended

    def add_beneficiaries(
        self, caller: str, addresses: Sequence[str], amounts: Sequence[int]
    ) -> None:
        """
        Register beneficiaries or top up existing allocations (owner only).

        The held balance must cover every allocation net of what was already
        released, including the new batch.

        Raises:
            UnauthorizedError: Caller is not the owner
            InvalidParamsError: Lengths differ or an amount is not an integer
            ZeroAddressError: A beneficiary is the zero address
            ZeroAmountError: An amount is not strictly positive
            InsufficientFundsError: Balance cannot cover the new allocations
        """
        with self._lock:
            self._require_owner(caller)
            addresses = list(addresses)
            amounts = list(amounts)
            if len(addresses) != len(amounts):
                raise InvalidParamsError(
                    "Invalid params",
                    details={"addresses": len(addresses), "amounts": len(amounts)},
                )

            batch: list[tuple[str, int]] = []
            for index, (address, amount) in enumerate(zip(addresses, amounts)):
                address_norm = self._normalize(address)
                if not address_norm or address_norm == ZERO_ADDRESS:
                    raise ZeroAddressError(
                        "The beneficiary's address cannot be 0", details={"index": index}
                    )
                if not isinstance(amount, int) or isinstance(amount, bool):
                    raise InvalidParamsError("Invalid params", details={"index": index})
                if amount <= 0:
                    raise ZeroAmountError(
                        "Amount has to be greater than 0",
                        details={"index": index, "address": address_norm},
                    )
                batch.append((address_norm, amount))

            required = self.outstanding_amount + sum(amount for _, amount in batch)
            held = self.held_balance()
            if required > held:
                raise InsufficientFundsError(
                    "Not enough token to cover",
                    details={"required": required, "held": held},
                )

            for address_norm, amount in batch:
                if address_norm not in self._token_amounts:
                    self._beneficiaries.append(address_norm)
                    self._token_amounts[address_norm] = 0
                self._token_amounts[address_norm] += amount
                self._emit(
                    "AllocationAdded",
                    {
                        "beneficiary": address_norm,
                        "amount": amount,
                        "total": self._token_amounts[address_norm],
                    },
                )

        logger.info(
            "Beneficiaries added",
            extra={
                "event": "vesting.beneficiaries_added",
                "schedule": self.name,
                "count": len(batch),
                "total_allocated": self.total_allocated,
            },
        )

    # ==================== Claims ====================

    def claim_tokens(self, caller: str, current_time: int | None = None) -> int:
        """
        Release everything unlocked for the caller since their last claim.

        Returns:
            Amount transferred to the caller

        Raises:
            NothingAllocatedError: No allocation, or nothing newly unlocked
            AlreadyFullyReleasedError: The full allocation was already released
            TokenTransferError: The ledger rejected the transfer
        """
        with self._lock:
            beneficiary = self._normalize(caller)
            now = self._resolve_time(current_time)
            allocation = self._token_amounts.get(beneficiary, 0)
            released = self._released_amounts.get(beneficiary, 0)

            if allocation == 0:
                raise NothingAllocatedError("No tokens to claim", details={"beneficiary": beneficiary})
            if released >= allocation:
                raise AlreadyFullyReleasedError(
                    "User already released all available tokens",
                    details={"beneficiary": beneficiary, "released": released},
                )

            amount = self.claimable_amount(beneficiary, now)
            if amount == 0:
                raise NothingAllocatedError(
                    "No tokens to claim",
                    details={"beneficiary": beneficiary, "claimable_percent_x100": self.claimable_percent(now)},
                )

            # Transfer first: a failing transfer must not advance the released amount
            self.token.transfer(self.address, beneficiary, amount)
            self._released_amounts[beneficiary] = released + amount
            self._emit("TokensClaimed", {"beneficiary": beneficiary, "amount": amount}, now)

        logger.info(
            "Tokens claimed",
            extra={
                "event": "vesting.tokens_claimed",
                "schedule": self.name,
                "beneficiary": beneficiary[:10],
                "amount": amount,
            },
        )
        return amount

    # ==================== Sweep ====================

    def withdraw_all_erc20(
        self, caller: str, token_address: str, current_time: int | None = None
    ) -> int:
        """
        Sweep the schedule's entire balance of a token to the owner.

        Only allowed once the last unlock time has passed. The whole balance
        moves, including tokens still owed to beneficiaries who have not
        claimed yet.

        Returns:
            Amount transferred to the owner

        Raises:
            UnauthorizedError: Caller is not the owner
            VestingNotEndedError: The unlock curve has not matured
            NothingToWithdrawError: No balance of the named token
        """
        with self._lock:
            self._require_owner(caller)
            now = self._resolve_time(current_time)
            if not self._curve.is_matured(now):
                raise VestingNotEndedError(
                    "Vesting period not ended",
                    details={"now": now, "last_unlock_time": self.last_unlock_time},
                )

            token = self._resolve_token(token_address)
            balance = token.balance_of(self.address) if token is not None else 0
            if balance <= 0:
                raise NothingToWithdrawError(
                    "No tokens to withdraw", details={"token": self._normalize(token_address)}
                )

            token.transfer(self.address, self.owner, balance)
            self._emit("Withdrawal", {"token": token.address, "to": self.owner, "amount": balance}, now)

        logger.info(
            "Schedule balance withdrawn",
            extra={
                "event": "vesting.withdrawal",
                "schedule": self.name,
                "token": token.symbol,
                "amount": balance,
            },
        )
        return balance

    # ==================== Helpers ====================

    @staticmethod
    def _normalize(address: str) -> str:
        return (address or "").lower()

    def _resolve_token(self, token_address: str) -> ERC20Token | None:
        address_norm = self._normalize(token_address)
        if address_norm == self.token.address:
            return self.token
        if self._token_resolver is None:
            return None
        return self._token_resolver(address_norm)

    def _emit(self, event_type: str, data: dict[str, Any], now: int | None = None) -> None:
        self.events.append(
            VestingEvent(event_type=event_type, data=data, timestamp=self._resolve_time(now))
        )

    # ==================== Serialization ====================

    def to_dict(self) -> dict[str, Any]:
        """Serialize schedule state to dictionary."""
        return {
            "name": self.name,
            "address": self.address,
            "token": self.token.address,
            "owner": self.owner,
            "start": self.start,
            "unlock_events": self._curve.to_list(),
            "beneficiaries": list(self._beneficiaries),
            "token_amounts": {k: str(v) for k, v in self._token_amounts.items()},
            "released_amounts": {k: str(v) for k, v in self._released_amounts.items()},
            "events": [
                {"event_type": e.event_type, "data": e.data, "timestamp": e.timestamp} for e in self.events
            ],
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        token: ERC20Token,
        time_provider: TimeProvider | None = None,
        token_resolver: TokenResolver | None = None,
    ) -> "VestingSchedule":
        """Deserialize schedule state from dictionary."""
        schedule = cls(
            token=token,
            start=int(data["start"]),
            name=data["name"],
            owner=data["owner"],
            address=data["address"],
            time_provider=time_provider,
            token_resolver=token_resolver,
        )
        schedule._curve = UnlockCurve.from_list(schedule.start, data.get("unlock_events", []))
        token_amounts = {k: int(v) for k, v in data.get("token_amounts", {}).items()}
        schedule._beneficiaries = [b for b in data.get("beneficiaries", []) if b in token_amounts]
        schedule._token_amounts = token_amounts
        schedule._released_amounts = {k: int(v) for k, v in data.get("released_amounts", {}).items()}
        schedule.events = [
            VestingEvent(event_type=e["event_type"], data=e["data"], timestamp=int(e["timestamp"]))
            for e in data.get("events", [])
        ]
        return schedule
