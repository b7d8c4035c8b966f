"""
Cumulative unlock curve for vesting schedules.

An unlock curve is an append-only log of (unlock time, percentX100) pairs.
Each pair adds its percentage to the fraction of every allocation that is
claimable once the unlock time has passed. Percentages are scaled by 100
(10000 == 100%) and never summed past 10000.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from clash.core.constants import MAX_TOTAL_PERCENT_X100
from clash.core.vesting_exceptions import (
    InvalidParamsError,
    InvalidPercentError,
    UnlockBeforeStartError,
    UnlockOutOfOrderError,
)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class UnlockEvent:
    """A single step of the unlock curve."""

    unlock_time: int
    percent_x100: int

    def to_dict(self) -> dict[str, int]:
        return {"unlockTime": self.unlock_time, "percentX100": self.percent_x100}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UnlockEvent":
        return cls(unlock_time=int(data["unlockTime"]), percent_x100=int(data["percentX100"]))


class UnlockCurve:
    """
    Append-only, time-ordered sequence of unlock events.

    The latest unlock time and the running percentage total are tracked
    incrementally, so each extension is validated against them instead of
    re-scanning stored events.
    """

    def __init__(self, start: int):
        if not _is_int(start):
            raise InvalidParamsError("Start time must be an integer timestamp")
        self.start = start
        self._events: list[UnlockEvent] = []
        self._total_percent = 0
        self._last_unlock_time: int | None = None

    def __len__(self) -> int:
        return len(self._events)

    @property
    def events(self) -> tuple[UnlockEvent, ...]:
        """Read-only snapshot in insertion order."""
        return tuple(self._events)

    @property
    def total_percent(self) -> int:
        return self._total_percent

    @property
    def last_unlock_time(self) -> int | None:
        return self._last_unlock_time

    def append(self, percentages: Sequence[int], times: Sequence[int]) -> tuple[UnlockEvent, ...]:
        """
        Append a batch of unlock events.

        The whole batch is validated before anything is stored; a rejected
        batch leaves the curve untouched.

        Args:
            percentages: percentX100 increments, one per event
            times: Unlock timestamps, one per event

        Returns:
            The events that were appended

        Raises:
            InvalidParamsError: Lengths differ or values are not integers
            UnlockBeforeStartError: First event of the curve precedes start
            UnlockOutOfOrderError: An event precedes the latest unlock time
            InvalidPercentError: Cumulative percentage would exceed 10000
        """
        percentages = list(percentages)
        times = list(times)
        if len(percentages) != len(times):
            raise InvalidParamsError(
                "Invalid params",
                details={"percentages": len(percentages), "times": len(times)},
            )

        latest = self._last_unlock_time
        total = self._total_percent
        pending: list[UnlockEvent] = []

        for index, (percent, unlock_time) in enumerate(zip(percentages, times)):
            if not _is_int(percent) or not _is_int(unlock_time):
                raise InvalidParamsError("Invalid params", details={"index": index})

            if latest is None:
                if unlock_time < self.start:
                    raise UnlockBeforeStartError(
                        "Unlock time must start from TGE",
                        details={"index": index, "unlock_time": unlock_time, "start": self.start},
                    )
            elif unlock_time < latest:
                raise UnlockOutOfOrderError(
                    "Unlock time has to be in order",
                    details={"index": index, "unlock_time": unlock_time, "latest": latest},
                )

            if percent < 0 or percent > MAX_TOTAL_PERCENT_X100:
                raise InvalidPercentError(
                    "Invalid percent values", details={"index": index, "percent_x100": percent}
                )

            latest = unlock_time
            total += percent
            pending.append(UnlockEvent(unlock_time=unlock_time, percent_x100=percent))

        if total > MAX_TOTAL_PERCENT_X100:
            raise InvalidPercentError(
                "Invalid percent values",
                details={"total_percent_x100": total, "max": MAX_TOTAL_PERCENT_X100},
            )

        self._events.extend(pending)
        self._total_percent = total
        self._last_unlock_time = latest
        return tuple(pending)

    def claimable_percent(self, now: int) -> int:
        """Cumulative percentX100 of every event whose unlock time is <= now."""
        if now < self.start:
            return 0
        unlocked = 0
        for event in self._events:
            if event.unlock_time > now:
                break
            unlocked += event.percent_x100
        return unlocked

    def is_matured(self, now: int) -> bool:
        """True once the final stored unlock time has passed."""
        return self._last_unlock_time is not None and now >= self._last_unlock_time

    def to_list(self) -> list[dict[str, int]]:
        return [event.to_dict() for event in self._events]

    @classmethod
    def from_list(cls, start: int, events: Sequence[dict[str, Any]]) -> "UnlockCurve":
        curve = cls(start)
        if events:
            loaded = [UnlockEvent.from_dict(item) for item in events]
            curve.append(
                [event.percent_x100 for event in loaded],
                [event.unlock_time for event in loaded],
            )
        return curve
