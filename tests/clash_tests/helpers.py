"""
Shared constants and test doubles for Clash vesting tests.
"""

from __future__ import annotations

from clash.core.constants import WEI_PER_TOKEN

TGE = 1_735_689_600  # 2025-01-01T00:00:00Z
DAY = 86_400
MONTH = 30 * DAY

PUBLISHER = "0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266"
USER = "0x70997970c51812dc3a010c7d01b50e0d17dc79c8"
OTHER_USER = "0x3c44cdddb6a900fa2b585dd299e03d12fa4293bc"
STRANGER = "0x90f79bf6eb2c4f870365e785982e1f101e93b906"

STANDARD_PERCENTAGES = [400, 1000, 1000, 7600]
STANDARD_TIMES = [TGE, TGE + MONTH, TGE + 2 * MONTH, TGE + 3 * MONTH]


def tokens(amount: int) -> int:
    """Whole CLASH tokens in base units."""
    return amount * WEI_PER_TOKEN


class ManualClock:
    def __init__(self, start_time: int):
        self.current_time = start_time

    def now(self) -> int:
        return self.current_time

    def advance(self, seconds: int):
        self.current_time += seconds

    def set(self, timestamp: int):
        self.current_time = timestamp


class StubLogger:
    """Records structured logger calls without writing anything."""

    def __init__(self):
        self.records = []

    def _record(self, level, message, **kwargs):
        self.records.append((level, message, kwargs))

    def info(self, message, **kwargs):
        self._record("INFO", message, **kwargs)

    def warn(self, message, **kwargs):
        self._record("WARN", message, **kwargs)

    def error(self, message, **kwargs):
        self._record("ERROR", message, **kwargs)

    def schedule_deployed(self, name, address, start, token):
        self._record("INFO", "schedule_deployed", schedule=name, address=address, start=start)

    def members_assigned(self, schedule, members, total_amount):
        self._record("INFO", "members_assigned", schedule=schedule, members=members, total=total_amount)

    def messages(self):
        return [message for _, message, _ in self.records]
