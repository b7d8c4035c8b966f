from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, conint, constr, model_validator

from clash.core.constants import MAX_TOTAL_PERCENT_X100


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class UnlockEventInput(_CamelModel):
    percent_x100: conint(ge=0, le=MAX_TOTAL_PERCENT_X100) = Field(alias="percentX100")
    unlock_time: conint(ge=0) = Field(alias="unlockTime")


class ScheduleMemberInput(_CamelModel):
    address: str = ""
    tokens_allocated: conint(ge=0) = Field(default=0, alias="tokensAllocated")
    name: str = ""
    assigned: bool = False

    @property
    def is_assignable(self) -> bool:
        return bool(self.address) and self.tokens_allocated > 0


class VestingScheduleInput(_CamelModel):
    name: constr(min_length=1)
    days_before_tge: conint(ge=0) = Field(default=0, alias="daysBeforeTge")
    tokens_allocated: conint(ge=0) = Field(alias="tokensAllocated")
    unlock_events: list[UnlockEventInput] = Field(default_factory=list, alias="unlockEvents")
    members: list[ScheduleMemberInput] = Field(default_factory=list)
    contract_address: str | None = Field(default=None, alias="contractAddress")

    @model_validator(mode="after")
    def _check_totals(self) -> "VestingScheduleInput":
        total_percent = sum(event.percent_x100 for event in self.unlock_events)
        if total_percent > MAX_TOTAL_PERCENT_X100:
            raise ValueError(
                f"unlockEvents of {self.name} sum to {total_percent}, above {MAX_TOTAL_PERCENT_X100}"
            )
        allocated = sum(member.tokens_allocated for member in self.members if member.address)
        if allocated > self.tokens_allocated:
            raise ValueError(
                f"members of {self.name} are allocated {allocated} tokens, "
                f"above the schedule's {self.tokens_allocated}"
            )
        return self

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class VestingConfigurationInput(_CamelModel):
    tge_timestamp: Optional[conint(ge=0)] = Field(default=None, alias="tgeTimestamp")

