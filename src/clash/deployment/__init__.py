"""JSON-driven deployment of vesting schedules."""

from clash.deployment.schedules import (
    assign_vesting_schedule_members,
    deploy_vesting_schedules,
    load_vesting_configuration,
    load_vesting_schedules,
    save_vesting_schedules,
    schedule_start_time,
)

__all__ = [
    "assign_vesting_schedule_members",
    "deploy_vesting_schedules",
    "load_vesting_configuration",
    "load_vesting_schedules",
    "save_vesting_schedules",
    "schedule_start_time",
]
