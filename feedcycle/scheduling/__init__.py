"""Schedule assignment."""

from .assigner import ScheduleAssigner
from .registries import MemoryAssignedSchedules, StaticScheduleRegistry, StaticSupporterRegistry

__all__ = [
    "MemoryAssignedSchedules",
    "ScheduleAssigner",
    "StaticScheduleRegistry",
    "StaticSupporterRegistry",
]
