"""
Scheduling Domain

Pure frequency expansion used by the treatment and appointment services.
"""

from .frequency import (
    FrequencyRule,
    HourIntervalRule,
    SpecificTimesRule,
    build_rule,
    expand,
    rule_for,
)

__all__ = [
    "FrequencyRule",
    "HourIntervalRule",
    "SpecificTimesRule",
    "build_rule",
    "expand",
    "rule_for",
]
