"""Frequency expansion - turns a treatment's dosing rule into timestamps.

Everything here is pure: no database access, no clock reads. Treatment and
appointment services call ``expand`` when a treatment is created and whenever
its rule or date range changes.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional, Union

from ...exceptions import ValidationError
from ...models import FrequencyType
from ...shared.validators import format_times_list, parse_times_list, validate_date_range

HOURS_PER_DAY = 24


@dataclass(frozen=True)
class HourIntervalRule:
    """Every N hours, restarting each day at N:00"""

    hours: int

    def __post_init__(self):
        if isinstance(self.hours, bool) or not isinstance(self.hours, int):
            raise ValidationError(f"Interval must be a whole number of hours, got {self.hours!r}")
        if not 1 <= self.hours < HOURS_PER_DAY:
            raise ValidationError(
                f"Interval must be between 1 and {HOURS_PER_DAY - 1} hours, got {self.hours}"
            )

    def times_of_day(self) -> list[time]:
        return [time(hour) for hour in range(self.hours, HOURS_PER_DAY, self.hours)]


@dataclass(frozen=True)
class SpecificTimesRule:
    """Fixed times of day, in the order the user listed them"""

    times: tuple[time, ...]

    def __post_init__(self):
        if not self.times:
            raise ValidationError("At least one time of day is required")
        if len(set(self.times)) != len(self.times):
            raise ValidationError("Times of day must not repeat")

    @classmethod
    def parse(cls, value: str) -> "SpecificTimesRule":
        return cls(tuple(parse_times_list(value)))

    def times_of_day(self) -> list[time]:
        return list(self.times)

    def as_text(self) -> str:
        return format_times_list(list(self.times))


FrequencyRule = Union[HourIntervalRule, SpecificTimesRule]


def build_rule(
    frequency_type,
    interval_hours: Optional[int] = None,
    specific_times: Optional[str] = None,
) -> FrequencyRule:
    """
    Validate the rule fields of a treatment and build the matching rule.

    Exactly the variant named by ``frequency_type`` must be populated.

    Raises:
        ValidationError: On an unknown type, a missing variant, or a stray one
    """
    kind = FrequencyType.from_code(frequency_type)

    if kind == FrequencyType.HOUR_INTERVAL:
        if specific_times:
            raise ValidationError("Specific times must be empty for an hour-interval rule")
        if interval_hours is None:
            raise ValidationError("Interval in hours is required for an hour-interval rule")
        return HourIntervalRule(interval_hours)

    if interval_hours is not None:
        raise ValidationError("Interval in hours must be empty for a specific-times rule")
    return SpecificTimesRule.parse(specific_times)


def rule_for(treatment) -> FrequencyRule:
    """Rebuild the rule stored on a treatment row"""
    return build_rule(treatment.frequency_type, treatment.interval_hours, treatment.specific_times)


def iter_days(start_date: date, end_date: date):
    day = start_date
    while day <= end_date:
        yield day
        day += timedelta(days=1)


def expand(start_date: date, end_date: date, rule: FrequencyRule) -> list[datetime]:
    """
    Expand a rule over the inclusive range [start_date, end_date].

    Timestamps come out grouped by day (ascending), then in the rule's
    intra-day order. An hour-interval rule of N yields N:00, 2N:00, ... up to
    hour 23 on every day; the slot sequence never carries across midnight.
    """
    validate_date_range(start_date, end_date)
    slots = rule.times_of_day()
    return [datetime.combine(day, slot) for day in iter_days(start_date, end_date) for slot in slots]
