#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""When resources can be booked: working sessions, breaks, working days,
holidays and recurring blackouts, and the advance-booking window."""
import datetime
from collections.abc import Iterable, Iterator

from dateutil import rrule

from interview_scheduler.config import RuleSet, WorkingHoursConfig
from interview_scheduler.models import BlockedPeriod, BlockedPeriodReason
from interview_scheduler.time_utils import (
    TimeInterval,
    combine,
    find_gaps,
    merge,
    now_,
    subtract,
)

SATURDAY = 5


def iter_dates(start: datetime.date, days: int) -> Iterator[datetime.date]:
    """Yield `days` consecutive dates beginning with `start`."""
    if days <= 0:
        return
    for dt in rrule.rrule(rrule.DAILY, dtstart=combine(start, datetime.time()), count=days):
        yield dt.date()


def whole_day(date: datetime.date) -> TimeInterval:
    start = combine(date, datetime.time())
    return TimeInterval(start=start, end=start + datetime.timedelta(days=1))


def get_available_slots(
    date: datetime.date, config: WorkingHoursConfig
) -> list[TimeInterval]:
    """Return the bookable intervals of `date` under `config`.

    Parameters
    ----------
    date
        The day to compute slots for.
    config
        Working hours. Sessions are merged and breaks subtracted from them.

    Returns
    -------
    A sorted list of disjoint intervals, empty on non-working days.
    """
    if not config.is_working_day(date):
        return []
    sessions = merge(s.on(date) for s in config.sessions)
    return subtract(sessions, [b.on(date) for b in config.breaks])


def is_within_working_hours(period: TimeInterval, config: WorkingHoursConfig) -> bool:
    """Check whether `period` lies entirely within one available slot of the
    day it starts on."""
    return any(
        slot.contains(period) for slot in get_available_slots(period.start.date(), config)
    )


def is_valid_advance_booking(
    proposed_start: datetime.datetime,
    config: WorkingHoursConfig,
    now: datetime.datetime | None = None,
    min_advance_hours: float | None = None,
    max_advance_days: float | None = None,
) -> bool:
    """Check the lead time between `now` and `proposed_start` is within the
    configured bounds (inclusive). Explicit bounds take precedence over
    `config`."""
    now = now or now_(proposed_start.tzinfo)
    if min_advance_hours is None:
        min_advance_hours = config.min_advance_hours
    if max_advance_days is None:
        max_advance_days = config.max_advance_days
    lead = proposed_start - now
    return (
        datetime.timedelta(hours=min_advance_hours)
        <= lead
        <= datetime.timedelta(days=max_advance_days)
    )


def is_date_available(
    date: datetime.date, rules: RuleSet, working_hours: WorkingHoursConfig | None = None
) -> bool:
    """Check whether anything can be booked on `date`: false on holidays and
    non-working days. Always true for unrestricted rule sets."""
    if not rules.enforce_working_hours:
        return True
    working_hours = working_hours or rules.working_hours
    return rules.holiday_on(date) is None and working_hours.is_working_day(date)


def get_open_slots(
    date: datetime.date, rules: RuleSet, working_hours: WorkingHoursConfig | None = None
) -> list[TimeInterval]:
    """Available slots on `date` with recurring blackouts removed. An
    unrestricted rule set opens the whole day."""
    if not rules.enforce_working_hours:
        return [whole_day(date)]
    working_hours = working_hours or rules.working_hours
    if not is_date_available(date, rules, working_hours):
        return []
    blackouts = [b.on(date) for b in rules.blackouts_on(date)]
    return subtract(get_available_slots(date, working_hours), blackouts)


def get_blocked_periods(
    date: datetime.date, rules: RuleSet, working_hours: WorkingHoursConfig | None = None
) -> list[BlockedPeriod]:
    """Explain every part of `date` that cannot be booked.

    Parameters
    ----------
    date
        The day to inspect.
    rules
        Rules providing holidays, blackouts and default working hours.
    working_hours
        Overrides the rule set working hours, e.g. for a specific resource.

    Returns
    -------
    Blocked periods sorted by start. Holidays and non-working days block the
    whole day; otherwise the time outside the sessions, the gap between
    sessions, the breaks and any recurring blackouts are reported.
    """
    if not rules.enforce_working_hours:
        return []
    working_hours = working_hours or rules.working_hours
    day = whole_day(date)

    holiday = rules.holiday_on(date)
    if holiday is not None:
        return [
            BlockedPeriod(
                start=day.start,
                end=day.end,
                reason=BlockedPeriodReason.Holiday,
                description=holiday.name,
                source="holiday",
            )
        ]
    if not working_hours.is_working_day(date):
        weekend = date.weekday() >= SATURDAY
        return [
            BlockedPeriod(
                start=day.start,
                end=day.end,
                reason=(
                    BlockedPeriodReason.Weekend
                    if weekend
                    else BlockedPeriodReason.OutsideWorkingHours
                ),
                description="Weekend" if weekend else "Non-working day",
                source="working_hours",
            )
        ]

    blocked = []
    for gap in find_gaps([s.on(date) for s in working_hours.sessions], day):
        between_sessions = gap.start > day.start and gap.end < day.end
        blocked.append(
            BlockedPeriod(
                start=gap.start,
                end=gap.end,
                reason=(
                    BlockedPeriodReason.LunchBreak
                    if between_sessions
                    else BlockedPeriodReason.OutsideWorkingHours
                ),
                description="Lunch break" if between_sessions else "Outside working hours",
                source="working_hours",
            )
        )
    for window in working_hours.breaks:
        period = window.on(date)
        blocked.append(
            BlockedPeriod(
                start=period.start,
                end=period.end,
                reason=BlockedPeriodReason.LunchBreak,
                description="Break",
                source="working_hours",
            )
        )
    for blackout in rules.blackouts_on(date):
        period = blackout.on(date)
        blocked.append(
            BlockedPeriod(
                start=period.start,
                end=period.end,
                reason=BlockedPeriodReason.RecurringBlackout,
                description=blackout.name,
                source="recurring_blackout",
            )
        )
    blocked.sort(key=lambda b: (b.start, b.end))
    return blocked


def describe_conflicts(period: TimeInterval, blocked: Iterable[BlockedPeriod]) -> str:
    """A human readable account of the blocked periods `period` runs into,
    or an empty string when there are none."""
    conflicting = [b for b in blocked if b.intersects(period)]
    if not conflicting:
        return ""
    if len(conflicting) == 1:
        return conflicting[0].friendly_description()
    return "Multiple conflicts: " + "; ".join(
        b.friendly_description() for b in conflicting
    )
