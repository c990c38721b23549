#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime
import logging
from collections.abc import Sequence

from interview_scheduler.availability import get_open_slots, is_date_available, iter_dates
from interview_scheduler.config import AppointmentTypeRules, RuleSet
from interview_scheduler.models import BusyInterval, Resource
from interview_scheduler.time_utils import (
    DurationLike,
    TimeInterval,
    now_,
    subtract,
    to_timedelta,
)
from interview_scheduler.validation import (
    build_context,
    ensure_valid_configuration,
    run_checks,
)

logger = logging.getLogger(__name__)


def _candidate_starts(
    slot: TimeInterval,
    duration: datetime.timedelta,
    step: datetime.timedelta,
    bookings: Sequence[BusyInterval],
    buffer_after: datetime.timedelta,
) -> list[datetime.datetime]:
    """Start times within `slot` worth trying: the slot start, the first moment
    after each booking's buffer, and a fixed-step walk through the slot."""
    starts = {slot.start}
    starts.update(b.end + buffer_after for b in bookings)
    current = slot.start
    while current + duration <= slot.end:
        starts.add(current)
        current += step
    return sorted(s for s in starts if slot.start <= s and s + duration <= slot.end)


def suggest_alternatives(
    preferred: datetime.datetime,
    duration: DurationLike,
    resource: Resource,
    existing: Sequence[BusyInterval],
    rules: RuleSet,
    max_results: int | None = None,
    max_lookahead_days: int | None = None,
    appointment_type: AppointmentTypeRules | None = None,
    now: datetime.datetime | None = None,
) -> list[TimeInterval]:
    """Suggest valid appointment times close to `preferred`.

    Parameters
    ----------
    preferred
        The time originally asked for.
    duration
        Length of the appointment.
    resource
        The resource to book. Its working hours, if any, override those of
        the rule set.
    existing
        Busy intervals; only those of `resource` are considered.
    rules
        Business rules every suggestion must satisfy.
    max_results
        Maximum number of suggestions. Defaults to ``rules.max_suggestions``.
    max_lookahead_days
        Number of days after the preferred date to search. Defaults to
        ``rules.alternative_search_days``.
    appointment_type
        Per-type overrides applied while validating candidates.
    now
        The booking time. Defaults to the current time.

    Returns
    -------
    Distinct intervals that pass validation. Suggestions on the preferred date
    come first, closest to the preferred time first; later days follow in
    chronological order.

    Raises
    ------
    ConfigurationError
        If the rules are inconsistent.
    """
    working_hours = resource.working_hours or rules.working_hours
    ensure_valid_configuration(rules, resource.working_hours, appointment_type)
    if not rules.enable_alternative_suggestions:
        return []
    duration = to_timedelta(duration)
    if max_results is None:
        max_results = rules.max_suggestions
    if max_lookahead_days is None:
        max_lookahead_days = rules.alternative_search_days
    ctx = build_context(
        resource.resource_id,
        existing,
        rules,
        appointment_type,
        now or now_(preferred.tzinfo),
        working_hours,
    )
    own = [b for b in existing if b.belongs_to(resource.resource_id)]
    buffer_before, buffer_after = ctx.buffers
    blocked = [
        b.with_bounds(
            b.start - datetime.timedelta(minutes=buffer_before),
            b.end + datetime.timedelta(minutes=buffer_after),
        )
        for b in own
    ]
    step = min(duration, datetime.timedelta(minutes=rules.time_slot_increment_minutes))

    suggestions: list[TimeInterval] = []
    for date in iter_dates(preferred.date(), max_lookahead_days + 1):
        if len(suggestions) >= max_results:
            break
        if not is_date_available(date, rules, working_hours):
            continue
        bookings = [b for b in own if b.start.date() == date or b.end.date() == date]
        day_valid = []
        for slot in subtract(get_open_slots(date, rules, working_hours), blocked):
            for start in _candidate_starts(
                slot, duration, step, bookings, datetime.timedelta(minutes=buffer_after)
            ):
                candidate = TimeInterval.from_duration(start, duration)
                if candidate in day_valid or not run_checks(candidate, ctx).is_valid:
                    continue
                day_valid.append(candidate)
        if date == preferred.date():
            day_valid.sort(key=lambda c: (abs(c.start - preferred), c.start))
        suggestions.extend(day_valid[: max_results - len(suggestions)])
    logger.debug(
        f"Found {len(suggestions)} alternatives for {resource} near {preferred.isoformat()}"
    )
    return suggestions
