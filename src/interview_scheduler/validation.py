#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""Business-rule validation of proposed appointments and of rule sets.

A proposal is validated by running a fixed, ordered sequence of checks. Each
check is a pure function of the proposal and a `ValidationContext` returning a
`ValidationResult`; the results are merged, so a single call reports every
violated rule rather than the first one.
"""
import datetime
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from interview_scheduler.availability import (
    describe_conflicts,
    get_blocked_periods,
    is_valid_advance_booking,
    is_within_working_hours,
)
from interview_scheduler.config import (
    AppointmentTypeRules,
    RuleSet,
    WorkingHoursConfig,
)
from interview_scheduler.constants import LARGE_BUFFER_MINUTES, WEEKDAY_NAMES
from interview_scheduler.exceptions import ConfigurationError
from interview_scheduler.models import (
    BlockedPeriodReason,
    BusyInterval,
    ResourceId,
    ValidationResult,
)
from interview_scheduler.time_utils import TimeInterval, now_

logger = logging.getLogger(__name__)


def advance_bounds(
    appointment_type: AppointmentTypeRules, working_hours: WorkingHoursConfig
) -> tuple[float, float]:
    """Lead time bounds of `appointment_type`, falling back to `working_hours`
    for any bound the type leaves unset."""
    min_hours = (
        appointment_type.minimum_advance_booking_hours or working_hours.min_advance_hours
    )
    max_days = appointment_type.maximum_advance_booking_days or working_hours.max_advance_days
    return min_hours, max_days


@dataclass(frozen=True)
class ValidationContext:
    """Everything a check needs besides the proposal itself."""

    resource_id: ResourceId | None
    existing: Sequence[BusyInterval]
    rules: RuleSet
    appointment_type: AppointmentTypeRules
    working_hours: WorkingHoursConfig
    now: datetime.datetime

    @property
    def buffers(self) -> tuple[int, int]:
        """Minutes required before and after the appointment."""
        if self.appointment_type.has_buffer_requirements:
            return (
                self.appointment_type.buffer_before_minutes,
                self.appointment_type.buffer_after_minutes,
            )
        default = self.rules.buffer_minutes(self.working_hours)
        return default, default

    @property
    def advance_bounds(self) -> tuple[float, float]:
        """Minimum lead time in hours and maximum lead time in days."""
        return advance_bounds(self.appointment_type, self.working_hours)

    @property
    def strict_buffer(self) -> bool:
        return (
            self.appointment_type.require_strict_buffer
            or self.rules.enforce_strict_validation
        )


Check = Callable[[TimeInterval, ValidationContext], ValidationResult]


def check_not_in_past(proposed: TimeInterval, ctx: ValidationContext) -> ValidationResult:
    result = ValidationResult()
    if proposed.start < ctx.now:
        result.add_error("Cannot schedule appointments in the past.")
    return result


def check_duration(proposed: TimeInterval, ctx: ValidationContext) -> ValidationResult:
    result = ValidationResult()
    minutes = proposed.minutes
    appointment_type, rules = ctx.appointment_type, ctx.rules
    minimum = appointment_type.minimum_duration_minutes or rules.minimum_duration_minutes
    maximum = appointment_type.maximum_duration_minutes or rules.maximum_duration_minutes
    if minutes < minimum:
        result.add_error(
            f"Appointment duration ({minutes:g} minutes) is shorter than the minimum "
            f"of {minimum} minutes."
        )
    if minutes > maximum:
        result.add_error(
            f"Appointment duration ({minutes:g} minutes) exceeds the maximum "
            f"of {maximum} minutes."
        )
    # type specific limits must also respect the system-wide ones
    if appointment_type.has_duration_limits:
        if minutes < rules.minimum_duration_minutes:
            result.add_error(
                f"Appointment duration is below the system minimum of "
                f"{rules.minimum_duration_minutes} minutes."
            )
        if minutes > rules.maximum_duration_minutes:
            result.add_error(
                f"Appointment duration exceeds the system maximum of "
                f"{rules.maximum_duration_minutes} minutes."
            )
    return result


def check_working_hours(
    proposed: TimeInterval, ctx: ValidationContext
) -> ValidationResult:
    result = ValidationResult()
    if not ctx.rules.enforce_working_hours:
        return result
    if not is_within_working_hours(proposed, ctx.working_hours):
        blocked = get_blocked_periods(proposed.start.date(), ctx.rules, ctx.working_hours)
        details = describe_conflicts(
            proposed,
            [
                b
                for b in blocked
                if b.reason
                in (BlockedPeriodReason.OutsideWorkingHours, BlockedPeriodReason.LunchBreak)
            ],
        )
        message = "Appointment is outside of working hours."
        result.add_error(f"{message} {details}" if details else message)
    return result


def check_advance_booking(
    proposed: TimeInterval, ctx: ValidationContext
) -> ValidationResult:
    result = ValidationResult()
    min_hours, max_days = ctx.advance_bounds
    if is_valid_advance_booking(
        proposed.start,
        ctx.working_hours,
        now=ctx.now,
        min_advance_hours=min_hours,
        max_advance_days=max_days,
    ):
        return result
    if proposed.start - ctx.now < datetime.timedelta(hours=min_hours):
        result.add_error(
            f"Appointments must be booked at least {min_hours:g} hours in advance."
        )
    else:
        result.add_error(
            f"Appointments cannot be booked more than {max_days:g} days in advance."
        )
    return result


def check_day_allowed(proposed: TimeInterval, ctx: ValidationContext) -> ValidationResult:
    result = ValidationResult()
    if not ctx.rules.enforce_working_hours:
        return result
    date = proposed.start.date()
    if not ctx.working_hours.is_working_day(date):
        result.add_error(
            f"Appointments are not available on {WEEKDAY_NAMES[date.weekday()]}s."
        )
    holiday = ctx.rules.holiday_on(date)
    if holiday is not None:
        result.add_error(f"{date.isoformat()} is a holiday ({holiday.name}).")
    for blackout in ctx.rules.blackouts_on(date):
        if blackout.on(date).intersects(proposed):
            result.add_error(f"Appointment overlaps the recurring blackout '{blackout.name}'.")
    return result


def check_conflicts(proposed: TimeInterval, ctx: ValidationContext) -> ValidationResult:
    result = ValidationResult()
    conflicts = [
        b for b in ctx.existing if b.belongs_to(ctx.resource_id) and b.intersects(proposed)
    ]
    if not conflicts:
        return result
    result.conflicts.extend(conflicts)
    message = f"Appointment conflicts with {len(conflicts)} existing booking(s)."
    high_priority = (
        ctx.appointment_type.scheduling_priority
        <= ctx.rules.double_booking_priority_threshold
    )
    if ctx.rules.allow_high_priority_double_booking and high_priority:
        result.add_warning(f"{message} Double booking allowed for high-priority appointment.")
    else:
        result.add_error(message)
    return result


def check_buffer(proposed: TimeInterval, ctx: ValidationContext) -> ValidationResult:
    result = ValidationResult()
    before, after = ctx.buffers
    if check_buffer_time(proposed, ctx.existing, before, after, resource_id=ctx.resource_id):
        return result
    message = (
        f"Appointment requires a buffer of {before} minutes before and {after} minutes "
        f"after other bookings."
    )
    if ctx.strict_buffer:
        result.add_error(message)
    else:
        result.add_warning(message)
    return result


CHECKS: tuple[Check, ...] = (
    check_not_in_past,
    check_duration,
    check_working_hours,
    check_advance_booking,
    check_day_allowed,
    check_conflicts,
    check_buffer,
)
"""Checks applied, in order, to every well-formed proposal."""


def check_buffer_time(
    proposed: TimeInterval,
    existing: Sequence[BusyInterval],
    buffer_before: int,
    buffer_after: int,
    resource_id: ResourceId | None = None,
) -> bool:
    """Check no same-resource busy interval falls within the buffer zones
    ``[start - buffer_before, start)`` and ``[end, end + buffer_after)``.

    Parameters
    ----------
    proposed
        The appointment to check.
    existing
        Busy intervals. Only those belonging to `resource_id` are considered.
    buffer_before, buffer_after
        Buffer lengths in minutes.
    """
    if buffer_before <= 0 and buffer_after <= 0:
        return True
    probes = []
    if buffer_before > 0:
        probes.append(
            TimeInterval(
                start=proposed.start - datetime.timedelta(minutes=buffer_before),
                end=proposed.start,
            )
        )
    if buffer_after > 0:
        probes.append(
            TimeInterval(
                start=proposed.end,
                end=proposed.end + datetime.timedelta(minutes=buffer_after),
            )
        )
    return not any(
        b.intersects(probe)
        for b in existing
        if b.belongs_to(resource_id)
        for probe in probes
    )


def build_context(
    resource_id: ResourceId | None,
    existing: Sequence[BusyInterval],
    rules: RuleSet,
    appointment_type: AppointmentTypeRules | None = None,
    now: datetime.datetime | None = None,
    working_hours: WorkingHoursConfig | None = None,
) -> ValidationContext:
    return ValidationContext(
        resource_id=resource_id,
        existing=existing,
        rules=rules,
        appointment_type=appointment_type or AppointmentTypeRules(),
        working_hours=working_hours or rules.working_hours,
        now=now or now_(),
    )


def run_checks(proposed: TimeInterval, ctx: ValidationContext) -> ValidationResult:
    """Apply every check to `proposed` and merge their results. Configuration
    is assumed to be valid."""
    result = ValidationResult()
    for check in CHECKS:
        result.merge(check(proposed, ctx))
    return result


def ensure_valid_configuration(
    rules: RuleSet,
    working_hours: WorkingHoursConfig | None = None,
    appointment_type: AppointmentTypeRules | None = None,
) -> None:
    """Raise `ConfigurationError` if the rules, working hours override or
    appointment type are inconsistent."""
    rules.check()
    if working_hours is not None and working_hours != rules.working_hours:
        result = validate_working_hours(working_hours)
        if not result.is_valid:
            raise ConfigurationError(str(result))
    if appointment_type is not None:
        result = validate_appointment_type(appointment_type)
        if not result.is_valid:
            raise ConfigurationError(str(result))
        min_hours, max_days = advance_bounds(
            appointment_type, working_hours or rules.working_hours
        )
        if min_hours > max_days * 24:
            raise ConfigurationError(
                f"Appointment type '{appointment_type.name}' requires booking at least "
                f"{min_hours:g} hours in advance but at most {max_days:g} days in advance."
            )


def validate_appointment(
    proposed: TimeInterval,
    resource_id: ResourceId | None,
    existing: Sequence[BusyInterval],
    rules: RuleSet,
    appointment_type: AppointmentTypeRules | None = None,
    now: datetime.datetime | None = None,
    working_hours: WorkingHoursConfig | None = None,
) -> ValidationResult:
    """Validate a proposed appointment against the business rules.

    Parameters
    ----------
    proposed
        The interval to book.
    resource_id
        The resource the appointment is for. Busy intervals of other
        resources are ignored.
    existing
        Busy intervals already on the calendar.
    rules
        The rule set to enforce.
    appointment_type
        Per-type overrides for duration, buffers, advance booking and priority.
    now
        The booking time. Defaults to the current time.
    working_hours
        Resource specific working hours, overriding ``rules.working_hours``.

    Returns
    -------
    The merged outcome of all checks. Every check runs, so the result lists
    every violated rule.

    Raises
    ------
    ConfigurationError
        If the rules themselves are inconsistent.
    """
    ensure_valid_configuration(rules, working_hours, appointment_type)
    now = now or now_(proposed.start.tzinfo)
    ctx = build_context(resource_id, existing, rules, appointment_type, now, working_hours)
    result = run_checks(proposed, ctx)
    logger.debug(f"Validated {proposed} for resource {resource_id}: {result}")
    return result


def validate_range(
    start: datetime.datetime,
    end: datetime.datetime,
    resource_id: ResourceId | None,
    existing: Sequence[BusyInterval],
    rules: RuleSet,
    **kwargs,
) -> ValidationResult:
    """As `validate_appointment`, for a raw ``(start, end)`` pair. An inverted
    or empty range is reported as the only error instead of being raised."""
    if start >= end:
        return ValidationResult().add_error("Appointment start time must be before end time.")
    return validate_appointment(
        TimeInterval(start=start, end=end), resource_id, existing, rules, **kwargs
    )


def validate_working_hours(config: WorkingHoursConfig) -> ValidationResult:
    """Check a working-hours configuration for internal consistency."""
    result = ValidationResult()
    sessions = config.sessions
    if not sessions:
        result.add_error("At least one working session must be configured.")
    if (
        config.morning_session is not None
        and config.afternoon_session is not None
        and config.morning_session.overlaps(config.afternoon_session)
    ):
        result.add_error(
            f"Morning session ({config.morning_session}) overlaps the afternoon "
            f"session ({config.afternoon_session})."
        )
    reference = datetime.date(2000, 1, 3)
    for window in config.breaks:
        if not any(s.on(reference).contains(window.on(reference)) for s in sessions):
            result.add_warning(f"Break {window} falls outside the working sessions.")
    if not config.available_days:
        result.add_error("At least one working day must be configured.")
    if config.min_advance_hours < 0:
        result.add_error("Minimum advance booking hours cannot be negative.")
    if config.max_advance_days <= 0:
        result.add_error("Maximum advance booking days must be positive.")
    if config.min_advance_hours > config.max_advance_days * 24:
        result.add_error(
            "Minimum advance booking time exceeds the maximum advance booking time."
        )
    if config.buffer_minutes is not None:
        _check_buffer_setting(config.buffer_minutes, result)
    return result


def validate_appointment_type(appointment_type: AppointmentTypeRules) -> ValidationResult:
    result = ValidationResult()
    if (
        appointment_type.minimum_duration_minutes
        and appointment_type.maximum_duration_minutes
        and appointment_type.minimum_duration_minutes
        > appointment_type.maximum_duration_minutes
    ):
        result.add_error(
            f"Appointment type '{appointment_type.name}' has a minimum duration "
            f"above its maximum duration."
        )
    if appointment_type.buffer_before_minutes < 0 or appointment_type.buffer_after_minutes < 0:
        result.add_error(
            f"Appointment type '{appointment_type.name}' has a negative buffer."
        )
    if (
        appointment_type.minimum_advance_booking_hours
        and appointment_type.maximum_advance_booking_days
        and appointment_type.minimum_advance_booking_hours
        > appointment_type.maximum_advance_booking_days * 24
    ):
        result.add_error(
            f"Appointment type '{appointment_type.name}' has a minimum advance booking "
            f"time above its maximum."
        )
    return result


def validate_rule_set(rules: RuleSet) -> ValidationResult:
    """Check a rule set, including its default working hours."""
    result = validate_working_hours(rules.working_hours)
    if rules.minimum_duration_minutes <= 0:
        result.add_error("Minimum appointment duration must be positive.")
    if rules.minimum_duration_minutes > rules.maximum_duration_minutes:
        result.add_error("Minimum appointment duration exceeds the maximum duration.")
    _check_buffer_setting(rules.default_buffer_minutes, result)
    if rules.alternative_search_days < 0:
        result.add_error("Alternative search days cannot be negative.")
    if rules.time_slot_increment_minutes <= 0:
        result.add_error("Time slot increment must be positive.")
    if rules.max_suggestions < 0:
        result.add_error("Maximum number of suggestions cannot be negative.")
    return result


def _check_buffer_setting(minutes: int, result: ValidationResult) -> None:
    if minutes < 0:
        result.add_error("Buffer time cannot be negative.")
    elif minutes > LARGE_BUFFER_MINUTES:
        result.add_warning(
            f"Buffer time of {minutes} minutes is unusually large "
            f"(more than {LARGE_BUFFER_MINUTES} minutes)."
        )
