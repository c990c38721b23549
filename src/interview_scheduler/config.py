#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""Business rules consumed by the availability, validation and scheduling layers.

Rule sets can be built in Python (`RuleSet.standard()` and friends) or loaded
from the YAML presets shipped under ``interview_scheduler/configs/rules``
with `load_rule_set`, which accepts dotlist overrides in the OmegaConf style
(``["working_hours.buffer_minutes=30"]``).
"""
import datetime
import logging
from importlib import resources
from pathlib import Path
from typing import Self

from omegaconf import OmegaConf
from pydantic import BaseModel, model_validator
from pydantic_core import PydanticCustomError

from interview_scheduler.constants import (
    AFTERNOON_SESSION_END,
    AFTERNOON_SESSION_START,
    ALL_WEEK,
    ALTERNATIVE_SEARCH_DAYS,
    DEFAULT_APPOINTMENT_DURATION,
    DEFAULT_BUFFER_MINUTES,
    DEFAULT_MAX_ADVANCE_DAYS,
    DEFAULT_MIN_ADVANCE_HOURS,
    DEFAULT_SCHEDULING_PRIORITY,
    DOUBLE_BOOKING_PRIORITY_THRESHOLD,
    MAX_SUGGESTIONS,
    MAXIMUM_APPOINTMENT_DURATION,
    MIDNIGHT,
    MINIMUM_APPOINTMENT_DURATION,
    MORNING_SESSION_END,
    MORNING_SESSION_START,
    TIME_SLOT_INCREMENT_MINUTES,
    WORK_WEEK,
)
from interview_scheduler.exceptions import ConfigurationError
from interview_scheduler.time_utils import TimeInterval, combine

logger = logging.getLogger(__name__)

RULES_PACKAGE = "interview_scheduler"
RULES_DIRECTORY = ("configs", "rules")


class SessionWindow(BaseModel, frozen=True):
    """A time-of-day window, such as a working session or a break.

    Parameters
    ----------
    start
        Time of day the window opens.
    end
        Time of day the window closes. ``00:00`` stands for the midnight that
        ends the day, so ``00:00-00:00`` covers a full day.
    """

    start: datetime.time
    end: datetime.time

    @model_validator(mode="after")
    def _check_order(self) -> Self:
        if self.end != MIDNIGHT and self.start >= self.end:
            raise PydanticCustomError(
                "invalid_window",
                "Window start {start} must be before its end {end}",
                {"start": self.start.isoformat(), "end": self.end.isoformat()},
            )
        return self

    def on(self, date: datetime.date) -> TimeInterval:
        """The concrete interval this window occupies on `date`."""
        end_date = date + datetime.timedelta(days=1) if self.end == MIDNIGHT else date
        return TimeInterval(start=combine(date, self.start), end=combine(end_date, self.end))

    def overlaps(self, other: "SessionWindow") -> bool:
        reference = datetime.date(2000, 1, 3)
        return self.on(reference).intersects(other.on(reference))

    def __str__(self) -> str:
        return f"{self.start:%H:%M}-{self.end:%H:%M}"


def _validate_days(days: frozenset[int]) -> None:
    invalid = sorted(d for d in days if not 0 <= d <= 6)
    if invalid:
        raise PydanticCustomError(
            "invalid_weekday",
            "Weekdays must be integers between 0 (Monday) and 6 (Sunday), got {days}",
            {"days": invalid},
        )


class WorkingHoursConfig(BaseModel, frozen=True):
    """When a resource can be booked.

    Parameters
    ----------
    morning_session, afternoon_session
        The bookable windows of a working day. Either may be `None`.
    breaks
        Windows subtracted from the sessions on every working day.
    available_days
        Working weekdays, numbered as `datetime.date.weekday` (Monday is 0).
    buffer_minutes
        Gap required around every appointment. `None` defers to the rule set
        default.
    min_advance_hours, max_advance_days
        How far ahead of the booking time an appointment must fall.
    """

    morning_session: SessionWindow | None = SessionWindow(
        start=MORNING_SESSION_START, end=MORNING_SESSION_END
    )
    afternoon_session: SessionWindow | None = SessionWindow(
        start=AFTERNOON_SESSION_START, end=AFTERNOON_SESSION_END
    )
    breaks: tuple[SessionWindow, ...] = ()
    available_days: frozenset[int] = WORK_WEEK
    buffer_minutes: int | None = None
    min_advance_hours: float = DEFAULT_MIN_ADVANCE_HOURS
    max_advance_days: float = DEFAULT_MAX_ADVANCE_DAYS

    @model_validator(mode="after")
    def _check_days(self) -> Self:
        _validate_days(self.available_days)
        return self

    @property
    def sessions(self) -> list[SessionWindow]:
        return [s for s in (self.morning_session, self.afternoon_session) if s is not None]

    def is_working_day(self, date: datetime.date) -> bool:
        return date.weekday() in self.available_days

    @classmethod
    def standard_business_hours(cls) -> Self:
        """Monday to Friday, 09:00-12:00 and 13:00-17:00."""
        return cls()

    @classmethod
    def extended_hours(cls) -> Self:
        """Every day, around the clock, with no advance-booking lead time."""
        return cls(
            morning_session=SessionWindow(start=MIDNIGHT, end=MIDNIGHT),
            afternoon_session=None,
            available_days=ALL_WEEK,
            min_advance_hours=0,
            max_advance_days=365,
        )


class Holiday(BaseModel, frozen=True):
    """A non-working date. Recurring holidays repeat on the same month and day
    every year; otherwise only the exact date is blocked."""

    name: str
    date: datetime.date
    is_recurring: bool = True

    def applies_on(self, date: datetime.date) -> bool:
        if self.is_recurring:
            return (self.date.month, self.date.day) == (date.month, date.day)
        return self.date == date


class RecurringBlackout(BaseModel, frozen=True):
    """A window blocked on given weekdays, e.g. a weekly team meeting."""

    name: str
    window: SessionWindow
    days: frozenset[int] = WORK_WEEK

    @model_validator(mode="after")
    def _check_days(self) -> Self:
        _validate_days(self.days)
        return self

    def applies_on(self, date: datetime.date) -> bool:
        return date.weekday() in self.days

    def on(self, date: datetime.date) -> TimeInterval:
        return self.window.on(date)


class AppointmentTypeRules(BaseModel, frozen=True):
    """Per appointment-type overrides. Zero-valued bounds fall back to the
    rule set defaults."""

    name: str = "default"
    duration_minutes: int = DEFAULT_APPOINTMENT_DURATION
    minimum_duration_minutes: int = 0
    maximum_duration_minutes: int = 0
    buffer_before_minutes: int = 0
    buffer_after_minutes: int = 0
    minimum_advance_booking_hours: float = 0
    maximum_advance_booking_days: float = 0
    require_strict_buffer: bool = False
    scheduling_priority: int = DEFAULT_SCHEDULING_PRIORITY

    @property
    def has_buffer_requirements(self) -> bool:
        return self.buffer_before_minutes > 0 or self.buffer_after_minutes > 0

    @property
    def has_duration_limits(self) -> bool:
        return self.minimum_duration_minutes > 0 or self.maximum_duration_minutes > 0


class RuleSet(BaseModel, frozen=True):
    """The complete set of business rules for a scheduling run.

    Parameters
    ----------
    working_hours
        Default working hours, used for resources without their own.
    enforce_working_hours
        When `False` the rule set is *unrestricted*: every date is bookable
        around the clock and holidays and blackouts are ignored.
    enforce_strict_validation
        Whether buffer violations are errors (`True`) or warnings.
    allow_high_priority_double_booking
        Downgrade conflicts to warnings for appointment types whose
        `scheduling_priority` is at most `double_booking_priority_threshold`.
    """

    working_hours: WorkingHoursConfig = WorkingHoursConfig()
    holidays: tuple[Holiday, ...] = ()
    recurring_blackouts: tuple[RecurringBlackout, ...] = ()
    default_buffer_minutes: int = DEFAULT_BUFFER_MINUTES
    minimum_duration_minutes: int = MINIMUM_APPOINTMENT_DURATION
    maximum_duration_minutes: int = MAXIMUM_APPOINTMENT_DURATION
    enforce_working_hours: bool = True
    enforce_strict_validation: bool = True
    allow_high_priority_double_booking: bool = False
    double_booking_priority_threshold: int = DOUBLE_BOOKING_PRIORITY_THRESHOLD
    enable_alternative_suggestions: bool = True
    alternative_search_days: int = ALTERNATIVE_SEARCH_DAYS
    time_slot_increment_minutes: int = TIME_SLOT_INCREMENT_MINUTES
    max_suggestions: int = MAX_SUGGESTIONS

    def buffer_minutes(self, working_hours: WorkingHoursConfig | None = None) -> int:
        working_hours = working_hours or self.working_hours
        if working_hours.buffer_minutes is not None:
            return working_hours.buffer_minutes
        return self.default_buffer_minutes

    def holiday_on(self, date: datetime.date) -> Holiday | None:
        return next((h for h in self.holidays if h.applies_on(date)), None)

    def blackouts_on(self, date: datetime.date) -> list[RecurringBlackout]:
        return [b for b in self.recurring_blackouts if b.applies_on(date)]

    def check(self) -> Self:
        """Validate the rule set as a whole.

        Raises
        ------
        ConfigurationError
            If the rules are inconsistent (e.g. minimum duration above the
            maximum or no working days).
        """
        from interview_scheduler.validation import validate_rule_set

        result = validate_rule_set(self)
        for warning in result.warnings:
            logger.warning(f"Rule set warning: {warning}")
        if not result.is_valid:
            raise ConfigurationError(str(result))
        return self

    @classmethod
    def standard(cls) -> Self:
        """Business hours on weekdays, 15 minute buffers enforced strictly."""
        return cls(
            holidays=(
                Holiday(name="New Year's Day", date=datetime.date(2000, 1, 1)),
                Holiday(name="Christmas Day", date=datetime.date(2000, 12, 25)),
            )
        )

    @classmethod
    def flexible(cls) -> Self:
        """Extended weekday hours with buffer violations reported as warnings."""
        return cls(
            working_hours=WorkingHoursConfig(
                morning_session=SessionWindow(
                    start=datetime.time(8, 0), end=datetime.time(12, 0)
                ),
                afternoon_session=SessionWindow(
                    start=datetime.time(12, 30), end=datetime.time(19, 0)
                ),
                min_advance_hours=2,
                max_advance_days=180,
            ),
            recurring_blackouts=(
                RecurringBlackout(
                    name="Weekly team meeting",
                    window=SessionWindow(
                        start=datetime.time(9, 0), end=datetime.time(10, 0)
                    ),
                    days=frozenset({0}),
                ),
            ),
            default_buffer_minutes=5,
            enforce_strict_validation=False,
            allow_high_priority_double_booking=True,
            alternative_search_days=14,
            time_slot_increment_minutes=15,
        )

    @classmethod
    def unrestricted(cls) -> Self:
        """No working hours, holidays or blackouts; conflicts are still checked."""
        return cls(
            working_hours=WorkingHoursConfig.extended_hours(),
            default_buffer_minutes=0,
            enforce_working_hours=False,
            enforce_strict_validation=False,
        )


def get_rules_path(name: str):
    """Locate a rule-set preset shipped with the package."""
    path = resources.files(RULES_PACKAGE).joinpath(*RULES_DIRECTORY, f"{name}.yaml")
    if not path.is_file():
        raise ConfigurationError(f"Unknown rule set preset: {name}")
    return path


def load_rule_set(
    source: str | Path = "standard", overrides: list[str] | None = None
) -> RuleSet:
    """Load a rule set from a YAML file.

    Parameters
    ----------
    source
        Either the name of a shipped preset (``standard``, ``flexible`` or
        ``unrestricted``) or the path to a YAML file.
    overrides
        Dotlist overrides applied on top of the file, for example
        ``["enforce_strict_validation=false"]``.

    Raises
    ------
    ConfigurationError
        If the preset does not exist or the resulting rules are invalid.
    """
    if isinstance(source, Path) or str(source).endswith((".yaml", ".yml")):
        with open(source) as f:
            config = OmegaConf.load(f)
    else:
        with get_rules_path(str(source)).open("r") as f:
            config = OmegaConf.load(f)
    if overrides:
        config = OmegaConf.merge(config, OmegaConf.from_dotlist(overrides))
    data = OmegaConf.to_container(config, resolve=True)
    try:
        rules = RuleSet.model_validate(data)
    except ValueError as e:
        raise ConfigurationError(f"Invalid rule set {source}: {e}") from e
    logger.debug(f"Loaded rule set {source} with overrides {overrides}")
    return rules.check()
