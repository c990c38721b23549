#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime
from enum import StrEnum, auto

from pydantic import BaseModel, Field

from interview_scheduler.config import WorkingHoursConfig
from interview_scheduler.time_utils import TimeInterval

ResourceId = str
RequestId = str
EventId = str


class AssignmentStatus(StrEnum):
    Pending = auto()
    Confirmed = auto()
    Cancelled = auto()


class BlockedPeriodReason(StrEnum):
    OutsideWorkingHours = auto()
    LunchBreak = auto()
    Holiday = auto()
    RecurringBlackout = auto()
    Weekend = auto()
    CustomBlackout = auto()


class BusyInterval(TimeInterval, frozen=True):
    """Time a resource's calendar reports as occupied.

    Parameters
    ----------
    event_id
        Identifier of the calendar event, when known.
    resource_id
        The resource whose calendar holds the event. Intervals without a
        resource are treated as belonging to whichever resource is checked.
    """

    event_id: EventId | None = None
    resource_id: ResourceId | None = None

    def belongs_to(self, resource_id: ResourceId | None) -> bool:
        return self.resource_id is None or resource_id is None or self.resource_id == resource_id


class FreeInterval(TimeInterval, frozen=True):
    """Bookable time, tagged with the resource that owns it."""

    resource_id: ResourceId
    resource_name: str = ""
    calendar_ref: str = ""


class Resource(BaseModel, frozen=True):
    """A person (leader) that appointments are booked with.

    Parameters
    ----------
    calendar_ref
        Identifier of the resource's calendar in the external calendar service.
    working_hours
        Resource specific working hours. When `None`, the rule set's working
        hours apply.
    """

    resource_id: ResourceId
    display_name: str = ""
    calendar_ref: str = ""
    is_active: bool = True
    working_hours: WorkingHoursConfig | None = None

    def __str__(self) -> str:
        return f"{self.display_name or self.resource_id} ({self.resource_id})"


class AppointmentRequest(BaseModel, frozen=True):

    request_id: RequestId
    contact_id: str = ""
    display_name: str = ""


class AppointmentAssignment(BaseModel):
    """A request placed on a resource's timeline."""

    resource_id: ResourceId
    request_id: RequestId
    interval: TimeInterval
    status: AssignmentStatus = AssignmentStatus.Pending
    external_event_id: EventId | None = None
    resource_name: str = ""

    @property
    def start(self) -> datetime.datetime:
        return self.interval.start

    @property
    def end(self) -> datetime.datetime:
        return self.interval.end


def _clock(dt: datetime.datetime) -> str:
    return dt.strftime("%I:%M %p").lstrip("0")


class BlockedPeriod(TimeInterval, frozen=True):
    """An interval during which appointments cannot be booked, with the reason."""

    reason: BlockedPeriodReason
    description: str = ""
    source: str = ""

    def friendly_description(self) -> str:
        match self.reason:
            case BlockedPeriodReason.Holiday:
                return f"Holiday: {self.description}"
            case BlockedPeriodReason.Weekend:
                return "Weekend - not available"
            case BlockedPeriodReason.LunchBreak:
                return f"Lunch break ({_clock(self.start)} - {_clock(self.end)})"
            case BlockedPeriodReason.OutsideWorkingHours:
                return f"Outside working hours ({_clock(self.start)} - {_clock(self.end)})"
            case BlockedPeriodReason.RecurringBlackout:
                return f"Blocked: {self.description}"
            case _:
                return self.description or "Unavailable"


class ValidationResult(BaseModel):
    """Outcome of validating a proposed appointment or a configuration.

    Validation never raises for business-rule violations: errors make the
    result invalid, warnings are informational, and `conflicts` lists the busy
    intervals the proposal collides with.
    """

    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    conflicts: list[BusyInterval] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add_error(self, message: str) -> "ValidationResult":
        self.errors.append(message)
        return self

    def add_warning(self, message: str) -> "ValidationResult":
        self.warnings.append(message)
        return self

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        """Fold `other` into this result, keeping conflicts unique."""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        for conflict in other.conflicts:
            if conflict not in self.conflicts:
                self.conflicts.append(conflict)
        return self

    def __str__(self) -> str:
        if self.is_valid and not self.warnings:
            return "Valid"
        parts = []
        if self.errors:
            parts.append(f"Errors: {'; '.join(self.errors)}")
        if self.warnings:
            parts.append(f"Warnings: {'; '.join(self.warnings)}")
        return " | ".join(parts)
