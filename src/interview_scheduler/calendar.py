#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""The calendar system the scheduler reads busy time from and writes
appointments to."""
import logging
import threading
import uuid
from abc import ABC, abstractmethod

from interview_scheduler.exceptions import EventCreationError, ResourceFetchError
from interview_scheduler.models import AppointmentAssignment, BusyInterval, EventId
from interview_scheduler.time_utils import TimeInterval

logger = logging.getLogger(__name__)


class CalendarService(ABC):
    """Access to resource calendars.

    Implementations may raise `TransientCalendarError` for failures that are
    worth retrying; any other exception is treated as a permanent failure for
    the calendar concerned.
    """

    @abstractmethod
    def fetch_busy_intervals(
        self, calendar_ref: str, window: TimeInterval
    ) -> list[BusyInterval]:
        """Return the busy intervals of a calendar that intersect `window`."""

    @abstractmethod
    def create_event(self, calendar_ref: str, assignment: AppointmentAssignment) -> EventId:
        """Book `assignment` in a calendar and return the new event's id."""

    @abstractmethod
    def update_event(
        self, calendar_ref: str, event_id: EventId, assignment: AppointmentAssignment
    ) -> bool:
        pass

    @abstractmethod
    def delete_event(self, calendar_ref: str, event_id: EventId) -> bool:
        pass


class InMemoryCalendar(CalendarService):
    """A `CalendarService` holding events in memory, keyed by calendar.

    Parameters
    ----------
    events
        Initial busy intervals per calendar reference. Calendars not listed
        here are unknown until `add_calendar` or `add_busy` is called.
    """

    def __init__(self, events: dict[str, list[BusyInterval]] | None = None):
        self._events: dict[str, dict[EventId, BusyInterval]] = {}
        self._lock = threading.Lock()
        for calendar_ref, intervals in (events or {}).items():
            self.add_calendar(calendar_ref)
            for interval in intervals:
                self.add_busy(calendar_ref, interval)

    def add_calendar(self, calendar_ref: str) -> None:
        with self._lock:
            self._events.setdefault(calendar_ref, {})

    def add_busy(self, calendar_ref: str, interval: TimeInterval) -> EventId:
        if isinstance(interval, BusyInterval) and interval.event_id is not None:
            busy = interval
        else:
            busy = BusyInterval(
                start=interval.start,
                end=interval.end,
                event_id=str(uuid.uuid4()),
                resource_id=getattr(interval, "resource_id", None),
            )
        with self._lock:
            self._events.setdefault(calendar_ref, {})[busy.event_id] = busy
        return busy.event_id

    def events(self, calendar_ref: str) -> list[BusyInterval]:
        with self._lock:
            return sorted(self._events.get(calendar_ref, {}).values(), key=lambda e: e.start)

    def fetch_busy_intervals(
        self, calendar_ref: str, window: TimeInterval
    ) -> list[BusyInterval]:
        with self._lock:
            if calendar_ref not in self._events:
                raise ResourceFetchError(f"Calendar {calendar_ref!r} not found")
            busy = [e for e in self._events[calendar_ref].values() if e.intersects(window)]
        return sorted(busy, key=lambda e: e.start)

    def create_event(self, calendar_ref: str, assignment: AppointmentAssignment) -> EventId:
        with self._lock:
            if calendar_ref not in self._events:
                raise EventCreationError(f"Calendar {calendar_ref!r} not found")
            event_id = str(uuid.uuid4())
            self._events[calendar_ref][event_id] = BusyInterval(
                start=assignment.interval.start,
                end=assignment.interval.end,
                event_id=event_id,
                resource_id=assignment.resource_id,
            )
        logger.debug(f"Created event {event_id} in calendar {calendar_ref}")
        return event_id

    def update_event(
        self, calendar_ref: str, event_id: EventId, assignment: AppointmentAssignment
    ) -> bool:
        with self._lock:
            events = self._events.get(calendar_ref, {})
            if event_id not in events:
                return False
            events[event_id] = BusyInterval(
                start=assignment.interval.start,
                end=assignment.interval.end,
                event_id=event_id,
                resource_id=assignment.resource_id,
            )
        return True

    def delete_event(self, calendar_ref: str, event_id: EventId) -> bool:
        with self._lock:
            return self._events.get(calendar_ref, {}).pop(event_id, None) is not None
