#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import pytest

from interview_scheduler.calendar import InMemoryCalendar
from interview_scheduler.exceptions import EventCreationError, ResourceFetchError
from interview_scheduler.models import AppointmentAssignment
from tests.helpers import busy, interval

WINDOW = interval("2026-03-02T09:00", "2026-03-02T12:00")


def test_fetch_returns_intersecting_events_sorted():
    calendar = InMemoryCalendar(
        {
            "cal-alex": [
                busy("2026-03-02T11:00", "2026-03-02T11:30", event_id="late"),
                busy("2026-03-02T08:00", "2026-03-02T09:00", event_id="before"),
                busy("2026-03-02T08:30", "2026-03-02T09:30", event_id="early"),
            ]
        }
    )
    assert [e.event_id for e in calendar.fetch_busy_intervals("cal-alex", WINDOW)] == [
        "early",
        "late",
    ]


def test_unknown_calendar():
    calendar = InMemoryCalendar()
    with pytest.raises(ResourceFetchError):
        calendar.fetch_busy_intervals("cal-nobody", WINDOW)
    assignment = AppointmentAssignment(resource_id="alex", request_id="r0", interval=WINDOW)
    with pytest.raises(EventCreationError):
        calendar.create_event("cal-nobody", assignment)


def test_event_lifecycle():
    calendar = InMemoryCalendar()
    calendar.add_calendar("cal-alex")
    assignment = AppointmentAssignment(
        resource_id="alex",
        request_id="r0",
        interval=interval("2026-03-02T09:00", "2026-03-02T09:30"),
    )
    event_id = calendar.create_event("cal-alex", assignment)
    (event,) = calendar.fetch_busy_intervals("cal-alex", WINDOW)
    assert event.event_id == event_id
    assert event.resource_id == "alex"

    moved = assignment.model_copy(
        update={"interval": interval("2026-03-02T10:00", "2026-03-02T10:30")}
    )
    assert calendar.update_event("cal-alex", event_id, moved)
    assert calendar.events("cal-alex")[0].start == moved.start
    assert not calendar.update_event("cal-alex", "missing", moved)

    assert calendar.delete_event("cal-alex", event_id)
    assert not calendar.delete_event("cal-alex", event_id)
    assert calendar.fetch_busy_intervals("cal-alex", WINDOW) == []
