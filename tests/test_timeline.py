#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime

import pytest

from interview_scheduler.exceptions import IntervalError
from interview_scheduler.models import Resource
from interview_scheduler.timeline import ResourceTimeline
from tests.helpers import busy, interval

WINDOW = interval("2026-03-02T09:00", "2026-03-02T12:00")


@pytest.fixture
def timeline() -> ResourceTimeline:
    resource = Resource(resource_id="alex", display_name="Alex", calendar_ref="cal-alex")
    return ResourceTimeline.from_busy(
        resource, [busy("2026-03-02T10:00", "2026-03-02T10:30")], WINDOW
    )


def test_free_intervals_are_tagged(timeline):
    assert [(f.start.time(), f.end.time()) for f in timeline.free_intervals] == [
        (datetime.time(9), datetime.time(10)),
        (datetime.time(10, 30), datetime.time(12)),
    ]
    assert all(f.resource_id == "alex" and f.calendar_ref == "cal-alex" for f in timeline.free_intervals)
    assert timeline.total_free == datetime.timedelta(hours=2, minutes=30)


def test_first_fit(timeline):
    assert timeline.first_fit(datetime.timedelta(minutes=60)).start.time() == datetime.time(9)
    assert timeline.first_fit(datetime.timedelta(minutes=90)).start.time() == datetime.time(10, 30)
    assert timeline.first_fit(datetime.timedelta(hours=2)) is None


def test_booking_consumes_free_time(timeline):
    timeline.book(interval("2026-03-02T09:00", "2026-03-02T09:30"))
    timeline.book(interval("2026-03-02T11:00", "2026-03-02T11:30"))
    assert [(f.start.time(), f.end.time()) for f in timeline.free_intervals] == [
        (datetime.time(9, 30), datetime.time(10)),
        (datetime.time(10, 30), datetime.time(11)),
        (datetime.time(11, 30), datetime.time(12)),
    ]
    assert len(timeline.bookings) == 2
    assert timeline.is_consistent()


@pytest.mark.parametrize(
    "start, end",
    [
        ("2026-03-02T09:45", "2026-03-02T10:15"),
        ("2026-03-02T12:00", "2026-03-02T12:30"),
    ],
)
def test_booking_busy_time_is_rejected(timeline, start, end):
    with pytest.raises(IntervalError):
        timeline.book(interval(start, end))
    assert not timeline.bookings
