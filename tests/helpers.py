#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime

from interview_scheduler.models import AppointmentRequest, BusyInterval
from interview_scheduler.time_utils import TimeInterval

# 2026-03-02 is a Monday
MONDAY = datetime.date(2026, 3, 2)
TUESDAY = MONDAY + datetime.timedelta(days=1)
WEDNESDAY = MONDAY + datetime.timedelta(days=2)
SATURDAY = MONDAY + datetime.timedelta(days=5)
NEXT_MONDAY = MONDAY + datetime.timedelta(days=7)


def dt(value: str) -> datetime.datetime:
    return datetime.datetime.fromisoformat(value)


def interval(start: str, end: str) -> TimeInterval:
    return TimeInterval(start=dt(start), end=dt(end))


def busy(
    start: str, end: str, resource_id: str | None = None, event_id: str | None = None
) -> BusyInterval:
    return BusyInterval(
        start=dt(start), end=dt(end), resource_id=resource_id, event_id=event_id
    )


def on(date: datetime.date, hour: int, minute: int = 0) -> datetime.datetime:
    return datetime.datetime.combine(date, datetime.time(hour, minute))


def make_requests(n: int) -> list[AppointmentRequest]:
    return [
        AppointmentRequest(request_id=f"r{i}", contact_id=f"c{i}", display_name=f"Contact {i}")
        for i in range(n)
    ]
