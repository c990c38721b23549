#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime

import pytest

from interview_scheduler.availability import (
    describe_conflicts,
    get_available_slots,
    get_blocked_periods,
    get_open_slots,
    is_date_available,
    is_valid_advance_booking,
    is_within_working_hours,
    iter_dates,
)
from interview_scheduler.config import (
    Holiday,
    RecurringBlackout,
    RuleSet,
    SessionWindow,
    WorkingHoursConfig,
)
from interview_scheduler.models import BlockedPeriodReason
from tests.helpers import MONDAY, SATURDAY, TUESDAY, WEDNESDAY, interval, on


def test_standard_hours_have_two_sessions(working_hours):
    assert get_available_slots(MONDAY, working_hours) == [
        interval("2026-03-02T09:00", "2026-03-02T12:00"),
        interval("2026-03-02T13:00", "2026-03-02T17:00"),
    ]


def test_no_slots_on_non_working_day(working_hours):
    assert get_available_slots(SATURDAY, working_hours) == []


def test_breaks_are_subtracted():
    config = WorkingHoursConfig(
        breaks=(SessionWindow(start=datetime.time(10, 30), end=datetime.time(10, 45)),)
    )
    assert get_available_slots(MONDAY, config) == [
        interval("2026-03-02T09:00", "2026-03-02T10:30"),
        interval("2026-03-02T10:45", "2026-03-02T12:00"),
        interval("2026-03-02T13:00", "2026-03-02T17:00"),
    ]


def test_touching_sessions_are_merged():
    config = WorkingHoursConfig(
        morning_session=SessionWindow(start=datetime.time(9), end=datetime.time(13)),
        afternoon_session=SessionWindow(start=datetime.time(13), end=datetime.time(17)),
    )
    assert get_available_slots(MONDAY, config) == [
        interval("2026-03-02T09:00", "2026-03-02T17:00")
    ]


def test_extended_hours_cover_the_whole_day():
    assert get_available_slots(SATURDAY, WorkingHoursConfig.extended_hours()) == [
        interval("2026-03-07T00:00", "2026-03-08T00:00")
    ]


@pytest.mark.parametrize(
    "start, end, expected",
    [
        ("2026-03-02T09:00", "2026-03-02T09:30", True),
        ("2026-03-02T11:30", "2026-03-02T12:00", True),
        ("2026-03-02T11:45", "2026-03-02T12:15", False),
        ("2026-03-02T12:00", "2026-03-02T13:00", False),
        ("2026-03-02T08:30", "2026-03-02T09:30", False),
        ("2026-03-07T10:00", "2026-03-07T10:30", False),
    ],
)
def test_is_within_working_hours(working_hours, start, end, expected):
    assert is_within_working_hours(interval(start, end), working_hours) is expected


def test_advance_booking_window(working_hours):
    now = on(MONDAY, 8)
    assert not is_valid_advance_booking(on(TUESDAY, 7), working_hours, now=now)
    assert is_valid_advance_booking(on(WEDNESDAY, 9), working_hours, now=now)
    assert is_valid_advance_booking(on(TUESDAY, 8), working_hours, now=now)
    assert not is_valid_advance_booking(
        now + datetime.timedelta(days=91), working_hours, now=now
    )


def test_advance_booking_defaults_now_to_the_proposal_timezone(working_hours):
    aware = datetime.datetime.now(datetime.timezone.utc)
    assert is_valid_advance_booking(aware + datetime.timedelta(hours=48), working_hours)
    assert not is_valid_advance_booking(aware + datetime.timedelta(hours=1), working_hours)
    naive = datetime.datetime.now() + datetime.timedelta(hours=48)
    assert is_valid_advance_booking(naive, working_hours)


def test_advance_booking_explicit_bounds_override_config(working_hours):
    now = on(MONDAY, 8)
    assert is_valid_advance_booking(
        on(MONDAY, 10), working_hours, now=now, min_advance_hours=1
    )


def test_holiday_recurs_every_year():
    holiday = Holiday(name="Christmas Day", date=datetime.date(2000, 12, 25))
    assert holiday.applies_on(datetime.date(2026, 12, 25))
    one_off = Holiday(name="Offsite", date=datetime.date(2026, 3, 4), is_recurring=False)
    assert one_off.applies_on(WEDNESDAY)
    assert not one_off.applies_on(datetime.date(2027, 3, 4))


def test_is_date_available(rules):
    holiday_rules = RuleSet(holidays=(Holiday(name="Offsite", date=TUESDAY, is_recurring=False),))
    assert is_date_available(MONDAY, rules)
    assert not is_date_available(SATURDAY, rules)
    assert not is_date_available(TUESDAY, holiday_rules)
    assert is_date_available(SATURDAY, RuleSet.unrestricted())


def test_open_slots_remove_blackouts():
    rules = RuleSet(
        recurring_blackouts=(
            RecurringBlackout(
                name="Standup",
                window=SessionWindow(start=datetime.time(9), end=datetime.time(9, 30)),
                days=frozenset({0}),
            ),
        )
    )
    assert get_open_slots(MONDAY, rules) == [
        interval("2026-03-02T09:30", "2026-03-02T12:00"),
        interval("2026-03-02T13:00", "2026-03-02T17:00"),
    ]
    assert get_open_slots(TUESDAY, rules)[0] == interval(
        "2026-03-03T09:00", "2026-03-03T12:00"
    )


def test_open_slots_unrestricted_and_holiday():
    assert get_open_slots(SATURDAY, RuleSet.unrestricted()) == [
        interval("2026-03-07T00:00", "2026-03-08T00:00")
    ]
    holiday_rules = RuleSet(holidays=(Holiday(name="Offsite", date=MONDAY),))
    assert get_open_slots(MONDAY, holiday_rules) == []


def test_blocked_periods_on_working_day(rules):
    blocked = get_blocked_periods(MONDAY, rules)
    assert [(b.reason, b.start, b.end) for b in blocked] == [
        (BlockedPeriodReason.OutsideWorkingHours, on(MONDAY, 0), on(MONDAY, 9)),
        (BlockedPeriodReason.LunchBreak, on(MONDAY, 12), on(MONDAY, 13)),
        (BlockedPeriodReason.OutsideWorkingHours, on(MONDAY, 17), on(TUESDAY, 0)),
    ]
    assert blocked[1].friendly_description() == "Lunch break (12:00 PM - 1:00 PM)"


def test_blocked_periods_whole_day(rules):
    (weekend,) = get_blocked_periods(SATURDAY, rules)
    assert weekend.reason == BlockedPeriodReason.Weekend
    assert weekend.duration == datetime.timedelta(days=1)

    holiday_rules = RuleSet(holidays=(Holiday(name="Founders Day", date=MONDAY),))
    (holiday,) = get_blocked_periods(MONDAY, holiday_rules)
    assert holiday.reason == BlockedPeriodReason.Holiday
    assert holiday.friendly_description() == "Holiday: Founders Day"


def test_blocked_periods_include_blackouts():
    rules = RuleSet(
        recurring_blackouts=(
            RecurringBlackout(
                name="All hands",
                window=SessionWindow(start=datetime.time(15), end=datetime.time(16)),
            ),
        )
    )
    blackouts = [
        b for b in get_blocked_periods(MONDAY, rules)
        if b.reason == BlockedPeriodReason.RecurringBlackout
    ]
    assert len(blackouts) == 1
    assert blackouts[0].friendly_description() == "Blocked: All hands"


def test_no_blocked_periods_when_unrestricted():
    assert get_blocked_periods(SATURDAY, RuleSet.unrestricted()) == []


def test_describe_conflicts(rules):
    blocked = get_blocked_periods(MONDAY, rules)
    assert describe_conflicts(interval("2026-03-02T10:00", "2026-03-02T11:00"), blocked) == ""
    assert describe_conflicts(
        interval("2026-03-02T11:30", "2026-03-02T12:30"), blocked
    ) == "Lunch break (12:00 PM - 1:00 PM)"
    assert describe_conflicts(
        interval("2026-03-02T08:00", "2026-03-02T18:00"), blocked
    ).startswith("Multiple conflicts: ")


def test_iter_dates():
    assert list(iter_dates(MONDAY, 3)) == [MONDAY, TUESDAY, WEDNESDAY]
    assert list(iter_dates(MONDAY, 0)) == []
