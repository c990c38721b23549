#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime

import pytest
from pydantic import ValidationError

from interview_scheduler.config import (
    RuleSet,
    SessionWindow,
    WorkingHoursConfig,
    load_rule_set,
)
from interview_scheduler.exceptions import ConfigurationError


@pytest.mark.parametrize("name", ["standard", "flexible", "unrestricted"])
def test_presets_match_python_factories(name):
    assert load_rule_set(name) == getattr(RuleSet, name)()


def test_overrides_are_applied():
    rules = load_rule_set(
        "standard",
        overrides=["enforce_strict_validation=false", "working_hours.buffer_minutes=30"],
    )
    assert not rules.enforce_strict_validation
    assert rules.buffer_minutes() == 30


def test_weekday_names_are_resolved():
    rules = load_rule_set("flexible")
    assert rules.working_hours.available_days == frozenset(range(5))
    assert rules.recurring_blackouts[0].days == frozenset({0})


def test_load_from_path(tmp_path):
    path = tmp_path / "weekend.yaml"
    path.write_text(
        "working_hours:\n"
        "  available_days: ${days:Saturday,Sunday}\n"
        "  min_advance_hours: 1\n"
        "default_buffer_minutes: 10\n"
    )
    rules = load_rule_set(path)
    assert rules.working_hours.available_days == frozenset({5, 6})
    assert rules.working_hours.morning_session == SessionWindow(
        start=datetime.time(9), end=datetime.time(12)
    )
    assert rules.default_buffer_minutes == 10


def test_unknown_preset():
    with pytest.raises(ConfigurationError):
        load_rule_set("weekends-only")


def test_invalid_values_raise_configuration_error():
    with pytest.raises(ConfigurationError):
        load_rule_set("standard", overrides=["minimum_duration_minutes=600"])
    with pytest.raises(ConfigurationError):
        load_rule_set("standard", overrides=["working_hours.available_days=[9]"])


def test_session_window_validation():
    with pytest.raises(ValidationError):
        SessionWindow(start=datetime.time(12), end=datetime.time(9))
    full_day = SessionWindow(start=datetime.time(0), end=datetime.time(0))
    assert full_day.on(datetime.date(2026, 3, 2)).duration == datetime.timedelta(days=1)


def test_factories():
    standard = WorkingHoursConfig.standard_business_hours()
    assert [str(s) for s in standard.sessions] == ["09:00-12:00", "13:00-17:00"]
    assert standard.available_days == frozenset(range(5))
    extended = WorkingHoursConfig.extended_hours()
    assert extended.available_days == frozenset(range(7))
    assert extended.min_advance_hours == 0


def test_rule_set_buffer_defaults():
    assert RuleSet().buffer_minutes() == 15
    assert RuleSet().buffer_minutes(WorkingHoursConfig(buffer_minutes=0)) == 0
