#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime

import pytest

from interview_scheduler.calendar import InMemoryCalendar
from interview_scheduler.config import RuleSet, WorkingHoursConfig
from interview_scheduler.models import AppointmentRequest, Resource
from tests.helpers import MONDAY, make_requests, on


@pytest.fixture
def working_hours() -> WorkingHoursConfig:
    return WorkingHoursConfig.standard_business_hours()


@pytest.fixture
def rules() -> RuleSet:
    return RuleSet.standard()


@pytest.fixture
def now() -> datetime.datetime:
    """A week before the Monday most tests book on."""
    return on(MONDAY - datetime.timedelta(days=7), 8)


@pytest.fixture
def resources() -> list[Resource]:
    return [
        Resource(resource_id="alex", display_name="Alex", calendar_ref="cal-alex"),
        Resource(resource_id="sam", display_name="Sam", calendar_ref="cal-sam"),
        Resource(resource_id="kim", display_name="Kim", calendar_ref="cal-kim"),
    ]


@pytest.fixture
def calendar(resources) -> InMemoryCalendar:
    calendar = InMemoryCalendar()
    for resource in resources:
        calendar.add_calendar(resource.calendar_ref)
    return calendar


@pytest.fixture
def requests() -> list[AppointmentRequest]:
    return make_requests(5)
