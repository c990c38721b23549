#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime

WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)
WORK_WEEK = frozenset(range(5))
ALL_WEEK = frozenset(range(7))

MORNING_SESSION_START = datetime.time(9, 0)
MORNING_SESSION_END = datetime.time(12, 0)
AFTERNOON_SESSION_START = datetime.time(13, 0)
AFTERNOON_SESSION_END = datetime.time(17, 0)
MIDNIGHT = datetime.time(0, 0)

# durations are expressed in minutes
DEFAULT_APPOINTMENT_DURATION = 30
MINIMUM_APPOINTMENT_DURATION = 15
MAXIMUM_APPOINTMENT_DURATION = 480
DEFAULT_BUFFER_MINUTES = 15
LARGE_BUFFER_MINUTES = 120

DEFAULT_MIN_ADVANCE_HOURS = 24
DEFAULT_MAX_ADVANCE_DAYS = 90

ALTERNATIVE_SEARCH_DAYS = 7
TIME_SLOT_INCREMENT_MINUTES = 30
MAX_SUGGESTIONS = 10
# lower numbers are more urgent
DEFAULT_SCHEDULING_PRIORITY = 5
DOUBLE_BOOKING_PRIORITY_THRESHOLD = 1

# busy-interval fetches
FETCH_MAX_ATTEMPTS = 3
FETCH_MAX_WORKERS = 4
