#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#


class SchedulingError(Exception):
    pass


class ConfigurationError(SchedulingError):
    """Raised when a rule set or working-hours configuration is inconsistent."""

    pass


class IntervalError(SchedulingError, ValueError):
    pass


class ResourceFetchError(SchedulingError):
    """Raised when the busy intervals of a resource cannot be retrieved."""

    def __init__(self, message: str, resource_id: str | None = None):
        super().__init__(message)
        self.resource_id = resource_id


class TransientCalendarError(SchedulingError):
    """A calendar failure that is expected to succeed on retry."""

    pass


class EventCreationError(SchedulingError):
    pass
