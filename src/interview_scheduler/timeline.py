#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime
import logging
from collections.abc import Iterable

from interview_scheduler.exceptions import IntervalError
from interview_scheduler.models import BusyInterval, FreeInterval, Resource
from interview_scheduler.time_utils import TimeInterval, find_gaps, subtract, total_duration

logger = logging.getLogger(__name__)


class ResourceTimeline:
    """The free time of a single resource within a scheduling window.

    Free intervals are kept sorted, pairwise disjoint and non-touching. Each
    booking removes the booked range from the interval that contains it.
    """

    def __init__(self, resource: Resource, free: Iterable[TimeInterval] = ()):
        self.resource = resource
        self._free: list[FreeInterval] = sorted(
            (self._tag(interval) for interval in free), key=lambda i: i.start
        )
        self._bookings: list[TimeInterval] = []

    @classmethod
    def from_busy(
        cls, resource: Resource, busy: Iterable[BusyInterval], window: TimeInterval
    ) -> "ResourceTimeline":
        return cls(resource, find_gaps(busy, window))

    def _tag(self, interval: TimeInterval) -> FreeInterval:
        if isinstance(interval, FreeInterval):
            return interval
        return FreeInterval(
            start=interval.start,
            end=interval.end,
            resource_id=self.resource.resource_id,
            resource_name=self.resource.display_name,
            calendar_ref=self.resource.calendar_ref,
        )

    @property
    def free_intervals(self) -> tuple[FreeInterval, ...]:
        return tuple(self._free)

    @property
    def bookings(self) -> tuple[TimeInterval, ...]:
        return tuple(self._bookings)

    @property
    def total_free(self) -> datetime.timedelta:
        return total_duration(self._free)

    def first_fit(self, duration: datetime.timedelta) -> FreeInterval | None:
        """The earliest free interval at least `duration` long."""
        return next((i for i in self._free if i.duration >= duration), None)

    def book(self, interval: TimeInterval) -> None:
        """Mark `interval` as taken.

        Raises
        ------
        IntervalError
            If `interval` is not entirely inside one free interval.
        """
        if not any(free.contains(interval) for free in self._free):
            raise IntervalError(
                f"Cannot book {interval} on {self.resource}: the time is not free"
            )
        self._free = subtract(self._free, [interval])
        self._bookings.append(interval)
        logger.debug(f"Booked {interval} on {self.resource}")

    def is_consistent(self) -> bool:
        """Check the free intervals are sorted, disjoint and non-touching and
        that no booking overlaps free time."""
        ordered = all(a.end < b.start for a, b in zip(self._free, self._free[1:]))
        return ordered and not any(
            free.intersects(booking) for free in self._free for booking in self._bookings
        )
