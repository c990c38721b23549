#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""Interval algebra over half-open ``[start, end)`` time ranges.

Every availability, validation and scheduling computation in the package is
expressed with the handful of operations defined here: intersection tests,
clipping, gap finding, subtraction, merging and splitting."""
import datetime
from collections.abc import Iterable, Iterator
from enum import Enum
from typing import NamedTuple, Self, TypeVar

from pydantic import BaseModel, model_validator

from interview_scheduler.exceptions import IntervalError

TimeUnits = Enum("TimeUnits", ["Hours", "Minutes", "Days"])
"""Enumerations used for expressing durations in specific time units"""


class Duration(NamedTuple):
    """A length of time, for representing appointment durations.

    Parameters
    ----------
    number
        A float or integer representing the length of time.
    unit
        The unit of time used to measure the duration.
    """

    number: int | float
    unit: TimeUnits

    def to_minutes(self) -> float:
        """Convert the Duration to minutes."""
        if self.unit == TimeUnits.Hours:
            return float(self.number * 60)
        elif self.unit == TimeUnits.Minutes:
            return float(self.number)
        elif self.unit == TimeUnits.Days:
            return float(self.number * 24 * 60)
        else:
            raise ValueError(f"Unsupported time unit: {self.unit}")


DurationLike = datetime.timedelta | Duration | int | float
"""A duration given as a `timedelta`, a `Duration` or a number of minutes."""


def to_timedelta(duration: DurationLike) -> datetime.timedelta:
    """Normalise `duration` to a `timedelta`. Plain numbers are read as minutes.

    Raises
    ------
    IntervalError
        If the duration is not strictly positive.
    """
    if isinstance(duration, datetime.timedelta):
        delta = duration
    elif isinstance(duration, Duration):
        delta = datetime.timedelta(minutes=duration.to_minutes())
    else:
        delta = datetime.timedelta(minutes=duration)
    if delta <= datetime.timedelta(0):
        raise IntervalError(f"Duration must be positive, got {delta}")
    return delta


def combine(date: datetime.date, time: datetime.time) -> datetime.datetime:
    return datetime.datetime.combine(date, time)


def now_(tz: datetime.tzinfo | None = None) -> datetime.datetime:
    """The current time, naive unless `tz` is given so it compares with
    datetimes of the same kind."""
    return datetime.datetime.now(tz)


class TimeInterval(BaseModel, frozen=True):
    """Represents the half-open time interval ``[start, end)``.

    Two intervals that merely touch (one ends when the other starts) do not
    intersect. Zero-length and inverted intervals cannot be constructed.
    """

    start: datetime.datetime
    end: datetime.datetime

    @model_validator(mode="after")
    def _check_bounds(self) -> Self:
        if self.start >= self.end:
            raise ValueError(
                f"Interval start ({self.start}) must be before its end ({self.end})"
            )
        return self

    @classmethod
    def from_duration(cls, start: datetime.datetime, duration: DurationLike) -> Self:
        return cls(start=start, end=start + to_timedelta(duration))

    @property
    def duration(self) -> datetime.timedelta:
        return self.end - self.start

    @property
    def minutes(self) -> float:
        return self.duration.total_seconds() / 60

    def intersects(self, other: "TimeInterval") -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, other: "TimeInterval") -> bool:
        """Check if `other` lies entirely within this interval."""
        return self.start <= other.start and other.end <= self.end

    def contains_time(self, dt: datetime.datetime) -> bool:
        return self.start <= dt < self.end

    def with_bounds(self, start: datetime.datetime, end: datetime.datetime) -> Self:
        """Return an interval with the same tags as this one but the given bounds."""
        if start == self.start and end == self.end:
            return self
        if start >= end:
            raise IntervalError(f"Cannot create an empty interval [{start}, {end})")
        return self.model_copy(update={"start": start, "end": end})

    def __str__(self) -> str:
        return f"[{self.start.isoformat()}, {self.end.isoformat()})"


IntervalT = TypeVar("IntervalT", bound=TimeInterval)


def intersects(a: TimeInterval, b: TimeInterval) -> bool:
    """Check whether the two intervals share at least one instant."""
    return a.intersects(b)


def overlap(a: TimeInterval, b: TimeInterval) -> TimeInterval | None:
    """The intersection of `a` and `b` as a plain interval, or `None` if they
    do not intersect."""
    if not a.intersects(b):
        return None
    return TimeInterval(start=max(a.start, b.start), end=min(a.end, b.end))


def contains(outer: TimeInterval, inner: TimeInterval) -> bool:
    return outer.contains(inner)


def total_duration(intervals: Iterable[TimeInterval]) -> datetime.timedelta:
    return sum((i.duration for i in intervals), start=datetime.timedelta(0))


class IntervalSplit:
    """A lazy, restartable view of `slot` cut into back-to-back pieces of
    exactly `duration`. A trailing remainder shorter than `duration` is
    dropped."""

    def __init__(self, slot: TimeInterval, duration: DurationLike):
        self.slot = slot
        self.duration = to_timedelta(duration)

    def __iter__(self) -> Iterator[TimeInterval]:
        current = self.slot.start
        while current + self.duration <= self.slot.end:
            yield TimeInterval(start=current, end=current + self.duration)
            current += self.duration

    def __len__(self) -> int:
        return self.slot.duration // self.duration


def split(slot: TimeInterval, duration: DurationLike) -> IntervalSplit:
    """Split `slot` into consecutive intervals of length `duration`.

    Parameters
    ----------
    slot
        The interval to split.
    duration
        Length of each piece.

    Returns
    -------
    An iterable that can be traversed any number of times and whose ``len()`` is
    ``floor(slot.duration / duration)``.

    Raises
    ------
    IntervalError
        If `duration` is not strictly positive.
    """
    return IntervalSplit(slot, duration)


def merge(intervals: Iterable[TimeInterval]) -> list[TimeInterval]:
    """Union of `intervals`: overlapping or touching intervals are coalesced.
    The result is sorted and contains plain (untagged) intervals."""
    merged: list[TimeInterval] = []
    for interval in sorted(intervals, key=lambda i: (i.start, i.end)):
        if merged and interval.start <= merged[-1].end:
            if interval.end > merged[-1].end:
                merged[-1] = TimeInterval(start=merged[-1].start, end=interval.end)
        else:
            merged.append(TimeInterval(start=interval.start, end=interval.end))
    return merged


def subtract(
    sources: Iterable[IntervalT], removals: Iterable[TimeInterval]
) -> list[IntervalT]:
    """Remove every interval in `removals` from every interval in `sources`.

    Each removal cuts at most two pieces out of a source; overlapping removals
    behave as their union. The remaining pieces keep the type and any extra
    fields of the source they came from and are returned sorted by start.
    """
    blocks = merge(removals)
    remaining: list[IntervalT] = []
    for source in sources:
        cursor = source.start
        for block in blocks:
            if block.end <= cursor:
                continue
            if block.start >= source.end:
                break
            if block.start > cursor:
                remaining.append(source.with_bounds(cursor, block.start))
            cursor = max(cursor, block.end)
            if cursor >= source.end:
                break
        if cursor < source.end:
            remaining.append(source.with_bounds(cursor, source.end))
    remaining.sort(key=lambda i: (i.start, i.end))
    return remaining


def find_gaps(
    occupied: Iterable[TimeInterval], window: TimeInterval
) -> list[TimeInterval]:
    """Find the parts of `window` not covered by any interval in `occupied`.

    The occupied intervals need not be sorted or disjoint. If none of them
    intersects the window, the whole window is returned.
    """
    return [
        TimeInterval(start=gap.start, end=gap.end)
        for gap in subtract([window], occupied)
    ]
