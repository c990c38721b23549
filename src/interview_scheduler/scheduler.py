#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""Greedy assignment of appointment requests to the free time of several
resources.

The free time of every resource within the scheduling window is pooled and
kept ordered by start time (ties broken by resource order). Requests are served
first-in first-out: each one takes the leftmost free interval that is long
enough, and the unused remainder of that interval goes back into the pool. The
algorithm is fast and predictable but does not maximise the number of
appointments placed.
"""
import datetime
import logging
import threading
from bisect import bisect_left, insort
from collections import deque
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from concurrent.futures import TimeoutError as FuturesTimeoutError
from enum import StrEnum, auto

from pydantic import BaseModel, Field
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from interview_scheduler.calendar import CalendarService
from interview_scheduler.constants import FETCH_MAX_ATTEMPTS, FETCH_MAX_WORKERS
from interview_scheduler.exceptions import (
    ConfigurationError,
    ResourceFetchError,
    TransientCalendarError,
)
from interview_scheduler.models import (
    AppointmentAssignment,
    AppointmentRequest,
    BusyInterval,
    FreeInterval,
    RequestId,
    Resource,
    ResourceId,
)
from interview_scheduler.time_utils import (
    DurationLike,
    TimeInterval,
    subtract,
    to_timedelta,
)
from interview_scheduler.timeline import ResourceTimeline

logger = logging.getLogger(__name__)

AssignmentHook = Callable[[AppointmentAssignment, dict[ResourceId, ResourceTimeline]], None]


class FetchPolicy(StrEnum):
    """What to do when the busy intervals of a resource cannot be fetched."""

    Continue = auto()
    Abort = auto()


class ScheduleResult(BaseModel):
    """Outcome of a scheduling run.

    Parameters
    ----------
    assignments
        Appointments placed, in the order they were made.
    unscheduled
        Ids of the requests that could not be placed, in request order.
    fetch_failures
        Resource id to error message, for resources whose calendar could not
        be read. These resources contribute no free time.
    events_created
        Number of assignments successfully written to the calendar service.
    cancelled
        Whether the run was stopped early through its cancellation event.
    """

    assignments: list[AppointmentAssignment] = Field(default_factory=list)
    unscheduled: list[RequestId] = Field(default_factory=list)
    fetch_failures: dict[ResourceId, str] = Field(default_factory=dict)
    events_created: int = 0
    cancelled: bool = False

    @property
    def appointments_created(self) -> int:
        return len(self.assignments)


class FreeIntervalPool:
    """Free intervals of all resources, ordered by ``(start, resource order)``."""

    def __init__(self, resource_order: Sequence[ResourceId]):
        self._order = {resource_id: i for i, resource_id in enumerate(resource_order)}
        self._intervals: list[FreeInterval] = []

    def _key(self, interval: FreeInterval) -> tuple[datetime.datetime, int]:
        return interval.start, self._order[interval.resource_id]

    def __len__(self) -> int:
        return len(self._intervals)

    def __iter__(self):
        return iter(tuple(self._intervals))

    def add(self, interval: FreeInterval) -> None:
        insort(self._intervals, interval, key=self._key)

    def extend(self, intervals: Iterable[FreeInterval]) -> None:
        for interval in intervals:
            self.add(interval)

    def remove(self, interval: FreeInterval) -> None:
        index = bisect_left(self._intervals, self._key(interval), key=self._key)
        if index == len(self._intervals) or self._intervals[index] != interval:
            raise ValueError(f"{interval} is not in the pool")
        del self._intervals[index]

    def first_fit(self, duration: datetime.timedelta) -> FreeInterval | None:
        """The earliest-starting interval at least `duration` long."""
        return next((i for i in self._intervals if i.duration >= duration), None)

    def for_resource(self, resource_id: ResourceId) -> list[FreeInterval]:
        return [i for i in self._intervals if i.resource_id == resource_id]


def _is_cancelled(cancel_event: threading.Event | None) -> bool:
    return cancel_event is not None and cancel_event.is_set()


def assign_greedily(
    window: TimeInterval,
    duration: DurationLike,
    resources: Sequence[Resource],
    busy: dict[ResourceId, Sequence[BusyInterval]],
    requests: Sequence[AppointmentRequest],
    cancel_event: threading.Event | None = None,
    on_assignment: AssignmentHook | None = None,
) -> ScheduleResult:
    """Assign `requests` to the free time of `resources` within `window`.

    Parameters
    ----------
    window
        The period to schedule in.
    duration
        Length of every appointment.
    resources
        Resources to schedule on. Their order breaks ties between free
        intervals starting at the same time. Resources missing from `busy`
        contribute no free time.
    busy
        Busy intervals per resource id.
    requests
        Requests, served in order.
    cancel_event
        When set, the loop stops before the next assignment.
    on_assignment
        Called after every assignment with the assignment and the per-resource
        timelines.

    Returns
    -------
    The assignments made and the ids of the requests left over.
    """
    duration = to_timedelta(duration)
    timelines = {
        r.resource_id: ResourceTimeline.from_busy(r, busy[r.resource_id], window)
        for r in resources
        if r.resource_id in busy
    }
    pool = FreeIntervalPool([r.resource_id for r in resources])
    for timeline in timelines.values():
        pool.extend(timeline.free_intervals)
    logger.debug(f"Pooled {len(pool)} free intervals from {len(timelines)} resources")

    result = ScheduleResult()
    pending = deque(requests)
    while pending:
        if _is_cancelled(cancel_event):
            logger.info("Scheduling cancelled, returning partial results")
            result.cancelled = True
            break
        slot = pool.first_fit(duration)
        if slot is None:
            break
        request = pending.popleft()
        booked = TimeInterval.from_duration(slot.start, duration)
        assignment = AppointmentAssignment(
            resource_id=slot.resource_id,
            request_id=request.request_id,
            interval=booked,
            resource_name=slot.resource_name,
        )
        result.assignments.append(assignment)
        pool.remove(slot)
        pool.extend(subtract([slot], [booked]))
        timelines[slot.resource_id].book(booked)
        logger.debug(f"Assigned request {request.request_id} to {slot.resource_id} at {booked}")
        if on_assignment is not None:
            on_assignment(assignment, timelines)

    result.unscheduled = [r.request_id for r in pending]
    return result


@retry(
    wait=wait_random_exponential(multiplier=0.1, max=2),
    stop=stop_after_attempt(FETCH_MAX_ATTEMPTS),
    retry=retry_if_exception_type(TransientCalendarError),
    reraise=True,
)
def _fetch_busy(
    calendar: CalendarService, calendar_ref: str, window: TimeInterval
) -> list[BusyInterval]:
    return list(calendar.fetch_busy_intervals(calendar_ref, window))


class GreedyScheduler:
    """Runs the greedy assignment against a calendar service.

    Parameters
    ----------
    calendar
        Source of busy intervals and target for created events.
    fetch_policy
        Whether a failed fetch skips the resource or aborts the run.
    max_workers
        Number of busy-interval fetches run concurrently.
    fetch_timeout
        Seconds to wait for the whole fetch phase. Resources whose fetch has not
        completed by then are reported as failures and are not waited for.
    create_events
        Whether to book each assignment in the calendar service.
    on_assignment
        See `assign_greedily`.
    """

    def __init__(
        self,
        calendar: CalendarService,
        fetch_policy: FetchPolicy = FetchPolicy.Continue,
        max_workers: int = FETCH_MAX_WORKERS,
        fetch_timeout: float | None = None,
        create_events: bool = True,
        on_assignment: AssignmentHook | None = None,
    ):
        self.calendar = calendar
        self.fetch_policy = fetch_policy
        self.max_workers = max_workers
        self.fetch_timeout = fetch_timeout
        self.create_events = create_events
        self.on_assignment = on_assignment

    def _record_failure(
        self, resource: Resource, message: str, failures: dict[ResourceId, str]
    ) -> None:
        logger.warning(f"Could not fetch busy intervals for {resource}: {message}")
        if self.fetch_policy == FetchPolicy.Abort:
            raise ResourceFetchError(
                f"Failed to fetch busy intervals for {resource}: {message}",
                resource_id=resource.resource_id,
            )
        failures[resource.resource_id] = message

    def fetch_busy_intervals(
        self,
        resources: Sequence[Resource],
        window: TimeInterval,
        cancel_event: threading.Event | None = None,
    ) -> tuple[dict[ResourceId, list[BusyInterval]], dict[ResourceId, str]]:
        """Fetch the busy intervals of all `resources` concurrently.

        Returns
        -------
        The busy intervals of every resource fetched successfully and the error
        message of every resource that failed.

        Raises
        ------
        ResourceFetchError
            On the first failure, if the fetch policy is `FetchPolicy.Abort`.
        """
        busy: dict[ResourceId, list[BusyInterval]] = {}
        failures: dict[ResourceId, str] = {}
        if not resources:
            return busy, failures
        # not a context manager: leaving one waits for fetches still running
        executor = ThreadPoolExecutor(max_workers=self.max_workers)
        futures = {
            executor.submit(_fetch_busy, self.calendar, r.calendar_ref, window): r
            for r in resources
        }
        completed = False
        try:
            try:
                for future in as_completed(futures, timeout=self.fetch_timeout):
                    resource = futures[future]
                    try:
                        busy[resource.resource_id] = future.result()
                    except Exception as e:
                        self._record_failure(resource, str(e), failures)
                        continue
                    logger.debug(
                        f"Fetched {len(busy[resource.resource_id])} busy intervals "
                        f"for {resource}"
                    )
                    if _is_cancelled(cancel_event):
                        break
                else:
                    completed = True
            except FuturesTimeoutError:
                for resource in futures.values():
                    if resource.resource_id not in busy and resource.resource_id not in failures:
                        self._record_failure(resource, "Fetch timed out", failures)
        finally:
            executor.shutdown(wait=completed, cancel_futures=True)
        return busy, failures

    def _create_events(
        self, assignments: Iterable[AppointmentAssignment], resources: dict[ResourceId, Resource]
    ) -> int:
        created = 0
        for assignment in assignments:
            resource = resources[assignment.resource_id]
            if not resource.calendar_ref:
                logger.warning(f"{resource} has no calendar, no event created")
                continue
            try:
                event_id = self.calendar.create_event(resource.calendar_ref, assignment)
            except Exception:
                logger.exception(
                    f"Failed to create event for request {assignment.request_id} on {resource}"
                )
                continue
            assignment.external_event_id = event_id
            created += 1
        return created

    def run(
        self,
        window: TimeInterval,
        duration: DurationLike,
        resources: Sequence[Resource],
        requests: Sequence[AppointmentRequest],
        cancel_event: threading.Event | None = None,
    ) -> ScheduleResult:
        """Fetch busy time, assign `requests` and optionally create the events.

        Raises
        ------
        ConfigurationError
            If two resources share an id.
        ResourceFetchError
            If a fetch fails under `FetchPolicy.Abort`.
        """
        duration = to_timedelta(duration)
        ids = [r.resource_id for r in resources]
        if len(set(ids)) != len(ids):
            raise ConfigurationError("Resource ids must be unique")
        active = []
        for resource in resources:
            if resource.is_active:
                active.append(resource)
            else:
                logger.warning(f"Skipping inactive resource {resource}")

        busy, failures = self.fetch_busy_intervals(active, window, cancel_event)
        if _is_cancelled(cancel_event):
            logger.info("Scheduling cancelled while fetching busy intervals")
            return ScheduleResult(
                unscheduled=[r.request_id for r in requests],
                fetch_failures=failures,
                cancelled=True,
            )

        result = assign_greedily(
            window,
            duration,
            active,
            busy,
            requests,
            cancel_event=cancel_event,
            on_assignment=self.on_assignment,
        )
        result.fetch_failures = failures
        if self.create_events:
            result.events_created = self._create_events(
                result.assignments, {r.resource_id: r for r in active}
            )
        logger.info(
            f"Scheduled {result.appointments_created} of {len(requests)} requests on "
            f"{len(active)} resources ({len(failures)} fetch failures, "
            f"{result.events_created} events created)"
        )
        return result


def run_schedule(
    window: TimeInterval,
    duration: DurationLike,
    resources: Sequence[Resource],
    requests: Sequence[AppointmentRequest],
    calendar: CalendarService,
    cancel_event: threading.Event | None = None,
    **options,
) -> ScheduleResult:
    """Schedule `requests` on `resources` using a `GreedyScheduler`.

    Keyword arguments in `options` are passed to the `GreedyScheduler`
    constructor.
    """
    scheduler = GreedyScheduler(calendar, **options)
    return scheduler.run(window, duration, resources, requests, cancel_event=cancel_event)
