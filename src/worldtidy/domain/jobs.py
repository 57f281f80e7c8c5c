"""Bounded-concurrency job lanes and the quiescence detector.

Three lanes exist: ``bulk`` for independent read-only discovery work,
``moderate`` for secondary lookups against third-party APIs, and ``serial``
(one slot) for every write against the world record store. Jobs are dispatched
FIFO as slots free up; a failing job is logged and never stops its lane.
"""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Any, Generic, Protocol, TypeVar

from worldtidy.config.queues import (
    QUIESCENCE_INTERVAL_SECONDS,
    QUIESCENCE_REQUIRED_SAMPLES,
    QUIESCENCE_STATUS_EVERY_SAMPLES,
    QueueConfig,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable, Iterator

log = getLogger(__name__)

T = TypeVar("T")


class Lane(StrEnum):
    BULK = "bulk"
    MODERATE = "moderate"
    SERIAL = "serial"


class JobState(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(slots=True, eq=False)
class Job(Generic[T]):
    """Named unit of async work; await :meth:`wait` for its outcome."""

    name: str
    lane: str
    fn: Callable[[], Awaitable[T]] = field(repr=False)
    state: JobState = JobState.PENDING
    result: T | None = None
    error: BaseException | None = None
    _finished: asyncio.Event = field(default_factory=asyncio.Event, repr=False)

    @property
    def done(self) -> bool:
        return self._finished.is_set()

    async def wait(self) -> T | None:
        """Block until the job has run; re-raise its failure if it had one."""

        await self._finished.wait()
        if self.error is not None:
            raise self.error
        return self.result


class JobQueue:
    def __init__(self, name: str, concurrency: int) -> None:
        if concurrency < 1:
            msg = f"Queue {name!r} needs at least one slot, got {concurrency}"
            raise ValueError(msg)
        self.name = name
        self.concurrency = concurrency
        self._pending: deque[Job[Any]] = deque()
        self._running: list[Job[Any]] = []
        self._tasks: set[asyncio.Task[None]] = set()

    def __repr__(self) -> str:
        return (
            f"JobQueue({self.name!r}, concurrency={self.concurrency}, "
            f"active={self.active}, pending={self.size})"
        )

    @property
    def size(self) -> int:
        """Jobs accepted but not yet started."""
        return len(self._pending)

    @property
    def active(self) -> int:
        return len(self._running)

    @property
    def total(self) -> int:
        return self.size + self.active

    def running_names(self) -> list[str]:
        return [job.name for job in self._running]

    def pending_names(self) -> list[str]:
        return [job.name for job in self._pending]

    def add(self, fn: Callable[[], Awaitable[T]], *, name: str) -> Job[T]:
        """Accept ``fn`` immediately; it runs once a slot is free."""

        job: Job[T] = Job(name=name, lane=self.name, fn=fn)
        self._pending.append(job)
        self._dispatch()
        return job

    async def join(self) -> None:
        """Wait until every job accepted so far, and any they enqueue here, has finished."""

        while self._running:
            await asyncio.gather(*(job.wait() for job in self._running), return_exceptions=True)

    def _dispatch(self) -> None:
        loop = asyncio.get_running_loop()
        while self._pending and len(self._running) < self.concurrency:
            job = self._pending.popleft()
            job.state = JobState.RUNNING
            self._running.append(job)
            task = loop.create_task(self._run(job), name=f"{self.name}:{job.name}")
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _run(self, job: Job[Any]) -> None:
        try:
            job.result = await job.fn()
            job.state = JobState.DONE
        except asyncio.CancelledError as exc:
            job.error = exc
            job.state = JobState.CANCELLED
            raise
        except Exception as exc:
            job.error = exc
            job.state = JobState.FAILED
            log.exception("Job %r failed in %s queue", job.name, self.name)
        finally:
            self._running.remove(job)
            job._finished.set()  # noqa: SLF001
            if job.state is not JobState.CANCELLED:
                self._dispatch()


@dataclass(slots=True)
class JobQueues:
    """The three lanes shared by a pipeline run."""

    bulk: JobQueue = field(default_factory=lambda: JobQueue(Lane.BULK, 4))
    moderate: JobQueue = field(default_factory=lambda: JobQueue(Lane.MODERATE, 2))
    serial: JobQueue = field(default_factory=lambda: JobQueue(Lane.SERIAL, 1))

    @classmethod
    def from_config(cls, config: QueueConfig | None = None) -> JobQueues:
        config = config or QueueConfig()
        return cls(
            bulk=JobQueue(Lane.BULK, config.bulk),
            moderate=JobQueue(Lane.MODERATE, config.moderate),
            serial=JobQueue(Lane.SERIAL, config.serial),
        )

    def __iter__(self) -> Iterator[JobQueue]:
        return iter((self.bulk, self.moderate, self.serial))

    def lane(self, lane: Lane) -> JobQueue:
        return {Lane.BULK: self.bulk, Lane.MODERATE: self.moderate, Lane.SERIAL: self.serial}[
            lane
        ]

    @property
    def total(self) -> int:
        return sum(queue.total for queue in self)

    def status(self) -> dict[str, dict[str, list[str]]]:
        return {
            queue.name: {"running": queue.running_names(), "pending": queue.pending_names()}
            for queue in self
        }

    def log_status(self) -> None:
        for queue in self:
            log.info(
                "%s queue: %s running %s, %s pending",
                queue.name,
                queue.active,
                queue.running_names(),
                queue.size,
            )


class SupportsOutstanding(Protocol):
    @property
    def total(self) -> int: ...


async def wait_for_quiescence(
    queues: Iterable[SupportsOutstanding],
    *,
    interval: float = QUIESCENCE_INTERVAL_SECONDS,
    required: int = QUIESCENCE_REQUIRED_SAMPLES,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    on_busy: Callable[[], None] | None = None,
    status_every: int = QUIESCENCE_STATUS_EVERY_SAMPLES,
) -> int:
    """Poll the lanes until ``required`` consecutive samples see no outstanding jobs.

    A single empty reading is not enough: a job that just finished may enqueue
    its follow-up work right after the sample. While work is outstanding,
    ``on_busy`` is called every ``status_every`` samples. Returns the number of
    samples taken.
    """

    lanes = tuple(queues)
    samples = 0
    consecutive_zero = 0
    while consecutive_zero < required:
        await sleep(interval)
        outstanding = sum(lane.total for lane in lanes)
        samples += 1
        if outstanding == 0:
            consecutive_zero += 1
        else:
            if on_busy is not None and samples % status_every == 0:
                on_busy()
            if consecutive_zero:
                log.debug("Quiescence reset after %s empty samples", consecutive_zero)
            consecutive_zero = 0
    log.debug("Queues quiescent after %s samples", samples)
    return samples
