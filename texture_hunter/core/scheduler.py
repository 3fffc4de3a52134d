"""
Cooperative, time-sliced execution of long batches.

A :class:`CooperativeTask` walks a sequence of work units in order. After
every ``batch_size`` units it asks for memory to be reclaimed and suspends
for ``pause_seconds`` so the host stays responsive. It keeps only a weak
reference to its owner: once the owner is gone, the next resumption
cancels the task without running the remaining units.

A :class:`CooperativeScheduler` drives any number of tasks from a plain
loop; exactly one unit runs at any instant.
"""

from __future__ import annotations

import gc
import time
import weakref
from enum import Enum
from typing import Any, Callable, Iterable, Iterator, List, Optional

from .logger import get_logger

log = get_logger(__name__)

DEFAULT_SCAN_BATCH_SIZE = 100_000
DEFAULT_MUTATION_BATCH_SIZE = 100
DEFAULT_PAUSE_SECONDS = 0.05


class TaskState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUSPENDED = "suspended"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class _Unowned:
    """Stand-in owner for tasks nobody can cancel."""


_UNOWNED = _Unowned()


class CooperativeTask:
    def __init__(
        self,
        units: Iterable[Any],
        work: Callable[[Any], None],
        *,
        owner: Any = None,
        name: str = "task",
        batch_size: int = DEFAULT_MUTATION_BATCH_SIZE,
        pause_seconds: float = DEFAULT_PAUSE_SECONDS,
        reclaim: Callable[[], Any] = gc.collect,
        clock: Callable[[], float] = time.monotonic,
        on_complete: Optional[Callable[["CooperativeTask"], None]] = None,
        on_cancel: Optional[Callable[["CooperativeTask"], None]] = None,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.name = name
        self._units: Iterator[Any] = iter(units)
        self._work = work
        self._owner_ref = weakref.ref(owner if owner is not None else _UNOWNED)
        self.batch_size = batch_size
        self.pause_seconds = pause_seconds
        self._reclaim = reclaim
        self._clock = clock
        self._on_complete = on_complete
        self._on_cancel = on_cancel
        self.state = TaskState.PENDING
        self.processed = 0
        self.resume_at = 0.0
        self.error: Optional[BaseException] = None

    @property
    def done(self) -> bool:
        return self.state in (TaskState.COMPLETED, TaskState.CANCELLED, TaskState.FAILED)

    @property
    def owner_alive(self) -> bool:
        return self._owner_ref() is not None

    def is_ready(self) -> bool:
        if self.done:
            return False
        return self.state is not TaskState.SUSPENDED or self._clock() >= self.resume_at

    def cancel(self) -> None:
        if self.done:
            return
        self.state = TaskState.CANCELLED
        log.info(f"{self.name}: cancelled after {self.processed} unit(s)")
        if self._on_cancel is not None:
            self._on_cancel(self)

    def step(self) -> TaskState:
        """Run one slice: up to ``batch_size`` units, then suspend or finish."""
        if self.done:
            return self.state

        if not self.owner_alive:
            self.cancel()
            return self.state

        if self.state is TaskState.SUSPENDED:
            self._reclaim()

        self.state = TaskState.RUNNING
        in_slice = 0
        for unit in self._units:
            try:
                self._work(unit)
            except Exception as e:
                # A failed unit ends the task; the error goes to the caller.
                self.state = TaskState.FAILED
                self.error = e
                log.error(f"{self.name}: failed after {self.processed} unit(s): {e}")
                raise
            self.processed += 1
            in_slice += 1
            if in_slice >= self.batch_size:
                self._reclaim()
                self.state = TaskState.SUSPENDED
                self.resume_at = self._clock() + self.pause_seconds
                return self.state

        self.state = TaskState.COMPLETED
        log.debug(f"{self.name}: completed {self.processed} unit(s)")
        if self._on_complete is not None:
            self._on_complete(self)
        return self.state


class CooperativeScheduler:
    """Single-threaded driver for cooperative tasks."""

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Any] = time.sleep,
    ):
        self._clock = clock
        self._sleep = sleep
        self._tasks: List[CooperativeTask] = []

    @property
    def pending(self) -> List[CooperativeTask]:
        return list(self._tasks)

    def submit(self, task: CooperativeTask) -> CooperativeTask:
        self._tasks.append(task)
        return task

    def tick(self) -> bool:
        """Step every ready task once. Returns True while work remains."""
        try:
            for task in list(self._tasks):
                if task.is_ready():
                    task.step()
        finally:
            self._tasks = [task for task in self._tasks if not task.done]
        return bool(self._tasks)

    def run_until_complete(self, task: Optional[CooperativeTask] = None) -> None:
        while self._tasks and (task is None or not task.done):
            self.tick()
            if task is not None and task.done:
                break
            waiting = [t for t in self._tasks if not t.is_ready()]
            if waiting and len(waiting) == len(self._tasks):
                delay = min(t.resume_at for t in waiting) - self._clock()
                if delay > 0:
                    self._sleep(delay)
