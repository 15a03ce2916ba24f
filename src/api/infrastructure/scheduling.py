"""Periodic job scheduling and bounded async execution.

The outbox processor never runs a long-lived blocking loop of its own:
each sweep is a short job invoked on a fixed period by PeriodicScheduler,
and deliveries run on a BoundedExecutor so a slow provider cannot starve
the sweeps.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from shared_kernel.outbox.exceptions import ExecutorSaturatedError

if TYPE_CHECKING:
    from shared_kernel.outbox.observability import SchedulerProbe

Job = Callable[[], Awaitable[object]]


class PeriodicScheduler:
    """Runs async jobs on a fixed delay, one asyncio task per job.

    The delay is measured from the end of one run to the start of the next,
    so a slow run never overlaps itself. An exception in a run is reported
    to the probe and the job keeps its schedule.
    """

    def __init__(self, probe: SchedulerProbe) -> None:
        self._probe = probe
        self._jobs: list[tuple[str, float, Job]] = []
        self._tasks: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    @property
    def job_names(self) -> list[str]:
        return [name for name, _, _ in self._jobs]

    def run_every(self, name: str, interval_seconds: float, job: Job) -> None:
        """Register a job to run every ``interval_seconds``.

        Jobs registered while the scheduler is running start immediately.

        Args:
            name: Job name used in logs
            interval_seconds: Delay between the end of a run and the next run
            job: Zero-argument coroutine function
        """
        if interval_seconds <= 0:
            raise ValueError(f"interval for {name} must be positive")
        if name in self.job_names:
            raise ValueError(f"job {name} is already scheduled")
        self._jobs.append((name, interval_seconds, job))
        self._probe.job_scheduled(name, interval_seconds)
        if self.running:
            self._tasks.append(self._spawn(name, interval_seconds, job))

    def clear(self) -> None:
        """Forget every registered job. The scheduler must be stopped."""
        if self.running:
            raise RuntimeError("cannot clear jobs while the scheduler is running")
        self._jobs.clear()

    def start(self) -> None:
        """Start every registered job."""
        if self.running:
            return
        self._tasks = [
            self._spawn(name, interval, job) for name, interval, job in self._jobs
        ]

    async def stop(self) -> None:
        """Cancel all jobs and wait for them to finish."""
        count = len(self._tasks)
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks.clear()
        self._probe.scheduler_stopped(count)

    def _spawn(self, name: str, interval_seconds: float, job: Job) -> asyncio.Task:
        return asyncio.create_task(
            self._loop(name, interval_seconds, job), name=f"scheduler:{name}"
        )

    async def _loop(self, name: str, interval_seconds: float, job: Job) -> None:
        while True:
            try:
                await job()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._probe.job_failed(name, str(e))
            await asyncio.sleep(interval_seconds)


class BoundedExecutor:
    """Async executor with a fixed number of workers and a bounded queue.

    At most ``max_workers`` submitted coroutines run at once; up to
    ``queue_capacity`` more wait for a worker. Submitting beyond that raises
    ExecutorSaturatedError instead of growing without bound.
    """

    def __init__(self, max_workers: int, queue_capacity: int) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        if queue_capacity < 0:
            raise ValueError("queue_capacity must be >= 0")
        self._max_workers = max_workers
        self._capacity = max_workers + queue_capacity
        self._workers = asyncio.Semaphore(max_workers)
        self._tasks: set[asyncio.Task] = set()
        self._closed = False

    @property
    def in_flight(self) -> int:
        """Number of submitted jobs that have not finished (running or queued)."""
        return len(self._tasks)

    @property
    def max_workers(self) -> int:
        return self._max_workers

    def has_capacity(self) -> bool:
        return not self._closed and len(self._tasks) < self._capacity

    def reopen(self) -> None:
        """Accept jobs again after shutdown()."""
        self._closed = False

    def submit(self, job: Job) -> asyncio.Task:
        """Schedule a job.

        Args:
            job: Zero-argument coroutine function

        Returns:
            The task running the job

        Raises:
            ExecutorSaturatedError: No worker or queue slot is free, or the
                executor was shut down
        """
        if not self.has_capacity():
            raise ExecutorSaturatedError(
                f"executor full ({len(self._tasks)}/{self._capacity})"
            )
        task = asyncio.create_task(self._run(job))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def join(self) -> None:
        """Wait until every submitted job has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self, timeout: float | None = None) -> None:
        """Stop accepting jobs and wait for in-flight ones.

        Jobs still running after ``timeout`` seconds are cancelled.
        """
        self._closed = True
        if not self._tasks:
            return
        try:
            await asyncio.wait_for(self.join(), timeout=timeout)
        except asyncio.TimeoutError:
            for task in list(self._tasks):
                task.cancel()
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run(self, job: Job) -> object:
        async with self._workers:
            return await job()
