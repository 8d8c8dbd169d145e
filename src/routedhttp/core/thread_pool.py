"""
=============================================================================
CONNECTION WORKER POOL
=============================================================================

A fixed upper bound on how many connections are served at once.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                          WORKER POOL                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   accept loop ──► submit(process, conn)                             │
    │                        │                                             │
    │                        ▼                                             │
    │              ┌───────────────────┐   full?  ──► False (caller       │
    │              │ queue (queue_size)│               answers 503)        │
    │              └─────────┬─────────┘                                   │
    │                        │                                             │
    │          ┌─────────────┼─────────────┐                               │
    │          ▼             ▼             ▼                               │
    │      Worker-0      Worker-1  ...  Worker-N   (min..max workers)      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Workers start at min_workers and grow one at a time, up to max_workers,
while every existing worker is busy and tasks are waiting. A slow client
can hold a worker for at most the connection read timeout, so at most
max_workers + queue_size connections are ever in flight.

None on the queue is the poison pill that stops a worker.

=============================================================================
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    IDLE = "idle"
    BUSY = "busy"
    STOPPED = "stopped"


@dataclass
class Task:
    """A deferred call: func(*args, **kwargs)."""

    func: Callable[..., Any]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)
    submitted_at: float = field(default_factory=time.time)


class Worker(threading.Thread):
    """Pulls tasks off the shared queue until it sees the poison pill."""

    def __init__(self, task_queue: queue.Queue, worker_id: int, idle_timeout: float = 1.0):
        super().__init__(name=f"Worker-{worker_id}", daemon=True)
        self.task_queue = task_queue
        self.worker_id = worker_id
        self.idle_timeout = idle_timeout

        self.state = WorkerState.IDLE
        self._shutdown = threading.Event()

        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self) -> None:
        logger.debug(f"Worker {self.worker_id} started")

        while not self._shutdown.is_set():
            try:
                task = self.task_queue.get(timeout=self.idle_timeout)
            except queue.Empty:
                continue

            try:
                if task is None:
                    break
                self._execute_task(task)
            finally:
                self.task_queue.task_done()

        self.state = WorkerState.STOPPED
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_task(self, task: Task) -> None:
        self.state = WorkerState.BUSY
        start_time = time.time()

        try:
            task.func(*task.args, **task.kwargs)
            self.tasks_completed += 1
            logger.debug(
                f"Worker {self.worker_id} completed task in {time.time() - start_time:.3f}s "
                f"(queued {start_time - task.submitted_at:.3f}s)"
            )
        except Exception as e:
            # One failing task must not take the worker down with it
            logger.exception(f"Worker {self.worker_id} task failed: {e}")
            self.tasks_failed += 1
        finally:
            self.state = WorkerState.IDLE

    def shutdown(self) -> None:
        self._shutdown.set()


class ThreadPool:
    """
    Bounded pool of worker threads fed from a bounded queue.

    Usage:
        pool = ThreadPool(min_workers=4, max_workers=16, queue_size=64)
        pool.start()

        if not pool.submit(process_connection, args=(conn,)):
            ...  # saturated, reject the work

        pool.shutdown(wait=True, timeout=5.0)
    """

    def __init__(
        self,
        min_workers: int = 4,
        max_workers: int = 16,
        queue_size: int = 64,
        idle_timeout: float = 1.0,
    ):
        """
        Args:
            min_workers: Workers created by start().
            max_workers: Hard cap on worker threads.
            queue_size: Tasks allowed to wait for a free worker.
            idle_timeout: How often an idle worker checks for shutdown.
        """
        if min_workers < 1 or max_workers < min_workers:
            raise ValueError("Need 1 <= min_workers <= max_workers")
        if queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        self.min_workers = min_workers
        self.max_workers = max_workers
        self.idle_timeout = idle_timeout

        self._task_queue: queue.Queue = queue.Queue(maxsize=queue_size)
        self._workers: list = []
        self._lock = threading.Lock()
        self._started = False
        self._shutdown = False
        self._next_worker_id = 0

    def start(self) -> None:
        if self._started:
            return

        logger.info(f"Starting worker pool with {self.min_workers}-{self.max_workers} workers")
        self._shutdown = False
        for _ in range(self.min_workers):
            self._add_worker()
        self._started = True

    def _add_worker(self) -> None:
        worker = Worker(self._task_queue, self._next_worker_id, self.idle_timeout)
        self._next_worker_id += 1
        self._workers.append(worker)
        worker.start()

    def submit(self, func: Callable[..., Any], args: tuple = (), kwargs: Optional[dict] = None) -> bool:
        """
        Queue func(*args, **kwargs) without blocking.

        Returns:
            True if queued, False if the queue is full.

        Raises:
            RuntimeError: if the pool is not running.
        """
        if not self._started or self._shutdown:
            raise RuntimeError("Worker pool is not running")

        try:
            self._task_queue.put_nowait(Task(func, args, kwargs or {}))
        except queue.Full:
            return False

        self._maybe_scale_up()
        return True

    def _maybe_scale_up(self) -> None:
        """Add one worker if all are busy and tasks are waiting."""
        with self._lock:
            if len(self._workers) >= self.max_workers:
                return
            if self.busy_workers == len(self._workers) and self._task_queue.qsize() > 0:
                logger.debug(f"Scaling up: {len(self._workers)} -> {len(self._workers) + 1} workers")
                self._add_worker()

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None) -> None:
        """
        Stop accepting tasks and stop the workers.

        Args:
            wait: Let queued tasks run first (bounded by timeout).
            timeout: Seconds to wait for the queue to drain.
        """
        if not self._started:
            return

        logger.info("Shutting down worker pool...")
        self._shutdown = True

        if wait:
            deadline = None if timeout is None else time.time() + timeout
            while self._task_queue.unfinished_tasks:
                if deadline is not None and time.time() > deadline:
                    logger.warning("Worker pool shutdown timed out, abandoning queued tasks")
                    break
                time.sleep(0.05)

        for worker in self._workers:
            worker.shutdown()
        for _ in self._workers:
            try:
                self._task_queue.put_nowait(None)
            except queue.Full:
                break  # Workers also exit on the shutdown flag
        for worker in self._workers:
            worker.join(timeout=2.0)

        self._workers.clear()
        self._started = False
        logger.info("Worker pool stopped")

    @property
    def worker_count(self) -> int:
        return len(self._workers)

    @property
    def busy_workers(self) -> int:
        return sum(1 for w in self._workers if w.state is WorkerState.BUSY)

    @property
    def queue_size(self) -> int:
        """Tasks waiting for a worker."""
        return self._task_queue.qsize()
