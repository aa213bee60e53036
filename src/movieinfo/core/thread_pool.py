"""
=============================================================================
WORKER THREAD POOL
=============================================================================

Optional concurrency for connection handling (ServerConfig.workers > 0).

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     THREAD POOL ARCHITECTURE                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Accept loop                                                        │
    │       │                                                              │
    │       │  submit(handle, conn)                                        │
    │       ▼                                                              │
    │   ┌──────────────────────────────┐                                   │
    │   │  queue.Queue(maxsize=N)      │  full? → submit() returns False   │
    │   └──────────────┬───────────────┘          (caller answers 503)     │
    │                  │                                                   │
    │        ┌─────────┼─────────┐                                         │
    │        ▼         ▼         ▼                                         │
    │    Worker-0  Worker-1  Worker-2   ... (fixed count)                  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

With workers = 0 the server never creates a pool and handles each
connection inline in the accept loop, one at a time.

Workers stop when they take a None ("poison pill") off the queue.

=============================================================================
"""

import queue
import threading
import time
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    IDLE = "idle"
    BUSY = "busy"
    STOPPED = "stopped"


@dataclass
class Task:
    """A deferred call: func(*args)."""

    func: Callable[..., Any]
    args: tuple = ()
    submitted_at: float = field(default_factory=time.time)


class Worker(threading.Thread):
    """
    Worker thread that runs tasks from the shared queue.

    A task that raises is logged and counted; the worker keeps going.
    """

    def __init__(self, task_queue: queue.Queue, worker_id: int):
        super().__init__(name=f"Worker-{worker_id}", daemon=True)
        self.task_queue = task_queue
        self.worker_id = worker_id
        self.state = WorkerState.IDLE
        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while True:
            task = self.task_queue.get()
            try:
                if task is None:
                    break
                self._execute_task(task)
            finally:
                self.task_queue.task_done()

        self.state = WorkerState.STOPPED
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_task(self, task: Task):
        self.state = WorkerState.BUSY
        start_time = time.time()
        try:
            task.func(*task.args)
            self.tasks_completed += 1
        except Exception as e:
            elapsed = time.time() - start_time
            logger.exception(
                f"Worker {self.worker_id} task failed after {elapsed:.3f}s: {e}"
            )
            self.tasks_failed += 1
        finally:
            self.state = WorkerState.IDLE


class ThreadPool:
    """
    Fixed-size thread pool.

    Usage:
        pool = ThreadPool(workers=4, queue_size=100)
        pool.start()
        if not pool.submit(handle_connection, conn):
            ...  # queue full, reject
        pool.shutdown()
    """

    def __init__(self, workers: int = 4, queue_size: int = 100):
        self.workers = workers
        self.queue_size = queue_size

        self._task_queue: queue.Queue = queue.Queue(maxsize=queue_size)
        self._workers: list = []
        self._lock = threading.Lock()
        self._started = False
        self._shutdown = False

    def start(self):
        with self._lock:
            if self._started:
                return

            logger.info(f"Starting thread pool with {self.workers} workers")
            for worker_id in range(self.workers):
                worker = Worker(self._task_queue, worker_id)
                self._workers.append(worker)
                worker.start()

            self._started = True
            self._shutdown = False

    def submit(self, func: Callable[..., Any], *args) -> bool:
        """
        Queue func(*args) without blocking.

        Returns:
            True if queued, False if the queue is full.

        Raises:
            RuntimeError: If the pool is not running.
        """
        if not self._started or self._shutdown:
            raise RuntimeError("Thread pool is not running")

        try:
            self._task_queue.put(Task(func=func, args=args), block=False)
            return True
        except queue.Full:
            return False

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None) -> List[Task]:
        """
        Stop all workers.

        Args:
            wait: Let queued tasks finish first. Otherwise they are dropped.
            timeout: Upper bound on how long to wait for the queue to drain.

        Returns:
            Tasks that never ran. The caller owns whatever resources
            their arguments hold.
        """
        with self._lock:
            if not self._started:
                return []
            self._shutdown = True

        logger.info("Shutting down thread pool...")

        if wait:
            deadline = time.time() + timeout if timeout else None
            while self._task_queue.unfinished_tasks:
                if deadline and time.time() > deadline:
                    logger.warning("Thread pool shutdown timed out, abandoning queued work")
                    break
                time.sleep(0.05)

        dropped = self._drain()
        if dropped:
            logger.warning(f"Dropped {len(dropped)} queued tasks")

        for _ in self._workers:
            try:
                self._task_queue.put(None, timeout=2.0)
            except queue.Full:
                logger.warning("Could not deliver stop signal to a worker")

        for worker in self._workers:
            worker.join(timeout=2.0)

        self._workers.clear()
        self._started = False
        logger.info("Thread pool shutdown complete")
        return dropped

    def _drain(self) -> List[Task]:
        """Remove and return every queued task."""
        dropped = []
        while True:
            try:
                task = self._task_queue.get_nowait()
            except queue.Empty:
                return dropped
            self._task_queue.task_done()
            if task is not None:
                dropped.append(task)

    @property
    def stats(self) -> dict:
        return {
            "workers": len(self._workers),
            "busy": sum(1 for w in self._workers if w.state == WorkerState.BUSY),
            "queued": self._task_queue.qsize(),
            "completed": sum(w.tasks_completed for w in self._workers),
            "failed": sum(w.tasks_failed for w in self._workers),
        }
