"""
Worker pool for compile and bundle tasks.

The WorkerManager is an explicit resource owned by the build orchestrator
(or by a watch session). It is connected at the start of a build and
disconnected at the end; it is never a process-wide singleton.

Tasks are independent units of work (one file, one bundle). They are
dispatched in submission order but may complete in any order. Callers wait
for a whole batch with join(), which returns outcomes in submission order.
"""

import concurrent.futures
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..errors import ManagerDisconnectedError, WorkerTaskError

logger = logging.getLogger(__name__)


@dataclass
class WorkerTask:
    """A unit of work for the pool.

    Attributes:
        name: Label used in logs and diagnostics (usually a file path)
        func: Callable run on a worker
        args: Positional arguments for func
        kwargs: Keyword arguments for func
    """

    name: str
    func: Callable[..., Any]
    args: Sequence[Any] = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)

    def __call__(self) -> Any:
        return self.func(*self.args, **self.kwargs)


@dataclass
class TaskOutcome:
    """Result of one task collected at the join barrier."""

    task: WorkerTask
    result: Any = None
    error: Optional[WorkerTaskError] = None

    @property
    def success(self) -> bool:
        return self.error is None


class WorkerManager:
    """Distributes independent tasks over a thread pool.

    Example usage:
        manager = WorkerManager()
        manager.connect(2)
        futures = [manager.run(WorkerTask(path, compile_file, (path,))) for path in paths]
        outcomes = manager.join(futures)
        manager.disconnect()
    """

    def __init__(self):
        self._executor: Optional[concurrent.futures.ThreadPoolExecutor] = None
        self._tasks: Dict[concurrent.futures.Future, WorkerTask] = {}
        self._lock = threading.Lock()
        self._connected = False
        self.worker_count = 0

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def is_inline(self) -> bool:
        return self.worker_count == 0

    def connect(self, count: Optional[int] = None) -> None:
        """Start the pool.

        Connecting an already connected manager only adjusts the pool size:
        a new pool replaces the old one and in-flight tasks on the old pool
        run to completion.

        Args:
            count: Number of workers; 0 or None runs tasks inline
        """
        count = max(0, count or 0)
        with self._lock:
            if self._connected and count == self.worker_count:
                return

            old_executor = self._executor
            self._executor = None
            if count > 0:
                self._executor = concurrent.futures.ThreadPoolExecutor(
                    max_workers=count,
                    thread_name_prefix="spire-worker",
                )
            self.worker_count = count
            self._connected = True

        if old_executor is not None:
            old_executor.shutdown(wait=False)

        logger.debug(f"worker manager connected, workers: {count or 'inline'}")

    def run(self, task: WorkerTask) -> concurrent.futures.Future:
        """Enqueue a task and return a future for its result.

        Inline managers run the task immediately; its exception (if any) is
        stored on the returned future rather than raised.

        Raises:
            ManagerDisconnectedError: If the manager is not connected
        """
        with self._lock:
            if not self._connected:
                raise ManagerDisconnectedError()
            executor = self._executor

            if executor is not None:
                future = executor.submit(task)
                self._tasks[future] = task
                return future

        future: concurrent.futures.Future = concurrent.futures.Future()
        try:
            future.set_result(task())
        except Exception as e:
            future.set_exception(e)
        with self._lock:
            self._tasks[future] = task
        return future

    def join(self, futures: Sequence[concurrent.futures.Future]) -> List[TaskOutcome]:
        """Wait for every future and collect outcomes in submission order.

        A failed task becomes an outcome with a WorkerTaskError; the other
        tasks' results are still returned.
        """
        concurrent.futures.wait(futures)

        outcomes = []
        for future in futures:
            with self._lock:
                task = self._tasks.pop(future, None)
            task = task or WorkerTask(name="<unknown>", func=lambda: None)
            error = future.exception()
            if error is None:
                outcomes.append(TaskOutcome(task=task, result=future.result()))
                continue

            if isinstance(error, WorkerTaskError):
                task_error = error
            else:
                task_error = WorkerTaskError(f"Task {task.name} failed: {type(error).__name__}: {error}")
                task_error.__cause__ = error
                task_error = task_error.with_traceback(error.__traceback__)
            outcomes.append(TaskOutcome(task=task, error=task_error))
        return outcomes

    def disconnect(self) -> None:
        """Wait for in-flight tasks, then tear the pool down.

        Further run() calls raise ManagerDisconnectedError.
        """
        with self._lock:
            if not self._connected:
                return
            self._connected = False
            executor = self._executor
            self._executor = None

        if executor is not None:
            executor.shutdown(wait=True)
        self._tasks.clear()
        logger.debug("worker manager disconnected")

