"""
Background execution for long-running operations.

Engine calls are not interruptible. Cancelling a task here only marks its
result to be discarded: the computation runs to completion and neither
callback fires.
"""

import logging
import threading
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class BackgroundTask:
    """Handle for an operation running on a worker thread."""

    def __init__(self, name: str):
        self.name = name
        self.result = None
        self.error: BaseException | None = None
        self._cancelled = threading.Event()
        self._done = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def cancel(self):
        """Discard the result when the computation finishes."""
        self._cancelled.set()
        logger.info(f"Task {self.name} cancelled, result will be discarded")

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the task finishes; returns False on timeout."""
        return self._done.wait(timeout)


class TaskRunner:
    """Runs engine operations on daemon threads with completion callbacks."""

    def __init__(self):
        self.active_tasks: list[BackgroundTask] = []

    def execute_async(
        self,
        func: Callable,
        *args,
        callback: Callable[[Any], None] | None = None,
        error_callback: Callable[[BaseException], None] | None = None,
        name: str | None = None,
        **kwargs,
    ) -> BackgroundTask:
        """
        Run ``func(*args, **kwargs)`` on a worker thread.

        ``callback`` receives the result and ``error_callback`` the raised
        exception. Callbacks run on the worker thread; UI callers must hand
        them over to their event loop.
        """
        task = BackgroundTask(name or getattr(func, "__name__", "task"))

        def thread_wrapper():
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                task.error = e
                logger.error(f"Task {task.name} failed: {e}")
                if error_callback and not task.cancelled:
                    error_callback(e)
            else:
                if task.cancelled:
                    logger.debug(f"Task {task.name} finished after cancel, result dropped")
                else:
                    task.result = result
                    if callback:
                        callback(result)
            finally:
                task._done.set()

        thread = threading.Thread(target=thread_wrapper, name=task.name, daemon=True)
        task._thread = thread
        thread.start()

        # Clean up finished tasks
        self.active_tasks = [t for t in self.active_tasks if not t.done]
        self.active_tasks.append(task)

        return task

    def wait_for_all(self, timeout: float | None = None):
        """Wait for all active tasks to complete."""
        for task in self.active_tasks:
            task.wait(timeout)

    def cancel_all(self):
        """Discard the results of every active task."""
        for task in self.active_tasks:
            task.cancel()
