"""
Task Worker - runs blocking file operations in background threads.

Uses ThreadPoolExecutor so exports and settings saves never block the
caller. Results are delivered to per-operation callbacks, which run on the
worker thread; callers that need to hop back to a UI thread do so inside
the callback.
"""

from concurrent.futures import ThreadPoolExecutor, Future
from typing import Callable, Any, Optional
import threading
import traceback
import sys

from .debug import debug_print


class TaskWorker:
    """
    Runs operations in background threads and reports their outcome.
    """

    def __init__(self, max_workers: int = 2):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="daybook")
        self._pending: dict[str, Future] = {}
        self._lock = threading.Lock()

    def submit(
        self,
        operation_id: str,
        func: Callable,
        *args,
        on_finished: Optional[Callable[[Any], None]] = None,
        on_error: Optional[Callable[[str], None]] = None,
        **kwargs
    ) -> Future:
        """
        Submit a blocking operation to run in a background thread.

        Args:
            operation_id: Unique identifier for this operation
            func: The blocking function to run
            on_finished: Called with the result when func returns
            on_error: Called with "ExceptionType: message" when func raises
            *args, **kwargs: Arguments to pass to func

        Returns the Future of the operation.
        """
        future = self._executor.submit(func, *args, **kwargs)
        with self._lock:
            self._pending[operation_id] = future
        future.add_done_callback(lambda f: self._on_done(operation_id, f, on_finished, on_error))
        return future

    def _on_done(self, operation_id: str, future: Future, on_finished, on_error) -> None:
        """Handle completion of a background operation."""
        with self._lock:
            self._pending.pop(operation_id, None)

        if future.cancelled():
            debug_print("WORKER", f"Operation '{operation_id}' cancelled")
            return

        error = future.exception()
        if error is None:
            if on_finished:
                on_finished(future.result())
            return

        error_msg = f"{type(error).__name__}: {error}"
        print(f"Operation '{operation_id}' failed: {error_msg}", file=sys.stderr)
        traceback.print_exception(type(error), error, error.__traceback__, file=sys.stderr)
        if on_error:
            on_error(error_msg)

    def is_pending(self, operation_id: str) -> bool:
        """Check if an operation is still pending."""
        with self._lock:
            return operation_id in self._pending

    def cancel(self, operation_id: str) -> bool:
        """
        Attempt to cancel a pending operation.

        Returns True if cancelled, False if already running or completed.
        """
        with self._lock:
            future = self._pending.get(operation_id)
        if future:
            return future.cancel()
        return False

    def shutdown(self, wait: bool = True) -> None:
        """Shutdown the executor, optionally waiting for pending operations."""
        self._executor.shutdown(wait=wait)


# Global worker instance (created lazily)
_global_worker: Optional[TaskWorker] = None


def get_task_worker() -> TaskWorker:
    """Get the global TaskWorker instance."""
    global _global_worker
    if _global_worker is None:
        _global_worker = TaskWorker()
    return _global_worker


def shutdown_task_worker() -> None:
    """Shutdown the global TaskWorker."""
    global _global_worker
    if _global_worker is not None:
        _global_worker.shutdown(wait=True)
        _global_worker = None
