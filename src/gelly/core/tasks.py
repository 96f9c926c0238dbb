"""
Background task execution.

Network and disk work runs on a thread pool. Results travel back to the UI
loop through a completion queue that the loop drains with process_pending(),
so callbacks always run on the thread that owns UI state.
"""

import queue
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, Tuple, TypeVar

from loguru import logger

from .output import mark_silent

T = TypeVar("T")


@dataclass(frozen=True)
class TaskResult(Generic[T]):
    """Outcome of a background task: a value or the exception it raised."""

    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


def _result_of(future: Future) -> TaskResult:
    error = future.exception()
    if error is not None:
        return TaskResult(error=error)
    return TaskResult(value=future.result())


class TaskRunner:
    """Thread pool plus a one-shot completion queue for the UI loop."""

    def __init__(self, max_workers: int = 8, thread_name_prefix: str = "gelly-worker"):
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix=thread_name_prefix,
            initializer=mark_silent,
        )
        self._completions: "queue.SimpleQueue[Tuple[Callable[[TaskResult], Any], TaskResult]]" = queue.SimpleQueue()

    @property
    def executor(self) -> ThreadPoolExecutor:
        return self._executor

    def submit(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> "Future[T]":
        return self._executor.submit(fn, *args, **kwargs)

    def spawn(
        self,
        fn: Callable[..., T],
        callback: Optional[Callable[[TaskResult[T]], Any]] = None,
        *args: Any,
        **kwargs: Any,
    ) -> "Future[T]":
        """Run fn on the pool; queue callback(TaskResult) for the UI loop.

        If nobody drains the queue the result is dropped with it. Tasks are
        never cancelled once started.
        """
        future = self._executor.submit(fn, *args, **kwargs)
        if callback is not None:

            def _on_done(f: Future) -> None:
                if f.cancelled():
                    return
                self._completions.put((callback, _result_of(f)))

            future.add_done_callback(_on_done)
        return future

    def process_pending(self, limit: Optional[int] = None) -> int:
        """Run queued callbacks on the calling thread. Returns how many ran."""
        processed = 0
        while limit is None or processed < limit:
            try:
                callback, result = self._completions.get_nowait()
            except queue.Empty:
                break
            processed += 1
            try:
                callback(result)
            except Exception:
                logger.exception("Task completion callback failed")
        return processed

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "TaskRunner":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()
