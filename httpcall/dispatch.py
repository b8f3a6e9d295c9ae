from __future__ import annotations

import asyncio
import logging
import queue
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Protocol

logger = logging.getLogger(__name__)

Task = Callable[[], None]


class Dispatcher(Protocol):
    def post(self, fn: Task) -> None:
        ...


class InlineDispatcher:
    """Runs every callback immediately on the posting thread."""

    def post(self, fn: Task) -> None:
        fn()


class QueueDispatcher:
    """
    FIFO of callbacks drained by whichever thread owns the queue.
    Gives a main-loop style program single-threaded callback delivery.
    """

    def __init__(self) -> None:
        self._queue: "queue.Queue[Task]" = queue.Queue()

    def post(self, fn: Task) -> None:
        self._queue.put(fn)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def run_pending(self) -> int:
        ran = 0
        while True:
            try:
                fn = self._queue.get_nowait()
            except queue.Empty:
                return ran
            fn()
            ran += 1

    def run_until(self, predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
        deadline = time.monotonic() + timeout
        while not predicate():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            try:
                fn = self._queue.get(timeout=min(remaining, 0.05))
            except queue.Empty:
                continue
            fn()
        return True


class SerialDispatcher:
    """Delivers callbacks in FIFO order on one dedicated thread."""

    def __init__(self, name: str = "http-callbacks") -> None:
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=name)

    def post(self, fn: Task) -> None:
        try:
            future = self._executor.submit(fn)
        except RuntimeError:
            logger.warning("callback dropped: dispatcher is closed")
            return
        future.add_done_callback(_log_failure)

    def flush(self, timeout: float | None = None) -> None:
        """Block until every callback posted so far has run."""
        self._executor.submit(lambda: None).result(timeout=timeout)

    def close(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


class LoopDispatcher:
    """Delivers callbacks onto an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self.loop = loop

    def post(self, fn: Task) -> None:
        self.loop.call_soon_threadsafe(fn)


def _log_failure(future: Future) -> None:
    exc = future.exception()
    if exc is not None:
        logger.error("callback raised", exc_info=exc)
