from __future__ import annotations

import logging
import threading
import time
import uuid
from enum import Enum
from typing import Any, Callable, Generic, Optional, TypeVar

from pydantic import TypeAdapter

from httpcall.dispatch import Dispatcher
from httpcall.errors import DecodeError, EmptyResponseError
from httpcall.registry import CallRegistry
from httpcall.request import RequestDescriptor
from runtime.events import CallEventLog
from runtime.metrics import metrics
from transport.http import ResponseInfo, Transport

logger = logging.getLogger(__name__)

T = TypeVar("T")

StartCallback = Callable[[], None]
ResponseCallback = Callable[[Optional[bytes], Optional[ResponseInfo], Optional[BaseException]], None]
ResultCallback = Callable[[Any], None]
ErrorCallback = Callable[[BaseException], None]


class CallState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"


class Call(Generic[T]):
    """
    Single-use asynchronous HTTP operation.

    Register callbacks with the chainable ``on_*`` methods, then ``start()``.
    The transport completes the call on one of its own threads; every user
    callback is delivered through ``dispatcher`` and the call releases itself
    once the outcome has been delivered.
    """

    def __init__(
        self,
        request: RequestDescriptor,
        result_type: Any,
        transport: Transport,
        registry: CallRegistry,
        dispatcher: Dispatcher,
        events: CallEventLog | None = None,
    ):
        self.call_id = uuid.uuid4()
        self.request = request
        self.result_type = result_type
        self.transport = transport
        self.registry = registry
        self.dispatcher = dispatcher
        self.events = events
        self._adapter: TypeAdapter[T] = TypeAdapter(result_type)

        self._lock = threading.Lock()
        self._state = CallState.IDLE
        self._started_at = 0.0
        self._on_start: Optional[StartCallback] = None
        self._on_response: Optional[ResponseCallback] = None
        self._on_result: Optional[Callable[[T], None]] = None
        self._on_error: Optional[ErrorCallback] = None

    @property
    def state(self) -> CallState:
        with self._lock:
            return self._state

    def on_start(self, callback: StartCallback) -> "Call[T]":
        with self._lock:
            self._on_start = callback
        return self

    def on_response(self, callback: ResponseCallback) -> "Call[T]":
        with self._lock:
            self._on_response = callback
        return self

    def on_result(self, callback: Callable[[T], None]) -> "Call[T]":
        with self._lock:
            self._on_result = callback
        return self

    def on_error(self, callback: ErrorCallback) -> "Call[T]":
        with self._lock:
            self._on_error = callback
        return self

    def start(self) -> None:
        with self._lock:
            if self._state is not CallState.IDLE:
                return
            if not self.registry.add(self):
                return
            self._state = CallState.RUNNING
            self._started_at = time.perf_counter()

        try:
            metrics.inc("http_calls_started_total", self.request.method.value)
            self._emit("call_started")
            # queued before the transport runs so it precedes every other callback
            self.dispatcher.post(self._deliver_start)
        except BaseException:
            self.registry.remove(self.call_id)
            with self._lock:
                self._state = CallState.IDLE
            raise
        self.transport.execute(self.request, self._complete)

    def release(self) -> None:
        self.dispatcher.post(self._release)

    def _release(self) -> None:
        self.registry.remove(self.call_id)
        with self._lock:
            self._on_start = None
            self._on_response = None
            self._on_result = None
            self._on_error = None

    def _complete(
        self,
        payload: Optional[bytes],
        response: Optional[ResponseInfo],
        error: Optional[BaseException],
    ) -> None:
        with self._lock:
            if self._state is not CallState.RUNNING:
                logger.debug("call %s: ignoring repeated completion", self.call_id)
                return
            self._state = CallState.COMPLETED

        outcome = "unknown"
        try:
            self.dispatcher.post(lambda: self._deliver_response(payload, response, error))
            outcome = self._settle(payload, response, error)
        finally:
            self.release()
        self._record(outcome, response)

    def _settle(
        self,
        payload: Optional[bytes],
        response: Optional[ResponseInfo],
        error: Optional[BaseException],
    ) -> str:
        if error is not None:
            self._post_error(error)
            return "transport_error"

        if not payload:
            self._post_error(EmptyResponseError(response))
            return "empty_response"

        try:
            value = self._adapter.validate_json(payload)
        except Exception as exc:
            self._post_error(DecodeError.from_payload(exc, payload))
            return "decode_error"

        self.dispatcher.post(lambda: self._deliver_result(value))
        return "ok"

    def _post_error(self, error: BaseException) -> None:
        self.dispatcher.post(lambda: self._deliver_error(error))

    def _deliver_start(self) -> None:
        with self._lock:
            callback, self._on_start = self._on_start, None
        if callback is not None:
            callback()

    def _deliver_response(
        self,
        payload: Optional[bytes],
        response: Optional[ResponseInfo],
        error: Optional[BaseException],
    ) -> None:
        with self._lock:
            callback = self._on_response
        if callback is not None:
            callback(payload, response, error)

    def _deliver_result(self, value: T) -> None:
        with self._lock:
            callback = self._on_result
        if callback is not None:
            callback(value)

    def _deliver_error(self, error: BaseException) -> None:
        with self._lock:
            callback = self._on_error
        if callback is not None:
            callback(error)

    def _record(self, outcome: str, response: Optional[ResponseInfo]) -> None:
        latency_ms = (time.perf_counter() - self._started_at) * 1000.0
        metrics.inc("http_calls_total", outcome)
        metrics.observe_latency(self.request.method.value, latency_ms)
        self._emit(
            "call_completed",
            outcome=outcome,
            status_code=response.status_code if response is not None else None,
            latency_ms=round(latency_ms, 3),
        )

    def _emit(self, event: str, **extra: Any) -> None:
        if self.events is None:
            return
        self.events.emit(
            {
                "event": event,
                "call_id": str(self.call_id),
                "method": self.request.method.value,
                "url": self.request.url,
                **extra,
            }
        )

    def __repr__(self) -> str:
        return f"<Call {self.request.method.value} {self.request.url} {self.state.value}>"
