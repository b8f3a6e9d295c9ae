from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass

import httpx

from httpcall.errors import TransportError
from httpcall.request import RequestDescriptor
from transport.http import CompletionHandler, ResponseInfo

logger = logging.getLogger(__name__)


@dataclass
class HttpxTransportConfig:
    max_workers: int = 8
    follow_redirects: bool = True
    trust_env: bool = True


def translate_error(exc: httpx.HTTPError) -> TransportError:
    if isinstance(exc, httpx.TimeoutException):
        code = "TIMEOUT"
    elif isinstance(exc, httpx.ConnectError):
        code = "CONNECT_FAILED"
    elif isinstance(exc, httpx.TooManyRedirects):
        code = "TOO_MANY_REDIRECTS"
    else:
        code = "TRANSPORT_FAILED"
    err = TransportError(code, str(exc) or type(exc).__name__)
    err.__cause__ = exc
    return err


def response_info(response: httpx.Response) -> ResponseInfo:
    return ResponseInfo(
        status_code=int(response.status_code),
        url=str(response.url),
        headers=dict(response.headers),
        reason_phrase=response.reason_phrase,
        http_version=response.http_version,
    )


class HttpxTransport:
    """
    Asynchronous execution over a shared httpx.Client.
    Requests run on a worker pool owned by the transport; each handler is
    invoked exactly once on the worker that ran the request.
    """

    def __init__(self, config: HttpxTransportConfig | None = None, client: httpx.Client | None = None):
        self.config = config or HttpxTransportConfig()
        self._client = client or httpx.Client(
            follow_redirects=self.config.follow_redirects,
            trust_env=self.config.trust_env,
        )
        self._executor = ThreadPoolExecutor(
            max_workers=max(self.config.max_workers, 1),
            thread_name_prefix="http-transport",
        )

    def execute(self, request: RequestDescriptor, handler: CompletionHandler) -> None:
        try:
            future = self._executor.submit(self._run, request, handler)
        except RuntimeError as exc:
            handler(None, None, TransportError("TRANSPORT_CLOSED", str(exc)))
            return
        future.add_done_callback(_log_handler_failure)

    def _run(self, request: RequestDescriptor, handler: CompletionHandler) -> None:
        logger.debug("%s %s", request.method.value, request.url)
        try:
            response = self._client.request(
                request.method.value,
                request.url,
                headers=dict(request.headers),
                content=request.body,
            )
        except httpx.HTTPError as exc:
            logger.debug("%s %s failed: %s", request.method.value, request.url, exc)
            handler(None, None, translate_error(exc))
            return

        logger.debug("%s %s -> %d", request.method.value, request.url, response.status_code)
        handler(response.content, response_info(response), None)

    def close(self) -> None:
        self._executor.shutdown(wait=True)
        self._client.close()


def _log_handler_failure(future: Future) -> None:
    exc = future.exception()
    if exc is not None:
        logger.error("completion handler raised", exc_info=exc)
