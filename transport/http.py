from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Protocol, Tuple, Union

from httpcall.errors import TransportError
from httpcall.request import HttpMethod, RequestDescriptor


@dataclass
class ResponseInfo:
    status_code: int
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    reason_phrase: str = ""
    http_version: str = "HTTP/1.1"


CompletionHandler = Callable[[Optional[bytes], Optional[ResponseInfo], Optional[TransportError]], None]


class Transport(Protocol):
    def execute(self, request: RequestDescriptor, handler: CompletionHandler) -> None:
        ...


MockReply = Union[Tuple[int, bytes], TransportError]


class MockTransport:
    """
    Deterministic transport. Never calls the internet.
    Completes every request inline on the calling thread.
    """

    def __init__(self, responses: Optional[Dict[Tuple[str, str], MockReply]] = None):
        self._responses: Dict[Tuple[str, str], MockReply] = dict(responses or {})
        self.requests: List[RequestDescriptor] = []

    def add(self, method: HttpMethod | str, url: str, reply: MockReply) -> None:
        self._responses[(HttpMethod(method).value, url)] = reply

    def execute(self, request: RequestDescriptor, handler: CompletionHandler) -> None:
        self.requests.append(request)
        reply = self._responses.get((request.method.value, request.url), (404, b"NOT_FOUND"))
        if isinstance(reply, TransportError):
            handler(None, None, reply)
            return
        status_code, body = reply
        handler(body, ResponseInfo(status_code=status_code, url=request.url), None)

    def close(self) -> None:
        return None
