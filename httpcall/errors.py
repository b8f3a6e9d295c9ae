from __future__ import annotations

from typing import Any


class HttpCallError(Exception):
    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code


class ConfigurationError(HttpCallError, ValueError):
    """Raised while building a request, before any Call exists."""


class TransportError(HttpCallError):
    """Network or protocol failure reported by the transport."""


class DecodeError(HttpCallError):
    def __init__(self, description: str, raw_text: str, cause: BaseException | None = None):
        super().__init__("DECODE_FAILED", f"{description} - {raw_text}")
        self.description = description
        self.raw_text = raw_text
        self.cause = cause

    @classmethod
    def from_payload(cls, cause: BaseException, payload: bytes) -> "DecodeError":
        raw_text = payload.decode("utf-8", errors="replace")
        return cls(str(cause), raw_text, cause)


class EmptyResponseError(HttpCallError):
    def __init__(self, response: Any | None = None):
        status = getattr(response, "status_code", None)
        message = "response carried no payload"
        if status is not None:
            message = f"{message} (status {status})"
        super().__init__("EMPTY_RESPONSE", message)
        self.response = response
