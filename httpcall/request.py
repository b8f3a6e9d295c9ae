from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional
from urllib.parse import SplitResult, quote, urlsplit, urlunsplit

from httpcall.errors import ConfigurationError

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"


def _frozen(values: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    return MappingProxyType(dict(values or {}))


@dataclass(frozen=True)
class RequestDescriptor:
    url: str
    method: HttpMethod
    headers: Mapping[str, str] = field(default_factory=lambda: _frozen(None))
    params: Mapping[str, str] = field(default_factory=lambda: _frozen(None))
    body: bytes | None = None


def validate_url(raw_url: str) -> SplitResult:
    if not isinstance(raw_url, str) or not raw_url.strip():
        raise ConfigurationError("INVALID_URL", f"Illegal url={raw_url!r}")
    if any(ch.isspace() for ch in raw_url):
        raise ConfigurationError("INVALID_URL", f"Illegal url={raw_url!r}: contains whitespace")
    try:
        parsed = urlsplit(raw_url)
        # .port raises ValueError for non-numeric or out of range ports
        parsed.port
    except ValueError as exc:
        raise ConfigurationError("INVALID_URL", f"Illegal url={raw_url!r}: {exc}") from exc

    if parsed.scheme.lower() not in ("http", "https"):
        raise ConfigurationError("SCHEME_NOT_ALLOWED", f"Illegal url={raw_url!r}: only http/https are allowed")
    if not parsed.hostname:
        raise ConfigurationError("HOST_REQUIRED", f"Illegal url={raw_url!r}: host is required")
    return parsed


def encode_form(params: Mapping[str, str]) -> str:
    """Encode params as ``key=value`` pairs joined by ``&``.

    Keys and values are percent-encoded with no safe characters, so reserved
    characters such as ``&``, ``=`` and spaces never leak into the structure.
    """
    return "&".join(f"{quote(str(k), safe='')}={quote(str(v), safe='')}" for k, v in params.items())


def append_query(parsed: SplitResult, params: Mapping[str, str]) -> str:
    encoded = encode_form(params)
    if not encoded:
        return urlunsplit(parsed)
    query = f"{parsed.query}&{encoded}" if parsed.query else encoded
    return urlunsplit(parsed._replace(query=query))


def build_request(
    url: str,
    method: HttpMethod | str,
    headers: Optional[Mapping[str, str]] = None,
    params: Optional[Mapping[str, str]] = None,
) -> RequestDescriptor:
    try:
        method = HttpMethod(method)
    except ValueError as exc:
        raise ConfigurationError("METHOD_NOT_SUPPORTED", f"unsupported method {method!r}") from exc

    parsed = validate_url(url)
    final_url = url
    merged: Dict[str, str] = dict(headers or {})
    body: bytes | None = None

    if method is HttpMethod.GET and params is not None:
        final_url = append_query(parsed, params)

    if method is HttpMethod.POST and params is not None:
        body = encode_form(params).encode("utf-8")
        for name in [n for n in merged if n.lower() == "content-type"]:
            del merged[name]
        merged["Content-Type"] = FORM_CONTENT_TYPE

    return RequestDescriptor(
        url=final_url,
        method=method,
        headers=_frozen(merged),
        params=_frozen(params),
        body=body,
    )
