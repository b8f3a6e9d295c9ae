from __future__ import annotations

from typing import Any, Mapping, Optional

from httpcall.call import Call
from httpcall.dispatch import Dispatcher, InlineDispatcher, SerialDispatcher
from httpcall.errors import ConfigurationError
from httpcall.registry import CallRegistry
from httpcall.request import HttpMethod, build_request
from runtime.config import Settings, settings as default_settings
from runtime.events import CallEventLog
from transport.http import MockTransport, Transport
from transport.http_real import HttpxTransport, HttpxTransportConfig


class HttpClient:
    """
    Builds request descriptors and hands out unstarted calls.

    The client owns the registry of in-flight calls; pass the same registry
    to several clients to share it.
    """

    def __init__(
        self,
        transport: Transport | None = None,
        dispatcher: Dispatcher | None = None,
        registry: CallRegistry | None = None,
        events: CallEventLog | None = None,
    ):
        self._owned = []
        if transport is None:
            transport = HttpxTransport()
            self._owned.append(transport)
        if dispatcher is None:
            dispatcher = SerialDispatcher()
            self._owned.append(dispatcher)
        self.transport = transport
        self.dispatcher = dispatcher
        self.registry = registry if registry is not None else CallRegistry()
        self.events = events

    @classmethod
    def from_settings(cls, settings: Settings = default_settings) -> "HttpClient":
        """Raises ConfigurationError for an unknown transport or dispatcher name."""
        transport_name = settings.http_transport.lower()
        dispatcher_name = settings.callback_dispatcher.lower()
        if transport_name not in ("httpx", "mock"):
            raise ConfigurationError("UNKNOWN_TRANSPORT", f"unknown HTTP_TRANSPORT {settings.http_transport!r}")
        if dispatcher_name not in ("serial", "inline"):
            raise ConfigurationError(
                "UNKNOWN_DISPATCHER", f"unknown CALLBACK_DISPATCHER {settings.callback_dispatcher!r}"
            )

        if transport_name == "mock":
            transport: Transport = MockTransport()
        else:
            transport = HttpxTransport(
                HttpxTransportConfig(
                    max_workers=settings.http_max_workers,
                    follow_redirects=settings.http_follow_redirects,
                    trust_env=settings.http_trust_env,
                )
            )
        if dispatcher_name == "inline":
            dispatcher: Dispatcher = InlineDispatcher()
        else:
            dispatcher = SerialDispatcher()
        events = CallEventLog(settings.event_log_path) if settings.event_log_path else None

        client = cls(transport=transport, dispatcher=dispatcher, events=events)
        client._owned = [r for r in (transport, dispatcher) if hasattr(r, "close")]
        return client

    @property
    def in_flight(self) -> int:
        return len(self.registry)

    def get(
        self,
        url: str,
        result_type: Any = Any,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, str]] = None,
    ) -> Call[Any]:
        return self.request(url, HttpMethod.GET, result_type, headers, params)

    def post(
        self,
        url: str,
        result_type: Any = Any,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, str]] = None,
    ) -> Call[Any]:
        return self.request(url, HttpMethod.POST, result_type, headers, params)

    def request(
        self,
        url: str,
        method: HttpMethod | str,
        result_type: Any = Any,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, str]] = None,
    ) -> Call[Any]:
        """Raises ConfigurationError for a malformed url or unsupported method."""
        descriptor = build_request(url, method, headers=headers, params=params)
        return Call(
            descriptor,
            result_type,
            transport=self.transport,
            registry=self.registry,
            dispatcher=self.dispatcher,
            events=self.events,
        )

    def close(self) -> None:
        for resource in self._owned:
            resource.close()
        self._owned = []

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, *_args: Any) -> None:
        self.close()
