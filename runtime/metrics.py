from __future__ import annotations

import threading
from collections import Counter
from typing import Tuple

from runtime.config import settings

_COUNTER_LABELS = (
    ("http_calls_started_total", "method"),
    ("http_calls_total", "outcome"),
)


class MetricsCollector:
    """Small in-memory Prometheus-style metrics collector."""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._lock = threading.Lock()
        self._counters: Counter[Tuple[str, str]] = Counter()
        self._latency_buckets: Counter[Tuple[str, str]] = Counter()
        self._bucket_edges = (5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000)

    def inc(self, name: str, label: str, n: int = 1) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._counters[(name, label)] += n

    def observe_latency(self, method: str, latency_ms: float) -> None:
        if not self.enabled:
            return
        bucket = self._bucket_for(latency_ms)
        with self._lock:
            self._latency_buckets[(method, bucket)] += 1

    def value(self, name: str, label: str) -> int:
        with self._lock:
            return self._counters[(name, label)]

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._latency_buckets.clear()

    def _bucket_for(self, latency_ms: float) -> str:
        for edge in self._bucket_edges:
            if latency_ms <= edge:
                return str(edge)
        return "+Inf"

    def render_prometheus(self) -> str:
        with self._lock:
            counters = sorted(self._counters.items())
            buckets = sorted(self._latency_buckets.items())

        lines = []
        for metric, label_name in _COUNTER_LABELS:
            lines.append(f"# TYPE {metric} counter")
            for (name, label), value in counters:
                if name == metric:
                    lines.append(f'{metric}{{{label_name}="{label}"}} {value}')

        lines.append("# TYPE http_call_latency_ms_bucket counter")
        for (method, bucket), value in buckets:
            lines.append(
                f'http_call_latency_ms_bucket{{method="{method}",le="{bucket}"}} {value}'
            )

        return "\n".join(lines) + "\n"


metrics = MetricsCollector(enabled=settings.metrics_enabled)
