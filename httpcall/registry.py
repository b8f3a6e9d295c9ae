from __future__ import annotations

import threading
import uuid
from typing import Any, Dict, List, Optional


class CallRegistry:
    """
    Thread-safe table of in-flight calls keyed by call id.
    Holding a reference here keeps fire-and-forget calls alive until release.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._calls: Dict[uuid.UUID, Any] = {}

    def add(self, call: Any) -> bool:
        """Insert ``call``; returns False if its id is already registered."""
        with self._lock:
            if call.call_id in self._calls:
                return False
            self._calls[call.call_id] = call
            return True

    def remove(self, call_id: uuid.UUID) -> Optional[Any]:
        with self._lock:
            return self._calls.pop(call_id, None)

    def get(self, call_id: uuid.UUID) -> Optional[Any]:
        with self._lock:
            return self._calls.get(call_id)

    def ids(self) -> List[uuid.UUID]:
        with self._lock:
            return list(self._calls)

    def __contains__(self, call_id: object) -> bool:
        with self._lock:
            return call_id in self._calls

    def __len__(self) -> int:
        with self._lock:
            return len(self._calls)
