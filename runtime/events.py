from __future__ import annotations

import json
import threading
import time
from pathlib import Path
from typing import Any, Dict


class CallEventLog:
    """
    Writes structured JSONL lifecycle events for calls.
    Events arrive from transport workers, so writes are serialized.
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def emit(self, event: Dict[str, Any]) -> None:
        event = dict(event)
        event.setdefault("ts", time.time())
        line = json.dumps(event, ensure_ascii=False, default=str) + "\n"
        with self._lock:
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line)
