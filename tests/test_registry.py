from __future__ import annotations

import threading
import uuid

from httpcall.registry import CallRegistry


class _Handle:
    def __init__(self) -> None:
        self.call_id = uuid.uuid4()


def test_add_rejects_duplicate_ids() -> None:
    registry = CallRegistry()
    handle = _Handle()

    assert registry.add(handle) is True
    assert registry.add(handle) is False
    assert len(registry) == 1
    assert registry.get(handle.call_id) is handle


def test_remove_is_idempotent() -> None:
    registry = CallRegistry()
    handle = _Handle()
    registry.add(handle)

    assert registry.remove(handle.call_id) is handle
    assert registry.remove(handle.call_id) is None
    assert handle.call_id not in registry


def test_concurrent_add_and_remove() -> None:
    registry = CallRegistry()
    handles = [_Handle() for _ in range(400)]
    barrier = threading.Barrier(8)

    def worker(chunk) -> None:
        barrier.wait()
        for h in chunk:
            registry.add(h)
        for h in chunk[::2]:
            registry.remove(h.call_id)

    threads = [threading.Thread(target=worker, args=(handles[i::8],)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    expected = {h.call_id for i in range(8) for h in handles[i::8][1::2]}
    assert set(registry.ids()) == expected
