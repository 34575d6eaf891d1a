# miqat/utils/cache.py
from __future__ import annotations
from collections import OrderedDict
import threading, time
from typing import Any, Callable, Optional, Tuple

class TTLCache:
    """In-memory LRU with per-entry expiry. Thread-safe; shared by all requests."""

    def __init__(self, ttl_seconds: float = 3600.0, capacity: int = 1024,
                 clock: Callable[[], float] = time.monotonic):
        self.ttl = float(ttl_seconds)
        self.capacity = capacity
        self.clock = clock
        self.store: "OrderedDict[str, Tuple[float, Any]]" = OrderedDict()
        self.lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self.lock:
            item = self.store.get(key)
            if item is None:
                return None
            expires_at, value = item
            if self.clock() >= expires_at:
                del self.store[key]
                return None
            self.store.move_to_end(key)
            return value

    def set(self, key: str, value: Any) -> None:
        with self.lock:
            self.store[key] = (self.clock() + self.ttl, value)
            self.store.move_to_end(key)
            if len(self.store) > self.capacity:
                self.store.popitem(last=False)

    def clear(self) -> None:
        with self.lock:
            self.store.clear()

    def __len__(self) -> int:
        with self.lock:
            return len(self.store)
