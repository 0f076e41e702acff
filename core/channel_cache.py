# core/channel_cache.py
from __future__ import annotations
import logging
from collections import OrderedDict
from typing import Generic, Hashable, Optional, TypeVar

from core.timeframes import NS_PER_DAY, NS_PER_HOUR, Timeframe

logger = logging.getLogger(__name__)

V = TypeVar("V")

DEFAULT_CAPACITY = 500


def cache_capacity(multi_timeframe: bool, timeframe: Timeframe) -> int:
    """Result cache size: 500 single-timeframe, else 250 (>= 1d), 500 (>= 1h), 1000."""
    if not multi_timeframe:
        return DEFAULT_CAPACITY
    duration = timeframe.duration_ns
    if duration >= NS_PER_DAY:
        return 250
    if duration >= NS_PER_HOUR:
        return 500
    return 1000


class ChannelCache(Generic[V]):
    """Bounded least-recently-used map."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._items: "OrderedDict[Hashable, V]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._items

    def get(self, key: Hashable) -> Optional[V]:
        if key not in self._items:
            return None
        self._items.move_to_end(key)
        return self._items[key]

    def set(self, key: Hashable, value: V) -> None:
        if key in self._items:
            self._items.move_to_end(key)
        self._items[key] = value
        while len(self._items) > self.capacity:
            evicted, _ = self._items.popitem(last=False)
            logger.debug("Evicted channel result %r", evicted)

    def remove(self, key: Hashable) -> None:
        self._items.pop(key, None)

    def clear(self) -> None:
        self._items.clear()
