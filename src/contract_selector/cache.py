"""Thread-safe LRU memo of selection outcomes.

Entries are keyed by a *stable message key* (``message.id`` by default),
never by payload content.  The cache holds at most ``max_entries`` keys and
evicts the least recently used one when a new key would exceed the bound;
an entry therefore lives until enough other messages have been seen,
rather than until the message object is garbage collected.

A stored "nothing matched" outcome is kept as ``NO_MATCH`` so ``lookup``
can tell it apart from a key that was never computed (``None``).
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Any, Callable, Hashable, Optional

from .contract import Contract
from .core import NO_MATCH, CachedResult, MatchCache
from .errors import MessageKeyError


def message_id(message: Any) -> Hashable:
    """Default cache key: the message's ``id`` attribute.

    Messages without one are rejected; give them an ``id`` or build the cache
    with a different ``key``.
    """
    try:
        return message.id
    except AttributeError:
        raise MessageKeyError(
            f"{type(message).__name__} has no 'id' attribute to key the match cache; "
            f"set one or pass key= to the cache"
        ) from None


class LruMatchCache(MatchCache):
    """``MatchCache`` backed by an ``OrderedDict`` under a single lock.

    Args:
        max_entries: Upper bound on cached keys; ``None`` disables eviction.
        key:         Derives the cache key from a message.
    """

    def __init__(
            self,
            max_entries: Optional[int] = 1024,
            *,
            key: Callable[[Any], Hashable] = message_id,
    ) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError(f"max_entries must be positive or None, got {max_entries}")
        self.max_entries = max_entries
        self._key = key
        self._entries: OrderedDict[Hashable, CachedResult] = OrderedDict()
        self._lock = threading.Lock()

    def lookup(self, message: Any) -> Optional[CachedResult]:
        key = self._key(message)
        with self._lock:
            result = self._entries.get(key)
            if result is not None:
                self._entries.move_to_end(key)
            return result

    def store(self, message: Any, contract: Optional[Contract]) -> None:
        self._put(self._key(message), contract)

    def update(self, message: Any, contract: Optional[Contract]) -> None:
        self._put(self._key(message), contract)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, message: Any) -> bool:
        key = self._key(message)
        with self._lock:
            return key in self._entries

    # -- internal helpers ---------------------------------------------------

    def _put(self, key: Hashable, contract: Optional[Contract]) -> None:
        value: CachedResult = NO_MATCH if contract is None else contract
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            if self.max_entries is not None:
                while len(self._entries) > self.max_entries:
                    self._entries.popitem(last=False)
