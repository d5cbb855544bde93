"""Bounded, append-only in-memory histories.

Design notes:
    - Each history has a hard capacity.  Appending past it evicts exactly
      the oldest entries (FIFO), preserving order.
    - Time-based retention is a separate, explicit sweep.  The two
      mechanisms are independent and both always hold.
    - Items are immutable records.  Readers get fresh lists, so a list
      handed out is never changed by a later append or eviction.
    - The history does NOT know what its items mean.  Callers pass the
      timestamp accessor when sweeping.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from datetime import datetime
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BoundedHistory(Generic[T]):
    """FIFO ring buffer of immutable records.

    Args:
        capacity: Maximum number of items retained.
        name: Label used in log lines.
    """

    def __init__(self, capacity: int, name: str = "history") -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._name = name
        self._items: deque[T] = deque(maxlen=capacity)

    # ── Mutation ─────────────────────────────────────────────────────────

    def append(self, item: T) -> None:
        """Insert *item*, evicting the oldest entry when at capacity."""
        self._items.append(item)

    def prune_older_than(
        self,
        cutoff: datetime,
        timestamp_of: Callable[[T], datetime],
    ) -> int:
        """Drop every item whose timestamp is not newer than *cutoff*.

        Returns the number of items removed.
        """
        kept = [item for item in self._items if timestamp_of(item) > cutoff]
        removed = len(self._items) - len(kept)
        if removed:
            self._items = deque(kept, maxlen=self._items.maxlen)
            logger.info("Pruned %d item(s) from %s older than %s", removed, self._name, cutoff.isoformat())
        return removed

    def clear(self) -> None:
        self._items.clear()

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def capacity(self) -> int:
        assert self._items.maxlen is not None
        return self._items.maxlen

    @property
    def latest(self) -> T | None:
        return self._items[-1] if self._items else None

    def last(self, n: int) -> list[T]:
        """The *n* most recent items, oldest first (fewer if not enough)."""
        if n <= 0:
            return []
        items = list(self._items)
        return items[-n:]

    def snapshot(self) -> list[T]:
        """All retained items, oldest first."""
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"BoundedHistory(name={self._name!r}, size={len(self)}, capacity={self.capacity})"
