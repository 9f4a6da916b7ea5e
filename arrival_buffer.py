"""arrival_buffer.py

Bounded FIFO used as the per-city parcel queue.
"""

from __future__ import annotations

import sys
from collections import deque
from typing import Any, Iterator, Optional

from errors import BufferEmptyError, BufferFullError, ValidationError


class ArrivalBuffer:
    """First-in-first-out queue with a fixed capacity.

    A capacity of None means "as large as the platform allows" (sys.maxsize),
    which is what the destination index uses for city queues by default.
    """

    def __init__(self, capacity: Optional[int] = None):
        if capacity is None:
            capacity = sys.maxsize
        if not isinstance(capacity, int) or isinstance(capacity, bool) or capacity <= 0:
            raise ValidationError(f"Buffer capacity must be a positive integer, got {capacity!r}",
                                  field='capacity', value=capacity)
        self._capacity = capacity
        self._items: deque = deque()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._items)

    def __repr__(self) -> str:
        return f"ArrivalBuffer(size={len(self._items)}, capacity={self._capacity})"

    def size(self) -> int:
        return len(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def is_full(self) -> bool:
        return len(self._items) >= self._capacity

    def enqueue(self, item: Any) -> None:
        if self.is_full():
            raise BufferFullError(f"Arrival buffer is full (capacity {self._capacity})")
        self._items.append(item)

    def dequeue(self) -> Any:
        if not self._items:
            raise BufferEmptyError("Arrival buffer is empty")
        return self._items.popleft()

    def peek(self) -> Any:
        if not self._items:
            raise BufferEmptyError("Arrival buffer is empty")
        return self._items[0]
