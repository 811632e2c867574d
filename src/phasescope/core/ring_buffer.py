"""
Bounded sample history with overwrite-oldest eviction.

Backed by a pre-allocated numpy array so that pushes never allocate and
renderers can read the raw storage without copying.
"""

from typing import Optional

import numpy as np


class RingBuffer:
    """
    Fixed-capacity FIFO history.

    Logical index ``i`` (0 = oldest retained element) maps to the storage
    slot ``(start + i) % capacity``. Reads are checked against the physical
    capacity only, so offsets past ``len(buffer)`` return whatever the slot
    still holds (the fill value, or an evicted sample).

    Attributes:
        capacity: Number of physical slots.
    """

    def __init__(self, capacity: int, fill: float = 0.0, dtype=np.float64):
        """
        Initialize the buffer.

        Args:
            capacity: Number of retained elements (must be positive).
            fill: Initial value of every slot.
            dtype: Storage dtype.
        """
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")

        self.capacity = int(capacity)
        self._data = np.full(self.capacity, fill, dtype=dtype)
        self._start = 0
        self._count = 0

    def push(self, value: float) -> None:
        """Append a value, evicting the oldest one when full."""
        if self._count >= self.capacity:
            self._start = (self._start + 1) % self.capacity
            self._count = self.capacity - 1
        self._data[(self._start + self._count) % self.capacity] = value
        self._count += 1

    def pop(self) -> Optional[float]:
        """Remove and return the oldest element, or None when empty."""
        if self._count <= 0:
            return None
        value = self._data[self._start].item()
        self._start = (self._start + 1) % self.capacity
        self._count -= 1
        return value

    def at(self, index: int) -> float:
        """
        Element at logical offset ``index`` from the oldest retained element.

        Raises:
            IndexError: If ``index`` lies outside ``[0, capacity)``.
        """
        if index < 0 or index >= self.capacity:
            raise IndexError(
                f"ring buffer index {index} out of range for capacity {self.capacity}"
            )
        return self._data[(self._start + index) % self.capacity].item()

    def __getitem__(self, index: int) -> float:
        return self.at(index)

    def __len__(self) -> int:
        return self._count

    @property
    def start(self) -> int:
        """Storage slot of the oldest retained element."""
        return self._start

    @property
    def data(self) -> np.ndarray:
        """Read-only view of the backing storage (physical order)."""
        view = self._data.view()
        view.flags.writeable = False
        return view

    @property
    def is_empty(self) -> bool:
        return self._count == 0

    @property
    def is_full(self) -> bool:
        return self._count == self.capacity

    def ordered(self) -> np.ndarray:
        """
        Copy of all ``capacity`` slots in logical order.

        ``ordered()[i] == at(i)`` for every valid ``i``, stale slots included.
        """
        return np.roll(self._data, -self._start)

    def drain(self) -> np.ndarray:
        """Remove and return every retained element, oldest first."""
        out = self.ordered()[: self._count]
        self._start = (self._start + self._count) % self.capacity
        self._count = 0
        return out

    def clear(self) -> None:
        """Forget all retained elements (storage keeps its stale values)."""
        self._start = 0
        self._count = 0
