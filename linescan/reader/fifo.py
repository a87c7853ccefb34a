from typing import Generic, List, Optional, TypeVar

from linescan.utils import (
    BufferFullException,
    BufferEmptyException,
    InvalidCountException,
    InvalidOffsetException,
)

T = TypeVar("T")

# --- Bounded Circular Buffer ---

class CharFifo(Generic[T]):
    """
    Fixed-capacity FIFO over an array with wrapping head/tail indices.
    Never grows; misuse raises a FifoException.
    """
    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._data: List[Optional[T]] = [None] * capacity
        self._head: int = 0
        self._tail: int = 0
        self._count: int = 0

    def push(self, item: T) -> 'CharFifo[T]':
        if self.is_full():
            raise BufferFullException(self._capacity)
        self._data[self._tail] = item
        self._tail = (self._tail + 1) % self._capacity
        self._count += 1
        return self

    def pop(self, n: Optional[int] = None) -> T:
        """
        Without argument removes and returns the head element. With `n`,
        removes n elements and returns the last of them.
        """
        if n is None:
            if self.is_empty():
                raise BufferEmptyException()
            n = 1
        elif n <= 0 or n > self._count:
            raise InvalidCountException(n, self._count)

        item = self.peek(n - 1)
        for _ in range(n):
            self._data[self._head] = None
            self._head = (self._head + 1) % self._capacity
        self._count -= n
        return item

    def peek(self, n: int = 0) -> T:
        if n < 0 or n >= self._count or (n == 0 and self.is_empty()):
            raise InvalidOffsetException(n, self._count)
        return self._data[(self._head + n) % self._capacity]

    def is_empty(self) -> bool:
        return self._count == 0

    def is_full(self) -> bool:
        return self._count >= self._capacity

    def size(self) -> int:
        return self._count

    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return self._count

    def __repr__(self) -> str:
        items = [self.peek(i) for i in range(self._count)]
        return f"CharFifo({items!r}, capacity={self._capacity})"
