"""
Append-only list capped at a fixed size.
"""

from typing import Generic, Iterable, Iterator, List, TypeVar

T = TypeVar('T')


class BoundedWindow(Generic[T]):
    """Sliding window that keeps the newest ``cap`` items.

    Appends are the only mutation; when the cap is exceeded the oldest items
    are dropped from the front and the remaining order is untouched.
    """

    def __init__(self, cap: int, items: Iterable[T] = ()):
        if cap < 1:
            raise ValueError(f'Window cap must be positive, got {cap}')
        self.cap = cap
        self._items: List[T] = []
        self.extend(items)

    def append(self, item: T) -> None:
        self._items.append(item)
        self._trim()

    def extend(self, items: Iterable[T]) -> None:
        self._items.extend(items)
        self._trim()

    def _trim(self) -> None:
        overflow = len(self._items) - self.cap
        if overflow > 0:
            del self._items[:overflow]

    def recent(self, count: int) -> List[T]:
        """Return the newest ``count`` items, oldest first."""
        if count <= 0:
            return []
        return list(self._items[-count:])

    def to_list(self) -> List[T]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))

    def __getitem__(self, index: int) -> T:
        return self._items[index]

    def __bool__(self) -> bool:
        return bool(self._items)
