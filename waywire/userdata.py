"""User data holders aware of the thread they belong to."""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional, TypeVar

T = TypeVar("T")

_MISSING = object()


class UserData:
    """A value of any type, optionally visible only from its creating thread.

    With ``threadsafe`` false the value can only be read from the thread that
    created this holder; elsewhere it appears absent.
    """

    def __init__(self, value: Any, threadsafe: bool = False) -> None:
        self._value = value
        self._owner: Optional[int] = None if threadsafe else threading.get_ident()
        self._empty = False

    @classmethod
    def empty(cls) -> "UserData":
        """A holder containing nothing."""
        holder = cls(None, threadsafe=True)
        holder._empty = True
        return holder

    def _lookup(self, type_: type) -> Any:
        if self._empty:
            return _MISSING
        if self._owner is not None and self._owner != threading.get_ident():
            return _MISSING
        if type(self._value) is not type_:
            return _MISSING
        return self._value

    def get(self, type_: type[T]) -> Optional[T]:
        """The value if it is exactly of ``type_`` and visible here, else None."""
        value = self._lookup(type_)
        return None if value is _MISSING else value


class UserDataMap:
    """Stores at most one value per type, like a type map."""

    def __init__(self) -> None:
        self._entries: list[UserData] = []
        self._lock = threading.Lock()

    def _lookup(self, type_: type) -> Any:
        for entry in list(self._entries):
            value = entry._lookup(type_)
            if value is not _MISSING:
                return value
        return _MISSING

    def get(self, type_: type[T]) -> Optional[T]:
        """The stored value of ``type_`` visible from this thread, or None."""
        value = self._lookup(type_)
        return None if value is _MISSING else value

    def _insert(self, type_: type, init: Callable[[], Any], threadsafe: bool) -> bool:
        with self._lock:
            if self._lookup(type_) is not _MISSING:
                return False
            value = init()
            if type(value) is not type_:
                raise TypeError(
                    f"init returned {type(value).__name__}, expected {type_.__name__}"
                )
            self._entries.append(UserData(value, threadsafe=threadsafe))
            return True

    def insert_if_missing(self, type_: type[T], init: Callable[[], T]) -> bool:
        """Store ``init()`` for ``type_`` unless a value is already visible.

        The value is only visible from the current thread. Returns whether
        ``init`` was called and its value stored.
        """
        return self._insert(type_, init, threadsafe=False)

    def insert_if_missing_threadsafe(self, type_: type[T], init: Callable[[], T]) -> bool:
        """As insert_if_missing, but the value is visible from every thread."""
        return self._insert(type_, init, threadsafe=True)