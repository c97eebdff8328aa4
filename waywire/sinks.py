"""Message sinks feeding a non-blocking message iterator."""

from __future__ import annotations

import weakref
from collections import deque
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class Sink(Generic[T]):
    """The sending end of a message iterator; copies share the same iterator."""

    def __init__(self, queue: "deque[T]") -> None:
        self._queue = weakref.ref(queue)

    def push(self, msg: T) -> None:
        """Queue ``msg``; it is silently dropped if the iterator is gone."""
        queue = self._queue()
        if queue is not None:
            queue.append(msg)

    def __copy__(self) -> "Sink[T]":
        clone = Sink.__new__(Sink)
        clone._queue = self._queue
        return clone


class MsgIter(Generic[T]):
    """Yields the messages pushed by its sinks, in order, without blocking.

    Stopping only means no message is pending: iterating again later may
    yield messages pushed in the meantime.
    """

    def __init__(self, queue: "deque[Any]") -> None:
        self._queue = queue

    def __iter__(self) -> "MsgIter[T]":
        return self

    def __next__(self) -> T:
        try:
            return self._queue.popleft()
        except IndexError:
            raise StopIteration from None


def message_iterator() -> tuple[Sink[Any], MsgIter[Any]]:
    """Create a message iterator and a sink feeding it."""
    queue: deque[Any] = deque()
    return Sink(queue), MsgIter(queue)