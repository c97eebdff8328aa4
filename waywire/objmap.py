"""The object store of a wayland connection."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional

from .interface import Interface, NoMessage
from .wire import MessageDesc

SERVER_ID_LIMIT = 0xFF00_0000
"""Limit separating server-created from client-created object ids."""


class ObjectMetadata:
    """Metadata a wayland implementation may attach to an object."""

    def child(self) -> "ObjectMetadata":
        """Metadata for a child object; by default the same metadata."""
        return self


ChildFactory = Callable[[int, int, Any], Optional["Object"]]


@dataclass
class Object:
    """A protocol object: its interface, version, messages and metadata.

    ``childs_from_events`` and ``childs_from_requests`` take an opcode, a
    version and the metadata, and return the object created by that message,
    if any.
    """

    interface: str
    version: int
    requests: tuple[MessageDesc, ...]
    events: tuple[MessageDesc, ...]
    meta: Any
    childs_from_events: ChildFactory = NoMessage.child
    childs_from_requests: ChildFactory = NoMessage.child

    @classmethod
    def from_interface(cls, interface: type[Interface], version: int, meta: Any) -> "Object":
        """An object of the given interface and version."""
        return cls(
            interface=interface.NAME,
            version=version,
            requests=tuple(interface.Request.MESSAGES),
            events=tuple(interface.Event.MESSAGES),
            meta=meta,
            childs_from_events=interface.Event.child,
            childs_from_requests=interface.Request.child,
        )

    def event_child(self, opcode: int) -> Optional["Object"]:
        """The object created by the event with this opcode, if any."""
        return self.childs_from_events(opcode, self.version, self.meta)

    def request_child(self, opcode: int) -> Optional["Object"]:
        """The object created by the request with this opcode, if any."""
        return self.childs_from_requests(opcode, self.version, self.meta)

    def is_interface(self, interface: type[Interface]) -> bool:
        """Whether this object is of the given interface."""
        return self.interface == interface.NAME

    @classmethod
    def placeholder(cls, meta: Any) -> "Object":
        """An empty object, to be filled in by the message logic."""
        return cls(interface="", version=0, requests=(), events=(), meta=meta)


class ObjectMap:
    """Tracks which object id belongs to which object, and which ids are free."""

    def __init__(self) -> None:
        self._client: list[Optional[Object]] = []
        self._server: list[Optional[Object]] = []

    def _locate(self, object_id: int) -> tuple[list[Optional[Object]], int]:
        if object_id >= SERVER_ID_LIMIT:
            return self._server, object_id - SERVER_ID_LIMIT
        return self._client, object_id - 1

    def _get(self, object_id: int) -> Optional[Object]:
        store, index = self._locate(object_id)
        if 0 <= index < len(store):
            return store[index]
        return None

    def find(self, object_id: int) -> Optional[Object]:
        """A copy of the object with this id, or None."""
        obj = self._get(object_id)
        return copy.copy(obj) if obj is not None else None

    def remove(self, object_id: int) -> None:
        """Free this id; does nothing if it was not in use."""
        store, index = self._locate(object_id)
        if 0 <= index < len(store):
            store[index] = None

    def insert_at(self, object_id: int, obj: Object) -> None:
        """Store ``obj`` under ``object_id``.

        Raises ValueError unless the id is free and at most the next unused
        one of its namespace (otherwise it is a protocol error).
        """
        store, index = self._locate(object_id)
        if index < 0 or index > len(store):
            raise ValueError(f"object id {object_id} is out of sequence")
        if index == len(store):
            store.append(obj)
        elif store[index] is not None:
            raise ValueError(f"object id {object_id} is already in use")
        else:
            store[index] = obj

    def client_insert_new(self, obj: Object) -> int:
        """Store ``obj`` under a new id of the client namespace and return it."""
        return _insert_in(self._client, obj) + 1

    def server_insert_new(self, obj: Object) -> int:
        """Store ``obj`` under a new id of the server namespace and return it."""
        return _insert_in(self._server, obj) + SERVER_ID_LIMIT

    def with_object(self, object_id: int, func: Callable[[Object], Any]) -> Any:
        """Call ``func`` on the stored object itself and return its result.

        Raises KeyError if no object has this id.
        """
        obj = self._get(object_id)
        if obj is None:
            raise KeyError(object_id)
        return func(obj)

    def items(self) -> Iterator[tuple[int, Object]]:
        """Yield ``(id, object)`` for every stored object, client ids first."""
        for index, obj in enumerate(self._client):
            if obj is not None:
                yield index + 1, obj
        for index, obj in enumerate(self._server):
            if obj is not None:
                yield index + SERVER_ID_LIMIT, obj


def _insert_in(store: list[Optional[Object]], obj: Object) -> int:
    free = next((index for index, slot in enumerate(store) if slot is None), None)
    if free is None:
        store.append(obj)
        return len(store) - 1
    store[free] = obj
    return free