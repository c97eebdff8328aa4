from typing import Any, ClassVar

import pytest

from waywire.interface import Interface, MessageGroup
from waywire.objmap import SERVER_ID_LIMIT, Object, ObjectMap, ObjectMetadata
from waywire.wire import ArgumentType, Message, MessageDesc


class _BarEvents(MessageGroup):
    MESSAGES: ClassVar[tuple[MessageDesc, ...]] = (
        MessageDesc("ping", (ArgumentType.UINT,), 1),
    )

    def opcode(self) -> int:
        return 0

    @classmethod
    def from_raw(cls, msg: Message, object_map: Any) -> "_BarEvents":
        return cls()

    def into_raw(self, sender_id: int) -> Message:
        return Message(sender_id, 0)


class Bar(Interface):
    NAME = "wl_bar"
    VERSION = 1
    Event = _BarEvents


class _FooEvents(MessageGroup):
    MESSAGES: ClassVar[tuple[MessageDesc, ...]] = (
        MessageDesc("new_bar", (ArgumentType.NEW_ID,), 1),
        MessageDesc("plain", (), 1),
    )

    def opcode(self) -> int:
        return 0

    @classmethod
    def child(cls, opcode: int, version: int, meta: Any):
        if opcode == 0:
            return Object.from_interface(Bar, version, meta.child())
        return None

    @classmethod
    def from_raw(cls, msg: Message, object_map: Any) -> "_FooEvents":
        return cls()

    def into_raw(self, sender_id: int) -> Message:
        return Message(sender_id, 0)


class Foo(Interface):
    NAME = "wl_foo"
    VERSION = 3
    Event = _FooEvents


class _Queue(ObjectMetadata):
    def __init__(self, depth: int) -> None:
        self.depth = depth

    def child(self) -> "_Queue":
        return _Queue(self.depth + 1)


def _obj(version: int = 1) -> Object:
    return Object.from_interface(Foo, version, ObjectMetadata())


def test_first_ids_of_each_namespace():
    store = ObjectMap()
    assert store.client_insert_new(_obj()) == 1
    assert store.server_insert_new(_obj()) == SERVER_ID_LIMIT


def test_freed_id_is_reused():
    store = ObjectMap()
    first = store.client_insert_new(_obj())
    second = store.client_insert_new(_obj())
    store.remove(first)
    assert store.find(first) is None
    assert store.client_insert_new(_obj(2)) == first
    third = store.client_insert_new(_obj())
    assert len({first, second, third}) == 3


def test_find_round_trip_and_missing():
    store = ObjectMap()
    oid = store.client_insert_new(_obj(3))
    found = store.find(oid)
    assert found.interface == "wl_foo"
    assert found.version == 3
    assert store.find(oid + 1) is None
    assert store.find(0) is None
    assert store.find(SERVER_ID_LIMIT) is None


def test_find_returns_a_copy():
    store = ObjectMap()
    oid = store.client_insert_new(_obj(2))
    found = store.find(oid)
    found.version = 7
    assert store.find(oid).version == 2


def test_with_object_mutates_in_place():
    store = ObjectMap()
    oid = store.server_insert_new(_obj(1))

    def bump(obj: Object) -> str:
        obj.version = 5
        return obj.interface

    assert store.with_object(oid, bump) == "wl_foo"
    assert store.find(oid).version == 5


def test_with_object_missing_raises():
    store = ObjectMap()
    with pytest.raises(KeyError):
        store.with_object(1, lambda obj: obj)


def test_insert_at_next_free_id():
    store = ObjectMap()
    store.insert_at(1, _obj(2))
    store.insert_at(SERVER_ID_LIMIT, _obj(3))
    assert store.find(1).version == 2
    assert store.find(SERVER_ID_LIMIT).version == 3


def test_insert_at_gap_or_occupied_raises():
    store = ObjectMap()
    with pytest.raises(ValueError):
        store.insert_at(2, _obj())
    with pytest.raises(ValueError):
        store.insert_at(0, _obj())
    store.insert_at(1, _obj())
    with pytest.raises(ValueError):
        store.insert_at(1, _obj())


def test_insert_at_freed_slot():
    store = ObjectMap()
    oid = store.client_insert_new(_obj(1))
    store.client_insert_new(_obj(1))
    store.remove(oid)
    store.insert_at(oid, _obj(4))
    assert store.find(oid).version == 4


def test_remove_unknown_id_leaves_map_unchanged():
    store = ObjectMap()
    oid = store.client_insert_new(_obj())
    store.remove(oid + 10)
    store.remove(SERVER_ID_LIMIT + 3)
    assert [i for i, _ in store.items()] == [oid]


def test_items_client_then_server_skipping_removed():
    store = ObjectMap()
    server_id = store.server_insert_new(_obj())
    a = store.client_insert_new(_obj())
    b = store.client_insert_new(_obj())
    store.remove(a)
    assert [i for i, _ in store.items()] == [b, server_id]


def test_items_gives_live_objects():
    store = ObjectMap()
    oid = store.client_insert_new(_obj(1))
    for _, obj in store.items():
        obj.version = 9
    assert store.find(oid).version == 9


def test_from_interface_fields():
    obj = Object.from_interface(Foo, 2, ObjectMetadata())
    assert obj.interface == Foo.NAME
    assert obj.version == 2
    assert obj.events == _FooEvents.MESSAGES
    assert obj.requests == ()
    assert obj.is_interface(Foo)
    assert not obj.is_interface(Bar)


def test_event_child_propagates_version_and_meta():
    obj = Object.from_interface(Foo, 2, _Queue(0))
    child = obj.event_child(0)
    assert child.is_interface(Bar)
    assert child.version == 2
    assert child.meta.depth == obj.meta.depth + 1
    assert obj.event_child(1) is None
    assert obj.request_child(0) is None


def test_placeholder_is_empty():
    meta = ObjectMetadata()
    obj = Object.placeholder(meta)
    assert obj.interface == ""
    assert obj.version == 0
    assert obj.requests == () and obj.events == ()
    assert obj.meta is meta
    assert obj.event_child(0) is None
    assert obj.request_child(0) is None


def test_default_metadata_child_is_itself():
    meta = ObjectMetadata()
    assert meta.child() is meta