"""Descriptions of wayland interfaces and their message groups."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Mapping, Optional

from .wire import Malformed, Message, MessageDesc


class MessageGroup(ABC):
    """A group of messages: the requests or the events of one interface.

    Subclass instances are the individual messages; ``MESSAGES`` lists their
    wire descriptions indexed by opcode. ``CHILDREN`` maps the opcode of each
    message that creates an object to the interface of that new object.
    """

    MESSAGES: ClassVar[tuple[MessageDesc, ...]] = ()
    CHILDREN: ClassVar[Mapping[int, type["Interface"]]] = {}

    @classmethod
    def _describe(cls, opcode: int) -> MessageDesc:
        """The wire description of the message with this opcode; raises Malformed."""
        if not 0 <= opcode < len(cls.MESSAGES):
            raise Malformed()
        return cls.MESSAGES[opcode]

    @abstractmethod
    def opcode(self) -> int:
        """The opcode of this message."""

    def is_destructor(self) -> bool:
        """Whether sending or receiving this message destroys its object."""
        return False

    def since(self) -> int:
        """The minimal object version for which this message exists."""
        return type(self)._describe(self.opcode()).since

    @classmethod
    def child(cls, opcode: int, version: int, meta: Any) -> Optional[Any]:
        """The object created by the message with this opcode, if any."""
        interface = cls.CHILDREN.get(opcode)
        if interface is None:
            return None
        from .objmap import Object

        return Object.from_interface(interface, version, meta.child())

    @classmethod
    @abstractmethod
    def from_raw(cls, msg: Message, object_map: Any) -> "MessageGroup":
        """Build a message of this group from its wire form; raises Malformed."""

    @abstractmethod
    def into_raw(self, sender_id: int) -> Message:
        """The wire form of this message, sent by ``sender_id``."""


class NoMessage(MessageGroup):
    """A message group with no messages; it cannot be instantiated."""

    MESSAGES: ClassVar[tuple[MessageDesc, ...]] = ()
    CHILDREN: ClassVar[Mapping[int, type["Interface"]]] = {}

    @classmethod
    def child(cls, opcode: int, version: int, meta: Any) -> Optional[Any]:
        """Always None: no message of this group creates an object."""
        return super().child(opcode, version, meta)

    @classmethod
    def from_raw(cls, msg: Message, object_map: Any) -> "NoMessage":
        """Always raises Malformed: no opcode belongs to this group."""
        cls._describe(msg.opcode)
        raise Malformed()


class Interface:
    """Description of a wayland interface.

    Subclasses set ``NAME``, ``VERSION`` (the highest supported version) and
    the ``Request`` and ``Event`` message groups.
    """

    NAME: ClassVar[str]
    VERSION: ClassVar[int]
    Request: ClassVar[type[MessageGroup]] = NoMessage
    Event: ClassVar[type[MessageGroup]] = NoMessage

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        missing = [attr for attr in ("NAME", "VERSION") if not hasattr(cls, attr)]
        if missing:
            raise TypeError(f"interface {cls.__name__} lacks {', '.join(missing)}")
        for attr in ("Request", "Event"):
            group = getattr(cls, attr)
            if not (isinstance(group, type) and issubclass(group, MessageGroup)):
                raise TypeError(f"{cls.__name__}.{attr} must be a MessageGroup subclass")