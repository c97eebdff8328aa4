"""Wayland wire format: argument types, messages and their (de)serialization."""

from __future__ import annotations

import os
import struct
from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence, Union

_U32_MASK = 0xFFFF_FFFF
_I32_RANGE = range(-(2**31), 2**31)
_U32_RANGE = range(2**32)
_U16_RANGE = range(2**16)


class ArgumentType(Enum):
    """Types of arguments recognized by the wire, valued by their signature letter."""

    INT = "i"
    UINT = "u"
    FIXED = "f"
    STR = "s"
    OBJECT = "o"
    NEW_ID = "n"
    ARRAY = "a"
    FD = "h"


_SIGNED = (ArgumentType.INT, ArgumentType.FIXED)
_UNSIGNED = (ArgumentType.UINT, ArgumentType.OBJECT, ArgumentType.NEW_ID)


@dataclass(frozen=True)
class Argument:
    """A typed argument value.

    INT and FIXED hold a signed 32-bit int (FIXED in 1/256 units), UINT, OBJECT
    and NEW_ID an unsigned 32-bit int, FD a file descriptor, STR the bytes of a
    string without its terminating nul, ARRAY raw bytes.
    """

    type: ArgumentType
    value: Union[int, bytes]

    def __post_init__(self) -> None:
        kind, value = self.type, self.value
        if kind in _SIGNED:
            if not isinstance(value, int) or value not in _I32_RANGE:
                raise ValueError(f"{kind.name} argument must be a signed 32-bit integer")
        elif kind in _UNSIGNED:
            if not isinstance(value, int) or value not in _U32_RANGE:
                raise ValueError(f"{kind.name} argument must be an unsigned 32-bit integer")
        elif kind is ArgumentType.FD:
            if not isinstance(value, int) or value not in _I32_RANGE:
                raise ValueError("FD argument must be a file descriptor number")
        elif kind is ArgumentType.STR:
            if isinstance(value, str):
                value = value.encode("utf-8")
            if not isinstance(value, (bytes, bytearray, memoryview)):
                raise ValueError("STR argument must be bytes or str")
            value = bytes(value)
            if b"\0" in value:
                raise ValueError("STR argument must not contain a nul byte")
            object.__setattr__(self, "value", value)
        elif kind is ArgumentType.ARRAY:
            if not isinstance(value, (bytes, bytearray, memoryview)):
                raise ValueError("ARRAY argument must be bytes")
            object.__setattr__(self, "value", bytes(value))


@dataclass(frozen=True)
class MessageDesc:
    """Wire metadata of a message: its name, signature and minimum version."""

    name: str
    signature: tuple[ArgumentType, ...]
    since: int


@dataclass
class Message:
    """A wire message sent by an object."""

    sender_id: int
    opcode: int
    args: list[Argument] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.sender_id not in _U32_RANGE:
            raise ValueError("sender_id must be an unsigned 32-bit integer")
        if self.opcode not in _U16_RANGE:
            raise ValueError("opcode must be an unsigned 16-bit integer")

    def write_to_buffers(self, free_words: int, free_fds: int) -> tuple[list[int], list[int]]:
        """Serialize into at most ``free_words`` words and ``free_fds`` descriptors.

        Returns the words and the descriptors written. Every file descriptor is
        duplicated; on failure the duplicates are closed again.
        Raises BufferTooSmall or DupFdFailed.
        """
        if free_words < 2:
            raise BufferTooSmall()
        body: list[int] = []
        fds: list[int] = []
        try:
            for arg in self.args:
                kind = arg.type
                if kind is ArgumentType.FD:
                    try:
                        dup = dup_fd_cloexec(arg.value)
                    except OSError as exc:
                        raise DupFdFailed(exc) from exc
                    fds.append(dup)
                    if len(fds) > free_fds:
                        raise BufferTooSmall()
                    continue
                if kind is ArgumentType.STR:
                    data = arg.value + b"\0"
                    chunk = [len(data), *_bytes_to_words(data)]
                elif kind is ArgumentType.ARRAY:
                    chunk = [len(arg.value), *_bytes_to_words(arg.value)]
                elif kind in _SIGNED:
                    chunk = [arg.value & _U32_MASK]
                else:
                    chunk = [arg.value]
                if 2 + len(body) + len(chunk) > free_words:
                    raise BufferTooSmall()
                body.extend(chunk)
        except BaseException:
            for fd in fds:
                try:
                    os.close(fd)
                except OSError:
                    pass
            raise
        size = (2 + len(body)) * 4
        header = [self.sender_id, ((size << 16) | self.opcode) & _U32_MASK]
        return header + body, fds

    @classmethod
    def from_raw(
        cls,
        raw: Sequence[int],
        signature: Sequence[ArgumentType],
        fds: Sequence[int],
    ) -> tuple["Message", list[int], list[int]]:
        """Parse the first message of ``raw`` with the given signature.

        Returns the message and the unused tails of the words and descriptors.
        Raises MissingData, MissingFD or Malformed.
        """
        if len(raw) < 2:
            raise MissingData()
        sender_id = raw[0]
        opcode = raw[1] & 0xFFFF
        length = (raw[1] >> 16) // 4
        if length < 2 or length > len(raw):
            raise Malformed()

        payload = list(raw[2:length])
        rest = list(raw[length:])
        fd_queue = list(fds)
        pos = 0
        fd_pos = 0
        args: list[Argument] = []

        for kind in signature:
            if kind is ArgumentType.FD:
                if fd_pos >= len(fd_queue):
                    raise MissingFD()
                args.append(Argument(kind, fd_queue[fd_pos]))
                fd_pos += 1
                continue
            if pos >= len(payload):
                raise MissingData()
            front = payload[pos]
            pos += 1
            if kind in _SIGNED:
                signed = front - (1 << 32) if front & 0x8000_0000 else front
                args.append(Argument(kind, signed))
            elif kind in _UNSIGNED:
                args.append(Argument(kind, front))
            else:
                word_len = -(-front // 4)
                if word_len > len(payload) - pos:
                    raise MissingData()
                data = _words_to_bytes(payload[pos:pos + word_len], front)
                pos += word_len
                if kind is ArgumentType.STR:
                    if not data or data[-1] != 0 or b"\0" in data[:-1]:
                        raise Malformed()
                    data = data[:-1]
                args.append(Argument(kind, data))

        return cls(sender_id, opcode, args), rest, fd_queue[fd_pos:]


def _bytes_to_words(data: bytes) -> tuple[int, ...]:
    padded = data + b"\0" * (-len(data) % 4)
    return struct.unpack(f"={len(padded) // 4}I", padded)


def _words_to_bytes(words: Sequence[int], length: int) -> bytes:
    return struct.pack(f"={len(words)}I", *words)[:length]


def dup_fd_cloexec(fd: int) -> int:
    """Duplicate ``fd``; the copy is close-on-exec. Raises OSError on failure."""
    return os.dup(fd)


class MessageWriteError(Exception):
    """A message could not be serialized."""


class BufferTooSmall(MessageWriteError):
    """The buffer is too small to hold the message contents."""

    def __init__(self) -> None:
        super().__init__("The provided buffer is too small to hold message content.")


class DupFdFailed(MessageWriteError):
    """The message contains a file descriptor that could not be duplicated."""

    def __init__(self, error: OSError) -> None:
        super().__init__("The message contains a file descriptor that could not be dup()-ed.")
        self.error = error


class MessageParseError(Exception):
    """A message could not be deserialized."""


class MissingFD(MessageParseError):
    """The message references a file descriptor but none is left."""

    def __init__(self) -> None:
        super().__init__("The message references a FD but the buffer FD is empty.")


class MissingData(MessageParseError):
    """More data is needed to deserialize the message."""

    def __init__(self) -> None:
        super().__init__("More data is needed to deserialize the message")


class Malformed(MessageParseError):
    """The message is malformed and cannot be parsed."""

    def __init__(self) -> None:
        super().__init__("The message is malformed and cannot be parsed")