"""Buffered wayland socket: sends and receives wire messages with file descriptors."""

from __future__ import annotations

import array
import errno
import os
import socket
import struct
from typing import Callable, Iterable, Optional, Sequence

from .wire import (
    ArgumentType,
    BufferTooSmall,
    DupFdFailed,
    Malformed,
    Message,
    MessageParseError,
    MissingData,
)

MAX_FDS_OUT = 28
"""Maximum number of file descriptors sent in a single socket message."""

MAX_BYTES_OUT = 4096
"""Maximum number of bytes sent in a single socket message."""

_FD_SIZE = array.array("i").itemsize
_NOSIGNAL = getattr(socket, "MSG_NOSIGNAL", 0)
_CMSG_CLOEXEC = getattr(socket, "MSG_CMSG_CLOEXEC", 0)

SignatureLookup = Callable[[int, int], Optional[Sequence[ArgumentType]]]


class Socket:
    """A wayland socket sending and receiving raw data with file descriptors."""

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock

    def send_msg(self, data: bytes, fds: Iterable[int] = ()) -> None:
        """Send one socket message holding ``data`` and the descriptors ``fds``.

        ``data`` should not exceed MAX_BYTES_OUT bytes nor ``fds`` MAX_FDS_OUT
        descriptors, or the receiving end may lose some of them.
        """
        fds = list(fds)
        ancillary = []
        if fds:
            ancillary.append(
                (socket.SOL_SOCKET, socket.SCM_RIGHTS, array.array("i", fds).tobytes())
            )
        self._sock.sendmsg([bytes(data)], ancillary, socket.MSG_DONTWAIT | _NOSIGNAL)

    def rcv_msg(self) -> tuple[bytes, list[int]]:
        """Receive one socket message: its bytes and the descriptors it carried.

        Raises BlockingIOError if no message is available.
        """
        data, ancdata, _flags, _addr = self._sock.recvmsg(
            MAX_BYTES_OUT,
            socket.CMSG_SPACE(MAX_FDS_OUT * _FD_SIZE),
            socket.MSG_DONTWAIT | _CMSG_CLOEXEC,
        )
        fds: list[int] = []
        for level, kind, payload in ancdata:
            if level == socket.SOL_SOCKET and kind == socket.SCM_RIGHTS:
                usable = len(payload) - len(payload) % _FD_SIZE
                fds.extend(array.array("i", payload[:usable]))
        return data, fds[:MAX_FDS_OUT]

    def fileno(self) -> int:
        """The underlying file descriptor."""
        return self._sock.fileno()

    def close(self) -> None:
        """Close the socket."""
        self._sock.close()

    def __enter__(self) -> "Socket":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class BufferedSocket:
    """A Socket with buffering and conversion from and to wire messages."""

    def __init__(self, sock: Socket) -> None:
        self.socket = sock
        self._in_data: list[int] = []
        self._in_fds: list[int] = []
        self._out_data: list[int] = []
        self._out_fds: list[int] = []

    def flush(self) -> None:
        """Send the outgoing buffer; the sent descriptors are closed afterwards."""
        payload = struct.pack(f"={len(self._out_data)}I", *self._out_data)
        self.socket.send_msg(payload, self._out_fds)
        for fd in self._out_fds:
            try:
                os.close(fd)
            except OSError:
                pass
        self._out_data.clear()
        self._out_fds.clear()

    def _attempt_write(self, msg: Message) -> bool:
        try:
            words, fds = msg.write_to_buffers(
                MAX_BYTES_OUT // 4 - len(self._out_data),
                MAX_FDS_OUT - len(self._out_fds),
            )
        except BufferTooSmall:
            return False
        except DupFdFailed as exc:
            raise exc.error from exc
        self._out_data.extend(words)
        self._out_fds.extend(fds)
        return True

    def write_message(self, msg: Message) -> None:
        """Queue ``msg`` in the outgoing buffer, flushing it first if full.

        Raises OSError with errno E2BIG if the message can never fit.
        """
        if self._attempt_write(msg):
            return
        self.flush()
        if not self._attempt_write(msg):
            raise OSError(errno.E2BIG, os.strerror(errno.E2BIG))

    def fill_incoming_buffers(self) -> None:
        """Receive one socket message into the incoming buffers.

        Raises BlockingIOError if nothing is available and BrokenPipeError if
        the other end has closed the connection.
        """
        data, fds = self.socket.rcv_msg()
        if not data:
            raise BrokenPipeError(errno.EPIPE, os.strerror(errno.EPIPE))
        padded = data + b"\0" * (-len(data) % 4)
        self._in_data.extend(struct.unpack(f"={len(padded) // 4}I", padded))
        self._in_fds.extend(fds)

    def read_one_message(self, signature: SignatureLookup) -> Message:
        """Parse one message from the incoming buffers.

        ``signature`` maps an object id and an opcode to the argument types of
        that message, or None if it does not exist. Raises MissingData when
        more data must be received first, Malformed for an unknown message or
        bad contents, and MissingFD when a descriptor is lacking.
        """
        if len(self._in_data) < 2:
            raise MissingData()
        object_id = self._in_data[0]
        opcode = self._in_data[1] & 0xFFFF
        sig = signature(object_id, opcode)
        if sig is None:
            raise Malformed()
        msg, rest_data, rest_fds = Message.from_raw(self._in_data, sig, self._in_fds)
        self._in_data = rest_data
        self._in_fds = rest_fds
        return msg

    def read_messages(
        self, signature: SignatureLookup, callback: Callable[[Message], bool]
    ) -> int:
        """Read messages and hand each to ``callback``; return how many were read.

        Reading stops early when ``callback`` returns False; unread data stays
        buffered for the next call. Raises Malformed on a protocol error,
        BlockingIOError if no message at all could be read, and other OSError
        on socket failures.
        """
        dispatched = 0
        while True:
            err: Optional[MessageParseError] = None
            while True:
                try:
                    msg = self.read_one_message(signature)
                except MessageParseError as exc:
                    err = exc
                    break
                keep_going = callback(msg)
                dispatched += 1
                if not keep_going:
                    break

            if isinstance(err, Malformed):
                raise err
            if err is None and self._in_data:
                return dispatched

            try:
                self.fill_incoming_buffers()
            except BlockingIOError:
                if dispatched == 0:
                    raise
                return dispatched

    def close(self) -> None:
        """Close the underlying socket; buffered content is lost."""
        self.socket.close()

    def __enter__(self) -> "BufferedSocket":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()