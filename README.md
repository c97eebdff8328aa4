# waywire

Building blocks for speaking the Wayland wire protocol from Python. The
package uses only the standard library. It needs a POSIX system with Unix
domain sockets and `SCM_RIGHTS` for the socket parts.

## Modules

- `waywire.wire` defines `ArgumentType`, `Argument`, `MessageDesc` and
  `Message`.
  - `Message.write_to_buffers(free_words, free_fds)` encodes a message into
    32-bit words and duplicated file descriptors.
  - `Message.from_raw(raw, signature, fds)` decodes the first message found in
    a word list. It returns the message and the unused words and descriptors.
  - Encoding errors are `BufferTooSmall` and `DupFdFailed`, both subclasses of
    `MessageWriteError`.
  - Decoding errors are `MissingData`, `MissingFD` and `Malformed`, all
    subclasses of `MessageParseError`.
- `waywire.interface` holds the abstract `MessageGroup`, which describes the
  requests or events of one interface. It also holds `Interface`, which gives
  the `NAME`, `VERSION`, `Request` and `Event` of an interface. `NoMessage` is
  an empty message group.
- `waywire.objmap` holds `Object`, `ObjectMetadata`, `ObjectMap` and
  `SERVER_ID_LIMIT`.
  - An `ObjectMap` tracks the object ids in use. The client namespace starts
    at 1 and the server namespace starts at `SERVER_ID_LIMIT`.
  - Its methods are `find`, `remove`, `insert_at`, `client_insert_new`,
    `server_insert_new`, `with_object` and `items`.
  - `insert_at` raises `ValueError` for an id that is out of sequence or
    already in use.
- `waywire.sinks` provides `message_iterator()`, which returns a `Sink` and a
  `MsgIter` that share a queue.
  - Each pushed message is yielded once, in order.
  - Iteration never blocks.
  - Pushes are dropped silently once the iterator is gone.
- `waywire.userdata` provides `UserData` and `UserDataMap`, which hold values
  looked up by their exact type.
  - By default a value can be read only from the thread that stored it.
  - A value stored with `threadsafe=True`, or through
    `insert_if_missing_threadsafe`, can be read from any thread.
- `waywire.connection` provides `Socket` and `BufferedSocket`.
  - They carry non-blocking, message-oriented I/O over a Unix stream socket.
  - File descriptors are passed with `SCM_RIGHTS`.
  - `MAX_BYTES_OUT` (4096) and `MAX_FDS_OUT` (28) bound one socket message.

## Example

```python
import socket

from waywire.connection import BufferedSocket, Socket
from waywire.wire import Argument, ArgumentType, Message

a, b = socket.socketpair(socket.AF_UNIX, socket.SOCK_STREAM)
client, server = BufferedSocket(Socket(a)), BufferedSocket(Socket(b))

client.write_message(
    Message(42, 7, [Argument(ArgumentType.UINT, 3), Argument(ArgumentType.STR, b"hello")])
)
client.flush()

received = []
count = server.read_messages(
    lambda sender, opcode: (ArgumentType.UINT, ArgumentType.STR),
    lambda msg: received.append(msg) or True,
)
assert count == 1 and received[0].args[1].value == b"hello"
```

`read_messages` returns the number of messages it handed to the callback. It
raises errors in these cases:

- `Malformed` for an unknown message or bad contents.
- `BlockingIOError` when nothing at all could be read.
- `BrokenPipeError` when the peer has closed the connection.

`write_message` flushes when the outgoing buffer is full. It raises `OSError`
with `E2BIG` for a message that can never fit.

## Command line

```
waywire-registry-dump [SOCKET] [--wait SECONDS]
```

The command does the following:

1. It connects to `SOCKET`, which defaults to `$XDG_RUNTIME_DIR/wayland-0`.
2. It sends `wl_display.get_registry`.
3. It waits for `--wait` seconds, 0.5 by default.
4. It prints each `global` event it receives as the name, the interface and
   the version.
5. It prints the count of messages read.

It exits with status 1 if it cannot connect or if reading fails.

## What it does not do

This package only works at the level of the wire. It has these limits:

- It has no client or server display.
- It has no event loop or dispatching of events to handlers.
- It ships no interface definitions for the core or extension protocols.
- It does not generate code from protocol XML files.

You describe interfaces yourself by subclassing `Interface` and
`MessageGroup`.

## Tests

```
pip install -e .[test]
pytest
```