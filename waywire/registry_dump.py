"""List the globals a wayland compositor advertises through its registry."""

from __future__ import annotations

import argparse
import os
import socket
import sys
import time
from typing import Optional, Sequence

from .connection import BufferedSocket, Socket
from .wire import Argument, ArgumentType, Message, MessageDesc, MessageParseError

DISPLAY_ID = 1
GET_REGISTRY_OPCODE = 1
REGISTRY_ID = 2
GLOBAL_OPCODE = 0

GLOBAL_EVENT = MessageDesc(
    name="global",
    signature=(ArgumentType.UINT, ArgumentType.STR, ArgumentType.UINT),
    since=1,
)


def _signature(object_id: int, opcode: int) -> Optional[Sequence[ArgumentType]]:
    if (object_id, opcode) == (REGISTRY_ID, GLOBAL_OPCODE):
        return GLOBAL_EVENT.signature
    return None


def _print_global(msg: Message) -> bool:
    name, interface, version = (arg.value for arg in msg.args)
    print(f"{name}\t{interface.decode('utf-8', errors='replace')}\tversion {version}")
    return True


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Connect, request the registry and print every global announced."""
    parser = argparse.ArgumentParser(
        prog="waywire-registry-dump",
        description="List the globals advertised by a wayland compositor.",
    )
    parser.add_argument(
        "socket",
        nargs="?",
        help="path of the compositor socket (default: $XDG_RUNTIME_DIR/wayland-0)",
    )
    parser.add_argument(
        "--wait",
        type=float,
        default=0.5,
        help="seconds to wait for the answer (default: 0.5)",
    )
    args = parser.parse_args(argv)

    path = args.socket
    if path is None:
        runtime_dir = os.environ.get("XDG_RUNTIME_DIR")
        if not runtime_dir:
            parser.error("XDG_RUNTIME_DIR is not set and no socket path was given")
        path = os.path.join(runtime_dir, "wayland-0")

    raw = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        raw.connect(path)
    except OSError as exc:
        raw.close()
        print(f"cannot connect to {path}: {exc}", file=sys.stderr)
        return 1

    with BufferedSocket(Socket(raw)) as conn:
        try:
            conn.write_message(
                Message(
                    DISPLAY_ID,
                    GET_REGISTRY_OPCODE,
                    [Argument(ArgumentType.NEW_ID, REGISTRY_ID)],
                )
            )
            conn.flush()
            time.sleep(args.wait)
            count = conn.read_messages(_signature, _print_global)
        except (OSError, MessageParseError) as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 1

    print(f"{count} message(s) read")
    return 0


if __name__ == "__main__":
    sys.exit(main())