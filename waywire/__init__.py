"""Wayland wire protocol primitives: messages, interfaces, object maps, sinks, user data and buffered sockets."""

__version__ = "0.1.0"
__all__ = ["connection", "interface", "objmap", "registry_dump", "sinks", "userdata", "wire"]