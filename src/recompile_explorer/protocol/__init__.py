"""Line-oriented request/response protocol to the analysis server."""

from .adapter import BlockingAdapter, ServerAdapter, ThreadedAdapter
from .process import ServerProcess, spawn_server

__all__ = [
    "ServerAdapter",
    "BlockingAdapter",
    "ThreadedAdapter",
    "ServerProcess",
    "spawn_server",
]
