"""I/O layer for rangeserve - streams byte windows out of storage and talks to remote servers."""

# Re-export these for import convenience
from .base import WindowStream, RemoteMetadata
from .local import WindowReader, AsyncWindowReader, open_window, open_window_async
from .http_sync import RemoteFile, parse_content_range
from .http_async import AsyncRemoteFile

__all__ = [
    "WindowStream", "RemoteMetadata",
    "WindowReader", "AsyncWindowReader", "open_window", "open_window_async",
    "RemoteFile", "parse_content_range",
    "AsyncRemoteFile",
]
