"""Local file streams bounded by a ByteWindow."""

import asyncio
from pathlib import Path
from typing import AsyncIterator, Iterator, Optional, Union

from loguru import logger

from ..config import CHUNK_SIZE
from ..core.model import ByteWindow, StreamAbortedError


class WindowReader:
    """Streams one ByteWindow of a local file.

    Every reader opens its own file handle, so concurrent windows over the
    same file never share a cursor. The handle is opened in the constructor
    (a vanished file fails before any header is sent) and released when the
    window is exhausted, on error, or on ``close()``. WSGI servers call
    ``close()`` when the client goes away.
    """

    def __init__(self, path: Union[Path, str], window: Optional[ByteWindow],
                 chunk_size: int = CHUNK_SIZE):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.path = Path(path)
        self.window = window
        self.chunk_size = chunk_size
        self.bytes_sent = 0
        self._file = None

        if window is not None:
            self._file = open(self.path, "rb", buffering=0)
            self._file.seek(window.start)

    @property
    def remaining(self) -> int:
        if self.window is None:
            return 0
        return self.window.length - self.bytes_sent

    @property
    def closed(self) -> bool:
        return self._file is None

    def read_chunk(self) -> bytes:
        """Next chunk of the window, or b'' once it is exhausted."""
        want = min(self.chunk_size, self.remaining)
        if want <= 0:
            self.close()
            return b""
        if self._file is None:
            raise StreamAbortedError(f"Stream for {self.path} already closed")

        try:
            data = self._file.read(want)
        except OSError as e:
            self._abort(str(e))
            raise StreamAbortedError(f"Read failed for {self.path}: {e}") from e

        if not data:
            # file shrank underneath us
            self._abort("unexpected end of file")
            raise StreamAbortedError(
                f"Not enough data: {self.path} ended after {self.bytes_sent} of "
                f"{self.window.length} bytes")

        self.bytes_sent += len(data)
        if self.remaining == 0:
            self.close()
        return data

    def _abort(self, reason: str):
        logger.error(
            "Stream aborted for {} (window {}-{}) after {} bytes: {}",
            self.path, self.window.start, self.window.end, self.bytes_sent, reason,
        )
        self.close()

    def __iter__(self) -> Iterator[bytes]:
        try:
            while self.remaining > 0:
                yield self.read_chunk()
        finally:
            self.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        """Close the file handle if we still hold it."""
        if self._file is not None:
            self._file.close()
            self._file = None


class AsyncWindowReader:
    """Asynchronous window stream - thin wrapper around the sync reader.

    Each chunk is read in a worker thread. Consume it inside ``async with``:
    cancelling the consuming task then stops the stream after the chunk in
    flight and closes the handle.
    """

    def __init__(self, path: Union[Path, str], window: Optional[ByteWindow],
                 chunk_size: int = CHUNK_SIZE):
        self._sync_reader = WindowReader(path, window, chunk_size)

    @property
    def window(self) -> Optional[ByteWindow]:
        return self._sync_reader.window

    @property
    def bytes_sent(self) -> int:
        return self._sync_reader.bytes_sent

    @property
    def closed(self) -> bool:
        return self._sync_reader.closed

    async def read_chunk(self) -> bytes:
        return await asyncio.to_thread(self._sync_reader.read_chunk)

    async def __aiter__(self) -> AsyncIterator[bytes]:
        try:
            while self._sync_reader.remaining > 0:
                yield await self.read_chunk()
        finally:
            await self.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the underlying sync reader."""
        await asyncio.to_thread(self._sync_reader.close)


def open_window(path: Union[Path, str], window: Optional[ByteWindow],
                chunk_size: int = CHUNK_SIZE) -> WindowReader:
    """Create a synchronous window stream. ``window=None`` streams nothing."""
    return WindowReader(path, window, chunk_size)


async def open_window_async(path: Union[Path, str], window: Optional[ByteWindow],
                            chunk_size: int = CHUNK_SIZE) -> AsyncWindowReader:
    """Create an asynchronous window stream."""
    return await asyncio.to_thread(AsyncWindowReader, path, window, chunk_size)
