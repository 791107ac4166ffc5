"""Base protocols and shared types for I/O layer."""

from dataclasses import dataclass
from typing import Iterator, Mapping, Optional, Protocol, runtime_checkable


@runtime_checkable
class WindowStream(Protocol):
    """A body stream bounded by one ByteWindow."""

    bytes_sent: int  # running total

    def __iter__(self) -> Iterator[bytes]:
        ...

    def close(self) -> None:
        """Release the read handle. Safe to call more than once."""
        ...


@dataclass(frozen=True, slots=True)
class RemoteMetadata:
    """What a HEAD response says about a remote file."""
    content_length: Optional[int]
    etag: Optional[str]
    accept_ranges: bool

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "RemoteMetadata":
        """Works with requests' and httpx's case-insensitive header mappings."""
        length = (headers.get("content-length") or "").strip()
        units = [u.strip().lower() for u in (headers.get("accept-ranges") or "").split(",")]
        return cls(
            content_length=int(length) if length.isdigit() else None,
            etag=headers.get("etag"),
            accept_ranges="bytes" in units,
        )
