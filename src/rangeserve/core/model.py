from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar, List, Mapping, Optional, Tuple, Union

from werkzeug.http import parse_date

Header = Tuple[str, str]


@dataclass(frozen=True, slots=True)
class ResourceDescriptor:
    """What the storage layer knows about one stored file."""
    total_size: int
    content_type: str
    last_modified: datetime        # timezone-aware, UTC
    etag: str                      # strong validator, quoted
    supports_ranges: bool
    filename: str                  # original upload name

    def __post_init__(self):
        if self.total_size < 0:
            raise ValueError(f"total_size cannot be negative: {self.total_size}")


@dataclass(frozen=True, slots=True)
class RangeRequest:
    """The parts of an incoming request the responder looks at."""
    method: str = "GET"
    range: Optional[str] = None
    if_none_match: Optional[str] = None
    if_modified_since: Optional[datetime] = None
    if_range: Optional[str] = None
    cache_control: Optional[str] = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str], method: str = "GET") -> "RangeRequest":
        """Build from a header mapping. Lookups must be case insensitive
        (werkzeug ``Headers`` or an ``email.message.Message`` both are)."""
        ims = headers.get("If-Modified-Since")
        return cls(
            method=method.upper(),
            range=headers.get("Range"),
            if_none_match=headers.get("If-None-Match"),
            if_modified_since=parse_date(ims) if ims else None,
            if_range=headers.get("If-Range"),
            cache_control=headers.get("Cache-Control"),
        )


@dataclass(frozen=True, slots=True)
class ByteWindow:
    """Inclusive byte span ``start..end`` of a resource."""
    start: int
    end: int

    def __post_init__(self):
        if self.start < 0 or self.start > self.end:
            raise ValueError(f"Invalid byte window {self.start}-{self.end}")

    @classmethod
    def whole(cls, total_size: int) -> Optional["ByteWindow"]:
        """Window covering a resource, or None for an empty one."""
        if total_size <= 0:
            return None
        return cls(0, total_size - 1)

    @property
    def length(self) -> int:
        return self.end - self.start + 1


# --- decisions ------------------------------------------------------------- #
# Exactly one of these is produced per request; the variant alone decides the
# status code and which headers get assembled.

@dataclass(frozen=True, slots=True)
class NotModified:
    status: ClassVar[int] = 304


@dataclass(frozen=True, slots=True)
class FullContent:
    status: ClassVar[int] = 200


@dataclass(frozen=True, slots=True)
class PartialContent:
    window: ByteWindow
    status: ClassVar[int] = 206


@dataclass(frozen=True, slots=True)
class RangeNotSatisfiable:
    status: ClassVar[int] = 416


@dataclass(frozen=True, slots=True)
class MalformedRangeFallback:
    status: ClassVar[int] = 200


ResponseDecision = Union[NotModified, FullContent, PartialContent,
                         RangeNotSatisfiable, MalformedRangeFallback]


@dataclass(frozen=True, slots=True)
class Response:
    decision: ResponseDecision
    headers: List[Header] = field(default_factory=list)
    window: Optional[ByteWindow] = None    # bytes to stream, None means no body
    body: bytes = b""                      # fixed body for error statuses

    @property
    def status(self) -> int:
        return self.decision.status

    def header(self, name: str) -> Optional[str]:
        lname = name.lower()
        for key, value in self.headers:
            if key.lower() == lname:
                return value
        return None


class RangeServeError(Exception):
    """Base class for errors raised by rangeserve."""
    pass


class StreamAbortedError(RangeServeError, OSError):
    """Raised when a body stream fails after the status line went out."""
    pass
