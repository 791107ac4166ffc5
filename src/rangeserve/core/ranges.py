"""HTTP Range header parsing according to RFC 7233."""

from __future__ import annotations
from typing import List, Optional, Tuple

from .model import ByteWindow

# (start, end) as written by the client:
#   (start, end)      "bytes=0-499"
#   (start, None)     "bytes=500-"
#   (None, suffix)    "bytes=-500"
RawSpec = Tuple[Optional[int], Optional[int]]


class MalformedRange(ValueError):
    """The header is not a ``bytes=`` range at all; callers fall back to a full body."""
    pass


def _parse_int(text: str) -> Optional[int]:
    # int() accepts "+5", " 5" and "1_000"; a byte position is plain digits
    if not text.isdigit() or not text.isascii():
        return None
    return int(text)


def parse_range_header(range_header: str) -> List[Optional[RawSpec]]:
    """
    Split a Range header into its byte-range-specs.

    Raises MalformedRange when there is no ``unit=`` prefix or the unit is
    not ``bytes``. Specs that are not valid integers come back as None so
    the caller can tell "nothing parsed" apart from "nothing satisfiable".

    Examples:
        >>> parse_range_header("bytes=0-499")
        [(0, 499)]
        >>> parse_range_header("bytes=500-, -20")
        [(500, None), (None, 20)]
        >>> parse_range_header("bytes=abc-1")
        [None]
    """
    unit, sep, specs = range_header.strip().partition("=")
    if not sep:
        raise MalformedRange(f"Range header has no unit: {range_header!r}")
    if unit.strip().lower() != "bytes":
        raise MalformedRange(f"Unsupported range unit: {unit.strip()!r}")

    parsed: List[Optional[RawSpec]] = []
    for spec in specs.split(","):
        spec = spec.strip()
        if spec.count("-") != 1:
            parsed.append(None)
            continue

        start_str, end_str = (part.strip() for part in spec.split("-"))
        if not start_str and not end_str:
            parsed.append(None)
        elif not start_str:
            suffix = _parse_int(end_str)
            parsed.append(None if suffix is None else (None, suffix))
        elif not end_str:
            start = _parse_int(start_str)
            parsed.append(None if start is None else (start, None))
        else:
            start, end = _parse_int(start_str), _parse_int(end_str)
            if start is None or end is None:
                parsed.append(None)
            else:
                parsed.append((start, end))
    return parsed


def normalize(spec: Optional[RawSpec], total_size: int) -> Optional[ByteWindow]:
    """Resolve one raw spec against the resource size.

    Returns None for anything that cannot be served: unparsed specs,
    inverted spans, a start at or past EOF, a zero-length suffix.
    """
    if spec is None or total_size <= 0:
        return None

    start, end = spec
    if start is None:
        # suffix longer than the resource means the whole resource
        if end == 0:
            return None
        start = max(total_size - end, 0)
        end = total_size - 1
    elif end is None or end > total_size - 1:
        end = total_size - 1

    if start >= total_size or start > end:
        return None
    return ByteWindow(start, end)


def coalesce(windows: List[ByteWindow]) -> List[ByteWindow]:
    """Merge overlapping or adjacent windows.

    The merged windows come back in the order their first member appeared
    in the request.
    """
    ordered = sorted(enumerate(windows), key=lambda item: item[1].start)
    merged: List[Tuple[int, ByteWindow]] = []
    for index, window in ordered:
        if merged and window.start <= merged[-1][1].end + 1:
            first_index, last = merged[-1]
            merged[-1] = (min(first_index, index),
                          ByteWindow(last.start, max(last.end, window.end)))
        else:
            merged.append((index, window))
    merged.sort(key=lambda item: item[0])
    return [window for _, window in merged]


def resolve_ranges(range_header: str, total_size: int) -> List[ByteWindow]:
    """Parse, normalize and coalesce a Range header.

    Raises MalformedRange for a non-``bytes`` header. An empty list means
    the header parsed but nothing in it is satisfiable.
    """
    windows = [w for w in (normalize(spec, total_size)
                           for spec in parse_range_header(range_header)) if w is not None]
    return coalesce(windows)
