from __future__ import annotations
import mimetypes
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Union

from ..config import ServeConfig
from .model import ResourceDescriptor

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# mimetypes gets several of these wrong or leaves them out on some platforms
_STREAMING_TYPES: Dict[str, str] = {
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".mkv": "video/x-matroska",
    ".avi": "video/x-msvideo",
    ".mov": "video/quicktime",
    ".m4v": "video/mp4",
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".flac": "audio/flac",
    ".ogg": "audio/ogg",
}


def guess_content_type(filename: str) -> str:
    ext = Path(filename).suffix.lower()
    if ext in _STREAMING_TYPES:
        return _STREAMING_TYPES[ext]
    guessed, _ = mimetypes.guess_type(filename, strict=False)
    return guessed or DEFAULT_CONTENT_TYPE


def supports_ranges(content_type: str) -> bool:
    """Whether files of this type are served with byte-range support."""
    return (content_type.startswith(("video/", "audio/", "image/"))
            or content_type == "application/pdf")


def cache_control_for(content_type: str, config: ServeConfig) -> str:
    if content_type.startswith(("video/", "audio/")):
        max_age = config.media_max_age
    elif content_type.startswith("image/"):
        max_age = config.image_max_age
    else:
        max_age = config.default_max_age
    return f"public, max-age={max_age}, immutable"


def etag_for_stat(size: int, mtime_ns: int) -> str:
    """Strong ETag derived from size and modification time."""
    return f'"{size:x}-{mtime_ns // 1_000_000:x}"'


def describe_file(path: Union[str, Path], filename: str | None = None) -> ResourceDescriptor:
    """Build a ResourceDescriptor from the file on disk.

    `filename` is the original upload name; it drives the content type and
    the Content-Disposition header. Defaults to the on-disk name.
    """
    path = Path(path)
    st = os.stat(path)
    name = filename or path.name
    content_type = guess_content_type(name)
    return ResourceDescriptor(
        total_size=st.st_size,
        content_type=content_type,
        last_modified=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
        etag=etag_for_stat(st.st_size, st.st_mtime_ns),
        supports_ranges=supports_ranges(content_type),
        filename=name,
    )
