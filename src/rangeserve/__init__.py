"""rangeserve - HTTP byte-range serving for stored media files."""

from loguru import logger

from .config import ServeConfig, DEFAULT_CONFIG                         # re-export
from .core.model import (                                                 # re-export
    ResourceDescriptor, RangeRequest, ByteWindow, Response, ResponseDecision,
    NotModified, FullContent, PartialContent, RangeNotSatisfiable, MalformedRangeFallback,
    RangeServeError, StreamAbortedError,
)
from .core.responder import RangeResponder, decide, respond
from .core.mime import describe_file, guess_content_type, supports_ranges
from .io import open_window, open_window_async

# silent unless the application opts in (see rangeserve.log.setup_logging)
logger.disable("rangeserve")


def serve_window(path, request: RangeRequest, *, filename: str | None = None,
                 config: ServeConfig = DEFAULT_CONFIG):
    """Describe `path`, decide the response and open the matching window stream.

    Returns ``(response, stream)``; the stream yields nothing for responses
    without a body. The caller owns the stream and must close it.
    """
    response = RangeResponder(config).respond(describe_file(path, filename), request)
    return response, open_window(path, response.window, config.chunk_size)


__all__ = [
    "ServeConfig", "DEFAULT_CONFIG",
    "ResourceDescriptor", "RangeRequest", "ByteWindow", "Response", "ResponseDecision",
    "NotModified", "FullContent", "PartialContent", "RangeNotSatisfiable", "MalformedRangeFallback",
    "RangeServeError", "StreamAbortedError",
    "RangeResponder", "decide", "respond",
    "describe_file", "guess_content_type", "supports_ranges",
    "open_window", "open_window_async", "serve_window",
]
