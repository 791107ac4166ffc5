"""WSGI application serving a directory of stored files through the RangeResponder."""

from __future__ import annotations
import json
from pathlib import Path
from typing import Optional, Union

from loguru import logger
from werkzeug.exceptions import HTTPException
from werkzeug.routing import Map, Rule
from werkzeug.security import safe_join
from werkzeug.wrappers import Request, Response

from .config import DEFAULT_CONFIG, ServeConfig
from .core.mime import describe_file
from .core.model import RangeRequest, ResourceDescriptor
from .core.responder import RangeResponder
from .io.local import open_window


class FileResponse(Response):
    """Response whose headers come entirely from the responder."""
    default_mimetype = None
    automatically_set_content_length = False

    def get_wsgi_headers(self, environ):
        headers = super().get_wsgi_headers(environ)
        # werkzeug strips entity headers from a 304; Last-Modified is a validator and stays
        if self.status_code == 304 and "Last-Modified" in self.headers and "Last-Modified" not in headers:
            headers["Last-Modified"] = self.headers["Last-Modified"]
        return headers


class RangeServerApp:
    """Serves ``root/<name>`` with byte-range support and ``/<name>/info`` metadata.

    Names are looked up directly under `root`; the upload pipeline and the
    document store that map short ids to files live elsewhere.
    """

    def __init__(self, root: Union[Path, str], config: ServeConfig = DEFAULT_CONFIG):
        self.root = Path(root).resolve()
        self.config = config
        self.responder = RangeResponder(config)
        self.url_map = Map([
            Rule("/<name>", endpoint="file", methods=["GET", "HEAD"]),
            Rule("/<name>/info", endpoint="info", methods=["GET"]),
        ])

    def resolve(self, name: str) -> Optional[Path]:
        """Path of a stored file, or None when the name is unsafe or absent."""
        joined = safe_join(str(self.root), name)
        if joined is None:
            return None
        path = Path(joined)
        return path if path.is_file() else None

    # ------------------------------------------------------------------ #
    def handle(self, request: Request) -> Response:
        """Answer one request. Usable directly as a werkzeug request handler."""
        adapter = self.url_map.bind_to_environ(request.environ)
        try:
            endpoint, values = adapter.match()
            path = self.resolve(values["name"])
            if path is None:
                response = Response("File not found", status=404)
            elif endpoint == "info":
                response = self.file_info(path)
            else:
                response = self.serve_file(request, path)
        except HTTPException as e:
            response = e.get_response(request.environ)
        except Exception:
            logger.exception("File serving error for {}", request.path)
            response = Response("Internal server error", status=500)

        logger.debug("{} {} -> {}", request.method, request.path, response.status_code)
        return response

    def serve_file(self, request: Request, path: Path, descriptor: Optional[ResourceDescriptor] = None) -> Response:
        try:
            descriptor = descriptor or describe_file(path)
            decided = self.responder.respond(descriptor, RangeRequest.from_headers(request.headers, request.method))
            if decided.window is not None:
                body = open_window(path, decided.window, self.config.chunk_size)
            else:
                body = [decided.body] if decided.body else []
        except FileNotFoundError:
            # removed between lookup and open
            return Response("File not found on disk", status=404)

        return FileResponse(body, status=decided.status, headers=decided.headers,
                            direct_passthrough=decided.window is not None)

    def file_info(self, path: Path) -> Response:
        descriptor = describe_file(path)
        payload = {
            "name": path.name,
            "originalName": descriptor.filename,
            "size": descriptor.total_size,
            "mimeType": descriptor.content_type,
            "supportsRangeRequests": descriptor.supports_ranges,
            "lastModified": descriptor.last_modified.isoformat(),
            "etag": descriptor.etag,
        }
        return Response(json.dumps(payload), mimetype="application/json")

    # ------------------------------------------------------------------ #
    def __call__(self, environ, start_response):
        response = self.handle(Request(environ))
        return response(environ, start_response)


def create_app(root: Union[Path, str], config: ServeConfig = DEFAULT_CONFIG) -> RangeServerApp:
    return RangeServerApp(root, config)
