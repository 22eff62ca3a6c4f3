"""Catch-all handler serving files and directory listings under one root."""

from __future__ import annotations

import logging
import stat
from datetime import datetime
from pathlib import Path

from errors import FileServerError, IOFailureError, NotFoundError, PathEscapeError
from listing import read_entries, render_listing
from path_resolver import PathResolver, ResolvedRequest
from request import HTTPRequest
from response import HTTPResponse, error_response
from utils import display_path, get_content_type

logger = logging.getLogger(__name__)


class FileServerHandler:
    """Resolves each request against the root, then serves a file or a listing.

    Holds only the resolver built from the root at startup, so one instance is
    shared by every worker thread.
    """

    def __init__(self, root_directory: str | Path, home: Path | None = None) -> None:
        self._resolver = PathResolver(root_directory)
        self._home = home

    @property
    def root(self) -> Path:
        return self._resolver.root

    def __call__(self, request: HTTPRequest) -> HTTPResponse:
        logger.info("[%s] %s %s", datetime.now().astimezone().isoformat(), request.method, request.path)
        try:
            resolved = self._resolver.resolve(request.path)
            if not resolved.permitted:
                raise PathEscapeError()
            return self._respond(resolved)
        except FileServerError as exc:
            if isinstance(exc, PathEscapeError):
                logger.warning("Rejected path escaping root: %r", request.path)
            elif exc.status_code >= 500:
                logger.error("Failed to serve %r: %s", request.path, exc.__cause__ or exc)
            return error_response(exc.status_code, exc.public_message)

    def _respond(self, resolved: ResolvedRequest) -> HTTPResponse:
        target = resolved.absolute_target
        try:
            target_stat = target.stat()
        except (FileNotFoundError, NotADirectoryError) as exc:
            raise NotFoundError() from exc
        except OSError as exc:
            raise IOFailureError() from exc

        if stat.S_ISDIR(target_stat.st_mode):
            return self._serve_listing(resolved)
        if not stat.S_ISREG(target_stat.st_mode):
            # sockets, FIFOs and devices would block or never end
            raise NotFoundError()
        return self._serve_file(target)

    def _serve_file(self, target: Path) -> HTTPResponse:
        try:
            file_obj = target.open("rb")
        except FileNotFoundError as exc:
            raise NotFoundError() from exc
        except OSError as exc:
            raise IOFailureError() from exc

        return HTTPResponse(
            status_code=200,
            headers={"Content-Type": get_content_type(target)},
            file=file_obj,
        )

    def _serve_listing(self, resolved: ResolvedRequest) -> HTTPResponse:
        directory = resolved.absolute_target
        try:
            entries = read_entries(directory, resolved.requested_path)
        except OSError as exc:
            raise IOFailureError("Unable to read directory") from exc

        page = render_listing(
            resolved.requested_path,
            display_path(directory, self._home),
            entries,
            include_parent=directory != self.root,
        )
        return HTTPResponse(
            status_code=200,
            headers={"Content-Type": "text/html; charset=utf-8"},
            body=page,
        )
