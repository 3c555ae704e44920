"""
=============================================================================
REQUEST ROUTER
=============================================================================

Decides what a resolved path IS before anything is served:

    ┌───────────────────────────────┬─────────────────────────────────────┐
    │ Path on disk                  │ Outcome                             │
    ├───────────────────────────────┼─────────────────────────────────────┤
    │ does not exist / unreadable   │ 404 Not Found page                  │
    │ file, URL ends in "/"         │ 404 Not Found page                  │
    │ directory, URL has no "/"     │ 301 to the same URL plus "/"        │
    │ directory, URL ends in "/"    │ index page if present, else listing │
    │ anything else                 │ ResponsePipeline (the file itself)  │
    └───────────────────────────────┴─────────────────────────────────────┘

=============================================================================
WHY REDIRECT "/docs" TO "/docs/"?
=============================================================================

Relative links resolve against the URL, not the filesystem:

    Page served at /docs      <a href="guide.html">  →  /guide.html  ✗
    Page served at /docs/     <a href="guide.html">  →  /docs/guide.html ✓

So a directory is only ever served under its slash-terminated URL.

=============================================================================
"""

import logging
import os
from html import escape
from urllib.parse import quote

from ..config import ServerConfig
from ..core.filesystem import list_directory, stat_path
from ..http.request import HTTPRequest
from ..http.response import (
    HTTPResponse, ResponseBuilder, HTTPStatus,
    not_found,
)
from .static import ResponsePipeline


logger = logging.getLogger(__name__)


class NotFound(Exception):
    """The requested path does not exist or cannot be inspected."""


class DirectoryReadFailure(Exception):
    """A directory exists but its entries could not be enumerated."""


class RequestRouter:
    """
    Routes a resolved filesystem path to a response.

    Usage:
        router = RequestRouter(config, ResponsePipeline(config))
        response = await router.route("/srv/www/docs", request)
    """

    def __init__(self, config: ServerConfig, pipeline: ResponsePipeline = None):
        self.config = config
        self.pipeline = pipeline or ResponsePipeline(config)

    async def route(self, resolved_path: str, request: HTTPRequest) -> HTTPResponse:
        """
        Produce the response for one request.

        Args:
            resolved_path: Absolute filesystem path of the request.
            request: The client request.
        """
        try:
            metadata = await self._stat(resolved_path)
        except NotFound as e:
            logger.debug(f"Not found: {request.target} ({e})")
            return not_found(request.target)

        if not metadata.is_directory:
            # "/hello.txt/" names a directory that does not exist.
            if request.has_trailing_slash:
                logger.debug(f"Not found: {request.target} (not a directory)")
                return not_found(request.target)
            return await self.pipeline.respond(resolved_path, request)

        if not request.has_trailing_slash:
            return self._redirect_to_directory(request)

        index_path = os.path.join(resolved_path, self.config.index_page)
        if await self._is_regular_file(index_path):
            return await self.pipeline.respond(index_path, request)

        try:
            return await self._listing(resolved_path, request.path)
        except DirectoryReadFailure as e:
            logger.error(f"Cannot list {resolved_path}: {e}")
            return (ResponseBuilder()
                .status(HTTPStatus.INTERNAL_SERVER_ERROR)
                .text(str(e))
                .build())

    # =========================================================================
    # HELPERS
    # =========================================================================

    async def _stat(self, path: str):
        try:
            return await stat_path(path)
        except OSError as e:
            raise NotFound(str(e)) from e

    async def _is_regular_file(self, path: str) -> bool:
        try:
            metadata = await stat_path(path)
        except OSError:
            return False
        return metadata.is_regular

    def _redirect_to_directory(self, request: HTTPRequest) -> HTTPResponse:
        location = quote(request.path) + "/"
        if request.query:
            location += "?" + request.query
        logger.debug(f"Redirecting {request.target} to {location}")
        return ResponseBuilder().redirect(location).build()

    async def _listing(self, directory: str, url_path: str) -> HTTPResponse:
        """
        HTML index of a directory without an index page.

            <h1>Index of /docs/</h1>
            <p><a href='/docs/api/'>api/</a></p>
            <p><a href='/docs/guide.html'>guide.html</a></p>

        Raises:
            DirectoryReadFailure: If the directory cannot be enumerated.
        """
        try:
            entries = await list_directory(directory)
        except OSError as e:
            raise DirectoryReadFailure(str(e)) from e

        parts = [f"<h1>Index of {escape(url_path)}</h1>"]
        for entry in entries:
            name = entry.name + ("/" if entry.is_directory else "")
            href = escape(quote(url_path + name), quote=True)
            parts.append(f"<p><a href='{href}'>{escape(name)}</a></p>")

        return ResponseBuilder().html("".join(parts)).build()
