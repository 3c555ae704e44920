"""HTTP protocol pieces: request parsing, responses, status codes, MIME types."""

from .mime_types import get_extension, lookup as lookup_content_type
from .request import HTTPParseError, HTTPRequest, RequestParser, parse_request
from .response import (
    HTTPResponse,
    ResponseBuilder,
    bad_request,
    error_response,
    format_http_date,
    http_date,
    internal_error,
    method_not_allowed,
    not_found,
)
from .status_codes import HTTPStatus

__all__ = [
    "HTTPParseError",
    "HTTPRequest",
    "HTTPResponse",
    "HTTPStatus",
    "RequestParser",
    "ResponseBuilder",
    "bad_request",
    "error_response",
    "format_http_date",
    "get_extension",
    "http_date",
    "internal_error",
    "lookup_content_type",
    "method_not_allowed",
    "not_found",
    "parse_request",
]
