"""Request handlers: routing, the file response pipeline and its stages."""

from .compression import CompressionChoice, CompressionNegotiator
from .freshness import FreshnessEvaluator, ValidationHeaders, weak_etag
from .ranges import (
    ByteRange, MalformedRange, RangeError, RangeNotSatisfiable, parse_range,
)
from .router import DirectoryReadFailure, NotFound, RequestRouter
from .static import ResponsePipeline

__all__ = [
    "ByteRange",
    "CompressionChoice",
    "CompressionNegotiator",
    "DirectoryReadFailure",
    "FreshnessEvaluator",
    "MalformedRange",
    "NotFound",
    "RangeError",
    "RangeNotSatisfiable",
    "RequestRouter",
    "ResponsePipeline",
    "ValidationHeaders",
    "parse_range",
    "weak_etag",
]
