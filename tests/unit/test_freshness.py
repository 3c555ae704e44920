"""
Unit tests for validation headers and conditional GET evaluation.
"""

import pytest

from staticserver.config import ServerConfig
from staticserver.core.filesystem import FileMetadata
from staticserver.handlers.freshness import (
    FreshnessEvaluator,
    ValidationHeaders,
    weak_etag,
)


# 2024-01-02 09:30:12 UTC
MTIME = 1704187812.0
METADATA = FileMetadata(
    size=500,
    modified_at=MTIME,
    modified_ns=1704187812 * 1_000_000_000,
    is_directory=False,
)
NOW = 1704193200.0  # 2024-01-02 11:00:00 UTC


@pytest.fixture
def evaluator() -> FreshnessEvaluator:
    return FreshnessEvaluator(ServerConfig())


class TestWeakETag:
    """Tests for weak_etag()."""

    def test_format(self):
        """Size and millisecond mtime, both in hex, behind W/."""
        assert weak_etag(METADATA) == 'W/"1f4-18cc98258a0"'

    def test_changes_with_size(self):
        bigger = FileMetadata(501, MTIME, METADATA.modified_ns, False)
        assert weak_etag(bigger) != weak_etag(METADATA)

    def test_changes_with_sub_second_mtime(self):
        """Millisecond resolution catches edits within the same second."""
        later = FileMetadata(500, MTIME, METADATA.modified_ns + 5_000_000, False)
        assert weak_etag(later) != weak_etag(METADATA)


class TestComputeHeaders:
    """Tests for FreshnessEvaluator.compute_headers()."""

    def test_all_headers_enabled(self, evaluator):
        validation = evaluator.compute_headers(METADATA, now=NOW)

        assert validation.etag == 'W/"1f4-18cc98258a0"'
        assert validation.last_modified == "Tue, 02 Jan 2024 09:30:12 GMT"
        assert validation.cache_control == "public, max-age=3600"
        assert validation.expires == "Tue, 02 Jan 2024 12:00:00 GMT"

    def test_max_age_is_configurable(self):
        evaluator = FreshnessEvaluator(ServerConfig(max_age=60))
        validation = evaluator.compute_headers(METADATA, now=NOW)

        assert validation.cache_control == "public, max-age=60"
        assert validation.expires == "Tue, 02 Jan 2024 11:01:00 GMT"

    @pytest.mark.parametrize("setting,field", [
        ("etag", "etag"),
        ("last_modified", "last_modified"),
        ("cache_control", "cache_control"),
        ("expires", "expires"),
    ])
    def test_disabled_header_is_omitted(self, setting, field):
        evaluator = FreshnessEvaluator(ServerConfig(**{setting: False}))
        validation = evaluator.compute_headers(METADATA, now=NOW)

        assert getattr(validation, field) is None

    def test_as_headers_skips_disabled(self):
        validation = ValidationHeaders(etag='W/"1-1"', cache_control="public, max-age=1")

        assert validation.as_headers() == {
            "Cache-Control": "public, max-age=1",
            "ETag": 'W/"1-1"',
        }

    def test_identical_metadata_gives_identical_validators(self, evaluator):
        """Repeated requests on an unmodified file agree on ETag and Last-Modified."""
        first = evaluator.compute_headers(METADATA, now=NOW)
        second = evaluator.compute_headers(METADATA, now=NOW + 30)

        assert first.etag == second.etag
        assert first.last_modified == second.last_modified


class TestIsFresh:
    """Tests for FreshnessEvaluator.is_fresh()."""

    @pytest.fixture
    def validation(self, evaluator) -> ValidationHeaders:
        return evaluator.compute_headers(METADATA, now=NOW)

    def test_no_conditional_headers_is_never_fresh(self, evaluator, validation):
        assert evaluator.is_fresh({}, validation) is False
        assert evaluator.is_fresh({"if-none-match": ""}, validation) is False

    def test_matching_etag(self, evaluator, validation):
        headers = {"if-none-match": validation.etag}
        assert evaluator.is_fresh(headers, validation) is True

    def test_different_etag(self, evaluator, validation):
        headers = {"if-none-match": 'W/"1f4-0"'}
        assert evaluator.is_fresh(headers, validation) is False

    def test_matching_last_modified(self, evaluator, validation):
        headers = {"if-modified-since": validation.last_modified}
        assert evaluator.is_fresh(headers, validation) is True

    def test_newer_date_is_not_fresh(self, evaluator, validation):
        """If-Modified-Since is compared as a literal string, not as a date."""
        headers = {"if-modified-since": "Wed, 03 Jan 2024 00:00:00 GMT"}
        assert evaluator.is_fresh(headers, validation) is False

    def test_both_must_match(self, evaluator, validation):
        headers = {
            "if-none-match": validation.etag,
            "if-modified-since": "Mon, 01 Jan 2024 00:00:00 GMT",
        }
        assert evaluator.is_fresh(headers, validation) is False

        headers["if-modified-since"] = validation.last_modified
        assert evaluator.is_fresh(headers, validation) is True

    def test_etag_disabled_never_matches(self):
        evaluator = FreshnessEvaluator(ServerConfig(etag=False))
        validation = evaluator.compute_headers(METADATA, now=NOW)

        headers = {"if-none-match": 'W/"1f4-18cc98258a0"'}
        assert evaluator.is_fresh(headers, validation) is False
