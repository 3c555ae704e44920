"""
Unit tests for extension → Content-Type resolution.
"""

import pytest

from staticserver.http.mime_types import (
    DEFAULT_CONTENT_TYPE,
    MIME_TYPES,
    get_extension,
    is_text_type,
    lookup,
)


class TestGetExtension:
    """Tests for get_extension()."""

    @pytest.mark.parametrize("path,expected", [
        ("/site/index.html", ".html"),
        ("/site/app.min.JS", ".js"),
        ("style.CSS", ".css"),
        ("/site/Makefile", ""),
        ("/site/.hidden", ""),
        ("/dir.d/file", ""),
    ])
    def test_extension(self, path, expected):
        """Only the last suffix of the final segment counts, lowercased."""
        assert get_extension(path) == expected


class TestLookup:
    """Tests for lookup()."""

    def test_html_gets_charset(self):
        assert lookup("index.html") == "text/html; charset=utf-8"

    def test_css_and_js(self):
        assert lookup("/a/style.css") == "text/css; charset=utf-8"
        assert lookup("/a/app.js") == "text/javascript; charset=utf-8"

    def test_json_is_text_like(self):
        """application/json is textual and carries a charset."""
        assert lookup("data.json") == "application/json; charset=utf-8"

    def test_binary_types_have_no_charset(self):
        assert lookup("logo.png") == "image/png"
        assert lookup("font.woff2") == "font/woff2"
        assert lookup("movie.mp4") == "video/mp4"

    def test_uppercase_extension(self):
        assert lookup("PHOTO.JPG") == "image/jpeg"

    def test_unknown_extension_falls_back_to_plain_text(self):
        assert lookup("archive.unknownext") == DEFAULT_CONTENT_TYPE
        assert lookup("README") == "text/plain; charset=utf-8"

    def test_table_is_read_only(self):
        """The table is shared by every request and cannot be modified."""
        with pytest.raises(TypeError):
            MIME_TYPES[".new"] = "application/x-new"


class TestIsTextType:
    """Tests for is_text_type()."""

    def test_text_types(self):
        assert is_text_type("text/plain")
        assert is_text_type("image/svg+xml")

    def test_binary_types(self):
        assert not is_text_type("image/png")
        assert not is_text_type("application/zip")
