"""Tests for sap.content_type: media type interning and route-based detection."""

import pytest

from sap.content_type import (
    PAGE_MEDIA_TYPE,
    ContentTypeDetector,
    MediaTypeCache,
    route_extension,
)


class TestMediaTypeCache:
    def test_find_or_cache_returns_identical_buffer(self) -> None:
        cache = MediaTypeCache()
        first = cache.find_or_cache("text/css")
        # A distinct but equal string must still hit the same entry.
        second = cache.find_or_cache("".join(["text/", "css"]))
        assert first == b"text/css"
        assert first is second

    def test_distinct_types_get_distinct_entries(self) -> None:
        cache = MediaTypeCache()
        cache.find_or_cache("text/css")
        cache.find_or_cache("image/png")
        assert len(cache) == 2
        assert "text/css" in cache
        assert "text/plain" not in cache

    def test_append_only(self) -> None:
        cache = MediaTypeCache()
        first = cache.find_or_cache("text/css")
        for _ in range(3):
            cache.find_or_cache("image/png")
        assert cache.find_or_cache("text/css") is first
        assert len(cache) == 2


class TestRouteExtension:
    @pytest.mark.parametrize(
        ("route", "extension"),
        [
            ("/", None),
            ("/about", None),
            ("/style.css", "css"),
            ("/assets/app.min.js", "js"),
            ("/v1.2/app", None),
            ("/.env", "env"),
        ],
    )
    def test_trailing_segment_only(self, route: str, extension: str | None) -> None:
        assert route_extension(route) == extension


class TestContentTypeDetector:
    def test_known_extension(self) -> None:
        detector = ContentTypeDetector()
        assert detector.detect("/style.css") == b"text/css"
        assert detector.detect("/logo.png") == b"image/png"

    def test_page_route(self) -> None:
        detector = ContentTypeDetector()
        assert detector.detect("/") is PAGE_MEDIA_TYPE
        assert detector.detect("/about") == b"text/html; charset=utf-8"

    def test_page_route_not_cached(self) -> None:
        detector = ContentTypeDetector()
        detector.detect("/")
        assert len(detector.cache) == 0

    def test_unknown_extension_returns_none(self) -> None:
        detector = ContentTypeDetector()
        assert detector.detect("/data.nosuchext") is None

    def test_repeated_extension_shares_buffer(self) -> None:
        detector = ContentTypeDetector()
        first = detector.detect("/a.css")
        second = detector.detect("/nested/b.css")
        assert first is second
        assert len(detector.cache) == 1

    def test_shared_cache(self) -> None:
        cache = MediaTypeCache()
        a = ContentTypeDetector(cache).detect("/a.css")
        b = ContentTypeDetector(cache).detect("/b.css")
        assert a is b
