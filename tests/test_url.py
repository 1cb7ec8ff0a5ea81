"""Tests for tracely.utils.url — URL and domain utilities."""

from __future__ import annotations

import pytest

from tracely.utils.url import (
    extract_domain,
    get_base_domain,
    is_third_party,
    normalize_host,
    request_path,
    strip_query,
)

# ── extract_domain ──────────────────────────────────────────────


class TestExtractDomain:
    """Tests for extract_domain()."""

    def test_simple_url(self) -> None:
        assert extract_domain("https://example.com/path") == "example.com"

    def test_url_with_port(self) -> None:
        assert extract_domain("https://example.com:8080/path") == "example.com"

    def test_empty_string_returns_unknown(self) -> None:
        assert extract_domain("") == "unknown"


# ── normalize_host ──────────────────────────────────────────────


class TestNormalizeHost:
    """Tests for normalize_host()."""

    def test_lowercases(self) -> None:
        assert normalize_host("Tracker.Example.COM") == "tracker.example.com"

    def test_strips_trailing_dot(self) -> None:
        assert normalize_host("tracker.test.") == "tracker.test"

    def test_accepts_full_url(self) -> None:
        assert normalize_host("https://WWW.Example.com/x?y=1") == "www.example.com"

    def test_strips_whitespace(self) -> None:
        assert normalize_host("  cdn.test  ") == "cdn.test"


# ── get_base_domain ─────────────────────────────────────────────


class TestGetBaseDomain:
    """Tests for get_base_domain()."""

    def test_strips_www(self) -> None:
        assert get_base_domain("www.example.com") == "example.com"

    def test_subdomain(self) -> None:
        assert get_base_domain("a.b.example.com") == "example.com"

    def test_two_part_tld(self) -> None:
        assert get_base_domain("shop.example.co.uk") == "example.co.uk"

    def test_single_label(self) -> None:
        assert get_base_domain("localhost") == "localhost"


# ── is_third_party ──────────────────────────────────────────────


class TestIsThirdParty:
    """Tests for is_third_party()."""

    @pytest.mark.parametrize(
        ("tracker", "site", "expected"),
        [
            ("www.google-analytics.com", "example.com", True),
            ("cdn.example.com", "example.com", False),
            ("static.example.co.uk", "www.example.co.uk", False),
            ("example.co.uk", "other.co.uk", True),
            ("CDN.Example.com", "example.com", False),
        ],
    )
    def test_registrable_domain_comparison(self, tracker: str, site: str, expected: bool) -> None:
        assert is_third_party(tracker, site) is expected


# ── strip_query / request_path ──────────────────────────────────


class TestStripQuery:
    """Tests for strip_query()."""

    def test_drops_query_and_fragment(self) -> None:
        assert strip_query("https://example.com/a/b?uid=123#top") == "https://example.com/a/b"

    def test_no_query_unchanged(self) -> None:
        assert strip_query("https://example.com/a") == "https://example.com/a"

    def test_empty(self) -> None:
        assert strip_query("") == ""


class TestRequestPath:
    """Tests for request_path()."""

    def test_path_only(self) -> None:
        assert request_path("https://t.test/collect/v1?x=1") == "/collect/v1"

    def test_no_path(self) -> None:
        assert request_path("https://t.test") == ""
