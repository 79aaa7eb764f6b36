"""Tests for href resolution and target URL validation."""

import pytest

from webanalyzer.exceptions import InvalidTargetURL, URLResolutionError
from webanalyzer.url_resolver import host_of, is_navigable, resolve_href, validate_target_url

BASE = "https://example.com/blog/post"


class TestIsNavigable:
    """Test cases for the non-navigable href filter."""

    @pytest.mark.parametrize("href", ["", "#", "  ", "javascript:void(0)", "JavaScript:alert(1)", None])
    def test_rejects_non_navigable(self, href):
        assert is_navigable(href) is False

    @pytest.mark.parametrize("href", ["/about", "#top", "https://other.com", "mailto:a@b.com"])
    def test_accepts_navigable(self, href):
        assert is_navigable(href) is True


class TestResolveHref:
    """Test cases for resolve_href."""

    def test_absolute_url_unchanged(self):
        """Absolute hrefs are returned as they are."""
        assert resolve_href("https://other.com", BASE) == "https://other.com"
        assert resolve_href("HTTP://Other.com/A?b=1", BASE) == "HTTP://Other.com/A?b=1"

    def test_root_relative(self):
        assert resolve_href("/about", BASE) == "https://example.com/about"

    def test_path_relative(self):
        assert resolve_href("other", BASE) == "https://example.com/blog/other"
        assert resolve_href("../up", BASE) == "https://example.com/up"

    def test_protocol_relative_inherits_scheme(self):
        assert resolve_href("//cdn.example.net/lib.js", BASE) == "https://cdn.example.net/lib.js"

    def test_query_and_fragment(self):
        assert resolve_href("?page=2", BASE) == "https://example.com/blog/post?page=2"
        assert resolve_href("#comments", BASE) == "https://example.com/blog/post#comments"

    def test_surrounding_whitespace_ignored(self):
        assert resolve_href("  /about\n", BASE) == "https://example.com/about"

    @pytest.mark.parametrize("href", ["", "#", "javascript:void(0)"])
    def test_non_navigable_raises(self, href):
        with pytest.raises(URLResolutionError):
            resolve_href(href, BASE)

    @pytest.mark.parametrize("href", [
        "http://[::1",            # broken IPv6 literal
        "http://example.com:port/",  # invalid port
        "/a%zz",                  # invalid percent escape
        "/tab\there",             # control character
    ])
    def test_malformed_raises(self, href):
        """Malformed hrefs fail resolution instead of crashing."""
        with pytest.raises(URLResolutionError):
            resolve_href(href, BASE)


class TestHostOf:
    """Test cases for host_of."""

    def test_host_with_port(self):
        assert host_of("http://Example.com:8080/x") == "example.com:8080"

    def test_credentials_dropped(self):
        assert host_of("https://user:pw@example.com/") == "example.com"

    def test_no_host(self):
        assert host_of("mailto:someone@example.com") == ""


class TestValidateTargetURL:
    """Test cases for target URL validation."""

    def test_valid_url(self):
        assert validate_target_url(" https://example.com ") == "https://example.com"

    @pytest.mark.parametrize("url", [
        "",
        "example.com",
        "ftp://example.com/file",
        "https://",
        "http://[::1",
    ])
    def test_invalid_urls(self, url):
        with pytest.raises(InvalidTargetURL):
            validate_target_url(url)
