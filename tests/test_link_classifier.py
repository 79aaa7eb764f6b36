"""Tests for internal/external link classification."""

from webanalyzer.extractor import parse_markup
from webanalyzer.link_classifier import classify_links, extract_hrefs, is_internal

BASE = "https://example.com"


class TestExtractHrefs:
    """Test cases for href extraction."""

    def test_document_order_with_duplicates(self):
        soup = parse_markup("""
            <a href="/a">A</a>
            <div><a href="/b">B</a><a>no href</a></div>
            <a href="/a">A again</a>
        """)
        assert extract_hrefs(soup) == ["/a", "/b", "/a"]


class TestIsInternal:
    """Test cases for host comparison."""

    def test_same_host(self):
        assert is_internal("https://example.com/about", "example.com") is True

    def test_host_case_insensitive(self):
        assert is_internal("https://EXAMPLE.com/about", "example.com") is True

    def test_no_host(self):
        assert is_internal("mailto:info@example.com", "example.com") is True

    def test_other_host(self):
        assert is_internal("https://other.com/", "example.com") is False

    def test_subdomain_is_external(self):
        assert is_internal("https://www.example.com/", "example.com") is False


class TestClassifyLinks:
    """Test cases for classify_links."""

    def test_counts_without_dedup(self):
        """Repeated hrefs are counted every time they appear."""
        hrefs = ["/about", "/about", "https://other.com"]
        result = classify_links(hrefs, BASE)

        assert result.internal_count == 2
        assert result.external_count == 1
        assert result.resolved == [
            "https://example.com/about",
            "https://example.com/about",
            "https://other.com",
        ]

    def test_invalid_hrefs_skipped(self):
        """Totals equal the number of hrefs that resolve."""
        hrefs = [
            "",
            "#",
            "javascript:void(0)",
            "http://[::1",
            "/a%zz",
            "/ok",
            "relative/page",
            "//cdn.other.com/lib.js",
            "https://example.com/contact",
        ]
        result = classify_links(hrefs, BASE)

        assert result.skipped == 5
        assert len(result.resolved) == 4
        assert result.internal_count + result.external_count == len(result.resolved)
        assert result.internal == [
            "https://example.com/ok",
            "https://example.com/relative/page",
            "https://example.com/contact",
        ]
        assert result.external == ["https://cdn.other.com/lib.js"]

    def test_empty(self):
        result = classify_links([], BASE)
        assert result.resolved == []
        assert result.to_profile().total_links == 0

    def test_to_profile(self):
        result = classify_links(["/a", "https://other.com/b"], BASE)
        profile = result.to_profile(has_login_form=True)

        assert profile.internal_links == 1
        assert profile.external_links == 1
        assert profile.has_login_form is True
