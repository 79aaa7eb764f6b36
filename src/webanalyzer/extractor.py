"""Markup feature extraction: title, headings, HTML version and login forms."""

import re
from dataclasses import dataclass, field

from bs4 import BeautifulSoup, NavigableString, Tag

from webanalyzer.constants import (
    DOCTYPE_VERSION_MARKERS,
    HEADING_TAGS,
    HTML_VERSION_HTML5,
    HTML_VERSION_UNKNOWN,
    LOGIN_TEXT_PATTERN,
)
from webanalyzer.exceptions import ParseError
from webanalyzer.models import HeadingProfile

DOCTYPE_PATTERN = re.compile(r"<!DOCTYPE\s+html[^>]*>", re.IGNORECASE)
LOGIN_TEXT_REGEX = re.compile(LOGIN_TEXT_PATTERN)


@dataclass
class PageFeatures:
    """Features pulled from one parsed page."""
    title: str = ""
    html_version: str = HTML_VERSION_UNKNOWN
    headings: HeadingProfile = field(default_factory=HeadingProfile)
    has_login_form: bool = False


def parse_markup(html: str) -> BeautifulSoup:
    """Parse markup into a document tree.

    Raises:
        ParseError: If the parser rejects the markup
    """
    try:
        return BeautifulSoup(html, "html.parser")
    except Exception as e:
        raise ParseError(str(e) or type(e).__name__, cause=e) from e


def detect_html_version(html: str) -> str:
    """Classify the first doctype declaration of the raw markup."""
    match = DOCTYPE_PATTERN.search(html)
    if not match:
        return HTML_VERSION_UNKNOWN

    doctype = match.group(0)
    for marker, version in DOCTYPE_VERSION_MARKERS:
        if marker in doctype:
            return version
    if "dtd" not in doctype.lower():
        return HTML_VERSION_HTML5
    return HTML_VERSION_UNKNOWN


def extract_title(soup: BeautifulSoup) -> str:
    """Text of the first <title> element's first text node, or ''."""
    title = soup.find("title")
    if title is None:
        return ""
    for child in title.children:
        # Comments and other special strings subclass NavigableString
        if type(child) is NavigableString:
            return str(child)
    return ""


def count_headings(soup: BeautifulSoup) -> HeadingProfile:
    """Count h1..h6 elements in a single pass over the tree."""
    profile = HeadingProfile()
    for element in soup.descendants:
        if isinstance(element, Tag) and element.name in HEADING_TAGS:
            profile.increment(element.name)
    return profile


def has_login_text(html: str) -> bool:
    """True if the raw markup mentions login / sign in anywhere."""
    return LOGIN_TEXT_REGEX.search(html) is not None


def has_password_input(soup: BeautifulSoup) -> bool:
    """True if the tree contains an <input type="password">."""
    return soup.find("input", attrs={"type": "password"}) is not None


def detect_login_form(soup: BeautifulSoup, html: str) -> bool:
    """Heuristic login form detection.

    Either signal is enough, so footers and nav links that say "Sign in"
    produce false positives.
    """
    return has_login_text(html) or has_password_input(soup)


def extract_features(soup: BeautifulSoup, html: str) -> PageFeatures:
    """Run every extractor over an already parsed page."""
    return PageFeatures(
        title=extract_title(soup),
        html_version=detect_html_version(html),
        headings=count_headings(soup),
        has_login_form=detect_login_form(soup, html),
    )
