"""Resolution of raw hrefs into absolute URLs."""

import re
from typing import Optional
from urllib.parse import SplitResult, urljoin, urlsplit

from webanalyzer.constants import NON_NAVIGABLE_HREFS, SCRIPT_HREF_PREFIX
from webanalyzer.exceptions import InvalidTargetURL, URLResolutionError

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_BAD_PERCENT_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")

ALLOWED_TARGET_SCHEMES = ("http", "https")


def is_navigable(href: Optional[str]) -> bool:
    """Return False for hrefs that never lead anywhere.

    Empty values, a bare fragment marker and ``javascript:`` pseudo-links
    are not navigable.
    """
    if href is None:
        return False
    value = href.strip()
    if value in NON_NAVIGABLE_HREFS:
        return False
    return not value.lower().startswith(SCRIPT_HREF_PREFIX)


def _split(href: str) -> SplitResult:
    if _CONTROL_CHARS.search(href):
        raise URLResolutionError(href, "contains control characters")
    if _BAD_PERCENT_ESCAPE.search(href):
        raise URLResolutionError(href, "invalid percent escape")
    try:
        parts = urlsplit(href)
        # Port is parsed lazily; touching it validates it
        parts.port
    except ValueError as e:
        raise URLResolutionError(href, str(e)) from e
    return parts


def resolve_href(href: Optional[str], base_url: str) -> str:
    """Resolve an href against the URL of the page it was found on.

    Args:
        href: Raw href attribute value
        base_url: Absolute URL of the page under analysis

    Returns:
        Absolute URL. Hrefs that already carry a scheme are returned unchanged.

    Raises:
        URLResolutionError: If the href is not navigable or is malformed
    """
    if not is_navigable(href):
        raise URLResolutionError(href or "", "not navigable")

    value = href.strip()
    parts = _split(value)
    if parts.scheme:
        return value

    return urljoin(base_url, value)


def host_of(url: str) -> str:
    """Host part of a URL (port kept, credentials dropped), lowercased."""
    netloc = urlsplit(url).netloc
    return netloc.rpartition("@")[2].lower()


def validate_target_url(url: str) -> str:
    """Check that a URL can be registered as an analysis target.

    Returns:
        The stripped URL

    Raises:
        InvalidTargetURL: If the URL is not an absolute http(s) URL with a host
    """
    value = (url or "").strip()
    if not value:
        raise InvalidTargetURL(url, "URL is empty")
    try:
        parts = _split(value)
    except URLResolutionError as e:
        raise InvalidTargetURL(url, e.reason) from e
    if parts.scheme.lower() not in ALLOWED_TARGET_SCHEMES:
        raise InvalidTargetURL(url, "scheme must be http or https")
    if not parts.hostname:
        raise InvalidTargetURL(url, "URL has no host")
    return value
