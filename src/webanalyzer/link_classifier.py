"""Internal/external classification of the links on a page."""

import logging
from dataclasses import dataclass, field
from typing import Iterable

from bs4 import BeautifulSoup

from webanalyzer.exceptions import URLResolutionError
from webanalyzer.models import LinkProfile
from webanalyzer.url_resolver import host_of, resolve_href

logger = logging.getLogger(__name__)


@dataclass
class LinkClassification:
    """Resolved links of a page, in document order, duplicates kept."""
    internal: list[str] = field(default_factory=list)
    external: list[str] = field(default_factory=list)
    resolved: list[str] = field(default_factory=list)
    skipped: int = 0

    @property
    def internal_count(self) -> int:
        return len(self.internal)

    @property
    def external_count(self) -> int:
        return len(self.external)

    def to_profile(self, has_login_form: bool = False) -> LinkProfile:
        return LinkProfile(
            internal_links=self.internal_count,
            external_links=self.external_count,
            has_login_form=has_login_form,
        )


def extract_hrefs(soup: BeautifulSoup) -> list[str]:
    """href values of every <a> element that has one, in document order."""
    return [anchor["href"] for anchor in soup.find_all("a", href=True)]


def is_internal(url: str, base_host: str) -> bool:
    """A link is internal when it has no host or shares the page's host."""
    host = host_of(url)
    return host == "" or host == base_host


def classify_links(hrefs: Iterable[str], base_url: str) -> LinkClassification:
    """Resolve hrefs against the page URL and split them by host.

    Unresolvable hrefs are skipped. Repeated hrefs are counted each time.
    """
    base_host = host_of(base_url)
    result = LinkClassification()

    for href in hrefs:
        try:
            url = resolve_href(href, base_url)
        except URLResolutionError as e:
            logger.debug(f"Skipping link: {e}")
            result.skipped += 1
            continue

        result.resolved.append(url)
        if is_internal(url, base_host):
            result.internal.append(url)
        else:
            result.external.append(url)

    return result
