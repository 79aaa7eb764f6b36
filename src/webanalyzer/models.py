"""Data models for website analysis."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from http import HTTPStatus
from typing import Optional

from webanalyzer.constants import (
    BROKEN_STATUS_THRESHOLD,
    HEADING_TAGS,
    UNREACHABLE_STATUS_CODE,
    UNREACHABLE_STATUS_TEXT,
)


class AnalysisStatus(str, Enum):
    """Status of a target's most recent analysis."""
    QUEUED = "queued"
    RUNNING = "running"
    DONE = "done"
    ERROR = "error"


@dataclass
class AnalysisTarget:
    """A website registered for analysis."""

    id: int
    url: str
    status: AnalysisStatus = AnalysisStatus.QUEUED
    title: Optional[str] = None
    html_version: Optional[str] = None
    error_message: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    owner_id: Optional[int] = None

    @property
    def is_running(self) -> bool:
        return self.status == AnalysisStatus.RUNNING

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "url": self.url,
            "status": self.status.value,
            "title": self.title,
            "html_version": self.html_version,
            "error_message": self.error_message,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "owner_id": self.owner_id,
        }


@dataclass
class HeadingProfile:
    """Heading tag counts, one counter per level."""

    h1: int = 0
    h2: int = 0
    h3: int = 0
    h4: int = 0
    h5: int = 0
    h6: int = 0

    def increment(self, tag: str) -> None:
        if tag not in HEADING_TAGS:
            raise ValueError(f"Not a heading tag: {tag}")
        setattr(self, tag, getattr(self, tag) + 1)

    @property
    def total(self) -> int:
        return sum(self.to_dict().values())

    def to_dict(self) -> dict[str, int]:
        return {tag: getattr(self, tag) for tag in HEADING_TAGS}


@dataclass
class LinkProfile:
    """Link counts and the login form flag for a page."""

    internal_links: int = 0
    external_links: int = 0
    has_login_form: bool = False

    @property
    def total_links(self) -> int:
        return self.internal_links + self.external_links

    def to_dict(self) -> dict:
        return {
            "internal_links": self.internal_links,
            "external_links": self.external_links,
            "has_login_form": self.has_login_form,
        }


@dataclass(frozen=True)
class BrokenLinkRecord:
    """A link whose probe failed or answered with an error status."""

    url: str
    status_code: int

    @property
    def status_text(self) -> str:
        if self.status_code == UNREACHABLE_STATUS_CODE:
            return UNREACHABLE_STATUS_TEXT
        try:
            return HTTPStatus(self.status_code).phrase
        except ValueError:
            return f"HTTP {self.status_code}"

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "status_code": self.status_code,
            "status_text": self.status_text,
        }


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of probing a single link."""

    url: str
    status_code: int = UNREACHABLE_STATUS_CODE
    error: Optional[str] = None

    @property
    def is_broken(self) -> bool:
        return self.error is not None or self.status_code >= BROKEN_STATUS_THRESHOLD

    def to_broken_link(self) -> BrokenLinkRecord:
        code = UNREACHABLE_STATUS_CODE if self.error is not None else self.status_code
        return BrokenLinkRecord(url=self.url, status_code=code)


@dataclass(frozen=True)
class AnalysisResult:
    """Immutable snapshot of one completed run, handed to storage."""

    title: str
    html_version: str
    headings: HeadingProfile
    links: LinkProfile
    broken_links: tuple[BrokenLinkRecord, ...] = ()


@dataclass
class AnalysisReport:
    """A target together with its latest stored results."""

    target: AnalysisTarget
    headings: Optional[HeadingProfile] = None
    links: Optional[LinkProfile] = None
    broken_links: list[BrokenLinkRecord] = field(default_factory=list)

    @property
    def inaccessible_links(self) -> int:
        return len(self.broken_links)

    def to_dict(self) -> dict:
        data = self.target.to_dict()
        data["heading_counts"] = self.headings.to_dict() if self.headings else None
        data.update(self.links.to_dict() if self.links else {
            "internal_links": None,
            "external_links": None,
            "has_login_form": None,
        })
        data["inaccessible_links"] = self.inaccessible_links
        data["broken_links"] = [link.to_dict() for link in self.broken_links]
        return data
