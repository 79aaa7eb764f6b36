# src/webanalyzer/database.py
"""Storage layer for analysis targets and their results."""

import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, Optional, List, Tuple
import logging

from webanalyzer.config import settings
from webanalyzer.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, SORTABLE_COLUMNS
from webanalyzer.exceptions import AnalysisConflict, PersistenceError, TargetNotFound
from webanalyzer.lifecycle import as_status, check_error_message, check_transition
from webanalyzer.models import (
    AnalysisReport,
    AnalysisResult,
    AnalysisStatus,
    AnalysisTarget,
    BrokenLinkRecord,
    HeadingProfile,
    LinkProfile,
)
from webanalyzer.url_resolver import validate_target_url

logger = logging.getLogger(__name__)

CREATE_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS websites (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    url TEXT NOT NULL,
    title TEXT,
    html_version TEXT,
    status TEXT NOT NULL DEFAULT 'queued'
        CHECK (status IN ('queued', 'running', 'done', 'error')),
    error_message TEXT,
    owner_id INTEGER,
    created_at TIMESTAMP NOT NULL,
    updated_at TIMESTAMP NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_websites_url ON websites (url);
CREATE INDEX IF NOT EXISTS idx_websites_status ON websites (status);

CREATE TABLE IF NOT EXISTS heading_counts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    website_id INTEGER NOT NULL UNIQUE REFERENCES websites(id) ON DELETE CASCADE,
    h1_count INTEGER NOT NULL DEFAULT 0,
    h2_count INTEGER NOT NULL DEFAULT 0,
    h3_count INTEGER NOT NULL DEFAULT 0,
    h4_count INTEGER NOT NULL DEFAULT 0,
    h5_count INTEGER NOT NULL DEFAULT 0,
    h6_count INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS link_counts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    website_id INTEGER NOT NULL UNIQUE REFERENCES websites(id) ON DELETE CASCADE,
    internal_links INTEGER NOT NULL DEFAULT 0,
    external_links INTEGER NOT NULL DEFAULT 0,
    has_login_form BOOLEAN NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS broken_links (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    website_id INTEGER NOT NULL REFERENCES websites(id) ON DELETE CASCADE,
    url TEXT NOT NULL,
    status_code INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_broken_links_website_id ON broken_links (website_id);
"""

UPSERT_HEADINGS_SQL = """
INSERT INTO heading_counts (website_id, h1_count, h2_count, h3_count, h4_count, h5_count, h6_count)
VALUES (?, ?, ?, ?, ?, ?, ?)
ON CONFLICT (website_id) DO UPDATE SET
    h1_count = excluded.h1_count, h2_count = excluded.h2_count, h3_count = excluded.h3_count,
    h4_count = excluded.h4_count, h5_count = excluded.h5_count, h6_count = excluded.h6_count
"""

UPSERT_LINKS_SQL = """
INSERT INTO link_counts (website_id, internal_links, external_links, has_login_form)
VALUES (?, ?, ?, ?)
ON CONFLICT (website_id) DO UPDATE SET
    internal_links = excluded.internal_links,
    external_links = excluded.external_links,
    has_login_form = excluded.has_login_form
"""


def _now() -> datetime:
    return datetime.now()


def _to_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


class AbstractDatabase(ABC):
    """Abstract base class defining the storage interface."""

    @abstractmethod
    def connect(self) -> None:
        """Establish database connection."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close database connection."""
        pass

    @abstractmethod
    def create_schema(self) -> None:
        """Create the necessary database tables."""
        pass

    @abstractmethod
    def create_target(self, url: str, owner_id: Optional[int] = None) -> AnalysisTarget:
        """Register a URL for analysis with status ``queued``.

        Raises:
            InvalidTargetURL: If the URL is not an absolute http(s) URL
        """
        pass

    @abstractmethod
    def get_target(self, target_id: int) -> Optional[AnalysisTarget]:
        """Return the target, or None if it does not exist."""
        pass

    @abstractmethod
    def list_targets(
        self,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        owner_id: Optional[int] = None,
        sort_by: str = "created_at",
        descending: bool = True,
    ) -> Tuple[List[AnalysisTarget], int]:
        """Return one page of targets and the total number of targets."""
        pass

    @abstractmethod
    def transition_status(
        self,
        target_id: int,
        new_status: AnalysisStatus,
        error_message: Optional[str] = None,
    ) -> AnalysisTarget:
        """Move a target to a new status, enforcing the lifecycle.

        The update only applies if the status did not change since it was read.

        Raises:
            TargetNotFound: If the target does not exist
            InvalidStatusTransition: If the lifecycle forbids the change
            AnalysisConflict: If the status changed concurrently
        """
        pass

    @abstractmethod
    def save_result(self, target_id: int, result: AnalysisResult) -> bool:
        """Replace the stored results of a running target and mark it ``done``.

        Returns:
            False if the target is no longer running, in which case nothing is written.

        Raises:
            PersistenceError: If the write fails
        """
        pass

    @abstractmethod
    def get_heading_profile(self, target_id: int) -> Optional[HeadingProfile]:
        pass

    @abstractmethod
    def get_link_profile(self, target_id: int) -> Optional[LinkProfile]:
        pass

    @abstractmethod
    def get_broken_links(self, target_id: int) -> List[BrokenLinkRecord]:
        pass

    @abstractmethod
    def delete_target(self, target_id: int) -> bool:
        """Delete a target and everything it owns. Returns False if it did not exist."""
        pass

    def require_target(self, target_id: int) -> AnalysisTarget:
        """Like get_target, but raises TargetNotFound."""
        target = self.get_target(target_id)
        if target is None:
            raise TargetNotFound(target_id)
        return target

    def get_report(self, target_id: int) -> AnalysisReport:
        """Target plus its latest stored results.

        Raises:
            TargetNotFound: If the target does not exist
        """
        return AnalysisReport(
            target=self.require_target(target_id),
            headings=self.get_heading_profile(target_id),
            links=self.get_link_profile(target_id),
            broken_links=self.get_broken_links(target_id),
        )

    def delete_targets(self, target_ids: Iterable[int]) -> int:
        """Delete several targets, skipping missing ones. Returns how many were deleted."""
        return sum(1 for target_id in target_ids if self.delete_target(target_id))


class LocalSqliteDatabase(AbstractDatabase):
    """SQLite database implementation for local storage."""

    def __init__(self, db_url: Optional[str] = None):
        """Initialize local SQLite database.

        Args:
            db_url: Database URL (sqlite:///path/to/db.db). Defaults to settings.DATABASE_URL.
        """
        self.db_url = db_url or settings.DATABASE_URL
        self.db_path = self.db_url.replace("sqlite:///", "")
        self.conn: Optional[sqlite3.Connection] = None
        self.connect()
        self.create_schema()

    def connect(self) -> None:
        """Establish SQLite connection."""
        self.conn = sqlite3.connect(self.db_path)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")
        logger.debug(f"Connected to local SQLite database: {self.db_path}")

    def close(self) -> None:
        """Close SQLite connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
            logger.debug("Closed local SQLite connection")

    def create_schema(self) -> None:
        """Create the tables if they don't exist."""
        with self.conn:
            self.conn.executescript(CREATE_SCHEMA_SQL)
        logger.debug("Schema verified/created for local SQLite")

    @staticmethod
    def _row_to_target(row: sqlite3.Row) -> AnalysisTarget:
        return AnalysisTarget(
            id=row["id"],
            url=row["url"],
            status=as_status(row["status"]),
            title=row["title"],
            html_version=row["html_version"],
            error_message=row["error_message"],
            created_at=_to_datetime(row["created_at"]),
            updated_at=_to_datetime(row["updated_at"]),
            owner_id=row["owner_id"],
        )

    def create_target(self, url: str, owner_id: Optional[int] = None) -> AnalysisTarget:
        url = validate_target_url(url)
        now = _now().isoformat()
        with self.conn:
            cursor = self.conn.execute(
                "INSERT INTO websites (url, status, owner_id, created_at, updated_at) VALUES (?, ?, ?, ?, ?)",
                (url, AnalysisStatus.QUEUED.value, owner_id, now, now),
            )
        logger.debug(f"Created website {cursor.lastrowid}: {url}")
        return self.get_target(cursor.lastrowid)

    def get_target(self, target_id: int) -> Optional[AnalysisTarget]:
        row = self.conn.execute("SELECT * FROM websites WHERE id = ?", (target_id,)).fetchone()
        return self._row_to_target(row) if row else None

    def list_targets(
        self,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        owner_id: Optional[int] = None,
        sort_by: str = "created_at",
        descending: bool = True,
    ) -> Tuple[List[AnalysisTarget], int]:
        if sort_by not in SORTABLE_COLUMNS:
            raise ValueError(
                f"Cannot sort by '{sort_by}'. Supported: {', '.join(SORTABLE_COLUMNS)}"
            )
        page = max(page, 1)
        page_size = min(max(page_size, 1), MAX_PAGE_SIZE)

        where, params = "", []
        if owner_id is not None:
            where, params = "WHERE w.owner_id = ?", [owner_id]

        total = self.conn.execute(
            f"SELECT COUNT(*) FROM websites w {where}", params
        ).fetchone()[0]

        # sort_by is checked against SORTABLE_COLUMNS above
        order_column = f"lc.{sort_by}" if sort_by.endswith("_links") else f"w.{sort_by}"
        direction = "DESC" if descending else "ASC"
        rows = self.conn.execute(
            f"SELECT w.* FROM websites w LEFT JOIN link_counts lc ON lc.website_id = w.id "
            f"{where} ORDER BY {order_column} {direction}, w.id {direction} LIMIT ? OFFSET ?",
            params + [page_size, (page - 1) * page_size],
        ).fetchall()
        return [self._row_to_target(row) for row in rows], total

    def transition_status(
        self,
        target_id: int,
        new_status: AnalysisStatus,
        error_message: Optional[str] = None,
    ) -> AnalysisTarget:
        new_status = as_status(new_status)
        with self.conn:
            row = self.conn.execute(
                "SELECT status FROM websites WHERE id = ?", (target_id,)
            ).fetchone()
            if row is None:
                raise TargetNotFound(target_id)

            current = as_status(row["status"])
            check_transition(current, new_status)
            message = check_error_message(new_status, error_message)

            cursor = self.conn.execute(
                "UPDATE websites SET status = ?, error_message = ?, updated_at = ? "
                "WHERE id = ? AND status = ?",
                (new_status.value, message, _now().isoformat(), target_id, current.value),
            )
            if cursor.rowcount == 0:
                raise AnalysisConflict(target_id, "Website status changed concurrently")

        logger.debug(f"Website {target_id}: {current.value} -> {new_status.value}")
        return self.get_target(target_id)

    def save_result(self, target_id: int, result: AnalysisResult) -> bool:
        headings, links = result.headings, result.links
        try:
            with self.conn:
                cursor = self.conn.execute(
                    "UPDATE websites SET title = ?, html_version = ?, status = ?, "
                    "error_message = NULL, updated_at = ? WHERE id = ? AND status = ?",
                    (
                        result.title,
                        result.html_version,
                        AnalysisStatus.DONE.value,
                        _now().isoformat(),
                        target_id,
                        AnalysisStatus.RUNNING.value,
                    ),
                )
                if cursor.rowcount == 0:
                    return False

                self.conn.execute(
                    UPSERT_HEADINGS_SQL,
                    (target_id, headings.h1, headings.h2, headings.h3,
                     headings.h4, headings.h5, headings.h6),
                )
                self.conn.execute(
                    UPSERT_LINKS_SQL,
                    (target_id, links.internal_links, links.external_links, links.has_login_form),
                )
                self.conn.execute("DELETE FROM broken_links WHERE website_id = ?", (target_id,))
                self.conn.executemany(
                    "INSERT INTO broken_links (website_id, url, status_code) VALUES (?, ?, ?)",
                    [(target_id, link.url, link.status_code) for link in result.broken_links],
                )
        except sqlite3.Error as e:
            raise PersistenceError(str(e), cause=e) from e

        logger.debug(f"Saved results for website {target_id}")
        return True

    def get_heading_profile(self, target_id: int) -> Optional[HeadingProfile]:
        row = self.conn.execute(
            "SELECT * FROM heading_counts WHERE website_id = ?", (target_id,)
        ).fetchone()
        if row is None:
            return None
        return HeadingProfile(
            h1=row["h1_count"], h2=row["h2_count"], h3=row["h3_count"],
            h4=row["h4_count"], h5=row["h5_count"], h6=row["h6_count"],
        )

    def get_link_profile(self, target_id: int) -> Optional[LinkProfile]:
        row = self.conn.execute(
            "SELECT * FROM link_counts WHERE website_id = ?", (target_id,)
        ).fetchone()
        if row is None:
            return None
        return LinkProfile(
            internal_links=row["internal_links"],
            external_links=row["external_links"],
            has_login_form=bool(row["has_login_form"]),
        )

    def get_broken_links(self, target_id: int) -> List[BrokenLinkRecord]:
        rows = self.conn.execute(
            "SELECT url, status_code FROM broken_links WHERE website_id = ? ORDER BY id",
            (target_id,),
        ).fetchall()
        return [BrokenLinkRecord(url=row["url"], status_code=row["status_code"]) for row in rows]

    def delete_target(self, target_id: int) -> bool:
        with self.conn:
            cursor = self.conn.execute("DELETE FROM websites WHERE id = ?", (target_id,))
        deleted = cursor.rowcount > 0
        if deleted:
            logger.debug(f"Deleted website {target_id}")
        return deleted


def get_db_client(
    backend: Optional[str] = None,
    **kwargs,
) -> AbstractDatabase:
    """Factory function to create the appropriate database client.

    Args:
        backend: Database backend. Only 'local' is supported. Defaults to settings.DB_BACKEND.
        **kwargs: Additional arguments passed to the database constructor.

    Returns:
        An instance of AbstractDatabase.

    Raises:
        ValueError: If an unknown backend is specified.
    """
    backend = backend or settings.DB_BACKEND

    if backend == "local":
        logger.info("Using local SQLite database backend")
        return LocalSqliteDatabase(**kwargs)
    else:
        raise ValueError(
            f"Unknown database backend: '{backend}'. "
            "Supported backends: 'local'"
        )
