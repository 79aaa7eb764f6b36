"""Analysis job: fetch, parse, extract, check links and persist one page."""

import asyncio
import logging
import time
from typing import Optional

import httpx

from webanalyzer.config import AnalyzerConfig, resolve_config
from webanalyzer.constants import CANCELLED_MESSAGE
from webanalyzer.database import AbstractDatabase
from webanalyzer.exceptions import (
    AnalysisFailed,
    BodyReadError,
    FetchError,
    HTTPStatusError,
    WebAnalyzerError,
)
from webanalyzer.extractor import extract_features, parse_markup
from webanalyzer.link_checker import LinkHealthChecker
from webanalyzer.link_classifier import classify_links, extract_hrefs
from webanalyzer.models import AnalysisResult, AnalysisStatus, AnalysisTarget

logger = logging.getLogger(__name__)


def _describe(error: BaseException) -> str:
    return str(error) or type(error).__name__


class AnalysisJob:
    """One run of the analysis pipeline for a single target.

    The target must already be ``running`` when the job starts; the
    dispatcher takes care of that. The job ends the run in ``done`` or
    ``error`` and never raises pipeline failures to its caller.
    """

    def __init__(
        self,
        target: AnalysisTarget,
        db: AbstractDatabase,
        config: Optional[AnalyzerConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        global_pool: Optional[asyncio.Semaphore] = None,
    ):
        """Initialize the job.

        Args:
            target: The target to analyze
            db: Storage the result is written to
            config: Pipeline configuration
            transport: Optional httpx transport for the page fetch and the probes
            global_pool: Optional probe semaphore shared with other jobs
        """
        self.target = target
        self.db = db
        self.config = resolve_config(config)
        self._transport = transport
        self.checker = LinkHealthChecker(
            config=self.config,
            transport=transport,
            global_pool=global_pool,
        )
        # Set by the dispatcher when a user stop cancels this job
        self.stopped = False
        self._cancellation_recorded = False

    @property
    def target_id(self) -> int:
        return self.target.id

    def _make_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.config.page_timeout),
            follow_redirects=True,
            max_redirects=self.config.page_max_redirects,
            headers={"User-Agent": self.config.user_agent},
            transport=self._transport,
        )

    async def fetch(self) -> str:
        """Download the page markup.

        Raises:
            FetchError: On transport failures and redirect loops
            HTTPStatusError: If the page answers with a non-2xx status
            BodyReadError: If the body cannot be read
        """
        async with self._make_client() as client:
            try:
                async with client.stream("GET", self.target.url) as response:
                    if not response.is_success:
                        raise HTTPStatusError(response.status_code)
                    try:
                        await response.aread()
                    except httpx.HTTPError as e:
                        raise BodyReadError(_describe(e), cause=e) from e
                    return response.text
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                raise FetchError(_describe(e), cause=e) from e

    async def execute(self) -> AnalysisResult:
        """Run the pipeline up to, but not including, persistence.

        Raises:
            AnalysisFailed: On any fatal pipeline failure
        """
        html = await self.fetch()
        soup = parse_markup(html)

        features = extract_features(soup, html)
        links = classify_links(extract_hrefs(soup), self.target.url)
        logger.debug(
            f"Website {self.target_id}: {links.internal_count} internal, "
            f"{links.external_count} external, {links.skipped} skipped links"
        )

        broken_links = await self.checker.check(links.resolved)

        return AnalysisResult(
            title=features.title,
            html_version=features.html_version,
            headings=features.headings,
            links=links.to_profile(has_login_form=features.has_login_form),
            broken_links=tuple(broken_links),
        )

    async def run(self) -> AnalysisStatus:
        """Execute the pipeline and record the outcome.

        Returns:
            The status the target was left in by this job
        """
        start_time = time.monotonic()
        logger.info(f"Analyzing website {self.target_id}: {self.target.url}")

        try:
            result = await self.execute()
            saved = self.db.save_result(self.target_id, result)
        except asyncio.CancelledError:
            logger.info(f"Analysis of website {self.target_id} cancelled")
            self.mark_cancelled()
            raise
        except AnalysisFailed as e:
            logger.warning(f"Analysis of website {self.target_id} failed: {e.message}")
            return self._fail(e.message)
        except Exception as e:
            logger.exception(f"Unexpected error analyzing website {self.target_id}")
            return self._fail(f"Analysis failed: {_describe(e)}")

        if not saved:
            logger.warning(
                f"Website {self.target_id} is no longer running; discarding results"
            )
            return self._current_status()

        elapsed = time.monotonic() - start_time
        logger.info(
            f"Analysis of website {self.target_id} done in {elapsed:.2f}s "
            f"({len(result.broken_links)} broken links)"
        )
        return AnalysisStatus.DONE

    def _fail(self, message: str) -> AnalysisStatus:
        try:
            self.db.transition_status(self.target_id, AnalysisStatus.ERROR, message)
        except WebAnalyzerError as e:
            # Stopped or deleted while the job was running
            logger.warning(f"Could not record failure for website {self.target_id}: {e}")
            return self._current_status()
        except Exception:
            logger.exception(f"Could not record failure for website {self.target_id}")
            return self._current_status()
        return AnalysisStatus.ERROR

    def mark_cancelled(self) -> None:
        """Leave ``running`` after the job was cancelled.

        Does nothing for a stopped job, whose stop already recorded the
        cause, and runs at most once per job.
        """
        if self.stopped or self._cancellation_recorded:
            return
        self._cancellation_recorded = True
        try:
            self.db.transition_status(self.target_id, AnalysisStatus.ERROR, CANCELLED_MESSAGE)
        except WebAnalyzerError as e:
            logger.debug(f"Website {self.target_id} already left running: {e}")
        except Exception:
            logger.exception(f"Could not record cancellation of website {self.target_id}")

    def _current_status(self) -> AnalysisStatus:
        try:
            target = self.db.get_target(self.target_id)
        except Exception:
            logger.exception(f"Could not read status of website {self.target_id}")
            return AnalysisStatus.ERROR
        return target.status if target else AnalysisStatus.ERROR
