"""Triggers for single, bulk and stopped analyses.

Starting a target flips it to ``running`` before the job task is created,
so a second trigger for the same target sees the conflict. The caller gets
a JobHandle back and never has to await it.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

import httpx

from webanalyzer.config import AnalyzerConfig, resolve_config
from webanalyzer.constants import (
    ALREADY_RUNNING_MESSAGE,
    NOT_RUNNING_MESSAGE,
    STOPPED_BY_USER_MESSAGE,
)
from webanalyzer.database import AbstractDatabase
from webanalyzer.exceptions import (
    AnalysisConflict,
    InvalidStatusTransition,
    TargetNotFound,
)
from webanalyzer.job import AnalysisJob
from webanalyzer.lifecycle import check_error_message
from webanalyzer.models import AnalysisStatus

logger = logging.getLogger(__name__)


@dataclass
class JobHandle:
    """A scheduled analysis job."""
    target_id: int
    task: asyncio.Task
    job: AnalysisJob

    def done(self) -> bool:
        return self.task.done()

    def cancel(self) -> bool:
        return self.task.cancel()

    async def wait(self) -> Optional[AnalysisStatus]:
        """Wait for the job. Returns None if it was cancelled."""
        try:
            return await asyncio.shield(self.task)
        except asyncio.CancelledError:
            if self.task.cancelled():
                return None
            raise


class AnalysisDispatcher:
    """Starts, stops and tracks analysis jobs.

    Must be used from inside a running event loop.
    """

    def __init__(
        self,
        db: AbstractDatabase,
        config: Optional[AnalyzerConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the dispatcher.

        Args:
            db: Storage holding the targets
            config: Pipeline configuration shared by every job
            transport: Optional httpx transport passed to every job
        """
        self.db = db
        self.config = resolve_config(config)
        self._transport = transport
        self._handles: dict[int, JobHandle] = {}

        # Caps probes across all jobs; each job also has its own limit
        self._probe_pool: Optional[asyncio.Semaphore] = None
        if self.config.global_probe_limit > 0:
            self._probe_pool = asyncio.Semaphore(self.config.global_probe_limit)

    def start(self, target_id: int) -> JobHandle:
        """Start analysis of one target.

        Raises:
            TargetNotFound: If the target does not exist
            AnalysisConflict: If the target is already running
        """
        target = self.db.require_target(target_id)
        if target.is_running:
            raise AnalysisConflict(target_id, ALREADY_RUNNING_MESSAGE)

        try:
            target = self.db.transition_status(target_id, AnalysisStatus.RUNNING)
        except InvalidStatusTransition as e:
            raise AnalysisConflict(target_id, ALREADY_RUNNING_MESSAGE) from e

        job = AnalysisJob(
            target,
            self.db,
            config=self.config,
            transport=self._transport,
            global_pool=self._probe_pool,
        )
        task = asyncio.get_running_loop().create_task(
            job.run(), name=f"analysis-{target_id}"
        )
        handle = JobHandle(target_id=target_id, task=task, job=job)
        self._handles[target_id] = handle
        task.add_done_callback(lambda _: self._job_finished(handle))

        logger.info(f"Started analysis of website {target_id}")
        return handle

    def start_bulk(self, target_ids: Iterable[int]) -> list[JobHandle]:
        """Start analysis of several targets.

        Missing and already running targets are skipped silently.
        """
        handles = []
        for target_id in target_ids:
            try:
                handles.append(self.start(target_id))
            except (TargetNotFound, AnalysisConflict) as e:
                logger.debug(f"Skipping website {target_id}: {e}")
        logger.info(f"Bulk start launched {len(handles)} analyses")
        return handles

    def stop(self, target_id: int, cause: str = STOPPED_BY_USER_MESSAGE) -> bool:
        """Stop analysis of a running target.

        The status is forced to ``error`` with ``cause``. If the job runs in
        this dispatcher its task is cancelled as well.

        Returns:
            True if an in-process job was cancelled

        Raises:
            MissingErrorMessage: If ``cause`` is empty
            TargetNotFound: If the target does not exist
            AnalysisConflict: If the target is not running
        """
        cause = check_error_message(AnalysisStatus.ERROR, cause)
        target = self.db.require_target(target_id)
        if not target.is_running:
            raise AnalysisConflict(target_id, NOT_RUNNING_MESSAGE)

        try:
            self.db.transition_status(target_id, AnalysisStatus.ERROR, cause)
        except (InvalidStatusTransition, AnalysisConflict) as e:
            raise AnalysisConflict(target_id, NOT_RUNNING_MESSAGE) from e

        handle = self._handles.get(target_id)
        cancelled = False
        if handle is not None:
            handle.job.stopped = True
            cancelled = handle.cancel()
        logger.info(
            f"Stopped analysis of website {target_id}"
            + (" (job cancelled)" if cancelled else "")
        )
        return cancelled

    def _job_finished(self, handle: JobHandle) -> None:
        if self._handles.get(handle.target_id) is handle:
            del self._handles[handle.target_id]
        # A task cancelled before its first step never ran the job's own handler
        if handle.task.cancelled():
            handle.job.mark_cancelled()

    def running_jobs(self) -> list[int]:
        """Ids of targets with a live job in this dispatcher."""
        return [target_id for target_id, handle in self._handles.items() if not handle.done()]

    async def wait(self, target_id: int) -> Optional[AnalysisStatus]:
        """Wait for the job of one target, if there is one."""
        handle = self._handles.get(target_id)
        if handle is None:
            return None
        return await handle.wait()

    async def wait_all(self) -> None:
        """Wait until every job started so far has finished."""
        handles = list(self._handles.values())
        if handles:
            await asyncio.gather(*(handle.wait() for handle in handles))

    async def aclose(self) -> None:
        """Cancel every live job and wait for them to unwind."""
        handles = list(self._handles.values())
        for handle in handles:
            handle.cancel()
        for handle in handles:
            await handle.wait()
