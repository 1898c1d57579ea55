"""APScheduler-based scheduler for periodic index refreshes.

The job only triggers the refresh orchestrator; the rebuild itself runs on the
orchestrator's worker, so a slow rebuild never stacks up scheduler jobs.
"""
from __future__ import annotations

from datetime import timedelta
from typing import List, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from folio.service.refresh import RefreshOrchestrator

REFRESH_JOB_ID = "folio-refresh"


class RefreshScheduler:
    """Runs `RefreshOrchestrator.trigger()` on a fixed interval from a background thread."""

    def __init__(self) -> None:
        self._scheduler = BackgroundScheduler(timezone="UTC")

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def start(self) -> None:
        if not self._scheduler.running:
            self._scheduler.start()

    def shutdown(self, *, wait: bool = True) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)

    def schedule_refresh(
        self,
        orchestrator: RefreshOrchestrator,
        *,
        interval: timedelta = timedelta(minutes=15),
        job_id: Optional[str] = REFRESH_JOB_ID,
        replace_existing: bool = True,
    ) -> None:
        """Add (or replace) the periodic refresh job.

        Parameters
        ----------
        orchestrator: RefreshOrchestrator
            Receives a `trigger()` call on every tick.
        interval: timedelta
            Time between ticks, at least one second (default 15 minutes).
        job_id: Optional[str]
            Id of the job; a second call with the same id replaces the first.
        replace_existing: bool
            Passed through to APScheduler.
        """
        seconds = max(1, int(interval.total_seconds()))
        self._scheduler.add_job(
            orchestrator.trigger,
            trigger=IntervalTrigger(seconds=seconds),
            id=job_id,
            replace_existing=replace_existing,
            max_instances=1,
            coalesce=True,
        )

    def job_ids(self) -> List[str]:
        return [job.id for job in self._scheduler.get_jobs()]
