import logging
import threading

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from surveysync.config import Settings
from surveysync.pipeline import SyncRunner
from surveysync.schemas import STATE_COMPLETED, RunOutcome


logger = logging.getLogger(__name__)


class SyncJob:
    """One scheduler tick. Ticks that land while a run is still going are skipped."""

    def __init__(self, runner: SyncRunner) -> None:
        self.runner = runner
        self._lock = threading.Lock()

    def is_running(self) -> bool:
        return self._lock.locked()

    def __call__(self, trigger_source: str = "scheduled") -> RunOutcome | None:
        if not self._lock.acquire(blocking=False):
            logger.warning("previous sync run still in progress, skipping tick")
            return None
        try:
            outcome = self.runner.run(trigger_source=trigger_source)
        finally:
            self._lock.release()

        summary = {
            "run_key": outcome.run_key,
            "state": outcome.state,
            "aborted_at": outcome.aborted_at,
            "total_cases": outcome.total_cases,
            "succeeded_cases": outcome.succeeded_cases,
            "failed_cases": outcome.failed_cases,
            "skipped_cases": outcome.skipped_cases,
            "failed_case_ids": [failure.case_id for failure in outcome.failures],
        }
        if outcome.state == STATE_COMPLETED:
            logger.info("sync run completed", extra=summary)
        elif outcome.aborted_at is None:
            logger.warning("sync run %s", outcome.state, extra=summary)
        else:
            logger.error("sync run aborted", extra=summary)
        return outcome


def build_scheduler(settings: Settings, job: SyncJob) -> BlockingScheduler:
    scheduler = BlockingScheduler(timezone="UTC")
    scheduler.add_job(
        job,
        CronTrigger.from_crontab(settings.schedule_cron, timezone="UTC"),
        id="survey_sync",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    return scheduler


def start_scheduler(settings: Settings, job: SyncJob, *, run_now: bool = False) -> None:
    scheduler = build_scheduler(settings, job)

    logger.info("scheduler started", extra={"schedule_cron": settings.schedule_cron})

    if run_now:
        job(trigger_source="manual")

    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("scheduler stopping")
        job.runner.request_stop()
        if scheduler.running:
            scheduler.shutdown(wait=True)
