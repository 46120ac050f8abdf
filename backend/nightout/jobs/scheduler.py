"""APScheduler wrapper for the background jobs."""

from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from nightout.core.config import get_settings
from nightout.core.logging import get_logger
from nightout.db.session import AsyncSessionLocal
from nightout.jobs.aggregation import run_aggregation
from nightout.services.auth_service import cleanup_expired_sessions

logger = get_logger(__name__)

AGGREGATION_JOB_ID = "event_aggregation"
SESSION_CLEANUP_JOB_ID = "session_cleanup"


async def cleanup_sessions_job() -> None:
    async with AsyncSessionLocal() as db:
        deleted = await cleanup_expired_sessions(db)
        await db.commit()
    logger.info("session_cleanup_completed", deleted=deleted)


class JobScheduler:
    """Minimal wrapper around AsyncIOScheduler for the periodic jobs."""

    def __init__(self) -> None:
        self._scheduler = AsyncIOScheduler(timezone="UTC")
        self._started = False

    @property
    def running(self) -> bool:
        return self._started

    def start(self) -> None:
        if not self._started:
            self._scheduler.start()
            self._started = True

    def shutdown(self) -> None:
        if self._started:
            self._scheduler.shutdown(wait=False)
            self._started = False

    def schedule_every(self, job_id: str, func, *, hours: int, run_now: bool = False) -> None:
        options = {}
        if run_now:
            # next_run_time=None would add the job paused
            options["next_run_time"] = datetime.now(timezone.utc)
        self._scheduler.add_job(
            func,
            trigger=IntervalTrigger(hours=hours),
            id=job_id,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            **options,
        )

    def job_ids(self) -> list[str]:
        return [job.id for job in self._scheduler.get_jobs()]


def jobs_enabled() -> bool:
    settings = get_settings()
    return settings.AGGREGATION_ENABLED and settings.ENVIRONMENT != "test"


def build_scheduler() -> JobScheduler:
    settings = get_settings()
    scheduler = JobScheduler()
    scheduler.schedule_every(
        AGGREGATION_JOB_ID,
        run_aggregation,
        hours=settings.AGGREGATION_INTERVAL_HOURS,
        run_now=True,
    )
    scheduler.schedule_every(
        SESSION_CLEANUP_JOB_ID,
        cleanup_sessions_job,
        hours=settings.SESSION_CLEANUP_INTERVAL_HOURS,
    )
    return scheduler


__all__ = ["JobScheduler", "build_scheduler", "jobs_enabled", "cleanup_sessions_job"]
