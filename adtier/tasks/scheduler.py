"""
Background task scheduler using APScheduler
"""
import asyncio
import logging
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from adtier.core.config import settings
from adtier.core.database import Database
from adtier.services.facebook.scheduled_sync import ScheduledSyncCoordinator
from adtier.tasks.sync_tasks import reclassify_all_brands, sync_all_brands

logger = logging.getLogger(__name__)

DAILY_SYNC_JOB_ID = "daily_facebook_sync"
RECLASSIFY_JOB_ID = "periodic_reclassify"


class Scheduler:
    """
    Owns the APScheduler instance and its jobs.

    Constructed once by the process entry point; `start()` and `stop()` are
    idempotent.
    """

    def __init__(
        self,
        db: Database,
        coordinator_factory: Optional[Callable[[Database], ScheduledSyncCoordinator]] = None,
        timezone: Optional[str] = None,
        hour: Optional[int] = None,
        minute: Optional[int] = None,
        reclassify_every_hours: Optional[int] = None,
    ):
        self.db = db
        self.coordinator_factory = coordinator_factory or ScheduledSyncCoordinator
        self.timezone = timezone or settings.SCHEDULER_TIMEZONE
        self.hour = settings.DAILY_SYNC_HOUR if hour is None else hour
        self.minute = settings.DAILY_SYNC_MINUTE if minute is None else minute
        self.reclassify_every_hours = reclassify_every_hours or settings.RECLASSIFY_INTERVAL_HOURS
        self._scheduler: Optional[BackgroundScheduler] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        """Initialize and start the scheduler"""
        if self._scheduler is not None:
            return

        scheduler = BackgroundScheduler(timezone=self.timezone)

        # Daily sync -> daily insights -> classify for every connected brand
        scheduler.add_job(
            func=self.run_daily_sync,
            trigger=CronTrigger(hour=self.hour, minute=self.minute, timezone=self.timezone),
            id=DAILY_SYNC_JOB_ID,
            name="Daily Facebook sync and classification",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

        # Tiers drift between syncs; re-rank from stored rows
        scheduler.add_job(
            func=self.run_reclassify,
            trigger=CronTrigger(hour=f"*/{self.reclassify_every_hours}", minute=0, timezone=self.timezone),
            id=RECLASSIFY_JOB_ID,
            name="Periodic re-classification",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

        scheduler.start()
        self._scheduler = scheduler
        logger.info(
            f"Scheduler started with {len(scheduler.get_jobs())} jobs "
            f"(daily sync at {self.hour:02d}:{self.minute:02d} {self.timezone}, "
            f"reclassify every {self.reclassify_every_hours}h)"
        )

    def stop(self) -> None:
        """Stop the scheduler"""
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Scheduler stopped")

    def get_jobs(self):
        return self._scheduler.get_jobs() if self._scheduler else []

    # ============================================
    # Job Functions
    # ============================================

    def run_daily_sync(self) -> Optional[dict]:
        """Job body; runs on a scheduler worker thread with its own event loop"""
        logger.info("Running daily sync job...")
        try:
            result = asyncio.run(sync_all_brands(self.db, self.coordinator_factory(self.db)))
        except Exception as e:
            logger.exception(f"Daily sync job failed: {e}")
            return None
        logger.info(f"Daily sync job completed: {result['succeeded']}/{result['brands']} brands")
        return result

    def run_reclassify(self) -> Optional[dict]:
        logger.info("Running periodic reclassification...")
        try:
            return reclassify_all_brands(self.db, self.coordinator_factory(self.db))
        except Exception as e:
            logger.exception(f"Reclassification job failed: {e}")
            return None
