import logging
from datetime import date
from typing import Awaitable, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from core.config import Settings, resolve_time_window
from schemas.pipeline import RunSummary, TimeWindow

logger = logging.getLogger(__name__)

RunJob = Callable[[Settings, TimeWindow], Awaitable[RunSummary]]


class ETLScheduler:
    """Run the pipeline on a cron schedule, one window per firing"""

    def __init__(
        self,
        settings: Settings,
        run_job: RunJob,
        today: Callable[[], date] = date.today,
    ):
        self.settings = settings
        self.run_job = run_job
        self.today = today
        self.scheduler = AsyncIOScheduler()

    async def run_etl_job(self) -> Optional[RunSummary]:
        """Job to run ETL pipeline"""
        logger.info("Scheduler: Starting ETL job")
        try:
            # Window is relative to the firing date, not the start date
            window = resolve_time_window(self.settings, self.today())
            return await self.run_job(self.settings, window)
        except Exception as e:
            logger.error(f"Scheduler: ETL job failed - {e}")
            return None

    def start(self):
        """Start the scheduler"""
        self.scheduler.add_job(
            self.run_etl_job,
            trigger=CronTrigger.from_crontab(self.settings.SCHEDULE_CRON),
            id="etl_job",
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )
        self.scheduler.start()
        logger.info(f"ETL Scheduler started ({self.settings.SCHEDULE_CRON})")

    def stop(self):
        self.scheduler.shutdown()
        logger.info("ETL Scheduler stopped")
