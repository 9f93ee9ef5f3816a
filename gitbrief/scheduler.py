"""
Scheduled collection.

Runs the collection pipeline on a cron schedule using APScheduler. The
scheduled job goes through CollectionOrchestrator.trigger(), so it
shares the single-flight guard with manual triggers.
"""

import logging
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from gitbrief.orchestrator import CollectionOrchestrator
from gitbrief.types import TriggerResult

logger = logging.getLogger(__name__)

COLLECT_JOB_ID = "daily_collection"


class CollectionScheduler:
    """
    Cron-driven collection trigger.

    Cron expressions are evaluated in UTC, e.g.:
        "0 0 * * *" - Daily at midnight
        "0 */6 * * *" - Every six hours
    """

    def __init__(self, orchestrator: CollectionOrchestrator, cron_expression: str = "0 0 * * *"):
        """
        Initialize the scheduler.

        Raises:
            ValueError: If the cron expression is invalid
        """
        self.orchestrator = orchestrator
        self.cron_expression = cron_expression
        self.scheduler = AsyncIOScheduler(timezone="UTC")

        try:
            self._trigger = CronTrigger.from_crontab(cron_expression, timezone="UTC")
        except ValueError as e:
            logger.error(f"Invalid cron expression '{cron_expression}': {e}")
            raise ValueError(f"Invalid cron expression: {e}")

    async def start(self) -> None:
        """Register the collection job and start the scheduler."""
        self.scheduler.add_job(
            self._run_collection,
            trigger=self._trigger,
            id=COLLECT_JOB_ID,
            name="Daily trending collection",
            replace_existing=True,
        )
        if not self.scheduler.running:
            self.scheduler.start()
        logger.info(f"Collection scheduled with cron '{self.cron_expression}' (UTC)")

    async def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler shutdown complete")

    def get_next_run(self) -> Optional[datetime]:
        """Next scheduled run time, or None if not scheduled."""
        job = self.scheduler.get_job(COLLECT_JOB_ID)
        # Jobs added before start() have no next_run_time yet
        return getattr(job, "next_run_time", None) if job else None

    async def _run_collection(self) -> None:
        result = await self.orchestrator.trigger()
        if result == TriggerResult.ALREADY_RUNNING:
            logger.warning("Scheduled collection skipped: a run is already in progress")
        else:
            logger.info("Scheduled collection started")
