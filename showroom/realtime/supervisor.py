"""Periodic supervision of change-feed channels."""

from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from .subscriber import ChangeFeedSubscriber


class FeedSupervisor:
    """Keeps retrying channels the subscriber gave up on.

    The subscriber retries a dropped feed a bounded number of times; after
    that, this job attempts a reconnect every ``interval_seconds`` until the
    channels are healthy again.
    """

    def __init__(
        self,
        subscriber: ChangeFeedSubscriber,
        interval_seconds: int = 30,
        scheduler: Optional[AsyncIOScheduler] = None,
    ):
        """Initialize feed supervisor.

        Args:
            subscriber: Subscriber whose channels are supervised
            interval_seconds: Seconds between health checks
            scheduler: Scheduler to register the job with
        """
        self.subscriber = subscriber
        self.interval_seconds = interval_seconds
        self.scheduler = scheduler or AsyncIOScheduler(
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": interval_seconds,
            }
        )

    def configure_jobs(self):
        """Register the reconnect check."""
        self.scheduler.add_job(
            self.check,
            IntervalTrigger(seconds=self.interval_seconds),
            id="feed_reconnect",
            name="Change Feed Reconnect",
            coalesce=True,
            max_instances=1,
            replace_existing=True,
        )
        logger.info(f"Scheduled change feed check every {self.interval_seconds} seconds")

    async def check(self) -> bool:
        """Reconnect if any channel is down.

        Returns:
            True when the feed is healthy after the check
        """
        if self.subscriber.healthy:
            return True

        logger.info("Change feed unhealthy, attempting reconnect")
        return await self.subscriber.reconnect()

    def start(self):
        logger.info("Starting feed supervisor")
        self.scheduler.start()

    def stop(self):
        logger.info("Stopping feed supervisor")
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

    def get_jobs(self):
        return self.scheduler.get_jobs()
