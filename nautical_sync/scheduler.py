"""Periodic inventory and order synchronization.

Two ways to run the jobs:
  - embedded: ``create_background_scheduler()`` returns an unstarted
    ``BackgroundScheduler`` that the webhook server starts in its lifespan.
  - standalone: ``python -m nautical_sync.scheduler`` runs a
    ``BlockingScheduler`` as its own worker process.
"""

import signal
import sys
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Tuple

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .models.sync_result import SyncResult
from .services.sync_service import SyncService
from .utils.config import AppConfig, get_config
from .utils.logger import get_scheduler_logger, get_sync_logger

Job = Callable[[], None]


class OrderSyncCursor:
    """
    The "last synchronized at" cursor of the order job.

    Advances to a run's start time only when that run had no failures, so
    failed orders are picked up again by the next run.
    """

    def __init__(self, initial: Optional[datetime] = None):
        self.last_synced_at = initial

    def run(self, sync: Callable[[Optional[datetime]], SyncResult]) -> SyncResult:
        started_at = datetime.now(timezone.utc)
        result = sync(self.last_synced_at)
        if result.success:
            self.last_synced_at = started_at
        return result


def make_jobs(config: AppConfig) -> Tuple[Job, Job]:
    """Build the inventory and order job callables sharing one order cursor."""
    logger = get_sync_logger()
    cursor = OrderSyncCursor()

    def inventory_job():
        logger.info("Scheduled inventory sync starting")
        try:
            with SyncService(config=config) as service:
                result = service.sync_inventory()
        except Exception as e:
            logger.error(f"Scheduled inventory sync aborted: {e}", exc_info=True)
            return
        logger.info(result.get_summary())

    def order_job():
        since = cursor.last_synced_at
        logger.info(f"Scheduled order sync starting (since {since.isoformat() if since else 'lookback window'})")
        try:
            with SyncService(config=config) as service:
                result = cursor.run(service.sync_orders)
        except Exception as e:
            logger.error(f"Scheduled order sync aborted: {e}", exc_info=True)
            return
        logger.info(result.get_summary())
        if not result.success:
            logger.warning(f"{result.failed_count} orders failed; cursor stays at {since}")

    return inventory_job, order_job


def add_jobs(scheduler: BaseScheduler, config: AppConfig, inventory_job: Job, order_job: Job):
    options = config.scheduler
    intervals = (
        ("inventory_sync", "Shopify to Nautical inventory sync", inventory_job,
         config.env.inventory_sync_interval_minutes),
        ("order_sync", "Shopify to Nautical order sync", order_job,
         config.env.order_sync_interval_minutes),
    )
    for job_id, name, func, minutes in intervals:
        scheduler.add_job(
            func=func,
            trigger=IntervalTrigger(minutes=minutes),
            id=job_id,
            name=name,
            max_instances=options.max_instances,
            coalesce=options.coalesce,
            misfire_grace_time=options.misfire_grace_time,
            replace_existing=True
        )


def create_background_scheduler(config: Optional[AppConfig] = None) -> BackgroundScheduler:
    """
    Build the scheduler embedded in the webhook server, not yet started.

    With ``scheduler.run_on_startup`` both jobs also run once, 15 seconds
    after start.
    """
    config = config or get_config()
    get_scheduler_logger()

    scheduler = BackgroundScheduler(timezone=config.scheduler.timezone)
    inventory_job, order_job = make_jobs(config)
    add_jobs(scheduler, config, inventory_job, order_job)

    if config.scheduler.run_on_startup:
        first_run = datetime.now() + timedelta(seconds=15)
        scheduler.add_job(func=inventory_job, trigger="date", run_date=first_run, id="initial_inventory_sync")
        scheduler.add_job(func=order_job, trigger="date", run_date=first_run, id="initial_order_sync")

    get_sync_logger().info(
        f"Scheduler configured: inventory every {config.env.inventory_sync_interval_minutes} min, "
        f"orders every {config.env.order_sync_interval_minutes} min"
    )
    return scheduler


class SyncScheduler:
    """Standalone worker running both jobs on a ``BlockingScheduler``."""

    def __init__(self, config: Optional[AppConfig] = None):
        self.config = config or get_config()
        self.logger = get_sync_logger()
        get_scheduler_logger()
        self.inventory_job, self.order_job = make_jobs(self.config)
        self.scheduler = BlockingScheduler(timezone=self.config.scheduler.timezone)

        for sig in (signal.SIGINT, signal.SIGTERM):
            signal.signal(sig, self._stop)

    def _stop(self, signum, frame):
        self.logger.info(f"Signal {signum} received, stopping scheduler")
        self.scheduler.shutdown(wait=True)
        sys.exit(0)

    def start(self):
        """Block until the process is stopped."""
        self.logger.info(
            f"Standalone scheduler starting ({self.config.env.environment}, {self.config.scheduler.timezone}): "
            f"inventory every {self.config.env.inventory_sync_interval_minutes} min, "
            f"orders every {self.config.env.order_sync_interval_minutes} min"
        )
        add_jobs(self.scheduler, self.config, self.inventory_job, self.order_job)

        if self.config.scheduler.run_on_startup:
            self.inventory_job()
            self.order_job()

        try:
            self.scheduler.start()
        except (KeyboardInterrupt, SystemExit):
            self.logger.info("Scheduler stopped")


def main():
    try:
        SyncScheduler().start()
    except Exception as e:
        get_sync_logger().error(f"Scheduler could not start: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
