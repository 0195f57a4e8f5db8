"""
Background auto-close of idle RESOLVED tickets.

The job runs inside every API process. Each run is one filtered bulk write,
so concurrent processes close a given ticket at most once.
"""
from typing import Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..config.settings import settings
from ..services.sweeper_service import SweeperService
from ..utils.logger import get_logger, set_correlation_id
from ..utils.idgen import generate_correlation_id

logger = get_logger(__name__)

JOB_ID = "auto_close_resolved"


class AutoCloseScheduler:

    def __init__(self, sweeper: Optional[SweeperService] = None, interval_minutes: Optional[int] = None):
        self.sweeper = sweeper or SweeperService()
        self.interval_minutes = interval_minutes or settings.auto_close_interval_minutes
        self.scheduler: Optional[AsyncIOScheduler] = None

    @property
    def is_running(self) -> bool:
        return self.scheduler is not None and self.scheduler.running

    def start(self) -> None:
        if self.is_running:
            logger.warning("Auto-close scheduler already running")
            return

        self.scheduler = AsyncIOScheduler(timezone="UTC")
        self.scheduler.add_job(
            self._sweep_idle_resolved,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id=JOB_ID,
            name="Close idle resolved tickets",
            replace_existing=True,
            # A slow run is not stacked with the next one
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        logger.info(f"Auto-close scheduler started (every {self.interval_minutes} min)")

    def stop(self) -> None:
        if not self.is_running:
            return
        self.scheduler.shutdown(wait=False)
        self.scheduler = None
        logger.info("Auto-close scheduler stopped")

    async def _sweep_idle_resolved(self) -> None:
        """Job body. Failures are logged and the next interval runs as usual."""
        set_correlation_id(generate_correlation_id())
        try:
            self.sweeper.sweep_idle_resolved()
        except Exception as e:
            logger.error(
                f"Auto-close run failed: {e}",
                extra={"error_code": type(e).__name__, "action": JOB_ID},
                exc_info=True
            )
        finally:
            set_correlation_id(None)


_scheduler: Optional[AutoCloseScheduler] = None


def get_scheduler() -> AutoCloseScheduler:
    global _scheduler
    if _scheduler is None:
        _scheduler = AutoCloseScheduler()
    return _scheduler


def start_scheduler() -> None:
    get_scheduler().start()


def stop_scheduler() -> None:
    global _scheduler
    if _scheduler is not None:
        _scheduler.stop()
        _scheduler = None
