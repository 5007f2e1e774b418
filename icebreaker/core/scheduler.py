"""Background job scheduler for the review sweep.

The sweep rebuilds the review of every participant of every open event.
Reviews are normally refreshed right after each write; the sweep repairs the
ones whose refresh failed.
"""
import logging
from datetime import UTC, datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlmodel import select

from icebreaker.core.config import settings
from icebreaker.core.database import session_factory
from icebreaker.models import Event
from icebreaker.review.sync import ReviewRefresher

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


class SweepState:
    """Track the outcome of the last review sweep."""

    _last_run: datetime | None = None
    _success: bool | None = None
    _error: str | None = None
    _stats: dict = {}

    @classmethod
    def record_success(cls, stats: dict) -> None:
        cls._last_run = datetime.now(UTC)
        cls._success = True
        cls._error = None
        cls._stats = stats

    @classmethod
    def record_failure(cls, error: str) -> None:
        cls._last_run = datetime.now(UTC)
        cls._success = False
        cls._error = error

    @classmethod
    def get_status(cls) -> dict:
        return {
            "last_run": cls._last_run,
            "success": cls._success,
            "error": cls._error,
            "stats": dict(cls._stats),
        }

    @classmethod
    def reset(cls) -> None:
        cls._last_run = None
        cls._success = None
        cls._error = None
        cls._stats = {}


def sweep_reviews(refresher: ReviewRefresher) -> dict:
    """
    Refresh the reviews of all participants of open events.

    Returns dict with sweep statistics.
    """
    stats = {"events": 0, "refreshed": 0, "failed": 0}
    try:
        with refresher.session_factory() as session:
            event_ids = session.exec(
                select(Event.id).where(Event.open == True)  # noqa: E712
            ).all()

        for event_id in event_ids:
            event_stats = refresher.refresh_event(event_id)
            stats["events"] += 1
            stats["refreshed"] += event_stats["refreshed"]
            stats["failed"] += event_stats["failed"]
    except Exception as e:
        logger.error(f"Review sweep failed: {e}")
        SweepState.record_failure(str(e))
        raise

    SweepState.record_success(stats)
    logger.info(f"Review sweep completed: {stats}")
    return stats


def sweep_job():
    """Background review sweep job."""
    try:
        sweep_reviews(ReviewRefresher(session_factory()))
    except Exception as e:
        logger.error(f"Background review sweep failed: {e}")


def start_scheduler():
    """Start the background scheduler."""
    if settings.review_sweep_interval_minutes <= 0:
        logger.info("Review sweep disabled")
        return

    scheduler.add_job(
        sweep_job,
        trigger=IntervalTrigger(minutes=settings.review_sweep_interval_minutes),
        id="review_sweep",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        f"Scheduler started, sweeping reviews every {settings.review_sweep_interval_minutes} minutes"
    )


def shutdown_scheduler():
    """Graceful shutdown."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler shut down")
