"""Background jobs: session token refresh and idle browser cleanup.

Jobs are coroutines so AsyncIOScheduler runs them on the event loop, in
turn with request handlers, rather than on a worker thread.
"""
import logging
from datetime import timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from campusconnect.core.clients import ClientRegistry
from campusconnect.core.config import settings

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


async def refresh_sessions_job(registry: ClientRegistry):
    """Refresh tokens that are about to expire."""
    try:
        stats = registry.refresh_expiring(
            timedelta(minutes=settings.session_refresh_margin_minutes)
        )
        logger.info(f"Session refresh completed: {stats}")
    except Exception as e:
        logger.error(f"Session refresh failed: {e}")


async def prune_clients_job(registry: ClientRegistry):
    """Forget browsers that have been idle for too long."""
    try:
        registry.prune_idle(timedelta(hours=settings.client_idle_hours))
    except Exception as e:
        logger.error(f"Client pruning failed: {e}")


def start_scheduler(registry: ClientRegistry):
    """Start the background scheduler."""
    scheduler.add_job(
        refresh_sessions_job,
        trigger=IntervalTrigger(minutes=settings.session_refresh_interval_minutes),
        args=[registry],
        id="session_refresh",
        replace_existing=True,
    )
    scheduler.add_job(
        prune_clients_job,
        trigger=IntervalTrigger(hours=1),
        args=[registry],
        id="client_prune",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        f"Scheduler started, refreshing sessions every "
        f"{settings.session_refresh_interval_minutes} minutes"
    )


def shutdown_scheduler():
    """Graceful shutdown."""
    scheduler.shutdown(wait=False)
    logger.info("Scheduler shut down")
