"""Background job tasks"""

import asyncio
import structlog

from foodai.jobs.celery_app import celery_app

logger = structlog.get_logger()


def run_async(coro):
    """Helper to run async functions in sync context"""
    return asyncio.run(coro)


async def _redeliver(limit: int):
    from foodai.database import SessionLocal, engine
    from foodai.notifications.dispatcher import NotificationDispatcher

    try:
        async with SessionLocal() as db:
            return await NotificationDispatcher(db).redeliver_failed(limit=limit)
    finally:
        # Pooled connections belong to this run's event loop
        await engine.dispose()


@celery_app.task(name="redeliver_failed_notifications")
def redeliver_failed_notifications(limit: int = 50):
    """Retry dead-lettered transactional emails"""
    logger.info("Redelivering failed notifications", limit=limit)
    return run_async(_redeliver(limit))
