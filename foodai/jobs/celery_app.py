"""Celery application configuration"""

from celery import Celery
from foodai.config import settings

# Create Celery app
celery_app = Celery(
    "foodai",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "foodai.jobs.tasks",
    ],
)

# Configure Celery
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=300,  # 5 minutes
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    # Beat schedule for periodic tasks
    beat_schedule={
        "redeliver-failed-notifications": {
            "task": "redeliver_failed_notifications",
            "schedule": 900.0,  # Every 15 minutes
        },
    },
)
