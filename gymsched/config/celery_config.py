"""Celery application factory"""
from celery import Celery
from celery.schedules import crontab

from gymsched.config.settings import get_settings

settings = get_settings()


def create_celery_app() -> Celery:
    """Create and configure the Celery app used by the worker and beat"""
    app = Celery(
        "gymsched",
        broker=settings.CELERY_BROKER_URL,
        backend=settings.CELERY_RESULT_BACKEND,
        include=["gymsched.tasks.schedule_tasks"],
    )

    app.conf.update(
        task_serializer=settings.CELERY_TASK_SERIALIZER,
        result_serializer="json",
        accept_content=["json"],
        timezone="UTC",
        enable_utc=True,
        task_acks_late=True,
        worker_prefetch_multiplier=1,
    )

    if settings.SCHEDULE_RESET_ENABLED:
        # crontab day_of_week uses 0=Sunday, same as ScheduleDay.day_of_week
        app.conf.beat_schedule = {
            "weekly-schedule-reset": {
                "task": "gymsched.tasks.schedule_tasks.reset_all_active_schedules",
                "schedule": crontab(
                    minute=0,
                    hour=settings.SCHEDULE_RESET_HOUR,
                    day_of_week=settings.SCHEDULE_RESET_DAY_OF_WEEK,
                ),
            },
        }

    return app


celery_app = create_celery_app()
