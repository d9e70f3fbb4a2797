# ===== gymsched/tasks/schedule_tasks.py =====
from gymsched.config.celery_config import celery_app
from gymsched.config.database import SessionLocal
from gymsched.core.exceptions import NotFoundError
from gymsched.services.schedule.active_schedule_service import ActiveScheduleService
from uuid import UUID
import logging

logger = logging.getLogger(__name__)


@celery_app.task(name="gymsched.tasks.schedule_tasks.reset_all_active_schedules")
def reset_all_active_schedules():
    """Weekly reset of every active schedule (celery beat)"""
    db = SessionLocal()
    try:
        summary = ActiveScheduleService.reset_all(db)
    finally:
        db.close()

    if summary.success:
        logger.info(summary.message)
    else:
        logger.warning(f"{summary.message}: {summary.errors}")
    return summary.to_dict()


@celery_app.task(bind=True, max_retries=3)
def reset_active_schedule(self, schedule_id: str):
    """Reset one active schedule from its template"""
    db = SessionLocal()
    try:
        schedule = ActiveScheduleService.reset(db, UUID(str(schedule_id)))
        logger.info(f"Reset active schedule {schedule_id}")
        return {"status": "success", "schedule_id": str(schedule.id)}

    except NotFoundError as e:
        # Retrying won't bring a deleted schedule or template back
        logger.error(f"Cannot reset active schedule {schedule_id}: {e.message}")
        return {"status": "failed", "reason": e.message}

    except Exception as exc:
        db.rollback()
        logger.error(f"Reset failed for active schedule {schedule_id}: {exc}")
        raise self.retry(exc=exc, countdown=60 * (self.request.retries + 1))

    finally:
        db.close()
