import uuid

import pytest

from conftest import create_schedule
from gymsched.config.celery_config import celery_app
from gymsched.tasks import schedule_tasks


@pytest.fixture
def task_sessions(session_factory, monkeypatch):
    monkeypatch.setattr(schedule_tasks, "SessionLocal", session_factory)


def test_weekly_reset_is_scheduled():
    entry = celery_app.conf.beat_schedule["weekly-schedule-reset"]

    assert entry["task"] == schedule_tasks.reset_all_active_schedules.name


def test_reset_all_task(db, task_sessions):
    create_schedule(db, name="One")
    create_schedule(db, name="Two")

    result = schedule_tasks.reset_all_active_schedules()

    assert result["success"] is True
    assert result["reset_count"] == 2


def test_reset_one_task(db, task_sessions):
    schedule = create_schedule(db)

    result = schedule_tasks.reset_active_schedule(str(schedule.id))

    assert result == {"status": "success", "schedule_id": str(schedule.id)}


def test_reset_one_task_missing_schedule(task_sessions):
    result = schedule_tasks.reset_active_schedule(str(uuid.uuid4()))

    assert result["status"] == "failed"
