import os

# Must be set before gymsched.config builds its engine
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gymsched.api.dependencies import CurrentUser, UserType, get_current_user, get_db
from gymsched.main import create_app
from gymsched.models import Base
from gymsched.services.schedule.active_schedule_service import ActiveScheduleService
from gymsched.services.schedule.template_service import ScheduleTemplateService

GYM_ID = "gym-1"
OWNER = CurrentUser(id="owner-1", user_type=UserType.OWNER, gym_id=GYM_ID)


def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(url="sqlite://", **kwargs):
    engine = create_engine(url, **kwargs)
    event.listen(engine, "connect", _enable_foreign_keys)
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture
def engine():
    engine = make_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def caller():
    """Mutable holder for the identity the API sees; tests swap ``caller.user``"""
    class Caller:
        user = OWNER
    return Caller


@pytest.fixture
def client(session_factory, caller):
    app = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    async def override_current_user():
        return caller.user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_current_user
    with TestClient(app) as test_client:
        yield test_client


def template_payload(name="Morning classes", days=None, coach_ids=None):
    if days is None:
        days = [
            {
                "day_of_week": 1,
                "time_slots": [
                    {"start_time": "09:00", "end_time": "10:00", "capacity": 5},
                    {"start_time": "18:00", "end_time": "19:00", "capacity": 2},
                ],
            },
            {
                "day_of_week": 3,
                "time_slots": [
                    {"start_time": "07:00", "end_time": "08:00", "capacity": 1},
                ],
            },
        ]
    return {
        "name": name,
        "description": "Weekly group sessions",
        "coach_ids": coach_ids or ["coach-1"],
        "days": days,
    }


def create_template(db, gym_id=GYM_ID, **kwargs):
    return ScheduleTemplateService.create_template(
        db, gym_id=gym_id, created_by=OWNER.id, data=template_payload(**kwargs)
    )


def create_schedule(db, gym_id=GYM_ID, **kwargs):
    template = create_template(db, gym_id=gym_id, **kwargs)
    return ActiveScheduleService.create_from_template(db, template.id)


def find_slot(schedule, day_of_week, start_time):
    for day in schedule.days:
        if day.day_of_week != day_of_week:
            continue
        for slot in day.time_slots:
            if slot.start_time == start_time:
                return slot
    return None


@pytest.fixture
def file_session_factory(tmp_path):
    """Sessions on a file database, one connection each, for threaded tests"""
    engine = make_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()
