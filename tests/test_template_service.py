import uuid

import pytest
from pydantic import ValidationError

from conftest import GYM_ID, create_schedule, create_template, template_payload
from gymsched.core.exceptions import (
    AlreadyExistsError,
    ConflictError,
    NotFoundError,
    ScheduleValidationError,
)
from gymsched.schemas.schedule import ScheduleTemplateCreate, TimeSlotSchema
from gymsched.services.schedule.template_service import ScheduleTemplateService


def test_create_template_stores_structure(db):
    template = create_template(db)

    assert template.gym_id == GYM_ID
    assert template.name == "Morning classes"
    assert template.days[0]["time_slots"][0] == {
        "start_time": "09:00", "end_time": "10:00", "capacity": 5,
    }


def test_duplicate_name_in_same_gym(db):
    create_template(db)

    with pytest.raises(AlreadyExistsError):
        create_template(db)


def test_same_name_in_other_gym_is_fine(db):
    create_template(db)
    other = create_template(db, gym_id="gym-2")

    assert other.gym_id == "gym-2"


def test_invalid_payload_is_validation_error(db):
    payload = template_payload(days=[{
        "day_of_week": 1,
        "time_slots": [{"start_time": "10:00", "end_time": "09:00", "capacity": 5}],
    }])

    with pytest.raises(ScheduleValidationError):
        ScheduleTemplateService.create_template(db, GYM_ID, "owner-1", payload)


def test_update_is_partial(db):
    template = create_template(db)

    updated = ScheduleTemplateService.update_template(db, template.id, {"name": "Evening classes"})

    assert updated.name == "Evening classes"
    assert updated.description == "Weekly group sessions"
    assert len(updated.days) == 2


def test_update_to_taken_name(db):
    create_template(db, name="Taken")
    template = create_template(db, name="Mine")

    with pytest.raises(AlreadyExistsError):
        ScheduleTemplateService.update_template(db, template.id, {"name": "Taken"})


def test_list_templates_by_coach(db):
    create_template(db, name="A", coach_ids=["coach-1"])
    create_template(db, name="B", coach_ids=["coach-2", "coach-1"])
    create_template(db, name="C", coach_ids=["coach-3"])

    names = {t.name for t in ScheduleTemplateService.list_templates(db, gym_id=GYM_ID, coach_id="coach-1")}

    assert names == {"A", "B"}


def test_delete_template(db):
    template = create_template(db)

    ScheduleTemplateService.delete_template(db, template.id)

    with pytest.raises(NotFoundError):
        ScheduleTemplateService.get_template(db, template.id)


def test_delete_template_in_use(db):
    schedule = create_schedule(db)

    with pytest.raises(ConflictError):
        ScheduleTemplateService.delete_template(db, schedule.template_id)


def test_get_missing_template(db):
    with pytest.raises(NotFoundError):
        ScheduleTemplateService.get_template(db, uuid.uuid4())


# ----------------------------------------------------------------------
# Schema validation
# ----------------------------------------------------------------------

@pytest.mark.parametrize("start,end", [
    ("9:00", "10:00"),
    ("24:00", "23:00"),
    ("09:60", "10:00"),
    ("10:00", "10:00"),
])
def test_bad_timeslot_times(start, end):
    with pytest.raises(ValidationError):
        TimeSlotSchema(start_time=start, end_time=end, capacity=1)


def test_timeslot_capacity_must_be_positive():
    with pytest.raises(ValidationError):
        TimeSlotSchema(start_time="09:00", end_time="10:00", capacity=0)


def test_camel_case_input_is_accepted():
    slot = TimeSlotSchema.model_validate({"startTime": "09:00", "endTime": "10:00", "capacity": 3})

    assert slot.start_time == "09:00"
    assert slot.model_dump(by_alias=True) == {"startTime": "09:00", "endTime": "10:00", "capacity": 3}


def test_duplicate_day_or_start_time_rejected():
    slot = {"start_time": "09:00", "end_time": "10:00", "capacity": 3}

    with pytest.raises(ValidationError):
        ScheduleTemplateCreate.model_validate(template_payload(days=[
            {"day_of_week": 1, "time_slots": [slot]},
            {"day_of_week": 1, "time_slots": [slot]},
        ]))
    with pytest.raises(ValidationError):
        ScheduleTemplateCreate.model_validate(template_payload(days=[
            {"day_of_week": 1, "time_slots": [slot, slot]},
        ]))


def test_name_is_trimmed_and_coaches_deduped():
    payload = ScheduleTemplateCreate.model_validate(
        template_payload(name="  Spin  ", coach_ids=["c1", "c2", "c1"])
    )

    assert payload.name == "Spin"
    assert payload.coach_ids == ["c1", "c2"]
