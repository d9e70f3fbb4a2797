from gymsched.services.schedule.availability import (
    available_spots,
    is_full,
    my_schedule,
    project_schedule,
)


def _schedule(schedule_id="s1", slots=None):
    return {
        "id": schedule_id,
        "gym_id": "gym-1",
        "template_name": "Morning classes",
        "coach_ids": ["coach-1"],
        "days": [
            {
                "day_of_week": 1,
                "time_slots": slots if slots is not None else [
                    {"id": "t1", "start_time": "09:00", "end_time": "10:00", "capacity": 3,
                     "assigned_clients": ["a", "b"]},
                    {"id": "t2", "start_time": "18:00", "end_time": "19:00", "capacity": 1,
                     "assigned_clients": []},
                ],
            },
            {
                "day_of_week": 4,
                "time_slots": [
                    {"id": "t3", "start_time": "07:00", "end_time": "08:00", "capacity": 1,
                     "assigned_clients": ["c"]},
                ],
            },
        ],
    }


def test_available_spots_and_full():
    slot = {"capacity": 2, "assigned_clients": ["a", "b"]}

    assert available_spots(slot) == 0
    assert is_full(slot)
    assert not is_full({"capacity": 2, "assigned_clients": ["a"]})


def test_project_schedule_adds_fields():
    projected = project_schedule(_schedule(), "a")
    t1, t2 = projected["days"][0]["time_slots"]

    assert (t1["available_spots"], t1["is_user_assigned"]) == (1, True)
    assert (t2["available_spots"], t2["is_user_assigned"]) == (1, False)


def test_project_schedule_does_not_mutate_input():
    schedule = _schedule()

    project_schedule(schedule, "a")

    assert "available_spots" not in schedule["days"][0]["time_slots"][0]


def test_project_schedule_without_caller():
    projected = project_schedule(_schedule(), None)

    assert not any(
        slot["is_user_assigned"] for day in projected["days"] for slot in day["time_slots"]
    )


def test_my_schedule_only_booked_slots():
    entries = my_schedule([_schedule("s1"), _schedule("s2", slots=[])], "a")

    # s2 only has day 4, where "a" holds nothing
    assert len(entries) == 1
    entry = entries[0]
    assert entry["schedule_id"] == "s1"
    assert entry["schedule_name"] == "Morning classes"
    assert [day["day_of_week"] for day in entry["days"]] == [1]
    assert [slot["id"] for slot in entry["days"][0]["time_slots"]] == ["t1"]


def test_my_schedule_nothing_booked():
    assert my_schedule([_schedule()], "nobody") == []
