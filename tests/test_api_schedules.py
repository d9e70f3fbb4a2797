from jose import jwt

from conftest import GYM_ID, OWNER
from gymsched.api.dependencies import CurrentUser, UserType, get_current_user
from gymsched.config.settings import settings

BASE = "/api/v1/gym/schedules"

CLIENT_A = CurrentUser(id="client-a", user_type=UserType.CLIENT, gym_id=GYM_ID)
CLIENT_B = CurrentUser(id="client-b", user_type=UserType.CLIENT, gym_id=GYM_ID)
OUTSIDER = CurrentUser(id="client-x", user_type=UserType.CLIENT, gym_id="gym-2")

TEMPLATE_BODY = {
    "name": "Morning classes",
    "coachIds": ["coach-1"],
    "days": [
        {
            "dayOfWeek": 1,
            "timeSlots": [
                {"startTime": "09:00", "endTime": "10:00", "capacity": 5},
                {"startTime": "12:00", "endTime": "13:00", "capacity": 1},
            ],
        },
    ],
}


def _create_active(client, caller):
    caller.user = OWNER
    response = client.post(f"{BASE}/templates", json=TEMPLATE_BODY)
    assert response.status_code == 201
    template_id = response.json()["id"]

    response = client.post(f"{BASE}/active", json={"templateId": template_id})
    assert response.status_code == 201
    return response.json()


def _slot(schedule, start_time):
    for day in schedule["days"]:
        for slot in day["timeSlots"]:
            if slot["startTime"] == start_time:
                return slot
    return None


def test_create_template_wire_format(client, caller):
    response = client.post(f"{BASE}/templates", json=TEMPLATE_BODY)

    assert response.status_code == 201
    body = response.json()
    assert body["gymId"] == GYM_ID
    assert body["coachIds"] == ["coach-1"]
    assert body["createdBy"] == OWNER.id
    assert body["days"][0]["timeSlots"][0] == {"startTime": "09:00", "endTime": "10:00", "capacity": 5}


def test_create_active_schedule(client, caller):
    schedule = _create_active(client, caller)

    slot = _slot(schedule, "09:00")
    assert slot["availableSpots"] == 5
    assert slot["isUserAssigned"] is False
    assert slot["assignedClients"] == []
    assert "assignedCount" not in slot
    assert schedule["templateName"] == "Morning classes"


def test_create_active_schedule_twice(client, caller):
    schedule = _create_active(client, caller)

    response = client.post(f"{BASE}/active", json={"templateId": schedule["templateId"]})

    assert response.status_code == 409
    assert response.json()["code"] == "ALREADY_EXISTS"


def test_join_and_leave(client, caller):
    schedule = _create_active(client, caller)
    slot_id = _slot(schedule, "09:00")["id"]
    caller.user = CLIENT_A

    response = client.post(f"{BASE}/active/{schedule['id']}/timeslots/{slot_id}/join")
    assert response.status_code == 200
    slot = _slot(response.json(), "09:00")
    assert slot["isUserAssigned"] is True
    assert slot["availableSpots"] == 4
    assert slot["assignedClients"] == [CLIENT_A.id]

    response = client.delete(f"{BASE}/active/{schedule['id']}/timeslots/{slot_id}/leave")
    assert response.status_code == 200
    slot = _slot(response.json(), "09:00")
    assert slot["isUserAssigned"] is False
    assert slot["availableSpots"] == 5


def test_join_twice(client, caller):
    schedule = _create_active(client, caller)
    slot_id = _slot(schedule, "09:00")["id"]
    caller.user = CLIENT_A
    client.post(f"{BASE}/active/{schedule['id']}/timeslots/{slot_id}/join")

    response = client.post(f"{BASE}/active/{schedule['id']}/timeslots/{slot_id}/join")

    assert response.status_code == 409
    assert response.json()["code"] == "ALREADY_JOINED"


def test_join_full_slot(client, caller):
    schedule = _create_active(client, caller)
    slot_id = _slot(schedule, "12:00")["id"]

    caller.user = CLIENT_A
    assert client.post(f"{BASE}/active/{schedule['id']}/timeslots/{slot_id}/join").status_code == 200

    caller.user = CLIENT_B
    response = client.post(f"{BASE}/active/{schedule['id']}/timeslots/{slot_id}/join")

    assert response.status_code == 409
    assert response.json() == {"detail": "This timeslot is at full capacity", "code": "FULL"}


def test_leave_without_joining(client, caller):
    schedule = _create_active(client, caller)
    slot_id = _slot(schedule, "09:00")["id"]
    caller.user = CLIENT_A

    response = client.delete(f"{BASE}/active/{schedule['id']}/timeslots/{slot_id}/leave")

    assert response.status_code == 400
    assert response.json()["code"] == "NOT_JOINED"


def test_join_unknown_timeslot(client, caller):
    schedule = _create_active(client, caller)
    caller.user = CLIENT_A

    response = client.post(
        f"{BASE}/active/{schedule['id']}/timeslots/00000000-0000-0000-0000-000000000000/join"
    )

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


def test_other_gym_cannot_book(client, caller):
    schedule = _create_active(client, caller)
    slot_id = _slot(schedule, "09:00")["id"]
    caller.user = OUTSIDER

    response = client.post(f"{BASE}/active/{schedule['id']}/timeslots/{slot_id}/join")

    assert response.status_code == 403
    assert response.json()["code"] == "ACCESS_DENIED"


def test_client_cannot_manage_templates(client, caller):
    caller.user = CLIENT_A

    response = client.post(f"{BASE}/templates", json=TEMPLATE_BODY)

    assert response.status_code == 403


def test_invalid_template_body(client, caller):
    body = {**TEMPLATE_BODY, "days": [{"dayOfWeek": 9, "timeSlots": []}]}

    response = client.post(f"{BASE}/templates", json=body)

    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_available_and_my_schedule(client, caller):
    schedule = _create_active(client, caller)
    slot_id = _slot(schedule, "09:00")["id"]
    caller.user = CLIENT_A
    client.post(f"{BASE}/active/{schedule['id']}/timeslots/{slot_id}/join")

    available = client.get(f"{BASE}/available").json()
    assert [s["id"] for s in available] == [schedule["id"]]
    assert _slot(available[0], "09:00")["isUserAssigned"] is True

    mine = client.get(f"{BASE}/my-schedule").json()
    assert len(mine) == 1
    assert mine[0]["scheduleId"] == schedule["id"]
    assert [s["id"] for s in mine[0]["days"][0]["timeSlots"]] == [slot_id]

    caller.user = OUTSIDER
    assert client.get(f"{BASE}/available").json() == []


def test_reset_and_reset_all(client, caller):
    schedule = _create_active(client, caller)

    response = client.post(f"{BASE}/active/{schedule['id']}/reset")
    assert response.status_code == 200

    response = client.post(f"{BASE}/active/reset-all")
    assert response.status_code == 200
    assert response.json()["resetCount"] == 1
    assert response.json()["success"] is True


def test_staff_assignment_routes(client, caller):
    schedule = _create_active(client, caller)

    response = client.post(f"{BASE}/active/{schedule['id']}/assign", json={"coachId": "coach-2"})
    assert response.status_code == 200
    assert response.json()["coachIds"] == ["coach-1", "coach-2"]

    response = client.delete(f"{BASE}/active/{schedule['id']}/unassign/coach-2")
    assert response.status_code == 200
    assert response.json()["coachIds"] == ["coach-1"]

    response = client.delete(f"{BASE}/active/{schedule['id']}/unassign/coach-1")
    assert response.status_code == 409


def test_delete_active_schedule(client, caller):
    schedule = _create_active(client, caller)

    assert client.delete(f"{BASE}/active/{schedule['id']}").status_code == 204
    assert client.get(f"{BASE}/active/{schedule['id']}").status_code == 404


def test_missing_token(client, caller):
    client.app.dependency_overrides.pop(get_current_user)

    response = client.get(f"{BASE}/available")

    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHENTICATED"


def test_real_token_is_decoded(client, caller):
    client.app.dependency_overrides.pop(get_current_user)
    token = jwt.encode(
        {"sub": "client-t", "user_type": "client", "gym_id": GYM_ID},
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )

    response = client.get(f"{BASE}/available", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200


def test_health_and_correlation_id(client):
    response = client.get("/health/", headers={"X-Correlation-ID": "abc-123"})

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.headers["X-Correlation-ID"] == "abc-123"
