# gymsched/services/schedule/availability.py
"""
Availability projection.

Pure functions over the persisted schedule shape produced by
``ActiveSchedule.to_dict()``. Nothing here is stored or cached: every read
recomputes ``available_spots`` and ``is_user_assigned`` from the member list
it was handed, so the values cannot drift from the authoritative set.
"""
from typing import Dict, List, Optional


def available_spots(slot: Dict) -> int:
    return slot["capacity"] - len(slot["assigned_clients"])


def is_full(slot: Dict) -> bool:
    return available_spots(slot) <= 0


def project_timeslot(slot: Dict, user_id: Optional[str]) -> Dict:
    return {
        **slot,
        "assigned_clients": list(slot["assigned_clients"]),
        "available_spots": available_spots(slot),
        "is_user_assigned": user_id is not None and user_id in slot["assigned_clients"],
    }


def project_schedule(schedule: Dict, user_id: Optional[str]) -> Dict:
    """Attach availability fields to every timeslot of one schedule"""
    return {
        **schedule,
        "days": [
            {
                **day,
                "time_slots": [project_timeslot(slot, user_id) for slot in day["time_slots"]],
            }
            for day in schedule["days"]
        ],
    }


def project_schedules(schedules: List[Dict], user_id: Optional[str]) -> List[Dict]:
    return [project_schedule(schedule, user_id) for schedule in schedules]


def my_schedule(schedules: List[Dict], user_id: str) -> List[Dict]:
    """
    Only the timeslots ``user_id`` holds, grouped by schedule. Days and
    schedules with nothing booked are left out.
    """
    entries = []
    for schedule in schedules:
        days = []
        for day in schedule["days"]:
            slots = [
                {
                    "id": slot["id"],
                    "start_time": slot["start_time"],
                    "end_time": slot["end_time"],
                    "capacity": slot["capacity"],
                    "available_spots": available_spots(slot),
                }
                for slot in day["time_slots"]
                if user_id in slot["assigned_clients"]
            ]
            if slots:
                days.append({"day_of_week": day["day_of_week"], "time_slots": slots})

        if days:
            entries.append({
                "schedule_id": schedule["id"],
                "schedule_name": schedule.get("template_name"),
                "gym_id": schedule["gym_id"],
                "days": days,
            })
    return entries
