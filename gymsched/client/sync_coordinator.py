# ============================================================================
# FILE: gymsched/client/sync_coordinator.py
# Remote-side schedule state: optimistic join/leave with rollback
# ============================================================================
"""
Keeps a local copy of the caller's available schedules in sync with the
server.

A join or leave is applied to the local copy before the server answers, so a
UI can react immediately. The copy taken just before the patch is the undo
point: if the server rejects the action (full, already joined, network
failure...) the target timeslot is put back exactly as it was. Other slots
keep whatever their own in-flight actions did to them. If the server
accepts, the patch is thrown away and the schedules are reloaded, since only
the server knows what other members did in the meantime.

At most one action per (schedule, timeslot) is in flight at a time.
"""
import copy
import enum
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from gymsched.client.schedule_api import ScheduleApiClient, ScheduleApiError

logger = logging.getLogger(__name__)

Schedules = List[Dict[str, Any]]
Notifier = Callable[[str, str], None]


class SlotState(str, enum.Enum):
    IDLE = "idle"
    PENDING = "pending"


class ActionInProgressError(Exception):
    """Raised when a second action targets a slot that already has one in flight"""

    def __init__(self, schedule_id: str, timeslot_id: str):
        self.schedule_id = schedule_id
        self.timeslot_id = timeslot_id
        super().__init__(f"An action on timeslot {timeslot_id} is already in progress")


@dataclass
class CoachSummary:
    id: str
    name: str
    total_spots: int = 0
    available_spots: int = 0
    user_bookings: int = 0


def log_notifier(level: str, message: str) -> None:
    """Default notifier: user-facing messages go to the log"""
    if level == "error":
        logger.warning(message)
    else:
        logger.info(message)


class OptimisticCommand:
    """
    Snapshot, apply a local patch, send, and revert on failure.

    ``patch`` receives a private deep copy of the current state and returns
    the provisional state. If ``send`` raises, ``revert`` is called with a
    copy of the state as it is *now* and the snapshot, and its result is
    written back; the exception then propagates to the caller. Without a
    ``revert`` the whole snapshot is restored.
    """

    def __init__(
            self,
            read_state: Callable[[], Any],
            write_state: Callable[[Any], None],
            patch: Callable[[Any], Any],
            send: Callable[[], Awaitable[Any]],
            revert: Optional[Callable[[Any, Any], Any]] = None
    ):
        self.read_state = read_state
        self.write_state = write_state
        self.patch = patch
        self.send = send
        self.revert = revert
        self.snapshot = None

    async def execute(self) -> Any:
        self.snapshot = copy.deepcopy(self.read_state())
        self.write_state(self.patch(copy.deepcopy(self.snapshot)))

        try:
            return await self.send()
        except Exception:
            if self.revert is None:
                self.write_state(self.snapshot)
            else:
                self.write_state(self.revert(copy.deepcopy(self.read_state()), self.snapshot))
            raise


def _patch_timeslot(schedules: Schedules, schedule_id: str, timeslot_id: str, change) -> Schedules:
    for schedule in schedules:
        if schedule["id"] != schedule_id:
            continue
        for day in schedule["days"]:
            for slot in day["timeSlots"]:
                if slot["id"] == timeslot_id:
                    change(slot)
    return schedules


def _find_timeslot(schedules: Schedules, schedule_id: str, timeslot_id: str) -> Optional[Dict[str, Any]]:
    for schedule in schedules:
        if schedule["id"] != schedule_id:
            continue
        for day in schedule["days"]:
            for slot in day["timeSlots"]:
                if slot["id"] == timeslot_id:
                    return slot
    return None


def _restore_timeslot(current: Schedules, snapshot: Schedules, schedule_id: str, timeslot_id: str) -> Schedules:
    """Put one timeslot back as it was in ``snapshot``, leaving every other slot as it is now"""
    saved = _find_timeslot(snapshot, schedule_id, timeslot_id)
    if saved is None:
        return current

    def restore(slot):
        slot.clear()
        slot.update(copy.deepcopy(saved))

    return _patch_timeslot(current, schedule_id, timeslot_id, restore)


class ScheduleSyncCoordinator:
    """Local, optimistically updated view of the caller's available schedules"""

    def __init__(self, api: ScheduleApiClient, user_id: str, notifier: Optional[Notifier] = None):
        self.api = api
        self.user_id = user_id
        self.notifier = notifier or log_notifier

        self.schedules: Schedules = []
        self.selected_coach_id: Optional[str] = None
        self.loading = False
        self.error: Optional[str] = None
        self._in_flight: Dict[Tuple[str, str], SlotState] = {}

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load_schedules(self) -> bool:
        """
        Replace local state with the server's projection.

        On failure the last known schedules are kept and ``error`` is set.
        """
        self.loading = True
        self.error = None
        try:
            self.schedules = await self.api.get_available_schedules()
            return True
        except ScheduleApiError as e:
            self.error = e.message or "Failed to load schedules"
            self.notifier("error", self.error)
            return False
        finally:
            self.loading = False

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def slot_state(self, schedule_id: str, timeslot_id: str) -> SlotState:
        return self._in_flight.get((schedule_id, timeslot_id), SlotState.IDLE)

    @property
    def action_loading(self) -> Dict[str, bool]:
        """Timeslot ids with an action in flight"""
        return {timeslot_id: True for (_, timeslot_id) in self._in_flight}

    async def join_timeslot(self, schedule_id: str, timeslot_id: str) -> bool:
        user_id = self.user_id

        def claim(slot):
            if user_id not in slot["assignedClients"]:
                slot["assignedClients"].append(user_id)
                slot["availableSpots"] -= 1
            slot["isUserAssigned"] = True

        return await self._run_action(
            schedule_id,
            timeslot_id,
            change=claim,
            send=lambda: self.api.join_timeslot(schedule_id, timeslot_id),
            success_message="You have joined this timeslot!",
        )

    async def leave_timeslot(self, schedule_id: str, timeslot_id: str) -> bool:
        user_id = self.user_id

        def release(slot):
            if user_id in slot["assignedClients"]:
                slot["assignedClients"] = [c for c in slot["assignedClients"] if c != user_id]
                slot["availableSpots"] += 1
            slot["isUserAssigned"] = False

        return await self._run_action(
            schedule_id,
            timeslot_id,
            change=release,
            send=lambda: self.api.leave_timeslot(schedule_id, timeslot_id),
            success_message="You have left this timeslot.",
        )

    async def _run_action(self, schedule_id, timeslot_id, change, send, success_message) -> bool:
        key = (schedule_id, timeslot_id)
        if key in self._in_flight:
            raise ActionInProgressError(schedule_id, timeslot_id)

        self._in_flight[key] = SlotState.PENDING
        try:
            command = OptimisticCommand(
                read_state=lambda: self.schedules,
                write_state=self._set_schedules,
                patch=lambda state: _patch_timeslot(state, schedule_id, timeslot_id, change),
                send=send,
                revert=lambda state, snapshot: _restore_timeslot(state, snapshot, schedule_id, timeslot_id),
            )
            try:
                await command.execute()
            except ScheduleApiError as e:
                logger.info(f"Reverted timeslot {timeslot_id} after {e.code or 'error'}: {e.message}")
                self.notifier("error", e.message)
                return False

            self.notifier("success", success_message)
            await self.load_schedules()
            return True
        finally:
            del self._in_flight[key]

    def _set_schedules(self, schedules: Schedules) -> None:
        self.schedules = schedules

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def select_coach(self, coach_id: Optional[str]) -> None:
        self.selected_coach_id = coach_id

    @property
    def coaches_data(self) -> List[CoachSummary]:
        """Spot totals per coach across the schedules they staff"""
        coaches: Dict[str, CoachSummary] = {}
        for schedule in self.schedules:
            for coach_id in schedule["coachIds"]:
                summary = coaches.get(coach_id)
                if summary is None:
                    summary = coaches[coach_id] = CoachSummary(id=coach_id, name=f"Coach {coach_id[-4:]}")

                for day in schedule["days"]:
                    for slot in day["timeSlots"]:
                        summary.total_spots += slot["capacity"]
                        summary.available_spots += slot["availableSpots"]
                        if slot["isUserAssigned"]:
                            summary.user_bookings += 1
        return list(coaches.values())

    @property
    def selected_coach(self) -> Optional[CoachSummary]:
        if not self.selected_coach_id:
            return None
        for coach in self.coaches_data:
            if coach.id == self.selected_coach_id:
                return coach
        return None

    def timeslots_by_day(self, coach_id: Optional[str] = None) -> Dict[int, List[Dict[str, Any]]]:
        """A coach's timeslots grouped by dayOfWeek, sorted by startTime"""
        coach_id = coach_id or self.selected_coach_id
        if not coach_id:
            return {}

        by_day: Dict[int, List[Dict[str, Any]]] = {}
        for schedule in self.schedules:
            if coach_id not in schedule["coachIds"]:
                continue
            for day in schedule["days"]:
                slots = by_day.setdefault(day["dayOfWeek"], [])
                slots.extend(
                    {**slot, "scheduleId": schedule["id"], "dayOfWeek": day["dayOfWeek"]}
                    for slot in day["timeSlots"]
                )

        for slots in by_day.values():
            slots.sort(key=lambda s: s["startTime"])
        return by_day

    @property
    def user_timeslots_by_coach(self) -> Dict[str, List[Dict[str, Any]]]:
        """The caller's booked timeslots, grouped under every coach of their schedule"""
        by_coach: Dict[str, List[Dict[str, Any]]] = {}
        for schedule in self.schedules:
            for coach_id in schedule["coachIds"]:
                booked = by_coach.setdefault(coach_id, [])
                for day in schedule["days"]:
                    booked.extend(
                        {**slot, "scheduleId": schedule["id"], "dayOfWeek": day["dayOfWeek"]}
                        for slot in day["timeSlots"]
                        if slot["isUserAssigned"]
                    )
        return by_coach
