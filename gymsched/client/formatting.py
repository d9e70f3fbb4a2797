# gymsched/client/formatting.py
"""Display helpers for schedule timeslots"""

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
SHORT_DAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def format_time(time: str) -> str:
    """
    Convert 24-hour ``HH:MM`` to 12-hour with AM/PM.

    >>> format_time("14:30")
    '2:30 PM'
    """
    hours, minutes = (int(part) for part in time.split(":"))
    period = "PM" if hours >= 12 else "AM"
    display_hours = hours % 12 or 12
    return f"{display_hours}:{minutes:02d} {period}"


def format_time_range(start: str, end: str) -> str:
    return f"{format_time(start)} - {format_time(end)}"


def day_name(day_of_week: int) -> str:
    if 0 <= day_of_week < len(DAY_NAMES):
        return DAY_NAMES[day_of_week]
    return "Unknown"


def short_day_name(day_of_week: int) -> str:
    if 0 <= day_of_week < len(SHORT_DAY_NAMES):
        return SHORT_DAY_NAMES[day_of_week]
    return "Unknown"


def format_capacity(available_spots: int, capacity: int) -> str:
    """Filled over total, e.g. ``"3/10 spots"``"""
    filled = capacity - available_spots
    return f"{filled}/{capacity} spots"


def capacity_color(available_spots: int, capacity: int) -> str:
    percent_filled = (capacity - available_spots) / capacity * 100

    if percent_filled >= 100:
        return "red"
    if percent_filled >= 75:
        return "orange"
    if percent_filled >= 50:
        return "yellow"
    return "green"
