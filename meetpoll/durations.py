"""Duration labels offered when creating an event.

The label is stored verbatim on the event. It decides whether a time
option is a clock slot on one day or a multi-day range, and lets the
server fill in an end time the client left out.
"""

from datetime import date, datetime, timedelta

SLOT_MINUTES: dict[str, int] = {
    "30 minutes": 30,
    "1 hour": 60,
    "1.5 hours": 90,
    "2 hours": 120,
    "3 hours": 180,
    "4 hours": 240,
    "5 hours": 300,
    "6 hours": 360,
}
ALL_DAY = "All day"
ALL_DAY_END = "23:59"

# Days added to the start date to reach the last day of the range.
RANGE_EXTRA_DAYS: dict[str, int] = {
    "2 days": 1,
    "3 days": 2,
    "4 days": 3,
    "A week": 7,
}

DURATION_LABELS: tuple[str, ...] = (*SLOT_MINUTES, ALL_DAY, *RANGE_EXTRA_DAYS)


def is_known_duration(label: str) -> bool:
    return label in DURATION_LABELS


def is_multi_day(label: str) -> bool:
    return label in RANGE_EXTRA_DAYS


def compute_end_time(start_time: str, label: str) -> str | None:
    """Return the HH:MM end of a slot starting at ``start_time``.

    Wraps past midnight. Returns None for multi-day or unknown labels.
    """
    if label == ALL_DAY:
        return ALL_DAY_END
    minutes = SLOT_MINUTES.get(label)
    if minutes is None:
        return None
    start = datetime.strptime(start_time, "%H:%M")
    return (start + timedelta(minutes=minutes)).strftime("%H:%M")


def compute_end_date(start_date: str, label: str) -> str | None:
    """Return the ISO date of the last day of a multi-day range."""
    extra = RANGE_EXTRA_DAYS.get(label)
    if extra is None:
        return None
    return (date.fromisoformat(start_date) + timedelta(days=extra)).isoformat()
