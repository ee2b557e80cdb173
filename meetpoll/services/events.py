"""Event creation, aggregated retrieval and participation.

The service validates what the HTTP layer cannot know (time options that
belong to another event, duplicate answers), resolves the time option
shape from the event duration and delegates every write to a single
repository call so each operation commits atomically.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any

from meetpoll import db
from meetpoll.aggregation import aggregate_time_option, rank_time_options, select_best_time_options
from meetpoll.config import get_settings
from meetpoll.durations import compute_end_date, compute_end_time, is_known_duration, is_multi_day
from meetpoll.errors import NotFoundError, ShareIdCollisionError, StorageError, ValidationError
from meetpoll.models.polls import (
    AvailabilityEntry,
    EventDraft,
    EventWithDetails,
    EventWithTimeOptions,
    MAX_NAME_LENGTH,
    TimeOption,
    TimeOptionDraft,
    is_clock_time,
)
from meetpoll.share_ids import generate_share_id, is_share_id

logger = logging.getLogger(__name__)


@dataclass
class ParticipateResult:
    participant_id: int
    created: bool
    success: bool = True


def participant_name_key(name: str) -> str:
    """Key under which participant names are compared within an event."""
    return name.strip().lower()


def _resolve_time_option(draft: TimeOptionDraft, duration: str) -> dict[str, Any]:
    if is_multi_day(duration):
        # A range is identified by its first day; clock times do not apply.
        return {"date": draft.date, "start_time": None, "end_time": None}
    if not draft.start_time:
        raise ValidationError(detail="Time option needs a start time", date=draft.date)
    if not is_clock_time(draft.start_time):
        raise ValidationError(detail="Start time must be HH:MM", date=draft.date)
    if draft.end_time and not is_clock_time(draft.end_time):
        raise ValidationError(detail="End time must be HH:MM", date=draft.date)
    end_time = draft.end_time or compute_end_time(draft.start_time, duration)
    if end_time is None:
        raise ValidationError(detail="Time option needs an end time", date=draft.date)
    return {"date": draft.date, "start_time": draft.start_time, "end_time": end_time}


def _shape_time_option(row: dict[str, Any], duration: str) -> TimeOption:
    option = TimeOption(**row)
    if is_multi_day(duration):
        return option.model_copy(update={
            "kind": "range",
            "start_time": None,
            "end_time": None,
            "end_date": compute_end_date(option.date, duration),
        })
    return option


async def create_event(
    draft: EventDraft,
    time_options: list[TimeOptionDraft],
) -> EventWithTimeOptions:
    """Persist an event and its time options, all or nothing.

    If the draft names an organizer, their answers (``availability`` on
    each time option) are stored in the same transaction.
    """
    settings = get_settings().polls
    title = (draft.title or "").strip()
    duration = (draft.duration or "").strip()
    if not title:
        raise ValidationError(detail="Event title is required")
    if not duration:
        raise ValidationError(detail="Event duration is required")
    if not time_options:
        raise ValidationError(detail="At least one time option is required")
    if len(time_options) > settings.max_time_options:
        raise ValidationError(
            detail=f"At most {settings.max_time_options} time options are allowed",
            count=len(time_options),
        )
    if not is_known_duration(duration):
        logger.info("Event uses custom duration label %r", duration)

    resolved = [_resolve_time_option(t, duration) for t in time_options]
    organizer_name = (draft.organizer_name or "").strip() or None
    if organizer_name and len(organizer_name) > MAX_NAME_LENGTH:
        raise ValidationError(detail=f"Organizer name exceeds {MAX_NAME_LENGTH} characters")
    organizer_statuses = [t.availability for t in time_options] if organizer_name else None

    for attempt in range(1, settings.share_id_max_attempts + 1):
        share_id = generate_share_id(settings.share_id_length)
        try:
            created = await db.polls_create_event(
                title=title,
                description=draft.description,
                duration=duration,
                share_id=share_id,
                time_options=resolved,
                organizer_name=organizer_name,
                organizer_name_key=participant_name_key(organizer_name) if organizer_name else None,
                organizer_statuses=organizer_statuses,
            )
            break
        except ShareIdCollisionError:
            logger.warning("Share id collision on attempt %d", attempt)
    else:
        raise StorageError(
            detail="Failed to generate unique share id",
            attempts=settings.share_id_max_attempts,
        )

    logger.info(
        "Created event id=%s share_id=%s time_options=%d organizer=%s",
        created["id"],
        created["share_id"],
        len(created["time_options"]),
        organizer_name is not None,
    )
    return EventWithTimeOptions(**{
        **created,
        "time_options": [_shape_time_option(t, duration) for t in created["time_options"]],
    })


async def get_event_by_share_id(share_id: str) -> EventWithDetails:
    """Load an event and aggregate every time option from one snapshot.

    Raises NotFoundError when no event has this share id.
    """
    if not is_share_id(share_id):
        raise NotFoundError(detail="Event not found", share_id=share_id)
    snapshot = await db.polls_get_event_snapshot(share_id)
    if snapshot is None:
        raise NotFoundError(detail="Event not found", share_id=share_id)

    event = snapshot["event"]
    participants = snapshot["participants"]
    names = {p["id"]: p["name"] for p in participants}
    by_option: dict[int, list[dict[str, Any]]] = defaultdict(list)
    for response in snapshot["responses"]:
        by_option[response["time_option_id"]].append(response)

    options = [
        aggregate_time_option(
            _shape_time_option(row, event["duration"]),
            by_option.get(row["id"], []),
            names,
        )
        for row in snapshot["time_options"]
    ]
    best = select_best_time_options(options)
    return EventWithDetails(
        **event,
        time_options=options,
        participant_count=len(participants),
        best_time_option_ids=[o.id for o in best],
        ranked_time_option_ids=[o.id for o in rank_time_options(options)],
    )


async def participate(
    share_id: str,
    name: str,
    entries: list[AvailabilityEntry],
) -> ParticipateResult:
    """Record a participant's answers, replacing any earlier submission.

    Names match case-insensitively, so "alice" updates "Alice". Every
    ``time_option_id`` must belong to the event and appear at most once.
    An empty list is valid and clears the participant's answers.
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError(detail="Participant name is required")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(detail=f"Participant name exceeds {MAX_NAME_LENGTH} characters")

    event = await db.polls_get_event_by_share_id(share_id) if is_share_id(share_id) else None
    if event is None:
        raise NotFoundError(detail="Event not found", share_id=share_id)

    option_ids = {t["id"] for t in await db.polls_get_time_options(event["id"])}
    seen: set[int] = set()
    for entry in entries:
        if entry.time_option_id not in option_ids:
            raise ValidationError(
                detail="Time option does not belong to this event",
                time_option_id=entry.time_option_id,
            )
        if entry.time_option_id in seen:
            raise ValidationError(
                detail="Time option answered more than once",
                time_option_id=entry.time_option_id,
            )
        seen.add(entry.time_option_id)

    result = await db.polls_submit_availability(
        event_id=event["id"],
        name=name,
        name_key=participant_name_key(name),
        entries=[{"time_option_id": e.time_option_id, "status": e.status} for e in entries],
    )
    logger.info(
        "%s participant id=%s on event %s with %d responses",
        "Created" if result["created"] else "Updated",
        result["participant_id"],
        share_id,
        len(entries),
    )
    return ParticipateResult(participant_id=result["participant_id"], created=result["created"])
