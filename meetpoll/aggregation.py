"""Availability tallies and best time option selection.

Everything here is a pure function of the rows it is given. Counts are
recomputed from the current response set on every read; nothing is
cached between calls.
"""

from collections import Counter
from typing import Any, Iterable, Mapping, Sequence, TypeVar

from meetpoll.models.polls import (
    AVAILABILITY_STATUSES,
    AvailabilityCount,
    ParticipantStatus,
    TimeOption,
    TimeOptionWithAvailability,
)

UNKNOWN_PARTICIPANT = "Unknown"

T = TypeVar("T", bound=TimeOptionWithAvailability)


def count_availability(responses: Iterable[Mapping[str, Any]]) -> AvailabilityCount:
    """Tally responses by status.

    Statuses outside the closed set are not counted, so ``total`` is
    always the sum of the three buckets.
    """
    counts: Counter = Counter(r["status"] for r in responses)
    buckets = {status: counts[status] for status in AVAILABILITY_STATUSES}
    return AvailabilityCount(**buckets, total=sum(buckets.values()))


def participant_statuses(
    responses: Iterable[Mapping[str, Any]],
    participant_names: Mapping[int, str],
) -> list[ParticipantStatus]:
    return [
        ParticipantStatus(
            id=r["participant_id"],
            name=participant_names.get(r["participant_id"], UNKNOWN_PARTICIPANT),
            status=r["status"],
        )
        for r in responses
    ]


def aggregate_time_option(
    time_option: TimeOption,
    responses: Sequence[Mapping[str, Any]],
    participant_names: Mapping[int, str],
) -> TimeOptionWithAvailability:
    """Attach counts and per-participant statuses to one time option.

    Only responses whose ``time_option_id`` matches the option are used,
    so callers may pass an event's whole response set.
    """
    own = [r for r in responses if r["time_option_id"] == time_option.id]
    return TimeOptionWithAvailability(
        **time_option.model_dump(),
        availability_count=count_availability(own),
        participants=participant_statuses(own, participant_names),
    )


def select_best_time_options(options: Sequence[T]) -> list[T]:
    """Return every option with the most "available" answers, then the most "maybe".

    Ties that survive both keys are all kept, in input order. When nobody
    has answered anything the result is empty.
    """
    if not options:
        return []
    if sum(o.availability_count.total for o in options) == 0:
        return []

    max_available = max(o.availability_count.available for o in options)
    top_available = [o for o in options if o.availability_count.available == max_available]

    max_maybe = max(o.availability_count.maybe for o in top_available)
    return [o for o in top_available if o.availability_count.maybe == max_maybe]


def rank_time_options(options: Sequence[T]) -> list[T]:
    """Order options by available, then maybe, both descending. Stable for ties."""
    return sorted(
        options,
        key=lambda o: (-o.availability_count.available, -o.availability_count.maybe),
    )
