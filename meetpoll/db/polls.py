"""Polls repository: events, time options, participants and responses."""

from datetime import UTC, date, datetime, time
from typing import Any

from psycopg import errors as pg_errors

from meetpoll.db.core import _get_connection
from meetpoll.errors import ShareIdCollisionError

_EVENT_COLUMNS = "id, title, description, duration, share_id, created_at"
_TIME_OPTION_COLUMNS = "id, event_id, date, start_time, end_time"
_PARTICIPANT_COLUMNS = "id, event_id, name, created_at"


def _fmt_time(value: time | None) -> str | None:
    return value.strftime("%H:%M") if value is not None else None


def _parse_time(value: str | None) -> time | None:
    return time.fromisoformat(value) if value else None


def _event_row(row) -> dict[str, Any]:
    return {
        "id": row[0],
        "title": row[1],
        "description": row[2],
        "duration": row[3],
        "share_id": row[4],
        "created_at": row[5].astimezone(UTC).isoformat(),
    }


def _time_option_row(row) -> dict[str, Any]:
    return {
        "id": row[0],
        "event_id": row[1],
        "date": row[2].isoformat(),
        "start_time": _fmt_time(row[3]),
        "end_time": _fmt_time(row[4]),
    }


def _participant_row(row) -> dict[str, Any]:
    return {
        "id": row[0],
        "event_id": row[1],
        "name": row[2],
        "created_at": row[3].astimezone(UTC).isoformat(),
    }


def _response_row(row) -> dict[str, Any]:
    return {
        "id": row[0],
        "participant_id": row[1],
        "time_option_id": row[2],
        "status": row[3],
    }


async def _upsert_participant(conn, event_id: int, name: str, name_key: str) -> tuple[int, bool]:
    """Return (participant id, created). Matching is on the lower-cased key."""
    row = await (await conn.execute(
        """
        INSERT INTO poll_participants (event_id, name, name_key, created_at)
        VALUES (%s, %s, %s, %s)
        ON CONFLICT (event_id, name_key) DO UPDATE SET name_key = EXCLUDED.name_key
        RETURNING id, (xmax = 0) AS created
        """,
        (event_id, name, name_key, datetime.now(UTC)),
    )).fetchone()
    return row[0], bool(row[1])


async def _replace_responses(conn, participant_id: int, entries: list[dict[str, Any]]) -> None:
    await conn.execute(
        "DELETE FROM poll_responses WHERE participant_id = %s", (participant_id,)
    )
    for entry in entries:
        await conn.execute(
            "INSERT INTO poll_responses (participant_id, time_option_id, status) VALUES (%s, %s, %s)",
            (participant_id, entry["time_option_id"], entry["status"]),
        )


async def polls_create_event(
    title: str,
    description: str | None,
    duration: str,
    share_id: str,
    time_options: list[dict[str, Any]],
    organizer_name: str | None = None,
    organizer_name_key: str | None = None,
    organizer_statuses: list[str | None] | None = None,
) -> dict[str, Any]:
    """Insert an event with its time options in one transaction.

    Time options keep their input order. When ``organizer_name`` is given
    the organizer is stored as the first participant, answering option
    ``i`` with ``organizer_statuses[i]`` (None entries are skipped).

    Raises ShareIdCollisionError if ``share_id`` is taken; nothing is
    written in that case.
    """
    now = datetime.now(UTC)
    async with _get_connection() as conn:
        try:
            async with conn.transaction():
                row = await (await conn.execute(
                    f"""
                    INSERT INTO poll_events (title, description, duration, share_id, created_at)
                    VALUES (%s, %s, %s, %s, %s)
                    RETURNING {_EVENT_COLUMNS}
                    """,
                    (title, description, duration, share_id, now),
                )).fetchone()
                event = _event_row(row)

                created_options = []
                for option in time_options:
                    opt_row = await (await conn.execute(
                        f"""
                        INSERT INTO poll_time_options (event_id, date, start_time, end_time)
                        VALUES (%s, %s, %s, %s)
                        RETURNING {_TIME_OPTION_COLUMNS}
                        """,
                        (
                            event["id"],
                            date.fromisoformat(option["date"]),
                            _parse_time(option.get("start_time")),
                            _parse_time(option.get("end_time")),
                        ),
                    )).fetchone()
                    created_options.append(_time_option_row(opt_row))

                if organizer_name:
                    statuses = organizer_statuses or []
                    participant_id, _ = await _upsert_participant(
                        conn, event["id"], organizer_name, organizer_name_key or organizer_name.lower()
                    )
                    entries = [
                        {"time_option_id": opt["id"], "status": status}
                        for opt, status in zip(created_options, statuses)
                        if status is not None
                    ]
                    await _replace_responses(conn, participant_id, entries)
        except pg_errors.UniqueViolation as e:
            constraint = getattr(e.diag, "constraint_name", None) or ""
            if "share_id" not in constraint:
                raise
            raise ShareIdCollisionError(share_id=share_id) from e

    event["time_options"] = created_options
    return event


async def polls_get_event_by_share_id(share_id: str) -> dict[str, Any] | None:
    async with _get_connection() as conn:
        row = await (await conn.execute(
            f"SELECT {_EVENT_COLUMNS} FROM poll_events WHERE share_id = %s", (share_id,)
        )).fetchone()
        return _event_row(row) if row else None


async def polls_get_time_options(event_id: int) -> list[dict[str, Any]]:
    async with _get_connection() as conn:
        rows = await conn.execute(
            f"SELECT {_TIME_OPTION_COLUMNS} FROM poll_time_options WHERE event_id = %s ORDER BY id",
            (event_id,),
        )
        return [_time_option_row(row) async for row in rows]


async def polls_get_event_snapshot(share_id: str) -> dict[str, Any] | None:
    """Read an event with everything needed to aggregate it.

    All reads share one repeatable-read transaction, so a concurrent
    response replacement is seen either entirely or not at all.
    """
    async with _get_connection() as conn:
        async with conn.transaction():
            await conn.execute("SET TRANSACTION ISOLATION LEVEL REPEATABLE READ, READ ONLY")
            row = await (await conn.execute(
                f"SELECT {_EVENT_COLUMNS} FROM poll_events WHERE share_id = %s", (share_id,)
            )).fetchone()
            if not row:
                return None
            event = _event_row(row)

            rows = await conn.execute(
                f"SELECT {_TIME_OPTION_COLUMNS} FROM poll_time_options WHERE event_id = %s ORDER BY id",
                (event["id"],),
            )
            time_options = [_time_option_row(r) async for r in rows]

            rows = await conn.execute(
                f"SELECT {_PARTICIPANT_COLUMNS} FROM poll_participants WHERE event_id = %s ORDER BY id",
                (event["id"],),
            )
            participants = [_participant_row(r) async for r in rows]

            rows = await conn.execute(
                """
                SELECT r.id, r.participant_id, r.time_option_id, r.status
                FROM poll_responses r
                JOIN poll_time_options t ON t.id = r.time_option_id
                WHERE t.event_id = %s
                ORDER BY r.id
                """,
                (event["id"],),
            )
            responses = [_response_row(r) async for r in rows]

    return {
        "event": event,
        "time_options": time_options,
        "participants": participants,
        "responses": responses,
    }


async def polls_submit_availability(
    event_id: int,
    name: str,
    name_key: str,
    entries: list[dict[str, Any]],
) -> dict[str, Any]:
    """Upsert a participant by ``name_key`` and replace all of their responses.

    Runs as one transaction: readers never see the participant with a
    partially replaced response set.
    """
    async with _get_connection() as conn:
        async with conn.transaction():
            participant_id, created = await _upsert_participant(conn, event_id, name, name_key)
            await _replace_responses(conn, participant_id, entries)
    return {"participant_id": participant_id, "created": created}
