import os
import sys
from datetime import UTC, datetime

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

# The app must not try to reach PostgreSQL during tests.
os.environ.setdefault("ENABLE_DB", "0")

import pytest
from fastapi.testclient import TestClient

import meetpoll.main as main
from meetpoll.errors import ShareIdCollisionError
from meetpoll.services import events as event_service


class FakePollsDb:
    """In-memory stand-in for the ``meetpoll.db`` repository functions."""

    def __init__(self):
        self.events: dict[int, dict] = {}
        self.time_options: dict[int, dict] = {}
        self.participants: dict[int, dict] = {}
        self.responses: dict[int, dict] = {}
        self._ids = {"event": 0, "time_option": 0, "participant": 0, "response": 0}
        self.taken_share_ids: set[str] = set()
        self.create_calls = 0

    def _next_id(self, kind: str) -> int:
        self._ids[kind] += 1
        return self._ids[kind]

    def _upsert_participant(self, event_id, name, name_key):
        for p in self.participants.values():
            if p["event_id"] == event_id and p["name_key"] == name_key:
                return p["id"], False
        pid = self._next_id("participant")
        self.participants[pid] = {
            "id": pid,
            "event_id": event_id,
            "name": name,
            "name_key": name_key,
            "created_at": datetime.now(UTC).isoformat(),
        }
        return pid, True

    def _replace_responses(self, participant_id, entries):
        for rid in [r["id"] for r in self.responses.values() if r["participant_id"] == participant_id]:
            del self.responses[rid]
        for entry in entries:
            rid = self._next_id("response")
            self.responses[rid] = {
                "id": rid,
                "participant_id": participant_id,
                "time_option_id": entry["time_option_id"],
                "status": entry["status"],
            }

    async def polls_create_event(
        self,
        title,
        description,
        duration,
        share_id,
        time_options,
        organizer_name=None,
        organizer_name_key=None,
        organizer_statuses=None,
    ):
        self.create_calls += 1
        if share_id in self.taken_share_ids or any(
            e["share_id"] == share_id for e in self.events.values()
        ):
            raise ShareIdCollisionError(share_id=share_id)
        eid = self._next_id("event")
        event = {
            "id": eid,
            "title": title,
            "description": description,
            "duration": duration,
            "share_id": share_id,
            "created_at": datetime.now(UTC).isoformat(),
        }
        self.events[eid] = event
        created = []
        for option in time_options:
            tid = self._next_id("time_option")
            row = {
                "id": tid,
                "event_id": eid,
                "date": option["date"],
                "start_time": option.get("start_time"),
                "end_time": option.get("end_time"),
            }
            self.time_options[tid] = row
            created.append(dict(row))
        if organizer_name:
            pid, _ = self._upsert_participant(eid, organizer_name, organizer_name_key)
            self._replace_responses(pid, [
                {"time_option_id": opt["id"], "status": status}
                for opt, status in zip(created, organizer_statuses or [])
                if status is not None
            ])
        return {**event, "time_options": created}

    async def polls_get_event_by_share_id(self, share_id):
        for e in self.events.values():
            if e["share_id"] == share_id:
                return dict(e)
        return None

    async def polls_get_time_options(self, event_id):
        return [dict(t) for t in sorted(self.time_options.values(), key=lambda t: t["id"]) if t["event_id"] == event_id]

    async def polls_get_participants(self, event_id):
        return [
            {k: v for k, v in p.items() if k != "name_key"}
            for p in sorted(self.participants.values(), key=lambda p: p["id"])
            if p["event_id"] == event_id
        ]

    async def polls_get_event_snapshot(self, share_id):
        event = await self.polls_get_event_by_share_id(share_id)
        if event is None:
            return None
        time_options = await self.polls_get_time_options(event["id"])
        option_ids = {t["id"] for t in time_options}
        return {
            "event": event,
            "time_options": time_options,
            "participants": await self.polls_get_participants(event["id"]),
            "responses": [
                dict(r) for r in sorted(self.responses.values(), key=lambda r: r["id"])
                if r["time_option_id"] in option_ids
            ],
        }

    async def polls_submit_availability(self, event_id, name, name_key, entries):
        pid, created = self._upsert_participant(event_id, name, name_key)
        self._replace_responses(pid, entries)
        return {"participant_id": pid, "created": created}

    def responses_for(self, participant_id):
        return {
            r["time_option_id"]: r["status"]
            for r in self.responses.values()
            if r["participant_id"] == participant_id
        }


@pytest.fixture
def fake_db(monkeypatch):
    fake = FakePollsDb()
    monkeypatch.setattr(event_service, "db", fake)
    return fake


@pytest.fixture
def client(fake_db):
    with TestClient(main.app) as c:
        yield c
