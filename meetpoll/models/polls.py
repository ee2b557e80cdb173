import re
from datetime import date
from typing import Annotated, Literal, Optional, List

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_RE = re.compile(r"^(?:[01]\d|2[0-3]):[0-5]\d$")

AvailabilityStatus = Literal["available", "maybe", "unavailable"]
AVAILABILITY_STATUSES: tuple[str, ...] = ("available", "maybe", "unavailable")

TimeOptionKind = Literal["slot", "range"]

MAX_NAME_LENGTH = 100


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys, e.g. ``shareId``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _check_date(v: str) -> str:
    if not DATE_RE.match(v):
        raise ValueError(f"invalid date format: {v}")
    date.fromisoformat(v)
    return v


def is_clock_time(v: str) -> bool:
    return bool(TIME_RE.match(v))


DateStr = Annotated[str, AfterValidator(_check_date)]


# Requests


class EventDraft(CamelModel):
    title: str
    description: Optional[str] = None
    duration: str
    organizer_name: Optional[str] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        v = v.strip()
        if not v or len(v) > 200:
            raise ValueError("title must be 1-200 characters")
        return v

    @field_validator("duration")
    @classmethod
    def validate_duration(cls, v: str) -> str:
        v = v.strip()
        if not v or len(v) > 50:
            raise ValueError("duration must be 1-50 characters")
        return v

    @field_validator("description")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        return v or None

    @field_validator("organizer_name")
    @classmethod
    def validate_organizer_name(cls, v: Optional[str]) -> Optional[str]:
        # Same rule as participant names, so the organizer can resubmit later.
        if v is None:
            return v
        v = v.strip()
        if len(v) > MAX_NAME_LENGTH:
            raise ValueError(f"organizerName must be at most {MAX_NAME_LENGTH} characters")
        return v or None


class TimeOptionDraft(CamelModel):
    date: DateStr
    # HH:MM for slots. Multi-day events may send placeholders such as
    # "Multi-day"; the service checks these once the duration is known.
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    # The organizer's own answer for this option, used with organizerName.
    availability: Optional[AvailabilityStatus] = None


class CreateEventRequest(CamelModel):
    event: EventDraft
    time_options: List[TimeOptionDraft]

    @field_validator("time_options")
    @classmethod
    def validate_time_options(cls, v: List[TimeOptionDraft]) -> List[TimeOptionDraft]:
        if not v:
            raise ValueError("timeOptions must not be empty")
        return v


class ParticipantDraft(CamelModel):
    name: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v or len(v) > MAX_NAME_LENGTH:
            raise ValueError(f"name must be 1-{MAX_NAME_LENGTH} characters")
        return v


class AvailabilityEntry(CamelModel):
    time_option_id: int
    status: AvailabilityStatus


class ParticipateRequest(CamelModel):
    participant: ParticipantDraft
    availability: List[AvailabilityEntry]


# Responses


class Event(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    duration: str
    share_id: str
    created_at: str


class TimeOption(CamelModel):
    id: int
    event_id: int
    date: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    kind: TimeOptionKind = "slot"
    end_date: Optional[str] = None


class EventWithTimeOptions(Event):
    time_options: List[TimeOption]


class AvailabilityCount(CamelModel):
    available: int = 0
    maybe: int = 0
    unavailable: int = 0
    total: int = 0


class ParticipantStatus(CamelModel):
    id: int
    name: str
    status: str


class TimeOptionWithAvailability(TimeOption):
    availability_count: AvailabilityCount = Field(default_factory=AvailabilityCount)
    participants: List[ParticipantStatus] = []


class EventWithDetails(Event):
    time_options: List[TimeOptionWithAvailability]
    participant_count: int
    best_time_option_ids: List[int] = []
    ranked_time_option_ids: List[int] = []


class ParticipateResponse(CamelModel):
    success: bool = True
    participant_id: int
