import logging

from fastapi import APIRouter

from meetpoll.models.polls import (
    CreateEventRequest,
    EventWithDetails,
    EventWithTimeOptions,
    ParticipateRequest,
    ParticipateResponse,
)
from meetpoll.services import events as event_service

logger = logging.getLogger("meetpoll.events")
router = APIRouter(prefix="/api/events", tags=["events"])


@router.post("", response_model=EventWithTimeOptions)
async def create_event(req: CreateEventRequest) -> EventWithTimeOptions:
    logger.info(
        "POST /api/events title=%s duration=%s time_options=%d",
        req.event.title,
        req.event.duration,
        len(req.time_options),
    )
    return await event_service.create_event(req.event, req.time_options)


@router.get("/{share_id}", response_model=EventWithDetails)
async def get_event(share_id: str) -> EventWithDetails:
    logger.info("GET /api/events/%s", share_id)
    event = await event_service.get_event_by_share_id(share_id)
    logger.info(
        "Returning event %s with %d time options and %d participants",
        share_id,
        len(event.time_options),
        event.participant_count,
    )
    return event


@router.post("/{share_id}/participate", response_model=ParticipateResponse)
async def participate(share_id: str, req: ParticipateRequest) -> ParticipateResponse:
    logger.info(
        "POST /api/events/%s/participate responses=%d",
        share_id,
        len(req.availability),
    )
    result = await event_service.participate(share_id, req.participant.name, req.availability)
    return ParticipateResponse(success=result.success, participant_id=result.participant_id)
