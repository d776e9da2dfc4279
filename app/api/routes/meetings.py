# app/api/routes/meetings.py
from datetime import datetime
from http import HTTPStatus

import structlog
from fastapi import APIRouter, Depends, HTTPException, Path, Query

from app.api.dependencies.services import get_services
from app.core.exceptions import BotAlreadyInvitedError, MeetingNotFoundError
from app.schemas.meeting import MeetingRead, MeetingStatus, MeetingStatusUpdate
from app.services.registry import ServiceRegistry

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/meetings", tags=["Meetings"])


@router.get(
    "",
    response_model=list[MeetingRead],
    summary="List tracked meetings",
    description="Most recent first. All filters are optional and combined with AND.",
)
async def list_meetings(
    account_id: int | None = Query(default=None, ge=1),
    status: MeetingStatus | None = Query(default=None),
    from_time: datetime | None = Query(default=None, description="Start time lower bound."),
    to_time: datetime | None = Query(default=None, description="Start time upper bound."),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    services: ServiceRegistry = Depends(get_services),
) -> list[MeetingRead]:
    return await services.meetings.list_meetings(
        account_id=account_id,
        status=status,
        from_time=from_time,
        to_time=to_time,
        limit=limit,
        offset=(page - 1) * limit,
    )


@router.get(
    "/upcoming",
    response_model=list[MeetingRead],
    summary="Upcoming meetings of an account",
    description="Pending or bot-invited meetings starting within the next `hours`.",
)
async def list_upcoming_meetings(
    account_id: int = Query(..., ge=1),
    hours: int = Query(default=24, ge=1, le=24 * 14),
    services: ServiceRegistry = Depends(get_services),
) -> list[MeetingRead]:
    return await services.processor.get_upcoming_meetings(account_id, hours=hours)


@router.get(
    "/{meeting_id}",
    response_model=MeetingRead,
    summary="Get meeting details by ID",
    responses={404: {"description": "No meeting exists with the given ID."}},
)
async def get_meeting(
    meeting_id: int = Path(..., ge=1),
    services: ServiceRegistry = Depends(get_services),
) -> MeetingRead:
    meeting = await services.meetings.get(meeting_id)
    if meeting is None:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND,
            detail=f"Meeting with id {meeting_id} not found.",
        )
    return meeting


@router.post(
    "/{meeting_id}/invite-bot",
    response_model=MeetingRead,
    summary="Invite the bot to a meeting manually",
    description="Bypasses the rules. Fails with 400 if the bot was already invited.",
    responses={
        400: {"description": "Bot already invited to this meeting."},
        404: {"description": "No meeting exists with the given ID."},
        502: {"description": "The calendar rejected the invite."},
    },
)
async def invite_bot(
    meeting_id: int = Path(..., ge=1),
    services: ServiceRegistry = Depends(get_services),
) -> MeetingRead:
    meeting = await services.meetings.get(meeting_id)
    if meeting is None:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND,
            detail=f"Meeting with id {meeting_id} not found.",
        )
    try:
        await services.processor.invite_bot_on_request(meeting)
    except BotAlreadyInvitedError as exc:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=str(exc))
    except Exception as exc:
        raise HTTPException(
            status_code=HTTPStatus.BAD_GATEWAY,
            detail=f"Failed to invite bot: {exc}",
        )

    return await services.meetings.get(meeting_id)


@router.patch(
    "/{meeting_id}/status",
    response_model=MeetingRead,
    summary="Update meeting status",
    description=(
        "Used by recording/completion hooks to move a meeting along its lifecycle "
        "and attach the recording URL, summary and Notion page."
    ),
    responses={404: {"description": "No meeting exists with the given ID."}},
)
async def update_meeting_status(
    payload: MeetingStatusUpdate,
    meeting_id: int = Path(..., ge=1),
    services: ServiceRegistry = Depends(get_services),
) -> MeetingRead:
    try:
        meeting = await services.meetings.update_status(meeting_id, payload)
    except MeetingNotFoundError as exc:
        raise HTTPException(status_code=HTTPStatus.NOT_FOUND, detail=str(exc))

    logger.info("meetings.status_updated", meeting_id=meeting_id, status=payload.status.value)
    return meeting
