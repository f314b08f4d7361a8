"""API routes for live sessions and batch assignment."""
import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fitstudio.db.database import get_db
from fitstudio.models import LiveSession, SessionStatus
from fitstudio.schemas.session import (
    AssignClientsRequest,
    AssignmentErrorResponse,
    BatchAssignResponse,
    BookingResponse,
    ClientRefRequest,
    CloneSessionRequest,
    EligibleClientResponse,
    EligibleClientsResponse,
    SessionCreate,
    SessionResponse,
    SessionStatusUpdate,
    WaitlistEntryResponse,
)
from fitstudio.services.session_assignment import SessionAssignmentService

router = APIRouter()
logger = logging.getLogger(__name__)


def _session_response(live_session: LiveSession, client_ids: list[int]) -> SessionResponse:
    return SessionResponse(
        id=live_session.id,
        title=live_session.title,
        description=live_session.description,
        session_type=live_session.session_type,
        package_plan=live_session.package_plan,
        scheduled_at=live_session.scheduled_at,
        duration=live_session.duration,
        trainer_name=live_session.trainer_name,
        max_capacity=live_session.max_capacity,
        current_capacity=live_session.current_capacity,
        status=live_session.status,
        cloned_from_id=live_session.cloned_from_id,
        client_ids=client_ids,
    )


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    session_in: SessionCreate,
    db: AsyncSession = Depends(get_db),
):
    """Schedule a live session with an empty roster."""
    service = SessionAssignmentService(db)
    live_session = await service.create_session(session_in)
    logger.info("create_session: id=%s package_plan=%s", live_session.id, live_session.package_plan)
    return _session_response(live_session, [])


@router.get("", response_model=list[SessionResponse])
async def list_sessions(
    status_filter: SessionStatus | None = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
):
    service = SessionAssignmentService(db)
    sessions = await service.list_sessions(status_filter)
    return [
        _session_response(live_session, [link.client_id for link in live_session.client_links])
        for live_session in sessions
    ]


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Session detail with its roster in assignment order."""
    service = SessionAssignmentService(db)
    live_session = await service.get_session(session_id)
    return _session_response(live_session, [link.client_id for link in live_session.client_links])


@router.get("/{session_id}/eligible-clients", response_model=EligibleClientsResponse)
async def get_eligible_clients(
    session_id: int,
    plan_tag: str | None = Query(None, description="Defaults to the session's own package plan"),
    db: AsyncSession = Depends(get_db),
):
    """Clients that may be offered a seat in this session."""
    service = SessionAssignmentService(db)
    live_session, eligible, in_this_session = await service.get_eligible_clients(session_id, plan_tag)
    return EligibleClientsResponse(
        session_id=live_session.id,
        plan_tag=plan_tag if plan_tag is not None else live_session.package_plan,
        assigned_count=len(in_this_session),
        max_capacity=live_session.max_capacity,
        clients=[
            EligibleClientResponse(
                id=client.id,
                name=client.name,
                email=client.email,
                package_name=client.package_name,
                is_assigned=client.id in in_this_session,
            )
            for client in eligible
        ],
    )


@router.post("/{session_id}/assign", response_model=BatchAssignResponse)
async def assign_clients(
    session_id: int,
    request: AssignClientsRequest,
    db: AsyncSession = Depends(get_db),
):
    """Assign clients in order until the session is full.

    Clients that could not be seated are listed in ``errors``; the request
    still succeeds for everyone else.
    """
    logger.info("assign_clients called: session_id=%s count=%s", session_id, len(request.client_ids))
    service = SessionAssignmentService(db)
    result, live_session = await service.assign_clients(session_id, request.client_ids)
    return BatchAssignResponse(
        assigned=result.assigned,
        errors=[AssignmentErrorResponse(**error.to_dict()) for error in result.errors],
        assigned_client_ids=result.assigned_client_ids,
        current_capacity=live_session.current_capacity,
        max_capacity=live_session.max_capacity,
        batch_full=live_session.current_capacity >= live_session.max_capacity,
    )


@router.post("/{session_id}/clone", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def clone_session(
    session_id: int,
    request: CloneSessionRequest,
    db: AsyncSession = Depends(get_db),
):
    """Copy a session to a new time, e.g. to seat the rest of a full batch."""
    service = SessionAssignmentService(db)
    clone = await service.clone_session(session_id, request.scheduled_at)
    return _session_response(clone, [])


@router.patch("/{session_id}/status", response_model=SessionResponse)
async def update_session_status(
    session_id: int,
    request: SessionStatusUpdate,
    db: AsyncSession = Depends(get_db),
):
    service = SessionAssignmentService(db)
    live_session = await service.update_status(session_id, request.status)
    return _session_response(live_session, await service.roster(session_id))


@router.post("/{session_id}/book", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def book_spot(
    session_id: int,
    request: ClientRefRequest,
    db: AsyncSession = Depends(get_db),
):
    """Book a single seat. Answers 409 when already booked and 422 when full."""
    service = SessionAssignmentService(db)
    live_session, seat = await service.book_spot(session_id, request.client_id)
    logger.info("book_spot: session_id=%s client_id=%s seat=%s", session_id, request.client_id, seat)
    return BookingResponse(
        session_id=live_session.id,
        client_id=request.client_id,
        seat=seat,
        current_capacity=live_session.current_capacity,
        max_capacity=live_session.max_capacity,
    )


@router.get("/{session_id}/waitlist", response_model=list[WaitlistEntryResponse])
async def get_waitlist(
    session_id: int,
    db: AsyncSession = Depends(get_db),
):
    service = SessionAssignmentService(db)
    entries = await service.get_waitlist(session_id)
    return [
        WaitlistEntryResponse(
            id=entry.id,
            session_id=entry.session_id,
            client_id=entry.client_id,
            client_name=entry.client.name if entry.client is not None else None,
            position=entry.position,
            added_at=entry.added_at,
        )
        for entry in entries
    ]


@router.post("/{session_id}/waitlist", response_model=WaitlistEntryResponse, status_code=status.HTTP_201_CREATED)
async def add_to_waitlist(
    session_id: int,
    request: ClientRefRequest,
    db: AsyncSession = Depends(get_db),
):
    service = SessionAssignmentService(db)
    entry = await service.add_to_waitlist(session_id, request.client_id)
    return WaitlistEntryResponse(
        id=entry.id,
        session_id=entry.session_id,
        client_id=entry.client_id,
        position=entry.position,
        added_at=entry.added_at,
    )


@router.delete("/{session_id}/waitlist/{client_id}")
async def remove_from_waitlist(
    session_id: int,
    client_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Take a client off the waitlist. Everyone behind them moves up one place."""
    service = SessionAssignmentService(db)
    await service.remove_from_waitlist(session_id, client_id)
    logger.info("remove_from_waitlist: session_id=%s client_id=%s", session_id, client_id)
    return {"success": True}
