"""
Calendar event endpoints
Scheduling, the consultation outcome workflow and patient feedback
"""
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.auth import Principal, require_auth, require_collaborator
from app.core.dates import utcnow, as_utc
from app.models import Event, Patient, Procedure, Collaborator, EventStatus
from app.schemas.auth import MessageResponse
from app.schemas.event import (
    EventCreate, EventUpdate, EventResponse,
    EventCompleteRequest, EventCompletionResponse, EventFeedbackRequest,
)
from app.services import patient_lifecycle
from app.services.activity import log_activity
from app.services.repository import (
    fetch, get_or_404, scoped, apply_updates, ensure_collaborator_access,
)
from database import get_async_session

router = APIRouter(prefix="/events", tags=["Events"])


async def _get_accessible(db: AsyncSession, event_id: str, principal: Principal) -> Event:
    event = await get_or_404(db, Event, event_id, "Event not found")
    ensure_collaborator_access(event.collaborator_id, principal)
    return event


@router.get("", response_model=List[EventResponse])
async def list_events(
    start_date: Optional[datetime] = Query(None, description="Scheduled on or after"),
    end_date: Optional[datetime] = Query(None, description="Scheduled on or before"),
    event_status: Optional[EventStatus] = Query(None, alias="status"),
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    """
    List events in a date range.
    Collaborators only see their own calendar.
    """
    query = scoped(select(Event), Event.collaborator_id, principal)
    if start_date:
        query = query.filter(Event.scheduled_date >= as_utc(start_date))
    if end_date:
        query = query.filter(Event.scheduled_date <= as_utc(end_date))
    if event_status:
        query = query.filter(Event.status == event_status)

    result = await db.execute(query.order_by(Event.scheduled_date.asc()))
    return result.scalars().all()


@router.get("/upcoming", response_model=List[EventResponse])
async def list_upcoming_events(
    limit: int = Query(10, ge=1, le=100),
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Next open events from now on
    """
    query = scoped(select(Event), Event.collaborator_id, principal).filter(
        Event.scheduled_date >= utcnow(),
        Event.status.in_([EventStatus.PENDING, EventStatus.CONFIRMED]),
    )
    result = await db.execute(query.order_by(Event.scheduled_date.asc()).limit(limit))
    return result.scalars().all()


@router.get("/pending", response_model=List[EventResponse])
async def list_pending_events(
    event_status: Optional[EventStatus] = Query(None, alias="status"),
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    """
    The calling collaborator's events awaiting an outcome
    """
    collaborator = require_collaborator(principal)
    statuses = [event_status] if event_status else [EventStatus.PENDING, EventStatus.CONFIRMED]

    result = await db.execute(
        select(Event)
        .filter(Event.collaborator_id == collaborator.id, Event.status.in_(statuses))
        .order_by(Event.scheduled_date.asc())
    )
    return result.scalars().all()


@router.get("/collaborator/{collaborator_id}", response_model=List[EventResponse])
async def list_collaborator_events(
    collaborator_id: str,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    ensure_collaborator_access(collaborator_id, principal)
    result = await db.execute(
        select(Event)
        .filter(Event.collaborator_id == collaborator_id)
        .order_by(Event.scheduled_date.asc())
    )
    return result.scalars().all()


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: str,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    return await _get_accessible(db, event_id, principal)


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    event_in: EventCreate,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Schedule an event.
    Collaborators can only schedule on their own calendar.
    """
    collaborator_id = event_in.collaborator_id or principal.collaborator_id
    if not collaborator_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="collaborator_id is required")
    ensure_collaborator_access(collaborator_id, principal)

    if await fetch(db, Collaborator, collaborator_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Selected collaborator does not exist")
    if event_in.patient_id and await fetch(db, Patient, event_in.patient_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Selected patient does not exist")
    if event_in.procedure_id and await fetch(db, Procedure, event_in.procedure_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Selected procedure does not exist")

    event = Event(**event_in.model_dump(exclude={"collaborator_id"}), collaborator_id=collaborator_id)
    db.add(event)
    await db.flush()

    log_activity(
        db, principal.user_id, "event_created",
        f"Scheduled {event.type.value}: {event.title}", event.id, "event",
    )
    await db.commit()
    return await fetch(db, Event, event.id)


@router.put("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: str,
    event_in: EventUpdate,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    event = await _get_accessible(db, event_id, principal)

    if event_in.patient_id and await fetch(db, Patient, event_in.patient_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Selected patient does not exist")

    # Completion is owned by the outcome workflow, which records the procedure exactly once
    if event_in.status is not None and event_in.status != event.status:
        if event.status == EventStatus.COMPLETED:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Completed events cannot be reopened")
        if event_in.status == EventStatus.COMPLETED:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Use the complete endpoint to record the consultation outcome"
            )

    apply_updates(event, event_in)

    log_activity(db, principal.user_id, "event_updated", f"Updated event: {event.title}", event.id, "event")
    await db.commit()
    return await fetch(db, Event, event.id)


@router.delete("/{event_id}", response_model=MessageResponse)
async def delete_event(
    event_id: str,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    event = await _get_accessible(db, event_id, principal)

    title = event.title
    await db.delete(event)
    log_activity(db, principal.user_id, "event_deleted", f"Deleted event: {title}", event_id, "event")
    await db.commit()
    return MessageResponse(message="Event deleted successfully")


@router.patch("/{event_id}/complete", response_model=EventCompletionResponse)
async def complete_event(
    event_id: str,
    body: EventCompleteRequest,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Resolve a consultation with its outcome.

    A ``procedure_closed`` outcome with a template creates the sold procedure;
    the patient's follow-up status tracks the outcome. Everything is committed
    in one transaction.
    """
    event, completion_type, procedure = await patient_lifecycle.complete_consultation(db, event_id, body, principal)
    await db.commit()

    return EventCompletionResponse(
        event=await fetch(db, Event, event.id),
        completion_type=completion_type,
        procedure=await fetch(db, Procedure, procedure.id) if procedure else None,
    )


@router.patch("/{event_id}/feedback", response_model=EventResponse)
async def record_event_feedback(
    event_id: str,
    body: EventFeedbackRequest,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Record the patient's feedback on an event
    """
    event = await _get_accessible(db, event_id, principal)

    now = utcnow()
    if body.feedback_question is not None:
        event.feedback_question = body.feedback_question
    event.feedback_response = body.feedback_response
    event.patient_responded = body.patient_responded
    event.feedback_completed = True
    event.feedback_date = now
    event.updated_at = now

    log_activity(db, principal.user_id, "event_feedback_recorded", f"Recorded feedback: {event.title}", event.id, "event")
    await db.commit()
    return await fetch(db, Event, event.id)
