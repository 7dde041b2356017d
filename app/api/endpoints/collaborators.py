"""
Collaborator management API endpoints
Collaborator records, goals and per-collaborator metrics
"""
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from app.core.auth import Principal, require_auth, require_admin
from app.models import (
    User, City, Collaborator, Patient, Procedure, Event, AdminTask, PatientProgress, PerformanceMetric,
    PatientStatus, TaskStatus,
)
from app.schemas.auth import MessageResponse
from app.schemas.collaborator import CollaboratorCreate, CollaboratorUpdate, CollaboratorResponse
from app.schemas.metrics import (
    CollaboratorMetrics, CollaboratorDashboardStats, CollaboratorPerformance, CollaboratorDetail,
)
from app.schemas.patient import PatientSummary
from app.schemas.task import AdminTaskResponse
from app.services.activity import log_activity
from app.services.errors import NotFoundError
from app.services.metrics import (
    collaborator_metrics, collaborator_dashboard_stats, collaborator_month_figures, goal_percentage,
)
from app.services.repository import fetch, get_or_404, count_rows, apply_updates, ensure_collaborator_access
from database import get_async_session

router = APIRouter(prefix="/collaborators", tags=["Collaborators"])


async def resolve_collaborator(db: AsyncSession, collaborator_id: str) -> Collaborator:
    """
    Look a collaborator up by its own id, falling back to the owning user's id
    """
    collaborator = await fetch(db, Collaborator, collaborator_id)
    if collaborator is None:
        result = await db.execute(select(Collaborator).filter(Collaborator.user_id == collaborator_id))
        collaborator = result.scalar_one_or_none()
    if collaborator is None:
        raise NotFoundError("Collaborator not found")
    return collaborator


async def pending_tasks_for(db: AsyncSession, collaborator_id: str) -> List[AdminTask]:
    result = await db.execute(
        select(AdminTask)
        .filter(AdminTask.assigned_to == collaborator_id, AdminTask.status == TaskStatus.PENDING)
        .order_by(AdminTask.due_date.asc(), AdminTask.created_at.asc())
    )
    return list(result.scalars().all())


@router.get("", response_model=List[CollaboratorResponse])
async def list_collaborators(
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    """
    List collaborators with their user and city
    """
    result = await db.execute(
        select(Collaborator).join(User, Collaborator.user_id == User.id).order_by(User.name)
    )
    return result.scalars().all()


@router.get("/performance", response_model=List[CollaboratorPerformance])
async def get_collaborators_performance(
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Current-month revenue, consultations and active patients for every collaborator
    """
    result = await db.execute(
        select(Collaborator).join(User, Collaborator.user_id == User.id).order_by(User.name)
    )
    collaborators = result.scalars().all()
    figures = await collaborator_month_figures(db)

    performance = []
    for collaborator in collaborators:
        row = figures.get(collaborator.id, {})
        revenue = row.get("revenue", 0.0)
        performance.append(CollaboratorPerformance(
            **CollaboratorResponse.model_validate(collaborator).model_dump(),
            current_revenue=revenue,
            current_consultations=row.get("consultations", 0),
            active_patients=row.get("active_patients", 0),
            goal_progress=goal_percentage(revenue, collaborator.revenue_goal),
        ))
    return performance


@router.get("/user/{user_id}", response_model=CollaboratorResponse)
async def get_collaborator_by_user(
    user_id: str,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    result = await db.execute(select(Collaborator).filter(Collaborator.user_id == user_id))
    collaborator = result.scalar_one_or_none()
    if not collaborator:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Collaborator not found")
    return collaborator


@router.get("/{collaborator_id}", response_model=CollaboratorDetail)
async def get_collaborator(
    collaborator_id: str,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Collaborator with metrics, pending tasks and active patients.
    Accepts either the collaborator id or the owning user id.
    """
    collaborator = await resolve_collaborator(db, collaborator_id)
    ensure_collaborator_access(collaborator.id, principal)

    patients = await db.execute(
        select(Patient)
        .filter(Patient.collaborator_id == collaborator.id, Patient.status == PatientStatus.ACTIVE)
        .order_by(Patient.name)
    )

    return CollaboratorDetail(
        **CollaboratorResponse.model_validate(collaborator).model_dump(),
        metrics=await collaborator_metrics(db, collaborator),
        pending_tasks=[AdminTaskResponse.model_validate(t) for t in await pending_tasks_for(db, collaborator.id)],
        active_patients=[PatientSummary.model_validate(p) for p in patients.scalars().all()],
    )


@router.post("", response_model=CollaboratorResponse, status_code=status.HTTP_201_CREATED)
async def create_collaborator(
    collaborator_in: CollaboratorCreate,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Link an existing user to a city as a collaborator (admin only)
    """
    user = await fetch(db, User, collaborator_in.user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User does not exist")

    existing = await db.execute(select(Collaborator).filter(Collaborator.user_id == user.id))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User is already a collaborator")

    if await fetch(db, City, collaborator_in.city_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Selected city does not exist")

    collaborator = Collaborator(**collaborator_in.model_dump())
    db.add(collaborator)
    await db.flush()

    log_activity(
        db, principal.user_id, "collaborator_created",
        f"Created collaborator: {user.name}", collaborator.id, "collaborator",
    )
    await db.commit()
    return await fetch(db, Collaborator, collaborator.id)


@router.put("/{collaborator_id}", response_model=CollaboratorResponse)
async def update_collaborator(
    collaborator_id: str,
    collaborator_in: CollaboratorUpdate,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Update goals, city or active flag (admin, or the collaborator themselves)
    """
    collaborator = await get_or_404(db, Collaborator, collaborator_id, "Collaborator not found")
    ensure_collaborator_access(collaborator.id, principal)

    if collaborator_in.city_id and await fetch(db, City, collaborator_in.city_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Selected city does not exist")

    apply_updates(collaborator, collaborator_in)

    log_activity(
        db, principal.user_id, "collaborator_updated",
        f"Updated collaborator: {collaborator.user.name}", collaborator.id, "collaborator",
    )
    await db.commit()
    return await fetch(db, Collaborator, collaborator.id)


@router.delete("/{collaborator_id}", response_model=MessageResponse)
async def delete_collaborator(
    collaborator_id: str,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Delete a collaborator.
    Blocked while patients are assigned or while any recorded work references it.
    """
    collaborator = await get_or_404(db, Collaborator, collaborator_id, "Collaborator not found")

    patients = await count_rows(db, Patient, Patient.collaborator_id == collaborator.id)
    if patients:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot delete collaborator with active patients ({patients} patient(s) assigned)"
        )

    history = (
        await count_rows(db, Procedure, Procedure.collaborator_id == collaborator.id)
        + await count_rows(db, Event, Event.collaborator_id == collaborator.id)
        + await count_rows(db, AdminTask, AdminTask.assigned_to == collaborator.id)
        + await count_rows(db, PatientProgress, PatientProgress.collaborator_id == collaborator.id)
        + await count_rows(db, PerformanceMetric, PerformanceMetric.collaborator_id == collaborator.id)
    )
    if history:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot delete collaborator with recorded history ({history} record(s)); deactivate instead"
        )

    await db.execute(
        update(Patient).where(Patient.deactivated_by == collaborator.id).values(deactivated_by=None)
    )
    name = collaborator.user.name
    await db.delete(collaborator)
    log_activity(db, principal.user_id, "collaborator_deleted", f"Deleted collaborator: {name}", collaborator_id, "collaborator")
    await db.commit()
    return MessageResponse(message="Collaborator deleted successfully")


@router.get("/{collaborator_id}/metrics", response_model=CollaboratorMetrics)
async def get_collaborator_metrics(
    collaborator_id: str,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    collaborator = await resolve_collaborator(db, collaborator_id)
    ensure_collaborator_access(collaborator.id, principal)
    return await collaborator_metrics(db, collaborator)


@router.get("/{collaborator_id}/dashboard", response_model=CollaboratorDashboardStats)
async def get_collaborator_dashboard(
    collaborator_id: str,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    collaborator = await resolve_collaborator(db, collaborator_id)
    ensure_collaborator_access(collaborator.id, principal)
    return await collaborator_dashboard_stats(db, collaborator.id)


@router.get("/{collaborator_id}/tasks/pending", response_model=List[AdminTaskResponse])
async def get_collaborator_pending_tasks(
    collaborator_id: str,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    collaborator = await resolve_collaborator(db, collaborator_id)
    ensure_collaborator_access(collaborator.id, principal)
    return await pending_tasks_for(db, collaborator.id)
