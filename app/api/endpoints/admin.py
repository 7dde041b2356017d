"""
Admin API endpoints
Task assignment, company-wide statistics, stalled patients and performance snapshots
"""

from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_async_session
from app.core.auth import Principal, require_auth, require_admin
from app.core.dates import utcnow, as_utc
from app.models import (
    AdminTask, Event, Patient, Collaborator, PatientProgress, PerformanceMetric,
    EventType, EventStatus, TaskStatus,
)
from app.schemas.task import AdminTaskCreate, AdminTaskUpdate, AdminTaskResponse, AdminTaskCreateResponse
from app.schemas.metrics import (
    GlobalStats, StalledPatientResponse, PerformanceMetricCreate, PerformanceMetricResponse,
)
from app.services.activity import log_activity
from app.services.metrics import global_stats
from app.services.repository import fetch, get_or_404, apply_updates, ensure_collaborator_access

router = APIRouter(prefix="/admin", tags=["Admin"])

# Title prefix of the calendar event created alongside a task with a due date
TASK_EVENT_PREFIX = "[TAREFA] "


# ==================== Tasks ====================

@router.get("/tasks", response_model=List[AdminTaskResponse])
async def list_tasks(
    assigned_to: Optional[str] = Query(None, description="Filter by collaborator"),
    task_status: Optional[TaskStatus] = Query(None, alias="status"),
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session)
):
    query = select(AdminTask)
    if assigned_to:
        query = query.filter(AdminTask.assigned_to == assigned_to)
    if task_status:
        query = query.filter(AdminTask.status == task_status)

    result = await db.execute(query.order_by(AdminTask.created_at.desc()))
    return result.scalars().all()


@router.post("/tasks", response_model=AdminTaskCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_in: AdminTaskCreate,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session)
):
    """
    Assign a task to a collaborator.
    A task with a due date also gets a ``task`` event on the assignee's calendar;
    both rows are committed together.
    """
    if await fetch(db, Collaborator, task_in.assigned_to) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Selected collaborator does not exist")
    if task_in.patient_id and await fetch(db, Patient, task_in.patient_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Selected patient does not exist")

    task = AdminTask(**task_in.model_dump(), assigned_by=principal.user_id)
    db.add(task)

    event = None
    if task.due_date is not None:
        event = Event(
            type=EventType.TASK,
            title=f"{TASK_EVENT_PREFIX}{task.title}",
            description=task.description,
            scheduled_date=task.due_date,
            collaborator_id=task.assigned_to,
            patient_id=task.patient_id,
            status=EventStatus.PENDING,
        )
        db.add(event)
    await db.flush()

    log_activity(db, principal.user_id, "task_created", f"Created task: {task.title}", task.id, "task")
    await db.commit()

    return AdminTaskCreateResponse(
        task=await fetch(db, AdminTask, task.id),
        event=await fetch(db, Event, event.id) if event else None,
    )


@router.patch("/tasks/{task_id}", response_model=AdminTaskResponse)
async def update_task(
    task_id: str,
    task_in: AdminTaskUpdate,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session)
):
    """
    Update a task's status; collaborators may only update tasks assigned to them
    """
    task = await get_or_404(db, AdminTask, task_id, "Task not found")
    ensure_collaborator_access(task.assigned_to, principal)

    apply_updates(task, task_in)
    if task_in.status is not None:
        task.completed_at = utcnow() if task_in.status == TaskStatus.COMPLETED else None

    log_activity(db, principal.user_id, "task_updated", f"Updated task: {task.title}", task.id, "task")
    await db.commit()
    return await fetch(db, AdminTask, task.id)


# ==================== Statistics ====================

@router.get("/global-stats", response_model=GlobalStats)
async def get_global_stats(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session)
):
    """
    Company-wide totals, revenue growth and the top five collaborators
    """
    return await global_stats(db, as_utc(start_date), as_utc(end_date))


@router.get("/stalled-patients", response_model=List[StalledPatientResponse])
async def get_stalled_patients(
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session)
):
    """
    Progress entries flagged as stalled, longest without contact first
    """
    result = await db.execute(
        select(PatientProgress)
        .filter(PatientProgress.is_stalled.is_(True))
        .order_by(PatientProgress.days_since_last_contact.desc())
    )
    return result.scalars().all()


# ==================== Performance snapshots ====================

@router.get("/metrics", response_model=List[PerformanceMetricResponse])
async def list_performance_metrics(
    collaborator_id: Optional[str] = Query(None),
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session)
):
    query = select(PerformanceMetric)
    if collaborator_id:
        query = query.filter(PerformanceMetric.collaborator_id == collaborator_id)

    result = await db.execute(query.order_by(PerformanceMetric.metric_date.desc()))
    return result.scalars().all()


@router.post("/metrics", response_model=PerformanceMetricResponse, status_code=status.HTTP_201_CREATED)
async def create_performance_metric(
    metric_in: PerformanceMetricCreate,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session)
):
    if await fetch(db, Collaborator, metric_in.collaborator_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Selected collaborator does not exist")

    metric = PerformanceMetric(**metric_in.model_dump())
    db.add(metric)
    await db.flush()

    log_activity(
        db, principal.user_id, "performance_metric_created",
        f"Recorded performance for {metric.metric_date.isoformat()}", metric.id, "performance_metric",
    )
    await db.commit()
    return metric
