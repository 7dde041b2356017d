"""
Dashboard endpoints
Headline counters and the recent activity feed
"""
from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_async_session
from app.core.auth import Principal, require_auth
from app.schemas.metrics import DashboardMetrics, ActivityLogResponse
from app.services.activity import recent_activity
from app.services.metrics import dashboard_metrics

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/metrics", response_model=DashboardMetrics)
async def get_dashboard_metrics(
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session)
):
    """
    Dashboard counters.
    Collaborators get figures for their own portfolio only.
    """
    if principal.scoped:
        if principal.collaborator_id is None:
            return DashboardMetrics(total_patients=0, active_procedures=0, pending_followups=0, monthly_revenue=0)
        return await dashboard_metrics(db, principal.collaborator_id)
    return await dashboard_metrics(db)


@router.get("/activity", response_model=List[ActivityLogResponse])
async def get_recent_activity(
    limit: int = Query(10, ge=1, le=100),
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session)
):
    """
    Most recent activity entries, newest first
    """
    return await recent_activity(db, limit)
