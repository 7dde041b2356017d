"""
Company metrics endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_async_session
from app.core.auth import Principal, require_admin
from app.schemas.metrics import MetricsOverview
from app.services.metrics import metrics_overview

router = APIRouter(prefix="/metrics", tags=["Metrics"])


@router.get("/overview", response_model=MetricsOverview)
async def get_metrics_overview(
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session)
):
    """
    Active collaborators, current-month revenue and consultations,
    and progress against the sum of active revenue goals
    """
    return await metrics_overview(db)
