"""
Patient progress log endpoints
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_async_session
from app.core.auth import Principal, require_auth
from app.models import Patient, PatientProgress
from app.schemas.metrics import PatientProgressCreate, PatientProgressResponse
from app.services.activity import log_activity
from app.services.repository import get_or_404, scoped, ensure_patient_access

router = APIRouter(prefix="/patient-progress", tags=["Patient Progress"])


@router.post("", response_model=PatientProgressResponse, status_code=status.HTTP_201_CREATED)
async def create_progress_entry(
    progress_in: PatientProgressCreate,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session)
):
    """
    Record a progress step for a patient, attributed to the calling collaborator
    """
    if principal.collaborator is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Collaborator not found")

    patient = await get_or_404(db, Patient, progress_in.patient_id, "Patient not found")
    ensure_patient_access(patient, principal)

    entry = PatientProgress(**progress_in.model_dump(), collaborator_id=principal.collaborator_id)
    db.add(entry)
    await db.flush()

    log_activity(
        db, principal.user_id, "patient_progress_recorded",
        f"Recorded {entry.progress_type} for {patient.name}", patient.id, "patient",
    )
    await db.commit()
    return entry


@router.get("", response_model=List[PatientProgressResponse])
async def list_progress_entries(
    patient_id: Optional[str] = Query(None),
    collaborator_id: Optional[str] = Query(None),
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session)
):
    query = scoped(select(PatientProgress), PatientProgress.collaborator_id, principal)
    if patient_id:
        query = query.filter(PatientProgress.patient_id == patient_id)
    if collaborator_id:
        query = query.filter(PatientProgress.collaborator_id == collaborator_id)

    result = await db.execute(query.order_by(PatientProgress.created_at.desc()))
    return result.scalars().all()
