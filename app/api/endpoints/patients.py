"""
Patient management API endpoints
Portfolio listings, CRUD, lifecycle transitions and the patient timeline
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.auth import Principal, require_auth, require_collaborator
from app.models import Patient, PatientNote, Procedure, PatientStatus, FollowupStatus, NoteType
from app.schemas.auth import MessageResponse
from app.schemas.patient import (
    PatientCreate, PatientUpdate, PatientResponse,
    DeactivateRequest, ReactivateRequest, CompleteRegistrationRequest,
    PatientNoteCreate, PatientNoteResponse, PatientFileCreate, PatientPhotoResponse,
)
from app.schemas.procedure import ProcedureResponse
from app.services import patient_lifecycle
from app.services.activity import log_activity
from app.services.repository import fetch, get_or_404, scoped, ensure_patient_access
from database import get_async_session

router = APIRouter(prefix="/patients", tags=["Patients"])


class RegistrationCompletionResponse(BaseModel):
    patient: PatientResponse
    procedure: Optional[ProcedureResponse] = None


async def _list(db: AsyncSession, principal: Principal, *criteria) -> List[Patient]:
    query = scoped(select(Patient), Patient.collaborator_id, principal).filter(*criteria)
    result = await db.execute(query.order_by(Patient.name))
    return list(result.scalars().all())


async def _get_accessible(db: AsyncSession, patient_id: str, principal: Principal) -> Patient:
    patient = await get_or_404(db, Patient, patient_id, "Patient not found")
    ensure_patient_access(patient, principal)
    return patient


# ==================== Listings ====================

@router.get("", response_model=List[PatientResponse])
async def list_patients(
    patient_status: Optional[PatientStatus] = Query(None, alias="status", description="Filter by status"),
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    """
    List patients.
    Collaborators only see their own portfolio; admins see every patient.
    """
    criteria = [Patient.status == patient_status] if patient_status else []
    return await _list(db, principal, *criteria)


@router.get("/incomplete", response_model=List[PatientResponse])
async def list_incomplete_patients(
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Patients whose registration still needs to be completed
    """
    return await _list(db, principal, Patient.is_registration_complete.is_(False))


@router.get("/deactivated", response_model=List[PatientResponse])
async def list_deactivated_patients(
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    return await _list(db, principal, Patient.status == PatientStatus.DEACTIVATED)


@router.get("/missed", response_model=List[PatientResponse])
async def list_missed_patients(
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    return await _list(db, principal, Patient.followup_status == FollowupStatus.MISSED)


@router.get("/no-closure", response_model=List[PatientResponse])
async def list_no_closure_patients(
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    return await _list(db, principal, Patient.followup_status == FollowupStatus.NO_CLOSURE)


@router.get("/active", response_model=List[PatientResponse])
async def list_active_patients(
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    """
    The calling collaborator's active patients
    """
    collaborator = require_collaborator(principal)
    result = await db.execute(
        select(Patient)
        .filter(Patient.collaborator_id == collaborator.id, Patient.status == PatientStatus.ACTIVE)
        .order_by(Patient.name)
    )
    return result.scalars().all()


# ==================== CRUD ====================

@router.get("/{patient_id}", response_model=PatientResponse)
async def get_patient(
    patient_id: str,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    return await _get_accessible(db, patient_id, principal)


@router.post("", response_model=PatientResponse, status_code=status.HTTP_201_CREATED)
async def create_patient(
    patient_in: PatientCreate,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    patient = await patient_lifecycle.create_patient(db, patient_in, principal)
    await db.commit()
    return await fetch(db, Patient, patient.id)


@router.put("/{patient_id}", response_model=PatientResponse)
@router.patch("/{patient_id}", response_model=PatientResponse)
async def update_patient(
    patient_id: str,
    patient_in: PatientUpdate,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Partial update of the patchable patient fields (PUT and PATCH behave alike)
    """
    patient = await get_or_404(db, Patient, patient_id, "Patient not found")
    await patient_lifecycle.update_patient(db, patient, patient_in, principal)
    await db.commit()
    return await fetch(db, Patient, patient.id)


@router.delete("/{patient_id}", response_model=MessageResponse)
async def delete_patient(
    patient_id: str,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Delete a patient with their notes, procedures and events
    """
    patient = await _get_accessible(db, patient_id, principal)

    name = patient.name
    await db.delete(patient)
    log_activity(db, principal.user_id, "patient_deleted", f"Deleted patient: {name}", patient_id, "patient")
    await db.commit()
    return MessageResponse(message="Patient deleted successfully")


# ==================== Lifecycle ====================

@router.put("/{patient_id}/deactivate", response_model=PatientResponse)
async def deactivate_patient(
    patient_id: str,
    body: DeactivateRequest,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Deactivate a patient; a reason is mandatory and is kept on the timeline
    """
    patient = await patient_lifecycle.deactivate_patient(db, patient_id, body.reason, principal)
    await db.commit()
    return await fetch(db, Patient, patient.id)


@router.put("/{patient_id}/reactivate", response_model=PatientResponse)
async def reactivate_patient(
    patient_id: str,
    body: Optional[ReactivateRequest] = None,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    reason = body.reason if body else None
    patient = await patient_lifecycle.reactivate_patient(db, patient_id, reason, principal)
    await db.commit()
    return await fetch(db, Patient, patient.id)


@router.post("/{patient_id}/complete-registration", response_model=RegistrationCompletionResponse)
async def complete_registration(
    patient_id: str,
    body: CompleteRegistrationRequest,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Complete an admin-created patient record.
    Patient update, closed procedure and timeline note are committed together.
    """
    patient, procedure = await patient_lifecycle.complete_registration(db, patient_id, body, principal)
    await db.commit()

    return RegistrationCompletionResponse(
        patient=await fetch(db, Patient, patient.id),
        procedure=await fetch(db, Procedure, procedure.id) if procedure else None,
    )


# ==================== Timeline ====================

@router.get("/{patient_id}/notes", response_model=List[PatientNoteResponse])
async def list_patient_notes(
    patient_id: str,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Patient timeline, newest first
    """
    await _get_accessible(db, patient_id, principal)
    result = await db.execute(
        select(PatientNote)
        .filter(PatientNote.patient_id == patient_id)
        .order_by(PatientNote.created_at.desc())
    )
    return result.scalars().all()


@router.post("/{patient_id}/notes", response_model=PatientNoteResponse, status_code=status.HTTP_201_CREATED)
async def add_patient_note(
    patient_id: str,
    note_in: PatientNoteCreate,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    patient = await _get_accessible(db, patient_id, principal)

    note = PatientNote(patient_id=patient.id, **note_in.model_dump())
    db.add(note)
    await db.flush()

    log_activity(db, principal.user_id, "patient_note_added", f"Added note to patient: {patient.name}", patient.id, "patient")
    await db.commit()
    return note


@router.post("/{patient_id}/photo", response_model=PatientPhotoResponse)
async def upload_patient_photo(
    patient_id: str,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Record the patient's photo path.
    Binary storage is handled outside this API; only the path is kept.
    """
    patient = await _get_accessible(db, patient_id, principal)

    patient.photo = f"/uploads/patients/{patient.id}.jpg"
    log_activity(db, principal.user_id, "patient_photo_updated", f"Updated photo: {patient.name}", patient.id, "patient")
    await db.commit()
    return PatientPhotoResponse(photo=patient.photo)


@router.post("/{patient_id}/files", response_model=PatientNoteResponse, status_code=status.HTTP_201_CREATED)
async def attach_patient_file(
    patient_id: str,
    file_in: PatientFileCreate,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Register a file on the patient timeline as a ``file`` note
    """
    patient = await _get_accessible(db, patient_id, principal)

    if not file_in.title or not file_in.title.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File title is required")

    title = file_in.title.strip()
    note = PatientNote(
        patient_id=patient.id,
        content=f"Arquivo anexado: {title}",
        type=NoteType.FILE,
        title=title,
    )
    db.add(note)
    await db.flush()

    log_activity(db, principal.user_id, "patient_file_attached", f"Attached file to patient: {patient.name}", patient.id, "patient")
    await db.commit()
    return note
