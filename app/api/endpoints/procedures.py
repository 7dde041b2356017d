from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional

from app.core.auth import Principal, require_auth, require_admin
from app.core.dates import utcnow, add_days
from database import get_async_session
from app.models import Patient, Procedure, ProcedureTemplate, Collaborator
from app.schemas.auth import MessageResponse
from app.schemas.procedure import ProcedureCreate, ProcedureUpdate, ProcedureResponse
from app.services.activity import log_activity
from app.services.repository import (
    fetch, get_or_404, scoped, apply_updates, ensure_patient_access, ensure_collaborator_access,
)

router = APIRouter(prefix="/procedures", tags=["Procedures"])


@router.get("", response_model=List[ProcedureResponse])
async def get_procedures(
    patient_id: Optional[str] = Query(None, description="Filter by patient"),
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session)
):
    """
    Retrieve procedures, newest first.
    Collaborators only see procedures they sold.
    """
    query = scoped(select(Procedure), Procedure.collaborator_id, principal)
    if patient_id:
        query = query.filter(Procedure.patient_id == patient_id)

    result = await db.execute(query.order_by(Procedure.performed_date.desc()))
    return result.scalars().all()


@router.get("/{procedure_id}", response_model=ProcedureResponse)
async def get_procedure(
    procedure_id: str,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session)
):
    procedure = await get_or_404(db, Procedure, procedure_id, "Procedure not found")
    ensure_collaborator_access(procedure.collaborator_id, principal)
    return procedure


@router.post("", response_model=ProcedureResponse, status_code=status.HTTP_201_CREATED)
async def create_procedure(
    procedure_in: ProcedureCreate,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session)
):
    """
    Record a procedure sold to a patient.

    Name, value and validity default from the template when one is given:
    validity_date = performed_date + template.validity_days
    """
    patient = await get_or_404(db, Patient, procedure_in.patient_id, "Patient not found")
    ensure_patient_access(patient, principal)

    collaborator_id = procedure_in.collaborator_id or principal.collaborator_id
    if principal.scoped:
        collaborator_id = principal.collaborator_id
    if not collaborator_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="collaborator_id is required")
    if await fetch(db, Collaborator, collaborator_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Selected collaborator does not exist")

    template = None
    if procedure_in.template_id:
        template = await get_or_404(db, ProcedureTemplate, procedure_in.template_id, "Procedure template not found")

    name = procedure_in.name or (template.name if template else None)
    value = procedure_in.value if procedure_in.value is not None else (template.default_price if template else None)
    if not name or value is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Name and value are required when no template is given"
        )

    performed_date = procedure_in.performed_date or utcnow()
    validity_date = procedure_in.validity_date
    if validity_date is None and template is not None:
        validity_date = add_days(performed_date, template.validity_days or 0)

    procedure = Procedure(
        template_id=procedure_in.template_id,
        patient_id=patient.id,
        collaborator_id=collaborator_id,
        name=name,
        value=value,
        performed_date=performed_date,
        validity_date=validity_date,
        closed_date=procedure_in.closed_date,
        status=procedure_in.status,
        notes=procedure_in.notes,
    )
    db.add(procedure)
    await db.flush()

    log_activity(
        db, principal.user_id, "procedure_created",
        f"Created procedure {procedure.name} for {patient.name}", procedure.id, "procedure",
    )
    await db.commit()
    return await fetch(db, Procedure, procedure.id)


@router.put("/{procedure_id}", response_model=ProcedureResponse)
async def update_procedure(
    procedure_id: str,
    procedure_in: ProcedureUpdate,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session)
):
    procedure = await get_or_404(db, Procedure, procedure_id, "Procedure not found")
    ensure_collaborator_access(procedure.collaborator_id, principal)

    apply_updates(procedure, procedure_in)

    log_activity(db, principal.user_id, "procedure_updated", f"Updated procedure: {procedure.name}", procedure.id, "procedure")
    await db.commit()
    return await fetch(db, Procedure, procedure.id)


@router.delete("/{procedure_id}", response_model=MessageResponse)
async def delete_procedure(
    procedure_id: str,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session)
):
    procedure = await get_or_404(db, Procedure, procedure_id, "Procedure not found")

    name = procedure.name
    await db.delete(procedure)
    log_activity(db, principal.user_id, "procedure_deleted", f"Deleted procedure: {name}", procedure_id, "procedure")
    await db.commit()
    return MessageResponse(message="Procedure deleted successfully")
