"""
Patient Lifecycle Service
Deactivation/reactivation, registration completion and consultation outcomes.

Each function only stages changes on the session; the request's single
commit makes every multi-table flow (event + procedure + patient, or
patient + procedure + note) atomic.
"""

import logging
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Principal
from app.core.dates import utcnow, add_days
from app.core.logging import security_logger
from app.models import (
    Patient, PatientNote, Procedure, ProcedureTemplate, Event, City, Collaborator,
    PatientStatus, FollowupStatus, CompletionType, NoteType, ProcedureStatus, EventStatus,
    generate_uuid,
)
from app.schemas.patient import PatientCreate, PatientUpdate, CompleteRegistrationRequest
from app.schemas.event import EventCompleteRequest
from app.services.activity import log_activity
from app.services.errors import BusinessRuleError
from app.services.repository import fetch, get_or_404, apply_updates, ensure_patient_access, ensure_collaborator_access

logger = logging.getLogger(__name__)

DEACTIVATION_NOTE_TITLE = "Paciente desativado"
REACTIVATION_PREFIX = "Reativado: "
REGISTRATION_NOTE_TITLE = "Completar Cadastro"

# Default timeline text per consultation result when no notes are given
REGISTRATION_RESULT_LABELS = {
    CompletionType.PROCEDURE_CLOSED: "Procedimento fechado",
    CompletionType.NO_CLOSURE: "Sem fechamento",
    CompletionType.MISSED: "Paciente faltou",
}

REGISTRATION_NOTE_TYPES = {
    CompletionType.PROCEDURE_CLOSED: NoteType.PROCEDURE,
    CompletionType.NO_CLOSURE: NoteType.NOTE,
    CompletionType.MISSED: NoteType.MISSED,
}


def followup_for(completion_type: CompletionType) -> FollowupStatus:
    """
    Follow-up status recorded on the patient for a consultation outcome.
    A closed procedure is always stored as ``procedure_closed``.
    """
    return FollowupStatus(completion_type.value)


def build_procedure(
    template: ProcedureTemplate,
    patient_id: str,
    collaborator_id: str,
    value: Optional[Decimal],
    notes: Optional[str] = None,
) -> Procedure:
    """
    Instantiate a procedure closed right now from a template.
    validity_date = performed_date + template.validity_days
    """
    now = utcnow()
    return Procedure(
        id=generate_uuid(),
        template_id=template.id,
        patient_id=patient_id,
        collaborator_id=collaborator_id,
        name=template.name,
        value=value if value is not None else template.default_price,
        performed_date=now,
        closed_date=now,
        validity_date=add_days(now, template.validity_days or 0),
        status=ProcedureStatus.ACTIVE,
        notes=notes,
    )


async def check_references(
    db: AsyncSession,
    city_id: Optional[str] = None,
    collaborator_id: Optional[str] = None,
) -> None:
    """
    Validate optional foreign keys supplied by a client
    """
    if city_id and await fetch(db, City, city_id) is None:
        raise BusinessRuleError("Selected city does not exist")
    if collaborator_id and await fetch(db, Collaborator, collaborator_id) is None:
        raise BusinessRuleError("Selected collaborator does not exist")


# ==================== Create / update ====================

async def create_patient(db: AsyncSession, data: PatientCreate, principal: Principal) -> Patient:
    values = data.model_dump()
    # Collaborators register patients into their own portfolio by default
    if principal.scoped and not values.get("collaborator_id"):
        values["collaborator_id"] = principal.collaborator_id

    await check_references(db, values.get("city_id"), values.get("collaborator_id"))

    patient = Patient(**values)
    db.add(patient)
    await db.flush()

    log_activity(
        db, principal.user_id, "patient_created",
        f"Created patient: {patient.name}", patient.id, "patient",
    )
    return patient


async def update_patient(db: AsyncSession, patient: Patient, update: PatientUpdate, principal: Principal) -> Patient:
    ensure_patient_access(patient, principal)

    if patient.status == PatientStatus.DEACTIVATED and "status" in update.model_fields_set:
        raise BusinessRuleError("Patient is deactivated; use the reactivate endpoint")

    fields = update.model_fields_set
    await check_references(
        db,
        update.city_id if "city_id" in fields else None,
        update.collaborator_id if "collaborator_id" in fields else None,
    )

    apply_updates(patient, update)

    log_activity(
        db, principal.user_id, "patient_updated",
        f"Updated patient: {patient.name}", patient.id, "patient",
    )
    return patient


# ==================== Deactivation ====================

async def deactivate_patient(db: AsyncSession, patient_id: str, reason: Optional[str], principal: Principal) -> Patient:
    """
    Deactivate a patient with a mandatory reason.

    The reason is kept on the patient row and copied into a ``status`` note
    on the timeline, which later reactivations never remove.

    Raises:
        BusinessRuleError: blank reason, caller without collaborator record,
            or patient already deactivated
        NotFoundError: unknown patient
    """
    if not reason or not reason.strip():
        raise BusinessRuleError("Justificativa é obrigatória para desativar paciente")
    reason = reason.strip()

    if principal.collaborator is None:
        raise BusinessRuleError("Colaborador não encontrado")

    patient = await get_or_404(db, Patient, patient_id, "Patient not found")
    ensure_patient_access(patient, principal)

    if patient.status == PatientStatus.DEACTIVATED:
        raise BusinessRuleError("Patient is already deactivated")

    previous_status = patient.status
    patient.status = PatientStatus.DEACTIVATED
    patient.deactivated_at = utcnow()
    patient.deactivation_reason = reason
    patient.deactivated_by = principal.collaborator_id
    patient.updated_at = utcnow()

    db.add(PatientNote(
        patient_id=patient.id,
        content=reason,
        type=NoteType.STATUS,
        title=DEACTIVATION_NOTE_TITLE,
    ))

    log_activity(
        db, principal.user_id, "patient_deactivated",
        f"Deactivated patient: {patient.name}. Reason: {reason}", patient.id, "patient",
    )
    security_logger.patient_status_change(
        principal.user_id, patient.id, previous_status.value, PatientStatus.DEACTIVATED.value, reason
    )
    return patient


async def reactivate_patient(db: AsyncSession, patient_id: str, reason: Optional[str], principal: Principal) -> Patient:
    """
    Bring a deactivated patient back to ``active``.
    Any authenticated user may reactivate; the deactivation note stays on the timeline.
    """
    patient = await get_or_404(db, Patient, patient_id, "Patient not found")

    if patient.status != PatientStatus.DEACTIVATED:
        raise BusinessRuleError("Patient is not deactivated")

    reason = reason.strip() if reason else None
    patient.status = PatientStatus.ACTIVE
    patient.deactivated_at = None
    patient.deactivated_by = None
    patient.deactivation_reason = f"{REACTIVATION_PREFIX}{reason}" if reason else None
    patient.updated_at = utcnow()

    log_activity(
        db, principal.user_id, "patient_reactivated",
        f"Reactivated patient: {patient.name}", patient.id, "patient",
    )
    security_logger.patient_status_change(
        principal.user_id, patient.id, PatientStatus.DEACTIVATED.value, PatientStatus.ACTIVE.value, reason
    )
    return patient


# ==================== Registration completion ====================

async def complete_registration(
    db: AsyncSession,
    patient_id: str,
    data: CompleteRegistrationRequest,
    principal: Principal,
) -> Tuple[Patient, Optional[Procedure]]:
    """
    One-shot transition of an admin-created stub into a full record.

    Updates the patient, creates the closed procedure (if any) and writes
    a timeline note; all of it is committed together.
    """
    patient = await get_or_404(db, Patient, patient_id, "Patient not found")
    ensure_patient_access(patient, principal)

    if patient.is_registration_complete:
        raise BusinessRuleError("Patient registration is already complete")

    await check_references(db, data.city_id, data.collaborator_id)

    template = None
    if data.consultation_result == CompletionType.PROCEDURE_CLOSED:
        template = await get_or_404(db, ProcedureTemplate, data.closed_procedure_template_id, "Procedure template not found")

    now = utcnow()
    patient.phone = data.phone
    patient.city_id = data.city_id
    patient.collaborator_id = data.collaborator_id
    if data.classification is not None:
        patient.classification = data.classification
    if data.current_status is not None:
        patient.current_status = data.current_status
    if data.next_steps is not None:
        patient.next_steps = data.next_steps
    patient.is_registration_complete = True
    patient.last_consultation_date = data.last_consultation_date or now
    patient.followup_status = followup_for(data.consultation_result)
    patient.updated_at = now

    procedure = None
    if template is not None:
        procedure = build_procedure(
            template, patient.id, data.collaborator_id, data.procedure_value, data.consultation_notes
        )
        db.add(procedure)

    content = data.consultation_notes or (
        f"Cadastro completado - {REGISTRATION_RESULT_LABELS[data.consultation_result]}"
    )
    db.add(PatientNote(
        patient_id=patient.id,
        content=content,
        type=REGISTRATION_NOTE_TYPES[data.consultation_result],
        title=REGISTRATION_NOTE_TITLE,
        amount=str(data.procedure_value) if procedure is not None else None,
    ))

    log_activity(
        db, principal.user_id, "patient_registration_completed",
        f"Completed registration: {patient.name} ({data.consultation_result.value})", patient.id, "patient",
    )
    return patient, procedure


# ==================== Consultation outcome ====================

async def complete_consultation(
    db: AsyncSession,
    event_id: str,
    data: EventCompleteRequest,
    principal: Principal,
) -> Tuple[Event, CompletionType, Optional[Procedure]]:
    """
    Resolve a scheduled event with its outcome.

    1. completion type is mandatory
    2. the event must exist
    3. the event becomes ``completed`` with notes and timestamp
    4. a closed procedure with a template creates a Procedure
    5. the patient's follow-up status and last consultation date are updated
    6. the outcome is written to the activity log

    Raises:
        BusinessRuleError: missing completion type or event already completed
        NotFoundError: unknown event or template
    """
    if data.completion_type is None:
        raise BusinessRuleError("Completion type is required")
    completion_type = data.completion_type

    event = await get_or_404(db, Event, event_id, "Event not found")
    ensure_collaborator_access(event.collaborator_id, principal)

    if event.status == EventStatus.COMPLETED:
        raise BusinessRuleError("Event is already completed")

    template = None
    if completion_type == CompletionType.PROCEDURE_CLOSED and data.closed_procedure_template_id:
        template = await get_or_404(db, ProcedureTemplate, data.closed_procedure_template_id, "Procedure template not found")

    now = utcnow()
    event.status = EventStatus.COMPLETED
    event.completion_type = completion_type
    event.completion_notes = data.notes
    event.completed_at = now
    event.updated_at = now

    procedure = None
    if event.patient_id:
        if template is not None:
            collaborator_id = principal.collaborator_id or event.collaborator_id
            procedure = build_procedure(template, event.patient_id, collaborator_id, data.procedure_value, data.notes)
            db.add(procedure)
            # Insert the procedure before the event row starts referencing it
            await db.flush()
            event.closed_procedure_id = procedure.id

        patient = await get_or_404(db, Patient, event.patient_id, "Patient not found")
        patient.followup_status = followup_for(completion_type)
        patient.last_consultation_date = now
        patient.updated_at = now
    elif template is not None:
        logger.warning("Event %s has no patient; closed procedure not created", event.id)

    log_activity(
        db, principal.user_id, "consultation_completed",
        f"Completed consultation: {completion_type.value}", event.id, "event",
    )
    return event, completion_type, procedure
