"""
Patient portfolio scoping and lifecycle transitions
"""
from datetime import datetime, timedelta
from sqlalchemy import select, func

from conftest import create_patient
from app.core.dates import as_utc
from app.models import FollowupStatus, PatientNote


async def test_collaborator_lists_only_own_patients(collaborator_client, admin_client, collaborator, other_collaborator):
    await create_patient("Ana", collaborator)
    await create_patient("Bia", collaborator)
    await create_patient("Caio", other_collaborator)
    await create_patient("Davi")

    own = await collaborator_client.get("/api/patients")
    everyone = await admin_client.get("/api/patients")

    assert own.status_code == 200
    assert {p["name"] for p in own.json()} == {"Ana", "Bia"}
    assert all(p["collaborator_id"] == collaborator.id for p in own.json())
    assert {p["name"] for p in everyone.json()} == {"Ana", "Bia", "Caio", "Davi"}


async def test_patient_detail_includes_collaborator_user_and_city(admin_client, collaborator, city):
    patient = await create_patient("Ana", collaborator, city_id=city.id)

    response = await admin_client.get(f"/api/patients/{patient.id}")

    assert response.status_code == 200
    data = response.json()
    assert data["city"]["name"] == "São Paulo"
    assert data["collaborator"]["user"]["name"] == "Maria Souza"


async def test_collaborator_cannot_read_other_portfolio(collaborator_client, other_collaborator):
    patient = await create_patient("Caio", other_collaborator)

    response = await collaborator_client.get(f"/api/patients/{patient.id}")

    assert response.status_code == 403


async def test_unknown_patient_is_not_found(admin_client):
    response = await admin_client.get("/api/patients/unknown")

    assert response.status_code == 404
    assert response.json()["detail"] == "Patient not found"


async def test_collaborator_created_patient_is_self_assigned(collaborator_client, collaborator):
    response = await collaborator_client.post(
        "/api/patients", json={"name": "Ana", "phone": "(11) 98765-4321"}
    )

    assert response.status_code == 201
    data = response.json()
    assert data["collaborator_id"] == collaborator.id
    assert data["phone"] == "+5511987654321"
    assert data["classification"] == "bronze"
    assert data["status"] == "active"


async def test_create_patient_validates_references(admin_client):
    response = await admin_client.post("/api/patients", json={"name": "Ana", "city_id": "missing"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Selected city does not exist"


async def test_incomplete_and_outcome_listings(collaborator_client, collaborator):
    await create_patient("Ana", collaborator, followup_status=FollowupStatus.MISSED)
    await create_patient("Bia", collaborator, followup_status=FollowupStatus.NO_CLOSURE, is_registration_complete=True)

    incomplete = await collaborator_client.get("/api/patients/incomplete")
    missed = await collaborator_client.get("/api/patients/missed")
    no_closure = await collaborator_client.get("/api/patients/no-closure")

    assert [p["name"] for p in incomplete.json()] == ["Ana"]
    assert [p["name"] for p in missed.json()] == ["Ana"]
    assert [p["name"] for p in no_closure.json()] == ["Bia"]


async def test_active_listing_requires_collaborator_record(admin_client):
    response = await admin_client.get("/api/patients/active")

    assert response.status_code == 400
    assert response.json()["detail"] == "Colaborador não encontrado"


async def test_patch_applies_whitelisted_fields(collaborator_client, collaborator):
    patient = await create_patient("Ana", collaborator, next_steps="Ligar")

    response = await collaborator_client.patch(
        f"/api/patients/{patient.id}", json={"classification": "gold", "followup_status": "closed_procedure"}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["classification"] == "gold"
    assert data["followup_status"] == "procedure_closed"
    assert data["next_steps"] == "Ligar"


async def test_patch_rejects_lifecycle_fields(collaborator_client, collaborator):
    patient = await create_patient("Ana", collaborator)

    deactivate = await collaborator_client.patch(f"/api/patients/{patient.id}", json={"status": "deactivated"})
    registration = await collaborator_client.put(
        f"/api/patients/{patient.id}", json={"is_registration_complete": True}
    )

    assert deactivate.status_code == 400
    assert registration.status_code == 400


async def test_deactivation_requires_reason(collaborator_client, collaborator):
    patient = await create_patient("Ana", collaborator)

    response = await collaborator_client.put(f"/api/patients/{patient.id}/deactivate", json={"reason": "   "})

    assert response.status_code == 400
    assert response.json()["detail"] == "Justificativa é obrigatória para desativar paciente"


async def test_deactivation_requires_collaborator_record(admin_client, collaborator):
    patient = await create_patient("Ana", collaborator)

    response = await admin_client.put(f"/api/patients/{patient.id}/deactivate", json={"reason": "Mudou"})

    assert response.status_code == 400


async def test_deactivate_then_reactivate_keeps_timeline(collaborator_client, collaborator):
    patient = await create_patient("Ana", collaborator)

    deactivated = await collaborator_client.put(
        f"/api/patients/{patient.id}/deactivate", json={"reason": "Mudou de cidade"}
    )
    assert deactivated.status_code == 200
    data = deactivated.json()
    assert data["status"] == "deactivated"
    assert data["deactivation_reason"] == "Mudou de cidade"
    assert data["deactivated_by"] == collaborator.id
    assert data["deactivated_at"] is not None

    listed = await collaborator_client.get("/api/patients/deactivated")
    assert [p["id"] for p in listed.json()] == [patient.id]

    again = await collaborator_client.put(f"/api/patients/{patient.id}/deactivate", json={"reason": "x"})
    assert again.status_code == 400

    reactivated = await collaborator_client.put(
        f"/api/patients/{patient.id}/reactivate", json={"reason": "Voltou"}
    )
    assert reactivated.status_code == 200
    data = reactivated.json()
    assert data["status"] == "active"
    assert data["deactivated_at"] is None
    assert data["deactivated_by"] is None
    assert data["deactivation_reason"] == "Reativado: Voltou"

    notes = await collaborator_client.get(f"/api/patients/{patient.id}/notes")
    status_notes = [n for n in notes.json() if n["type"] == "status"]
    assert len(status_notes) == 1
    assert status_notes[0]["title"] == "Paciente desativado"
    assert status_notes[0]["content"] == "Mudou de cidade"


async def test_reactivate_without_reason_clears_it(collaborator_client, collaborator):
    patient = await create_patient("Ana", collaborator)
    await collaborator_client.put(f"/api/patients/{patient.id}/deactivate", json={"reason": "Sumiu"})

    response = await collaborator_client.put(f"/api/patients/{patient.id}/reactivate")

    assert response.status_code == 200
    assert response.json()["deactivation_reason"] is None


async def test_reactivating_active_patient_is_rejected(admin_client, collaborator):
    patient = await create_patient("Ana", collaborator)

    response = await admin_client.put(f"/api/patients/{patient.id}/reactivate", json={})

    assert response.status_code == 400


async def test_status_cannot_change_while_deactivated(collaborator_client, collaborator):
    patient = await create_patient("Ana", collaborator)
    await collaborator_client.put(f"/api/patients/{patient.id}/deactivate", json={"reason": "Sumiu"})

    response = await collaborator_client.patch(f"/api/patients/{patient.id}", json={"status": "active"})

    assert response.status_code == 400


async def test_complete_registration_with_closed_procedure(admin_client, collaborator, city, template):
    patient = await create_patient("Ana")

    response = await admin_client.post(
        f"/api/patients/{patient.id}/complete-registration",
        json={
            "phone": "11987654321",
            "city_id": city.id,
            "collaborator_id": collaborator.id,
            "classification": "diamond",
            "consultation_result": "closed_procedure",
            "closed_procedure_template_id": template.id,
            "procedure_value": "1200.00",
        },
    )

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["patient"]["is_registration_complete"] is True
    assert data["patient"]["followup_status"] == "procedure_closed"
    assert data["patient"]["collaborator"]["id"] == collaborator.id
    assert data["procedure"]["template_id"] == template.id
    assert float(data["procedure"]["value"]) == 1200.0

    procedures = await admin_client.get("/api/procedures", params={"patient_id": patient.id})
    assert len(procedures.json()) == 1

    notes = await admin_client.get(f"/api/patients/{patient.id}/notes")
    assert [n["title"] for n in notes.json()] == ["Completar Cadastro"]
    assert notes.json()[0]["type"] == "procedure"

    again = await admin_client.post(
        f"/api/patients/{patient.id}/complete-registration",
        json={
            "phone": "11987654321",
            "city_id": city.id,
            "collaborator_id": collaborator.id,
            "consultation_result": "missed",
        },
    )
    assert again.status_code == 400


async def test_complete_registration_closed_requires_template_and_value(admin_client, collaborator, city):
    patient = await create_patient("Ana")

    response = await admin_client.post(
        f"/api/patients/{patient.id}/complete-registration",
        json={
            "phone": "11987654321",
            "city_id": city.id,
            "collaborator_id": collaborator.id,
            "consultation_result": "procedure_closed",
        },
    )

    assert response.status_code == 400


async def test_complete_registration_without_closure_creates_no_procedure(admin_client, collaborator, city):
    patient = await create_patient("Ana")

    response = await admin_client.post(
        f"/api/patients/{patient.id}/complete-registration",
        json={
            "phone": "11987654321",
            "city_id": city.id,
            "collaborator_id": collaborator.id,
            "consultation_result": "no_closure",
        },
    )

    assert response.status_code == 200
    assert response.json()["procedure"] is None
    assert response.json()["patient"]["followup_status"] == "no_closure"


async def test_notes_photo_and_files(collaborator_client, collaborator):
    patient = await create_patient("Ana", collaborator)

    note = await collaborator_client.post(
        f"/api/patients/{patient.id}/notes", json={"content": "Pagou entrada", "type": "payment", "amount": "300"}
    )
    photo = await collaborator_client.post(f"/api/patients/{patient.id}/photo")
    attached = await collaborator_client.post(f"/api/patients/{patient.id}/files", json={"title": "Exame.pdf"})

    assert note.status_code == 201
    assert photo.json()["photo"] == f"/uploads/patients/{patient.id}.jpg"
    assert attached.status_code == 201
    assert attached.json()["type"] == "file"

    notes = await collaborator_client.get(f"/api/patients/{patient.id}/notes")
    assert {n["type"] for n in notes.json()} == {"payment", "file"}


async def test_delete_patient_removes_dependent_records(admin_client, collaborator_client, collaborator, template, db_session):
    patient = await create_patient("Ana", collaborator)
    procedure = await collaborator_client.post(
        "/api/procedures", json={"patient_id": patient.id, "template_id": template.id}
    )
    event = await collaborator_client.post(
        "/api/events",
        json={"type": "consultation", "title": "Retorno", "scheduled_date": "2030-01-10T14:00:00+00:00", "patient_id": patient.id},
    )
    note = await collaborator_client.post(f"/api/patients/{patient.id}/notes", json={"content": "Ligar amanhã"})
    task = await admin_client.post(
        "/api/admin/tasks", json={"title": "Ligar", "assigned_to": collaborator.id, "patient_id": patient.id}
    )
    assert [r.status_code for r in (procedure, event, note, task)] == [201, 201, 201, 201]

    response = await admin_client.delete(f"/api/patients/{patient.id}")

    assert response.status_code == 200
    assert (await admin_client.get(f"/api/patients/{patient.id}")).status_code == 404
    assert (await admin_client.get("/api/procedures")).json() == []
    assert (await admin_client.get("/api/events")).json() == []
    notes = await db_session.execute(select(func.count(PatientNote.id)))
    assert notes.scalar_one() == 0
    tasks = (await admin_client.get("/api/admin/tasks")).json()
    assert [t["patient_id"] for t in tasks] == [None]


async def test_patch_rejects_null_for_required_fields(collaborator_client, collaborator):
    patient = await create_patient("Ana", collaborator)

    for field in ("name", "status", "classification"):
        response = await collaborator_client.patch(f"/api/patients/{patient.id}", json={field: None})
        assert response.status_code == 400, field
        assert response.json()["detail"] == "Invalid request data"

    unchanged = await collaborator_client.get(f"/api/patients/{patient.id}")
    assert unchanged.json()["name"] == "Ana"
    assert unchanged.json()["status"] == "active"


async def test_procedure_validity_defaults_from_template(collaborator_client, collaborator, template):
    patient = await create_patient("Ana", collaborator)

    response = await collaborator_client.post(
        "/api/procedures", json={"patient_id": patient.id, "template_id": template.id}
    )

    assert response.status_code == 201
    data = response.json()
    assert data["collaborator_id"] == collaborator.id
    assert data["name"] == "Botox"
    performed = as_utc(datetime.fromisoformat(data["performed_date"]))
    validity = as_utc(datetime.fromisoformat(data["validity_date"]))
    assert validity - performed == timedelta(days=180)
