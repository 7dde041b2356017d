"""
Admin tasks, statistics, snapshots and dashboards
"""
from datetime import date, timedelta

from conftest import create_patient
from app.core.dates import utcnow


async def test_task_with_due_date_gets_calendar_event(admin_client, collaborator):
    due = (utcnow() + timedelta(days=2)).isoformat()

    response = await admin_client.post(
        "/api/admin/tasks",
        json={"title": "Ligar para Ana", "assigned_to": collaborator.id, "due_date": due, "priority": "high"},
    )

    assert response.status_code == 201, response.text
    data = response.json()
    assert data["task"]["status"] == "pending"
    assert data["task"]["assignee"]["id"] == collaborator.id
    assert data["event"]["type"] == "task"
    assert data["event"]["title"] == "[TAREFA] Ligar para Ana"
    assert data["event"]["collaborator_id"] == collaborator.id


async def test_task_without_due_date_has_no_event(admin_client, collaborator):
    response = await admin_client.post(
        "/api/admin/tasks", json={"title": "Revisar metas", "assigned_to": collaborator.id}
    )

    assert response.status_code == 201
    assert response.json()["event"] is None
    assert (await admin_client.get("/api/events")).json() == []


async def test_task_requires_existing_assignee(admin_client):
    response = await admin_client.post("/api/admin/tasks", json={"title": "X", "assigned_to": "missing"})

    assert response.status_code == 400


async def test_recurring_task_needs_pattern(admin_client, collaborator):
    response = await admin_client.post(
        "/api/admin/tasks", json={"title": "X", "assigned_to": collaborator.id, "is_recurring": True}
    )

    assert response.status_code == 400


async def test_assignee_completes_task(admin_client, collaborator_client, collaborator):
    created = await admin_client.post(
        "/api/admin/tasks", json={"title": "Ligar", "assigned_to": collaborator.id}
    )
    task_id = created.json()["task"]["id"]

    pending = await collaborator_client.get(f"/api/collaborators/{collaborator.id}/tasks/pending")
    assert [t["id"] for t in pending.json()] == [task_id]

    done = await collaborator_client.patch(f"/api/admin/tasks/{task_id}", json={"status": "completed"})
    assert done.status_code == 200
    assert done.json()["completed_at"] is not None

    reopened = await collaborator_client.patch(f"/api/admin/tasks/{task_id}", json={"status": "in_progress"})
    assert reopened.json()["completed_at"] is None

    cleared = await collaborator_client.patch(f"/api/admin/tasks/{task_id}", json={"status": None})
    assert cleared.status_code == 400


async def test_collaborator_cannot_update_others_task(admin_client, collaborator_client, other_collaborator):
    created = await admin_client.post(
        "/api/admin/tasks", json={"title": "Ligar", "assigned_to": other_collaborator.id}
    )

    response = await collaborator_client.patch(
        f"/api/admin/tasks/{created.json()['task']['id']}", json={"status": "completed"}
    )

    assert response.status_code == 403


async def test_task_listing_filters(admin_client, collaborator, other_collaborator):
    await admin_client.post("/api/admin/tasks", json={"title": "A", "assigned_to": collaborator.id})
    await admin_client.post("/api/admin/tasks", json={"title": "B", "assigned_to": other_collaborator.id})

    response = await admin_client.get("/api/admin/tasks", params={"assigned_to": collaborator.id})

    assert [t["title"] for t in response.json()] == ["A"]


async def test_global_stats_and_top_performers(admin_client, collaborator, other_collaborator, template):
    ana = await create_patient("Ana", collaborator)
    bia = await create_patient("Bia", other_collaborator)
    await admin_client.post(
        "/api/procedures", json={"patient_id": ana.id, "template_id": template.id, "collaborator_id": collaborator.id}
    )
    await admin_client.post(
        "/api/procedures",
        json={"patient_id": bia.id, "template_id": template.id, "collaborator_id": other_collaborator.id, "value": "500"},
    )

    response = await admin_client.get("/api/admin/global-stats")

    assert response.status_code == 200
    data = response.json()
    assert data["total_patients"] == 2
    assert data["active_patients"] == 2
    assert data["total_revenue"] == 2000.0
    assert data["monthly_growth"] == 0
    assert [p["name"] for p in data["top_performers"]] == ["Maria Souza", "Pedro Lima"]
    assert data["top_performers"][0]["total_procedures"] == 1


async def test_stalled_patients_longest_first(collaborator_client, admin_client, collaborator):
    ana = await create_patient("Ana", collaborator)
    bia = await create_patient("Bia", collaborator)
    for patient, days in ((ana, 12), (bia, 40)):
        response = await collaborator_client.post(
            "/api/patient-progress",
            json={
                "patient_id": patient.id, "progress_type": "contact", "description": "Sem resposta",
                "days_since_last_contact": days, "is_stalled": True,
            },
        )
        assert response.status_code == 201

    response = await admin_client.get("/api/admin/stalled-patients")

    assert [row["patient"]["name"] for row in response.json()] == ["Bia", "Ana"]
    assert response.json()[0]["collaborator"]["id"] == collaborator.id


async def test_progress_requires_collaborator_record(admin_client, collaborator):
    patient = await create_patient("Ana", collaborator)

    response = await admin_client.post(
        "/api/patient-progress",
        json={"patient_id": patient.id, "progress_type": "contact", "description": "Ligação"},
    )

    assert response.status_code == 404
    assert response.json()["detail"] == "Collaborator not found"


async def test_performance_snapshots(admin_client, collaborator):
    created = await admin_client.post(
        "/api/admin/metrics",
        json={"collaborator_id": collaborator.id, "metric_date": date.today().isoformat(), "patients_contacted": 8},
    )
    assert created.status_code == 201

    response = await admin_client.get("/api/admin/metrics", params={"collaborator_id": collaborator.id})

    assert [m["patients_contacted"] for m in response.json()] == [8]


async def test_metrics_overview(admin_client, collaborator, other_collaborator, template):
    patient = await create_patient("Ana", collaborator)
    await admin_client.post(
        "/api/procedures", json={"patient_id": patient.id, "template_id": template.id, "collaborator_id": collaborator.id}
    )

    response = await admin_client.get("/api/metrics/overview")

    assert response.status_code == 200
    data = response.json()
    assert data["active_collaborators"] == 2
    assert data["total_revenue"] == 1500.0
    assert data["overall_goal_progress"] == 15.0


async def test_dashboard_is_scoped_for_collaborators(collaborator_client, admin_client, collaborator, other_collaborator):
    await create_patient("Ana", collaborator)
    await create_patient("Caio", other_collaborator)

    own = await collaborator_client.get("/api/dashboard/metrics")
    everyone = await admin_client.get("/api/dashboard/metrics")

    assert own.json()["total_patients"] == 1
    assert everyone.json()["total_patients"] == 2


async def test_pending_followups_count_overdue_followup_events(collaborator_client, collaborator):
    await collaborator_client.post(
        "/api/events",
        json={"type": "followup", "title": "Retorno", "scheduled_date": (utcnow() - timedelta(hours=2)).isoformat()},
    )
    await collaborator_client.post(
        "/api/events",
        json={"type": "followup", "title": "Futuro", "scheduled_date": (utcnow() + timedelta(days=2)).isoformat()},
    )

    response = await collaborator_client.get("/api/dashboard/metrics")

    assert response.json()["pending_followups"] == 1


async def test_activity_feed_lists_recent_changes(collaborator_client):
    await collaborator_client.post("/api/patients", json={"name": "Ana"})
    await collaborator_client.post("/api/patients", json={"name": "Bia"})

    response = await collaborator_client.get("/api/dashboard/activity", params={"limit": 1})

    assert response.status_code == 200
    assert len(response.json()) == 1
    assert response.json()[0]["type"] == "patient_created"


async def test_collaborator_dashboard_stats(admin_client, collaborator_client, collaborator, template):
    patient = await create_patient("Ana", collaborator)
    await collaborator_client.post("/api/procedures", json={"patient_id": patient.id, "template_id": template.id})
    await collaborator_client.post(
        "/api/patient-progress",
        json={"patient_id": patient.id, "progress_type": "contact", "description": "Sem retorno", "is_stalled": True},
    )
    await admin_client.post("/api/admin/tasks", json={"title": "Ligar", "assigned_to": collaborator.id})

    response = await collaborator_client.get(f"/api/collaborators/{collaborator.id}/dashboard")

    assert response.status_code == 200
    data = response.json()
    assert data["total_patients"] == 1
    assert data["stalled_patients"] == 1
    assert data["pending_tasks"] == 1
    assert data["completed_tasks"] == 0
    assert data["monthly_revenue"] == 1500.0
    assert data["weekly_progress"]["procedures"] == 1
