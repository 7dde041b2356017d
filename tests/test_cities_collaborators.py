"""
Cities, collaborators and their referential-integrity rules
"""
from conftest import create_user, create_city, create_collaborator, create_patient


async def test_recife_collaborator_is_listed_with_user_and_city(admin_client):
    city = await admin_client.post("/api/cities", json={"name": "Recife", "state": "pe"})
    assert city.status_code == 201
    assert city.json()["state"] == "PE"

    user = await admin_client.post(
        "/api/users", json={"username": "joao", "password": "joao123", "name": "joao", "role": "collaborator"}
    )
    assert user.status_code == 201

    collaborator = await admin_client.post(
        "/api/collaborators",
        json={"user_id": user.json()["id"], "city_id": city.json()["id"], "revenue_goal": "10000"},
    )
    assert collaborator.status_code == 201

    response = await admin_client.get("/api/collaborators")

    assert response.status_code == 200
    rows = response.json()
    assert len(rows) == 1
    assert rows[0]["city"]["name"] == "Recife"
    assert rows[0]["user"]["name"] == "joao"
    assert float(rows[0]["revenue_goal"]) == 10000


async def test_duplicate_city_name_is_rejected(admin_client):
    await admin_client.post("/api/cities", json={"name": "Recife", "state": "PE"})

    response = await admin_client.post("/api/cities", json={"name": "Recife", "state": "PE"})

    assert response.status_code == 400


async def test_city_goals_are_normalized_decimal_strings(admin_client):
    response = await admin_client.post(
        "/api/cities", json={"name": "Olinda", "state": "PE", "monthly_goal": "2500,5"}
    )

    assert response.status_code == 201
    assert response.json()["monthly_goal"] == "2500.50"


async def test_city_update_applies_only_sent_fields(admin_client):
    created = await admin_client.post(
        "/api/cities", json={"name": "Recife", "state": "PE", "description": "Capital"}
    )
    city_id = created.json()["id"]

    response = await admin_client.put(f"/api/cities/{city_id}", json={"monthly_goal": "5000"})

    assert response.status_code == 200
    assert response.json()["description"] == "Capital"
    assert response.json()["monthly_goal"] == "5000.00"


async def test_city_update_rejects_unknown_fields(admin_client):
    created = await admin_client.post("/api/cities", json={"name": "Recife", "state": "PE"})

    response = await admin_client.put(f"/api/cities/{created.json()['id']}", json={"id": "hijack"})

    assert response.status_code == 400


async def test_city_with_collaborators_cannot_be_deleted(admin_client, collaborator, city):
    response = await admin_client.delete(f"/api/cities/{city.id}")

    assert response.status_code == 400
    assert "Não é possível excluir uma cidade com colaboradores ativos" in response.json()["detail"]
    assert "1" in response.json()["detail"]

    cities = await admin_client.get("/api/cities")
    assert [c["id"] for c in cities.json()] == [city.id]


async def test_city_with_patients_cannot_be_deleted(admin_client):
    city = await create_city("Natal", "RN")
    await create_patient("Ana", city_id=city.id)

    response = await admin_client.delete(f"/api/cities/{city.id}")

    assert response.status_code == 400
    assert "pacientes vinculados (1 paciente(s))" in response.json()["detail"]
    assert [c["id"] for c in (await admin_client.get("/api/cities")).json()] == [city.id]


async def test_unused_city_is_deleted(admin_client):
    city = await create_city("Natal", "RN")

    response = await admin_client.delete(f"/api/cities/{city.id}")

    assert response.status_code == 200
    assert (await admin_client.get("/api/cities")).json() == []


async def test_deleting_unknown_city_is_not_found(admin_client):
    response = await admin_client.delete("/api/cities/unknown")

    assert response.status_code == 404


async def test_collaborators_cannot_manage_cities(collaborator_client):
    response = await collaborator_client.post("/api/cities", json={"name": "Recife", "state": "PE"})

    assert response.status_code == 403


async def test_user_cannot_become_collaborator_twice(admin_client, collaborator, city):
    response = await admin_client.post(
        "/api/collaborators", json={"user_id": collaborator.user_id, "city_id": city.id}
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "User is already a collaborator"


async def test_collaborator_requires_existing_user_and_city(admin_client, city):
    user = await create_user("joao", "joao")

    no_user = await admin_client.post("/api/collaborators", json={"user_id": "missing", "city_id": city.id})
    no_city = await admin_client.post("/api/collaborators", json={"user_id": user.id, "city_id": "missing"})

    assert no_user.status_code == 400
    assert no_city.status_code == 400


async def test_collaborator_with_patients_cannot_be_deleted(admin_client, collaborator):
    await create_patient("Ana", collaborator)
    await create_patient("Bia", collaborator)

    response = await admin_client.delete(f"/api/collaborators/{collaborator.id}")

    assert response.status_code == 400
    assert "Cannot delete collaborator with active patients" in response.json()["detail"]
    assert "2 patient(s) assigned" in response.json()["detail"]


async def test_collaborator_without_history_is_deleted(admin_client, other_collaborator):
    response = await admin_client.delete(f"/api/collaborators/{other_collaborator.id}")

    assert response.status_code == 200
    assert (await admin_client.get("/api/collaborators")).json() == []


async def test_collaborator_updates_own_goals_only(collaborator_client, collaborator, other_collaborator):
    own = await collaborator_client.put(
        f"/api/collaborators/{collaborator.id}", json={"consultation_goal": 30}
    )
    other = await collaborator_client.put(
        f"/api/collaborators/{other_collaborator.id}", json={"consultation_goal": 30}
    )

    assert own.status_code == 200
    assert own.json()["consultation_goal"] == 30
    assert other.status_code == 403


async def test_collaborator_detail_accepts_user_id(admin_client, collaborator):
    await create_patient("Ana", collaborator)

    response = await admin_client.get(f"/api/collaborators/{collaborator.user_id}")

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == collaborator.id
    assert [p["name"] for p in data["active_patients"]] == ["Ana"]
    assert data["metrics"]["total_patients"] == 1


async def test_goal_progress_is_zero_when_goal_is_zero(admin_client, city, template):
    user = await create_user("zero", "Zero Goal")
    collaborator = await create_collaborator(user, city, revenue_goal="0", consultation_goal=0)
    patient = await create_patient("Ana", collaborator)

    sale = await admin_client.post(
        "/api/procedures",
        json={"patient_id": patient.id, "template_id": template.id, "collaborator_id": collaborator.id},
    )
    assert sale.status_code == 201

    response = await admin_client.get(f"/api/collaborators/{collaborator.id}/metrics")

    assert response.status_code == 200
    metrics = response.json()
    assert metrics["monthly_revenue"] == 1500.0
    assert metrics["goal_progress"] == {
        "monthly": 0, "quarterly": 0, "yearly": 0, "sales": 0, "consultations": 0,
    }


async def test_goal_progress_is_not_clamped(admin_client, city, template):
    user = await create_user("star", "Star Seller")
    collaborator = await create_collaborator(user, city, revenue_goal="1000.00")
    patient = await create_patient("Ana", collaborator)

    await admin_client.post(
        "/api/procedures",
        json={"patient_id": patient.id, "template_id": template.id, "collaborator_id": collaborator.id},
    )

    response = await admin_client.get(f"/api/collaborators/{collaborator.id}/metrics")

    assert response.json()["goal_progress"]["monthly"] == 150.0


async def test_collaborator_cannot_read_another_collaborators_metrics(collaborator_client, other_collaborator):
    response = await collaborator_client.get(f"/api/collaborators/{other_collaborator.id}/metrics")

    assert response.status_code == 403


async def test_performance_lists_every_collaborator(admin_client, collaborator, other_collaborator):
    await create_patient("Ana", collaborator)

    response = await admin_client.get("/api/collaborators/performance")

    assert response.status_code == 200
    by_id = {row["id"]: row for row in response.json()}
    assert by_id[collaborator.id]["active_patients"] == 1
    assert by_id[other_collaborator.id]["active_patients"] == 0
    assert by_id[other_collaborator.id]["goal_progress"] == 0


async def test_city_metrics(admin_client, collaborator, city):
    await create_patient("Ana", collaborator, city_id=city.id)

    response = await admin_client.get("/api/cities/metrics")

    assert response.status_code == 200
    row = response.json()[0]
    assert row["city_name"] == "São Paulo"
    assert row["total_patients"] == 1
    assert row["total_collaborators"] == 1
    assert row["goal_progress"] == 0
