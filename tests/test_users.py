"""
User administration
"""
from conftest import create_user, login
from app.models import UserRole


async def test_admin_creates_user_with_hashed_password(admin_client):
    response = await admin_client.post(
        "/api/users", json={"username": "joao", "password": "joao123", "name": "joao"}
    )

    assert response.status_code == 201
    data = response.json()
    assert data["username"] == "joao"
    assert data["role"] == "collaborator"
    assert "password" not in data and "hashed_password" not in data

    users = await admin_client.get("/api/users")
    assert {u["username"] for u in users.json()} == {"admin", "joao"}


async def test_duplicate_username_is_rejected(admin_client):
    payload = {"username": "joao", "password": "joao123", "name": "joao"}
    await admin_client.post("/api/users", json=payload)

    response = await admin_client.post("/api/users", json=payload)

    assert response.status_code == 400


async def test_short_password_is_rejected(admin_client):
    response = await admin_client.post(
        "/api/users", json={"username": "joao", "password": "123", "name": "joao"}
    )

    assert response.status_code == 400


async def test_promote_user(admin_client):
    user = await create_user("ana", "Ana")

    response = await admin_client.post(f"/api/users/{user.id}/promote")
    assert response.status_code == 200
    assert response.json()["role"] == "admin"

    again = await admin_client.post(f"/api/users/{user.id}/promote")
    assert again.status_code == 400

    missing = await admin_client.post("/api/users/does-not-exist/promote")
    assert missing.status_code == 404


async def test_user_changes_own_password(admin_user):
    user = await create_user("ana", "Ana")
    client = await login("ana")

    wrong = await client.put(
        f"/api/users/{user.id}/password", json={"new_password": "newpass1", "current_password": "bad"}
    )
    assert wrong.status_code == 400

    response = await client.put(
        f"/api/users/{user.id}/password", json={"new_password": "newpass1", "current_password": "secret123"}
    )
    assert response.status_code == 200

    relogin = await client.post("/api/auth/login", json={"username": "ana", "password": "newpass1"})
    assert relogin.status_code == 200
    await client.aclose()


async def test_user_cannot_change_someone_elses_password(admin_user):
    await create_user("ana", "Ana")
    client = await login("ana")

    response = await client.put(f"/api/users/{admin_user.id}/password", json={"new_password": "hijack1"})

    assert response.status_code == 403
    await client.aclose()


async def test_admin_resets_password_without_current(admin_client):
    user = await create_user("ana", "Ana", UserRole.COLLABORATOR)

    response = await admin_client.put(f"/api/users/{user.id}/password", json={"new_password": "reset123"})

    assert response.status_code == 200
