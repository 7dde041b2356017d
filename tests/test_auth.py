"""
Login, session handling and role guards
"""


async def test_login_returns_user_collaborator_and_token(client, collaborator):
    response = await client.post("/api/auth/login", json={"username": "maria", "password": "secret123"})

    assert response.status_code == 200
    data = response.json()
    assert data["user"]["username"] == "maria"
    assert data["user"]["role"] == "collaborator"
    assert "hashed_password" not in data["user"]
    assert data["collaborator"]["id"] == collaborator.id
    assert data["collaborator"]["city"]["name"] == "São Paulo"
    assert data["access_token"]


async def test_admin_login_has_no_collaborator(client, admin_user):
    response = await client.post("/api/auth/login", json={"username": "admin", "password": "secret123"})

    assert response.status_code == 200
    assert response.json()["collaborator"] is None


async def test_bad_password_and_unknown_user_are_indistinguishable(client, admin_user):
    wrong_password = await client.post("/api/auth/login", json={"username": "admin", "password": "nope123"})
    unknown_user = await client.post("/api/auth/login", json={"username": "ghost", "password": "secret123"})

    assert wrong_password.status_code == 401
    assert unknown_user.status_code == 401
    assert wrong_password.json() == unknown_user.json()


async def test_login_with_missing_fields_is_bad_request(client):
    response = await client.post("/api/auth/login", json={"username": "admin"})

    assert response.status_code == 400
    body = response.json()
    assert body["detail"] == "Invalid request data"
    assert any("password" in error for error in body["errors"])


async def test_session_cookie_authenticates_follow_up_requests(client, admin_user):
    await client.post("/api/auth/login", json={"username": "admin", "password": "secret123"})

    response = await client.get("/api/auth/me")

    assert response.status_code == 200
    assert response.json()["user"]["username"] == "admin"


async def test_logout_clears_session(client, admin_user):
    await client.post("/api/auth/login", json={"username": "admin", "password": "secret123"})
    await client.post("/api/auth/logout")

    response = await client.get("/api/auth/me")

    assert response.status_code == 401


async def test_bearer_token_authenticates(client, admin_user):
    login = await client.post("/api/auth/login", json={"username": "admin", "password": "secret123"})
    token = login.json()["access_token"]
    await client.post("/api/auth/logout")

    response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200


async def test_invalid_bearer_token_is_rejected(client):
    response = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})

    assert response.status_code == 401


async def test_protected_routes_require_authentication(client):
    for path in ("/api/patients", "/api/cities", "/api/events", "/api/dashboard/metrics"):
        response = await client.get(path)
        assert response.status_code == 401, path


async def test_admin_routes_reject_collaborators(collaborator_client):
    for path in ("/api/users", "/api/admin/tasks", "/api/admin/global-stats", "/api/metrics/overview"):
        response = await collaborator_client.get(path)
        assert response.status_code == 403, path


async def test_responses_carry_security_headers(client):
    response = await client.get("/api/health")

    assert response.status_code == 200
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
