from datetime import timedelta

from storefront.utils.security import create_access_token

CREDENTIALS = {"email": "new@example.com", "password": "Password123!"}


def register(client, **overrides):
    return client.post("/auth/register", json={**CREDENTIALS, "name": "New User", **overrides})


def test_register(client):
    response = register(client, email="New@Example.com")

    assert response.status_code == 201
    body = response.json()
    assert body["email"] == "new@example.com"
    assert body["role"] == "USER"
    assert body["name"] == "New User"
    assert "password" not in body
    assert "createdAt" in body


def test_register_duplicate_email(client):
    register(client)

    response = register(client)

    assert response.status_code == 409
    assert response.json()["code"] == "EMAIL_ALREADY_EXISTS"


def test_register_validates_payload(client):
    response = register(client, email="not-an-email", password="short")

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert {tuple(e["loc"]) for e in body["errors"]} == {("body", "email"), ("body", "password")}


def test_login_returns_token_and_user(client):
    register(client)

    response = client.post("/auth/login", json=CREDENTIALS)

    assert response.status_code == 200
    body = response.json()
    assert body["accessToken"]
    assert body["user"]["email"] == "new@example.com"
    assert body["user"]["role"] == "USER"


def test_login_wrong_password(client):
    register(client)

    response = client.post("/auth/login", json={**CREDENTIALS, "password": "WrongPass123"})

    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_CREDENTIALS"


def test_login_unknown_email_looks_the_same(client):
    response = client.post("/auth/login", json={**CREDENTIALS, "email": "ghost@example.com"})

    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_CREDENTIALS"


def test_me_with_login_token(client):
    register(client)
    token = client.post("/auth/login", json=CREDENTIALS).json()["accessToken"]

    response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.json()["email"] == "new@example.com"


def test_me_requires_token(client):
    response = client.get("/auth/me")

    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHORIZED"


def test_me_rejects_garbage_token(client):
    response = client.get("/auth/me", headers={"Authorization": "Bearer not.a.jwt"})

    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_TOKEN"


def test_me_rejects_expired_token(client, user):
    token = create_access_token(
        {"sub": str(user["id"]), "email": user["email"], "role": "USER"},
        expires_delta=timedelta(minutes=-1),
    )

    response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_me_rejects_token_of_deleted_account(client):
    token = create_access_token({"sub": "999", "email": "gone@example.com", "role": "USER"})

    response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_TOKEN"


def test_login_is_throttled(client):
    register(client)
    bad = {**CREDENTIALS, "password": "WrongPass123"}

    statuses = [client.post("/auth/login", json=bad).status_code for _ in range(5)]
    blocked = client.post("/auth/login", json=CREDENTIALS)

    assert statuses == [401] * 5
    assert blocked.status_code == 429
    assert blocked.json()["code"] == "RATE_LIMITED"


def test_throttle_counts_each_route_separately(client):
    for n in range(5):
        register(client, email=f"user{n}@example.com")

    response = client.post("/auth/login", json={**CREDENTIALS, "email": "user0@example.com"})

    assert response.status_code == 200


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "ok"}
