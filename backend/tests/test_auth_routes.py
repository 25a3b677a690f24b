from dataclasses import replace

import pytest

from backend.auth_service.utils import create_token


def test_signup_success(client, user_store):
    payload = {"name": "Alice", "email": "a@x.com", "password": "pass123"}

    response = client.post("/api/auth/signup", json=payload)

    assert response.status_code == 201
    data = response.get_json()
    assert data["success"] is True
    assert "token" in data
    assert data["user"] == {"id": 1, "name": "Alice", "email": "a@x.com"}

    # Password is stored hashed, never echoed back
    stored = user_store.find_by_email("a@x.com")
    assert stored.password_hash != "pass123"
    assert "password" not in response.get_data(as_text=True)


def test_signup_missing_fields(client):
    response = client.post("/api/auth/signup", json={"email": "a@x.com"})
    assert response.status_code == 400
    assert response.get_json()["message"] == "Please provide all required fields"


def test_signup_short_password(client):
    payload = {"name": "Alice", "email": "a@x.com", "password": "12345"}
    response = client.post("/api/auth/signup", json=payload)
    assert response.status_code == 400
    assert "at least 6 characters" in response.get_json()["message"]


def test_signup_duplicate_email(client, user_store):
    payload = {"name": "Alice", "email": "a@x.com", "password": "pass123"}
    assert client.post("/api/auth/signup", json=payload).status_code == 201

    response = client.post("/api/auth/signup", json={**payload, "name": "Other"})

    assert response.status_code == 400
    assert response.get_json()["message"] == "User already exists with this email"
    assert len(user_store.users) == 1


def test_signup_without_jwt_secret(client, app, settings):
    app.extensions["event_rsvp"]["credentials"].settings = replace(settings, jwt_secret=None)
    payload = {"name": "Alice", "email": "a@x.com", "password": "pass123"}

    response = client.post("/api/auth/signup", json=payload)

    assert response.status_code == 500
    assert "JWT_SECRET" in response.get_json()["message"]


def test_signup_login_scenario(client):
    signup = client.post("/api/auth/signup", json={"name": "Alice", "email": "a@x.com", "password": "pass123"})
    assert signup.status_code == 201
    user_id = signup.get_json()["user"]["id"]

    login = client.post("/api/auth/login", json={"email": "a@x.com", "password": "pass123"})
    assert login.status_code == 200
    assert login.get_json()["user"]["id"] == user_id
    assert login.get_json()["token"]

    wrong = client.post("/api/auth/login", json={"email": "a@x.com", "password": "wrong"})
    assert wrong.status_code == 400
    assert wrong.get_json()["message"] == "Invalid credentials"


def test_login_unknown_email_matches_wrong_password(client, make_user):
    make_user("Alice", "a@x.com", "pass123")

    wrong_password = client.post("/api/auth/login", json={"email": "a@x.com", "password": "nope123"})
    unknown_email = client.post("/api/auth/login", json={"email": "zz@x.com", "password": "nope123"})

    assert wrong_password.status_code == unknown_email.status_code == 400
    assert wrong_password.get_data() == unknown_email.get_data()


def test_login_missing_fields(client):
    response = client.post("/api/auth/login", json={"email": "a@x.com"})
    assert response.status_code == 400


def test_login_non_json_body(client):
    response = client.post("/api/auth/login", data="email=a@x.com")
    assert response.status_code == 400


@pytest.mark.parametrize("path", ["/api/auth/signup", "/api/auth/login"])
def test_json_body_must_be_object(client, path):
    response = client.post(path, json=["a@x.com", "pass123"])
    assert response.status_code == 400
    assert response.get_json()["message"] == "Request body must be a JSON object"


def test_get_me_success(client, make_user):
    _, headers = make_user("Alice", "a@x.com")

    response = client.get("/api/auth/me", headers=headers)

    assert response.status_code == 200
    user = response.get_json()["user"]
    assert user["email"] == "a@x.com"
    assert user["name"] == "Alice"
    assert user["created_at"]
    assert "password_hash" not in user


def test_get_me_unauthorized(client):
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.get_json()["message"] == "No token, authorization denied"


def test_get_me_invalid_token(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer bogus"})
    assert response.status_code == 401
    assert response.get_json()["message"] == "Token is not valid"


def test_get_me_user_gone(client):
    token = create_token(999, "ghost@x.com", "test_secret")
    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 404
    assert response.get_json()["message"] == "User not found"
