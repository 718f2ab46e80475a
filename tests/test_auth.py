"""
Tests for login and identity endpoints.
"""
from conftest import PASSWORD, auth_headers
from chemo_order.core.security import verify_token


def test_login_returns_token_and_user(client, nurse):
    response = client.post("/api/auth/login", json={"username": "nurse_a", "password": PASSWORD})
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Login successful"
    assert data["user"]["username"] == "nurse_a"
    assert data["user"]["wardId"] == nurse.ward_id
    assert data["user"]["wardName"] == "Ward A"
    assert "passwordHash" not in data["user"]

    payload = verify_token(data["token"])
    assert payload["user_id"] == nurse.id
    assert payload["ward_id"] == nurse.ward_id
    assert payload["role"] == "NURSE"


def test_login_missing_fields(client):
    response = client.post("/api/auth/login", json={"username": "nurse_a"})
    assert response.status_code == 400
    assert "required" in response.json()["message"]


def test_login_wrong_password(client, nurse):
    response = client.post("/api/auth/login", json={"username": "nurse_a", "password": "nope"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid credentials"


def test_me(client, pharmacist):
    response = client.get("/api/auth/me", headers=auth_headers(pharmacist))
    assert response.status_code == 200
    assert response.json()["role"] == "PHARMACIST"
    assert response.json()["wardId"] is None


def test_protected_route_requires_token(client):
    assert client.get("/api/orders").status_code == 401
    response = client.get("/api/orders", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401
    assert response.json()["message"] == "Not authorized, token failed"
