"""
Tests for the drug/regimen catalog and startup bootstrap.
"""
from conftest import PASSWORD, auth_headers
from chemo_order.auth.models import User, UserRole
from chemo_order.config import settings
from chemo_order.core.bootstrap import REGIMENS, bootstrap_admin_if_needed, drug_id_for, seed_reference_data


def test_drug_id_for():
    assert drug_id_for("Oxaliplatin") == "oxaliplatin"
    assert drug_id_for("5-FU (Bolus)") == "5-fu-bolus"


def test_seed_is_idempotent(db):
    assert seed_reference_data(db) is True
    assert seed_reference_data(db) is False


def test_catalog_endpoints(client, db, nurse):
    seed_reference_data(db)
    headers = auth_headers(nurse)

    regimens = client.get("/api/regimens", headers=headers).json()
    assert {r["id"] for r in regimens} == {r["id"] for r in REGIMENS}
    folfox = next(r for r in regimens if r["id"] == "folfox6")
    assert folfox["sideEffects"]
    assert folfox["drugs"][0]["name"] == "Oxaliplatin"

    drugs = client.get("/api/drugs", headers=headers).json()
    assert "oxaliplatin" in {d["id"] for d in drugs}


def test_catalog_requires_login(client):
    assert client.get("/api/drugs").status_code == 401


def test_bootstrap_admin(client, db, monkeypatch):
    monkeypatch.setattr(settings, "bootstrap_admin_username", "admin")
    monkeypatch.setattr(settings, "bootstrap_admin_password", PASSWORD)

    assert bootstrap_admin_if_needed(db) is True
    assert bootstrap_admin_if_needed(db) is False
    admin = db.query(User).filter(User.username == "admin").one()
    assert admin.role == UserRole.ADMIN
    assert admin.ward_id is None

    response = client.post("/api/auth/login", json={"username": "admin", "password": PASSWORD})
    assert response.status_code == 200


def test_bootstrap_admin_skipped_without_credentials(db, monkeypatch):
    monkeypatch.setattr(settings, "bootstrap_admin_username", None)
    assert bootstrap_admin_if_needed(db) is False
    assert db.query(User).count() == 0
