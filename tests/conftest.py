"""
Test configuration for the chemotherapy order backend.
"""
import json
import os
import tempfile

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(tempfile.mkdtemp(), 'app.db')}"
os.environ["PUBLIC_DIR"] = tempfile.mkdtemp()
os.environ["CLEANUP_ENABLED"] = "false"
os.environ["SEED_REFERENCE_DATA"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from chemo_order.database import Base, get_db, init_db
from chemo_order.main import app
from chemo_order.auth.models import UserRole, Ward
from chemo_order.catalog.models import Drug
from chemo_order.auth.service import create_user
from chemo_order.core.security import create_user_token

# Test database URL
TEST_DATABASE_URL = "sqlite://"

# Create test database engine
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session factory
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "secret123"


@pytest.fixture(scope="function")
def db():
    """
    Create a fresh database for each test.
    """
    init_db(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """
    Create a test client with a test database session.
    """
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as client:
        yield client
    app.dependency_overrides = {}


@pytest.fixture
def make_user(db):
    """Factory creating a user, optionally in a new or existing ward."""
    def _make_user(username, role=UserRole.NURSE, ward=None, full_name=None):
        if isinstance(ward, str):
            ward = db.query(Ward).filter(Ward.name == ward).first() or Ward(name=ward)
            db.add(ward)
            db.flush()
        return create_user(
            db,
            username,
            PASSWORD,
            full_name or username.title(),
            role=role,
            ward_id=ward.id if ward else None,
        )
    return _make_user


@pytest.fixture
def nurse(make_user):
    return make_user("nurse_a", ward="Ward A", full_name="Nurse Alice")


@pytest.fixture
def other_nurse(make_user):
    return make_user("nurse_b", ward="Ward B", full_name="Nurse Bob")


@pytest.fixture
def pharmacist(make_user):
    return make_user("pharm", role=UserRole.PHARMACIST, full_name="Pharmacist Paula")


@pytest.fixture
def drug_catalog(db):
    db.add_all([
        Drug(id="oxaliplatin", name="Oxaliplatin", description="Part of FOLFOX6"),
        Drug(id="leucovorin", name="Leucovorin", description="Part of FOLFOX6"),
    ])
    db.commit()


def auth_headers(user):
    return {"Authorization": f"Bearer {create_user_token(user)}"}


def order_form(hn="HN001", full_name="Somchai Jaidee", drugs=None, **extra):
    """Multipart form fields for order create/update."""
    form = {
        "patient": json.dumps({"hn": hn, "fullName": full_name, "an": "AN-1"}),
        "drugs": json.dumps(drugs or [{"drugId": "oxaliplatin", "dose": "85", "day": "1"}]),
        "otherData": json.dumps({"regimenId": "folfox6", "startDate": "2024-10-05", "cycle": 3}),
        "notes": "Pre-medicate",
    }
    for key, value in extra.items():
        form[key] = value if isinstance(value, str) else json.dumps(value)
    return form


def create_order(client, user, **kwargs):
    response = client.post("/api/orders", data=order_form(**kwargs), headers=auth_headers(user))
    assert response.status_code == 201, response.text
    return response.json()
