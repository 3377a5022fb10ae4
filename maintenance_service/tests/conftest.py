"""
API test configuration.

The service runs against an in-memory SQLite database that is recreated for
every test. Tokens are minted locally for two companies so tenant scoping
can be checked.
"""
import os
import uuid

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from fastapi.testclient import TestClient

from shared.core.auth import create_access_token
from shared.core.database import Base, maintenance_engine, MaintenanceSessionLocal, get_maintenance_db
from maintenance_service.app.main import app

COMPANY_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")
OTHER_COMPANY_ID = uuid.UUID("22222222-2222-2222-2222-222222222222")


def override_get_db():
    db = MaintenanceSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_maintenance_db] = override_get_db


@pytest.fixture(autouse=True)
def clean_db():
    """Recreate all tables for each test."""
    Base.metadata.drop_all(maintenance_engine)
    Base.metadata.create_all(maintenance_engine)
    yield
    Base.metadata.drop_all(maintenance_engine)


@pytest.fixture
def db_session():
    session = MaintenanceSessionLocal()
    try:
        yield session
    finally:
        session.close()


def auth_headers(company_id=COMPANY_ID, name="Test Operator"):
    token = create_access_token({"user_id": "user-1", "company_id": company_id, "name": name})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        test_client.headers.update(auth_headers())
        yield test_client


@pytest.fixture
def anonymous_client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def other_headers():
    return auth_headers(OTHER_COMPANY_ID, name="Other Company")


@pytest.fixture
def headers_for():
    return auth_headers


# ---------------- Builders ----------------

@pytest.fixture
def make_location(client):
    def _make(name="Plant", parent_id=None, **extra):
        payload = {"name": name, "parent_id": str(parent_id) if parent_id else None, **extra}
        response = client.post("/api/locations", json=payload)
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def make_machine_model(client):
    def _make(name="Lathe X", manufacturer="Acme", brand="Acme", year=2020):
        response = client.post("/api/machine-models", json={
            "name": name, "manufacturer": manufacturer, "brand": brand, "year": year})
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def make_operation(client):
    def _make(name="Check oil", type="boolean", order=None):
        response = client.post("/api/operations", json={
            "name": name, "description": f"{name} description", "type": type, "order": order})
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def make_range(client):
    def _make(name="Monthly", type="preventive", operation_ids=(), **extra):
        response = client.post("/api/maintenance-ranges", json={
            "name": name, "type": type, "operation_ids": [str(i) for i in operation_ids], **extra})
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def make_machine(client, make_machine_model):
    def _make(location="Hall A", model_id=None, maintenance_range_ids=(), operation_ids=(), **extra):
        if model_id is None:
            model_id = make_machine_model(name=f"Model {uuid.uuid4().hex[:6]}")["id"]
        response = client.post("/api/machines", json={
            "model_id": str(model_id),
            "location": location,
            "maintenance_range_ids": [str(i) for i in maintenance_range_ids],
            "operation_ids": [str(i) for i in operation_ids],
            **extra})
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def make_work_order(client):
    def _make(machines=(), type="preventive", description="Monthly service", **extra):
        response = client.post("/api/work-orders", json={
            "type": type,
            "description": description,
            "machines": list(machines),
            **extra})
        assert response.status_code == 201, response.text
        return response.json()
    return _make
