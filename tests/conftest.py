"""
Pytest configuration and fixtures
"""
import os

# Configure before any company_service import reads the environment.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["EVENT_BUS_BACKEND"] = "memory"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["API_USER"] = "admin"
os.environ["API_PASSWORD"] = "admin-pass"

import pytest
from fastapi.testclient import TestClient

from company_service.core.config import get_settings
from company_service.crud.user_crud import create_user
from company_service.db.create_tables import create_tables
from company_service.db.database import Base, SessionLocal, engine
from company_service.dependencies import get_event_publisher
from company_service.services.event_publisher import MemoryEventPublisher
from main import app

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin-pass"

VALID_COMPANY = {
    "name": "Acme",
    "description": "Makes anvils",
    "employees": 10,
    "registered": True,
    "type": "Corporations",
}


@pytest.fixture(autouse=True)
def clean_database():
    """Fresh schema for every test"""
    Base.metadata.drop_all(bind=engine)
    create_tables(engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def admin_user(db):
    return create_user(db, ADMIN_USERNAME, ADMIN_PASSWORD)


@pytest.fixture
def publisher():
    return MemoryEventPublisher(topic="company_events")


@pytest.fixture
def client(publisher):
    app.dependency_overrides[get_event_publisher] = lambda: publisher
    # https so the Secure session cookie is sent back
    test_client = TestClient(app, base_url="https://testserver")
    yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_client(client, admin_user):
    response = client.post("/api/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return client


@pytest.fixture
def created_company(auth_client):
    response = auth_client.post("/api/companies", json=VALID_COMPANY)
    assert response.status_code == 201
    return response.json()["company"]
