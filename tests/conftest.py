"""
Test configuration for the clinic backend.
"""
import os

# Settings are read at import time, so the test environment goes first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LIMITER_ENABLED"] = "false"
os.environ["CREATE_TABLES"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from clinic.database import Base, get_db
from clinic.main import app

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

DOCTOR_DATA = {
    "name": "A",
    "email": "a@x.com",
    "password": "longenough1",
    "specialization": "Cardio",
    "contact": 9998887776,
    "shift_start": "9:00 AM",
    "shift_end": "5:00 PM",
}

RECEPTIONIST_DATA = {
    "name": "Rita Desk",
    "email": "rita@example.com",
    "password": "frontdesk99",
    "contact": 9123456780,
    "shift_start": "8:00 AM",
    "shift_end": "4:00 PM",
}

PATIENT_DATA = {
    "name": "Jane Roe",
    "gender": "female",
    "age": 34,
    "contact": 9876543210,
    "address": "12 Harbour Road",
    "medical_history": "Seasonal asthma",
    "insurance_info": "HealthFirst #4471",
    "last_visit": "2024-05-02T10:30:00Z",
    "doctor_id": 1,
}


@pytest.fixture(scope="function")
def session_factory():
    """
    Create fresh tables for each test and hand out the session factory.
    """
    Base.metadata.create_all(bind=engine)
    yield TestingSessionLocal
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db(session_factory):
    """
    Database session on a fresh database.
    """
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


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
    
    # Override the get_db dependency
    app.dependency_overrides[get_db] = override_get_db
    
    # Create test client
    with TestClient(app) as client:
        yield client
    
    # Remove dependency override
    app.dependency_overrides = {}


def auth_header(token: str) -> dict:
    """Authorization header for a bearer token"""
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def registered_doctor(client):
    """
    Register the default doctor and return the response body.
    """
    response = client.post("/v1/register", json=DOCTOR_DATA, headers={"Role": "doctor"})
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def registered_receptionist(client):
    """
    Register the default receptionist and return the response body.
    """
    response = client.post("/v1/register", json=RECEPTIONIST_DATA, headers={"Role": "receptionist"})
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def doctor_headers(registered_doctor):
    """Authorization header of the default doctor"""
    return auth_header(registered_doctor["token"])


@pytest.fixture
def receptionist_headers(registered_receptionist):
    """Authorization header of the default receptionist"""
    return auth_header(registered_receptionist["token"])


@pytest.fixture
def created_patient(client, receptionist_headers):
    """
    Create the default patient as the receptionist and return it.
    """
    response = client.post("/v1/patients", json=PATIENT_DATA, headers=receptionist_headers)
    assert response.status_code == 201, response.text
    return response.json()["patient"]
