import os
from datetime import date

# Must be set before the application modules are imported
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from dosewise.auth import create_access_token
from dosewise.database import Base, get_db
from dosewise.domain.medications.schemas import MedicationCreate
from dosewise.domain.medications.service import MedicationService
from dosewise.domain.treatments.schemas import TreatmentCreate
from dosewise.domain.treatments.service import TreatmentService
from dosewise.main import app

OWNER_ID = 1
OTHER_OWNER_ID = 2


@pytest.fixture
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def medication(db):
    return MedicationService(db).create_medication(
        MedicationCreate(name="Amoxicillin", activeIngredient="amoxicillin", unitOfMeasure=1),
        OWNER_ID,
    )


@pytest.fixture
def make_treatment(db, medication):
    """Create a treatment for OWNER_ID; keyword arguments override the defaults"""

    def _make(**overrides):
        payload = {
            "medicationId": medication.id,
            "name": "Antibiotic course",
            "doseAmount": "500",
            "startDate": date(2024, 1, 1),
            "endDate": date(2024, 1, 2),
            "frequencyType": 1,
            "intervalHours": 8,
            "alertType": 1,
        }
        payload.update(overrides)
        return TreatmentService(db).create_treatment(OWNER_ID, TreatmentCreate(**payload))

    return _make


def auth_headers(owner_id: int = OWNER_ID) -> dict:
    return {"Authorization": f"Bearer {create_access_token(owner_id)}"}


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    test_client = TestClient(app)
    test_client.headers.update(auth_headers())
    yield test_client
    app.dependency_overrides.clear()
