"""
Test configuration for the clinic intake backend.
"""
import pytest
from fastapi.testclient import TestClient

from clinic_intake.auth.service import JWTIdentityProvider
from clinic_intake.collaborators import Collaborators
from clinic_intake.config import EnrichmentBackend, NotificationBackend, Settings, StorageBackend
from clinic_intake.enrichment.service import PlaceholderSummarizer
from clinic_intake.main import create_app
from clinic_intake.notifications.service import LoggingNotifier
from clinic_intake.storage.repository import InMemoryIntakeRepository

TEST_SECRET_KEY = "test-secret-key"

VALID_INTAKE = {
    "fullName": "Jane Doe",
    "age": 34,
    "gender": "Female",
    "mainSymptoms": "Headache",
    "symptomDuration": "2 days",
    "painSeverity": 6,
    "preferredDepartment": "General Medicine",
}


@pytest.fixture(scope="function")
def settings():
    """
    Settings for tests: in-memory collaborators, optional auth.
    """
    return Settings(
        _env_file=None,
        storage_backend=StorageBackend.MEMORY,
        enrichment_backend=EnrichmentBackend.PLACEHOLDER,
        notification_backend=NotificationBackend.LOG,
        jwt_secret_key=TEST_SECRET_KEY,
        auth_required=False
    )


@pytest.fixture(scope="function")
def repository():
    return InMemoryIntakeRepository()


@pytest.fixture(scope="function")
def notifier():
    return LoggingNotifier()


@pytest.fixture(scope="function")
def identity():
    return JWTIdentityProvider(secret_key=TEST_SECRET_KEY, algorithm="HS256")


@pytest.fixture(scope="function")
def collaborators(repository, notifier, identity):
    return Collaborators(
        repository=repository,
        summarizer=PlaceholderSummarizer(),
        notifier=notifier,
        identity=identity
    )


@pytest.fixture(scope="function")
def app(settings, collaborators):
    return create_app(settings=settings, collaborators=collaborators)


@pytest.fixture(scope="function")
def client(app):
    """
    Create a test client for a fresh application.
    """
    with TestClient(app) as client:
        yield client


@pytest.fixture(scope="function")
def doctor_token(identity):
    return identity.issue_token("doctor-1", groups=["doctor"], email="doctor@example.com")


@pytest.fixture(scope="function")
def patient_token(identity):
    return identity.issue_token("patient-1", groups=["patient"])


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def doctor_client(app, doctor_token):
    """
    Create a test client that sends a doctor's bearer token on every request.
    """
    with TestClient(app, headers=bearer(doctor_token)) as client:
        yield client
