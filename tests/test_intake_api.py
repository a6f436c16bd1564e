"""
Tests for the intake submission and patient record endpoints.
"""
from fastapi.testclient import TestClient

from clinic_intake.collaborators import Collaborators
from clinic_intake.core.pagination import PageParams
from clinic_intake.enrichment.service import PLACEHOLDER_SUMMARY, EnrichmentResult, Summarizer
from clinic_intake.main import create_app
from clinic_intake.storage.repository import InMemoryIntakeRepository

from conftest import VALID_INTAKE

SCENARIO_A = {
    "fullName": "John Doe",
    "age": 35,
    "mainSymptoms": "Headache",
    "symptomDuration": "2 days",
    "painSeverity": 5,
    "gender": "M",
    "preferredDepartment": "General Medicine",
}


class FailingSummarizer(Summarizer):
    async def summarize(self, record):
        raise RuntimeError("model unavailable")


class FixedSummarizer(Summarizer):
    async def summarize(self, record):
        return EnrichmentResult(ai_summary="Tension headache", ai_severity="low", ai_department="General Medicine")


class BrokenRepository(InMemoryIntakeRepository):
    def upsert(self, key, item):
        raise RuntimeError("disk full")


def make_client(settings, collaborators, **overrides):
    collaborators = Collaborators(**{**collaborators.__dict__, **overrides})
    return TestClient(create_app(settings=settings, collaborators=collaborators))


def test_submit_valid_intake(client, repository):
    """
    A valid intake is accepted and stored with the placeholder summary.
    """
    response = client.post("/intake", json=SCENARIO_A)
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["patientId"]
    assert data["message"] == "Patient intake received and queued for processing"

    stored = repository.get(data["patientId"])
    assert stored["fullName"] == "John Doe"
    assert stored["aiSummary"] == PLACEHOLDER_SUMMARY
    assert stored["aiSeverity"] is None
    assert stored["medicalHistory"] is None


def test_submit_invalid_intake(client, repository):
    """
    Missing name and out-of-range age are both reported.
    """
    response = client.post("/intake", json={"fullName": "", "age": 200})
    assert response.status_code == 400
    error = response.json()["error"]
    assert error.startswith("Validation failed: ")
    assert "fullName is required" in error
    assert "age must be a valid number between 1 and 150" in error
    assert error.index("fullName") < error.index("age must")
    assert len(repository) == 0


def test_submit_malformed_json(client):
    response = client.post("/intake", content=b"{not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid JSON in request body"}


def test_submit_empty_body(client):
    response = client.post("/intake")
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid JSON in request body"}


def test_submit_json_array(client):
    response = client.post("/intake", json=[SCENARIO_A])
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid JSON in request body"}


def test_client_identifiers_are_ignored(client, repository):
    body = dict(SCENARIO_A, patientId="chosen-by-client", createdAt="2000-01-01T00:00:00Z")
    response = client.post("/intake", json=body)
    patient_id = response.json()["patientId"]
    assert patient_id != "chosen-by-client"
    assert repository.get("chosen-by-client") is None
    assert not repository.get(patient_id)["createdAt"].startswith("2000")


def test_enrichment_result_is_stored(settings, collaborators, repository):
    with make_client(settings, collaborators, summarizer=FixedSummarizer()) as client:
        response = client.post("/intake", json=VALID_INTAKE)
    stored = repository.get(response.json()["patientId"])
    assert stored["aiSummary"] == "Tension headache"
    assert stored["aiSeverity"] == "low"
    assert stored["aiDepartment"] == "General Medicine"


def test_enrichment_failure_still_persists(settings, collaborators, repository):
    with make_client(settings, collaborators, summarizer=FailingSummarizer()) as client:
        response = client.post("/intake", json=VALID_INTAKE)
    assert response.status_code == 200
    stored = repository.get(response.json()["patientId"])
    assert stored["fullName"] == "Jane Doe"
    assert stored["aiSummary"] is None


def test_storage_failure_returns_500(settings, collaborators):
    with make_client(settings, collaborators, repository=BrokenRepository()) as client:
        response = client.post("/intake", json=VALID_INTAKE)
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error: disk full"}


def test_storage_failure_hides_details_when_configured(settings, collaborators):
    settings = settings.model_copy(update={"expose_error_details": False})
    with make_client(settings, collaborators, repository=BrokenRepository()) as client:
        response = client.post("/intake", json=VALID_INTAKE)
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_get_patient_record(doctor_client):
    patient_id = doctor_client.post("/intake", json=VALID_INTAKE).json()["patientId"]

    response = doctor_client.get(f"/patients/{patient_id}")
    assert response.status_code == 200
    data = response.json()
    assert data["patientId"] == patient_id
    assert data["mainSymptoms"] == "Headache"


def test_get_unknown_patient(doctor_client):
    response = doctor_client.get("/patients/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"error": "Patient intake does-not-exist not found"}


def test_list_patients_and_pending_filter(doctor_client):
    first = doctor_client.post("/intake", json=VALID_INTAKE).json()["patientId"]
    second = doctor_client.post("/intake", json=dict(VALID_INTAKE, fullName="Sam Roe")).json()["patientId"]
    doctor_client.post("/doctor-response", json={"patientId": first, "prescription": "Rest"})

    everyone = doctor_client.get("/patients").json()
    assert everyone["status"] == "ok"
    assert everyone["total"] == 2
    assert everyone["hasNext"] is False
    assert everyone["hasPrev"] is False

    pending = doctor_client.get("/patients", params={"pending": "true"}).json()
    assert [item["patientId"] for item in pending["items"]] == [second]
    assert pending["items"][0]["hasDoctorResponse"] is False

    answered = doctor_client.get("/patients", params={"pending": "false"}).json()
    assert [item["patientId"] for item in answered["items"]] == [first]


def test_list_patients_pagination(doctor_client):
    for index in range(3):
        doctor_client.post("/intake", json=dict(VALID_INTAKE, fullName=f"Patient {index}"))

    page = doctor_client.get("/patients", params={"page": 2, "size": 2}).json()
    assert page["total"] == 3
    assert page["pages"] == 2
    assert page["page"] == 2
    assert len(page["items"]) == 1
    assert page["hasPrev"] is True
    assert page["hasNext"] is False


def test_default_page_size(doctor_client):
    page = doctor_client.get("/patients").json()
    assert page["size"] == 20
    assert page["pages"] == 0
    assert page["items"] == []


def test_page_window_past_the_end():
    window = PageParams(page=4, size=2).window(["a", "b", "c", "d", "e"])
    assert window["items"] == []
    assert window["pages"] == 3
    assert window["has_prev"] is True
    assert window["has_next"] is False
