"""
HTTP client for the Clinic Intake API.

Mirrors what the patient form and the doctor dashboard do: build request
bodies from raw form values, check them before sending, and call the API.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union
import logging

import httpx

# Set up logging
logger = logging.getLogger(__name__)

Number = Union[int, float]

FORM_TEXT_FIELDS = (
    "fullName",
    "gender",
    "mainSymptoms",
    "symptomDuration",
    "medicalHistory",
    "currentMedications",
    "allergies",
    "preferredDepartment",
    "preferredDoctor",
)


class ApiError(Exception):
    """Raised for non-2xx replies and replies that are not JSON."""

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"API Error [{status}]: {body}")


@dataclass
class FormValidation:
    valid: bool
    errors: List[str] = field(default_factory=list)


def to_number(value: Any) -> Number:
    """
    Coerce a form value to a number.

    Empty and unparseable values become 0 so that form validation reports
    them; whole numbers come back as int.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return value
    try:
        number = float(str(value).strip() or 0)
    except ValueError:
        return 0
    if number != number or number in (float("inf"), float("-inf")):
        return 0
    return int(number) if number.is_integer() else number


def build_intake_data(form: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Build an intake request body from raw form values.

    Args:
        form: Field name to raw value (strings as typed by the patient)

    Returns:
        Dict: Body for POST /intake
    """
    data: Dict[str, Any] = {name: str(form.get(name) or "") for name in FORM_TEXT_FIELDS}
    data["age"] = to_number(form.get("age") or 0)
    data["painSeverity"] = to_number(form.get("painSeverity") or 0)
    return data


def _filled(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def validate_intake_form(data: Mapping[str, Any]) -> FormValidation:
    """
    Check an intake body before it is sent.

    Args:
        data: Output of build_intake_data

    Returns:
        FormValidation: valid flag and the messages shown next to the form
    """
    errors = []
    age = data.get("age")
    pain = data.get("painSeverity")

    if not _filled(data.get("fullName")):
        errors.append("Full Name is required")
    if not isinstance(age, (int, float)) or isinstance(age, bool) or age <= 0 or age > 150:
        errors.append("Valid age is required")
    if not _filled(data.get("gender")):
        errors.append("Gender is required")
    if not _filled(data.get("mainSymptoms")):
        errors.append("Main Symptoms are required")
    if not _filled(data.get("symptomDuration")):
        errors.append("Symptom Duration is required")
    if not isinstance(pain, (int, float)) or isinstance(pain, bool) or pain < 1 or pain > 10:
        errors.append("Pain Severity must be between 1 and 10")
    if not _filled(data.get("preferredDepartment")):
        errors.append("Preferred Department is required")

    return FormValidation(valid=not errors, errors=errors)


def build_doctor_response_data(form: Mapping[str, Any]) -> Dict[str, Any]:
    """Build the doctor response fields from raw form values."""
    return {
        "prescription": str(form.get("prescription") or ""),
        "sickLeave": to_number(form.get("sickLeave") or 0),
        "doctorNotes": str(form.get("doctorNotes") or ""),
    }


def format_error_message(err: Exception) -> str:
    """Turn a client error into a message for the user."""
    if isinstance(err, ApiError):
        return f"Server error: {err}"
    return str(err) or "An unexpected error occurred"


class IntakeApiClient:
    """
    Synchronous client for the intake, directory, patient and doctor
    response endpoints.

    Pass either a base URL or a ready httpx.Client (for example FastAPI's
    TestClient). A bearer token, when set, is sent with every request.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
        token: Optional[str] = None,
        timeout: float = 30.0
    ):
        if http_client is None and base_url is None:
            raise ValueError("Either base_url or http_client is required")
        self.http = http_client or httpx.Client(base_url=base_url, timeout=timeout)
        self.token = token

    def close(self) -> None:
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _request(self, method: str, url: str, **kwargs) -> Any:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        response = self.http.request(method, url, headers=headers, **kwargs)
        if not response.is_success:
            logger.warning(f"{method} {url} failed with status {response.status_code}")
            raise ApiError(response.status_code, response.text)

        try:
            return response.json()
        except ValueError:
            logger.error(f"Failed to parse JSON response from {method} {url}")
            raise ApiError(response.status_code, "Invalid JSON response from API")

    def submit_patient_intake(self, intake_data: Mapping[str, Any]) -> Dict[str, Any]:
        """POST /intake; returns {status, patientId, message}."""
        return self._request("POST", "/intake", json=dict(intake_data))

    def fetch_doctors(self, department: Optional[str] = None) -> Dict[str, Any]:
        """GET /doctors, optionally filtered by department."""
        params = {"department": department} if department else None
        return self._request("GET", "/doctors", params=params)

    def fetch_patient_data(self, patient_id: str) -> Dict[str, Any]:
        """GET /patients/{patient_id}; returns the stored intake record."""
        return self._request("GET", f"/patients/{patient_id}")

    def fetch_pending_patients(self, page: int = 1, size: int = 20) -> Dict[str, Any]:
        """GET /patients?pending=true; returns one page of summaries."""
        return self._request("GET", "/patients", params={"pending": "true", "page": page, "size": size})

    def submit_doctor_response(self, patient_id: str, doctor_data: Mapping[str, Any]) -> Dict[str, Any]:
        """POST /doctor-response for a patient."""
        body = {"patientId": patient_id, **doctor_data}
        return self._request("POST", "/doctor-response", json=body)
