"""
Record builders for intake submissions and doctor responses.

Identifiers and timestamps always come from the server. The id factory and
clock are injectable so tests can pin them.
"""
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional
import uuid

from ..doctors.schemas import DoctorResponseRecord
from .schemas import PatientIntakeRecord
from .validation import is_number

IdFactory = Callable[[], str]
Clock = Callable[[], datetime]

OPTIONAL_TEXT_FIELDS = (
    "gender",
    "symptomDuration",
    "medicalHistory",
    "currentMedications",
    "allergies",
    "preferredDepartment",
    "preferredDoctor",
)


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def optional_text(value: Any) -> Optional[str]:
    """Empty and missing values become None; anything else is kept as text."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return value
    return str(value)


def build_intake_record(
    data: Mapping[str, Any],
    id_factory: IdFactory = new_id,
    clock: Clock = utc_now
) -> PatientIntakeRecord:
    """
    Assemble the canonical intake record from validated input.

    Client supplied patientId/createdAt values are ignored. Enrichment fields
    start out as None.

    Args:
        data: Validated request body
        id_factory: Source of the new patientId
        clock: Source of the creation timestamp

    Returns:
        PatientIntakeRecord: New record, not yet persisted
    """
    created_at = clock()
    pain = data.get("painSeverity")

    fields = {
        "patientId": id_factory(),
        "createdAt": created_at,
        "receivedAtEpoch": int(created_at.timestamp() * 1000),
        "fullName": data["fullName"],
        "age": data["age"],
        "mainSymptoms": data["mainSymptoms"],
        "painSeverity": pain if is_number(pain) and pain else None,
    }
    for name in OPTIONAL_TEXT_FIELDS:
        fields[name] = optional_text(data.get(name))

    return PatientIntakeRecord.model_validate(fields)


def build_doctor_response(
    data: Mapping[str, Any],
    id_factory: IdFactory = new_id,
    clock: Clock = utc_now
) -> DoctorResponseRecord:
    """
    Assemble a doctor response from validated input.

    Args:
        data: Validated request body
        id_factory: Source of the new responseId
        clock: Source of the submission timestamp

    Returns:
        DoctorResponseRecord: New response, not yet persisted
    """
    sick_leave = data.get("sickLeave")
    return DoctorResponseRecord(
        response_id=id_factory(),
        patient_id=data["patientId"],
        prescription=data["prescription"],
        sick_leave=int(sick_leave) if is_number(sick_leave) else 0,
        doctor_notes=optional_text(data.get("doctorNotes")) or "",
        submitted_at=clock()
    )
