"""
Intake Schemas - Pydantic models for patient intake records.

This module defines the canonical intake record as it is stored, plus the
response bodies returned by the intake and patient routes.
"""
from typing import Optional, Union
from datetime import datetime

from ..core.pagination import PageResponse
from ..core.schemas import CamelModel
from ..doctors.schemas import DoctorResponseRecord

Number = Union[int, float]


class EnrichmentFields(CamelModel):
    """
    AI enrichment attached to an intake record

    Fields:
    - ai_summary: Clinician-facing summary text
    - ai_severity: low, moderate, high or critical
    - ai_department: Recommended department
    """
    ai_summary: Optional[str] = None
    ai_severity: Optional[str] = None
    ai_department: Optional[str] = None


class PatientIntakeRecord(EnrichmentFields):
    """
    Patient Intake Record - Canonical stored form of one intake submission

    Fields:
    - patient_id: Server-generated identifier, the storage key
    - created_at: Server timestamp of the submission
    - received_at_epoch: Same instant in epoch milliseconds
    - full_name, age, gender, main_symptoms, symptom_duration, pain_severity:
      Form data
    - medical_history, current_medications, allergies: Optional free text
    - preferred_department, preferred_doctor: Routing preferences
    - ai_*: Enrichment (see EnrichmentFields)
    - doctor_response: Set when a doctor answers the intake
    - updated_at: When the doctor response was merged
    """
    patient_id: str
    created_at: datetime
    received_at_epoch: int
    full_name: str
    age: Number
    gender: Optional[str] = None
    main_symptoms: str
    symptom_duration: Optional[str] = None
    pain_severity: Optional[Number] = None
    medical_history: Optional[str] = None
    current_medications: Optional[str] = None
    allergies: Optional[str] = None
    preferred_department: Optional[str] = None
    preferred_doctor: Optional[str] = None
    doctor_response: Optional[DoctorResponseRecord] = None
    updated_at: Optional[datetime] = None

    def to_item(self) -> dict:
        """Serialise to the JSON document stored under patient_id."""
        return self.model_dump(by_alias=True, mode="json")


class IntakeSubmitResponse(CamelModel):
    """Response body after an intake was accepted"""
    status: str = "ok"
    patient_id: str
    message: str


class PatientSummary(CamelModel):
    """
    Patient Summary - Row of the doctor dashboard patient list

    Records created by a doctor response for an unknown patient carry only
    the identifier, so every other field is optional.
    """
    patient_id: str
    full_name: Optional[str] = None
    age: Optional[Number] = None
    main_symptoms: Optional[str] = None
    ai_severity: Optional[str] = None
    created_at: Optional[datetime] = None
    has_doctor_response: bool = False


class PatientListResponse(PageResponse[PatientSummary]):
    """Paginated list of patient summaries"""
    status: str = "ok"
