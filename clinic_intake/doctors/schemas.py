"""
Doctor Schemas - Pydantic models for the doctor directory and doctor responses.

JSON field names are camelCase (patientId, sickLeave, ...); Python attributes
are snake_case and both spellings are accepted on input.
"""
from typing import List
from datetime import datetime
from pydantic import Field
from pydantic.alias_generators import to_camel

from ..core.schemas import CamelModel


class DoctorDirectoryEntry(CamelModel):
    """
    Doctor Directory Entry - One row of the static reference table

    Fields:
    - id: Directory identifier (doc-001 ...)
    - name: Display name
    - specialty: Department the doctor belongs to
    - experience: Free-text experience summary
    """
    id: str
    name: str
    specialty: str
    experience: str


class DoctorDirectoryResponse(CamelModel):
    """Response body for a directory lookup"""
    status: str = "ok"
    count: int
    doctors: List[DoctorDirectoryEntry]


class DoctorResponseRecord(CamelModel):
    """
    Doctor Response Record - A doctor's answer to a patient intake

    Fields:
    - response_id: Server-generated identifier
    - patient_id: Intake record the response refers to
    - prescription: Prescribed treatment
    - sick_leave: Days of sick leave granted
    - doctor_notes: Additional notes for the patient
    - submitted_at: Server timestamp of the submission
    """
    response_id: str
    patient_id: str
    prescription: str
    sick_leave: int = Field(0, ge=0)
    doctor_notes: str = ""
    submitted_at: datetime


class DoctorResponseSubmitResponse(CamelModel):
    """Response body after a doctor response was accepted"""
    status: str = "ok"
    message: str
    response_id: str

    class Config:
        """Configuration for Pydantic model"""
        alias_generator = to_camel
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "status": "ok",
                "message": "Doctor response received and patient notified",
                "responseId": "5f0c4c1e-8a53-4b5e-9d0a-1d3f4f6b2a10"
            }
        }
