"""
Doctor Service - Business logic for the doctor directory and doctor responses.

This module provides the static directory lookup and the doctor response
pipeline: validate -> build -> merge into the intake record -> notify.
"""
from typing import Any, List, Mapping, Optional
from fastapi import BackgroundTasks
import logging

from ..config import MergePolicy
from ..exceptions import ResourceNotFound
from ..intake.records import Clock, IdFactory, build_doctor_response, new_id, utc_now
from ..intake.validation import ensure_valid, validate_doctor_response
from ..notifications.service import Notifier
from ..storage.repository import IntakeRepository
from .schemas import DoctorDirectoryEntry, DoctorResponseRecord

# Set up logging
logger = logging.getLogger(__name__)

DOCTOR_RESPONSE_MESSAGE = "Doctor response received and patient notified"

DOCTOR_DIRECTORY = (
    DoctorDirectoryEntry(id="doc-001", name="Dr. Smith", specialty="General Medicine", experience="15 years"),
    DoctorDirectoryEntry(id="doc-002", name="Dr. Lee", specialty="General Medicine", experience="10 years"),
    DoctorDirectoryEntry(id="doc-003", name="Dr. Johnson", specialty="Cardiology", experience="20 years"),
    DoctorDirectoryEntry(id="doc-004", name="Dr. Patel", specialty="Cardiology", experience="12 years"),
    DoctorDirectoryEntry(id="doc-005", name="Dr. Brown", specialty="Pediatrics", experience="8 years"),
    DoctorDirectoryEntry(id="doc-006", name="Dr. Davis", specialty="Pediatrics", experience="6 years"),
    DoctorDirectoryEntry(id="doc-007", name="Dr. Wilson", specialty="Dermatology", experience="11 years"),
    DoctorDirectoryEntry(id="doc-008", name="Dr. Martinez", specialty="Dermatology", experience="9 years"),
)


def get_doctors(department: Optional[str] = None) -> List[DoctorDirectoryEntry]:
    """
    Look up doctors, optionally filtered by department.

    Args:
        department: Exact department name; None or empty returns everyone

    Returns:
        List[DoctorDirectoryEntry]: Matching entries in directory order
            (empty for an unknown department)
    """
    if department:
        logger.info(f"Fetching doctors for department: {department}")
        return [doctor for doctor in DOCTOR_DIRECTORY if doctor.specialty == department]
    logger.info("Fetching all doctors")
    return list(DOCTOR_DIRECTORY)


def save_doctor_response(
    repository: IntakeRepository,
    response: DoctorResponseRecord,
    merge_policy: MergePolicy
) -> None:
    """
    Merge a doctor response into the patient's intake record.

    Args:
        repository: Persistence collaborator
        response: Built doctor response
        merge_policy: UPSERT creates a bare record for unknown patients,
            REQUIRE_EXISTING refuses them

    Raises:
        ResourceNotFound: Under REQUIRE_EXISTING when the intake is missing
    """
    patient_id = response.patient_id
    if merge_policy == MergePolicy.REQUIRE_EXISTING and repository.get(patient_id) is None:
        raise ResourceNotFound(f"Patient intake {patient_id} not found")

    repository.update(patient_id, {
        "doctorResponse": response.model_dump(by_alias=True, mode="json"),
        "updatedAt": response.submitted_at.isoformat(),
    })
    logger.info(f"Doctor response {response.response_id} merged into patient {patient_id}")


async def deliver_notification(notifier: Notifier, patient_id: str, message: str) -> None:
    """
    Send a patient notification and log the outcome.

    Runs after the response has been stored; nothing here can undo that write.
    """
    try:
        receipt = await notifier.notify(patient_id, message)
    except Exception as e:
        logger.exception(f"Notifier raised for patient {patient_id}: {str(e)}")
        return
    if receipt.delivered:
        logger.info(f"Patient {patient_id} notified via {receipt.channel}")
    else:
        logger.warning(f"Notification to patient {patient_id} via {receipt.channel} failed: {receipt.detail}")


async def submit_doctor_response(
    data: Mapping[str, Any],
    repository: IntakeRepository,
    notifier: Notifier,
    merge_policy: MergePolicy = MergePolicy.UPSERT,
    background_tasks: Optional[BackgroundTasks] = None,
    id_factory: IdFactory = new_id,
    clock: Clock = utc_now
) -> DoctorResponseRecord:
    """
    Validate, build, store and announce a doctor response.

    Args:
        data: Parsed request body
        repository: Persistence collaborator
        notifier: Notification collaborator
        merge_policy: See save_doctor_response
        background_tasks: When given, the notification is sent after the
            HTTP response; otherwise it is awaited inline
        id_factory: Source of the responseId
        clock: Source of the submission timestamp

    Returns:
        DoctorResponseRecord: The stored response

    Raises:
        RequestValidationFailed: If the submission breaks a validation rule
        ResourceNotFound: See save_doctor_response
    """
    ensure_valid(validate_doctor_response(data))

    response = build_doctor_response(data, id_factory=id_factory, clock=clock)
    logger.info(f"Processing doctor response for patient: {response.patient_id}")

    save_doctor_response(repository, response, merge_policy)

    message = f"Your prescription is ready: {response.prescription}"
    if background_tasks is not None:
        background_tasks.add_task(deliver_notification, notifier, response.patient_id, message)
    else:
        await deliver_notification(notifier, response.patient_id, message)
    return response
