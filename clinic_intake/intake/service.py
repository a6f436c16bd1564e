"""
Intake Service - Business logic for patient intake submissions.

Pipeline: validate -> build record -> enrich (best-effort) -> persist.
"""
from typing import Any, Dict, List, Mapping, Optional
import logging

from ..core.pagination import PageParams
from ..enrichment.service import EnrichmentResult, Summarizer
from ..exceptions import ResourceNotFound
from ..storage.repository import IntakeRepository
from .records import Clock, IdFactory, build_intake_record, new_id, utc_now
from .schemas import PatientIntakeRecord, PatientListResponse, PatientSummary
from .validation import ensure_valid, validate_intake

# Set up logging
logger = logging.getLogger(__name__)

INTAKE_ACCEPTED_MESSAGE = "Patient intake received and queued for processing"


async def enrich_record(summarizer: Summarizer, record: PatientIntakeRecord) -> PatientIntakeRecord:
    """
    Attach AI enrichment to a record.

    Enrichment is best-effort: a failing summarizer is logged and the record
    keeps null enrichment fields.

    Args:
        summarizer: Enrichment collaborator
        record: Freshly built record

    Returns:
        PatientIntakeRecord: Record with enrichment fields set
    """
    try:
        result = await summarizer.summarize(record)
    except Exception as e:
        logger.warning(f"Enrichment failed for patient {record.patient_id}, storing without summary: {str(e)}")
        result = EnrichmentResult()

    return record.model_copy(update={
        "ai_summary": result.ai_summary,
        "ai_severity": result.ai_severity,
        "ai_department": result.ai_department,
    })


async def submit_intake(
    data: Mapping[str, Any],
    repository: IntakeRepository,
    summarizer: Summarizer,
    id_factory: IdFactory = new_id,
    clock: Clock = utc_now
) -> PatientIntakeRecord:
    """
    Validate, build, enrich and persist one intake submission.

    Args:
        data: Parsed request body
        repository: Persistence collaborator
        summarizer: Enrichment collaborator
        id_factory: Source of the patientId
        clock: Source of the creation timestamp

    Returns:
        PatientIntakeRecord: The stored record

    Raises:
        RequestValidationFailed: If the submission breaks a validation rule
    """
    ensure_valid(validate_intake(data))

    record = build_intake_record(data, id_factory=id_factory, clock=clock)
    logger.info(f"Processing intake for patient: {record.patient_id}")

    record = await enrich_record(summarizer, record)
    repository.upsert(record.patient_id, record.to_item())
    logger.info(f"Intake record {record.patient_id} stored")
    return record


def get_patient_record(repository: IntakeRepository, patient_id: str) -> Dict[str, Any]:
    """
    Get a stored intake record by patient ID.

    Raises:
        ResourceNotFound: If no record exists for the ID
    """
    item = repository.get(patient_id)
    if item is None:
        raise ResourceNotFound(f"Patient intake {patient_id} not found")
    return item


def summarize_item(item: Mapping[str, Any]) -> PatientSummary:
    return PatientSummary(
        patient_id=item["patientId"],
        full_name=item.get("fullName"),
        age=item.get("age"),
        main_symptoms=item.get("mainSymptoms"),
        ai_severity=item.get("aiSeverity"),
        created_at=item.get("createdAt"),
        has_doctor_response=item.get("doctorResponse") is not None
    )


def list_patients(
    repository: IntakeRepository,
    page_params: PageParams,
    pending: Optional[bool] = None
) -> PatientListResponse:
    """
    List intake records for the doctor dashboard, oldest first.

    Args:
        repository: Persistence collaborator
        page_params: Pagination parameters
        pending: True keeps records without a doctor response, False keeps
            answered ones, None keeps everything

    Returns:
        PatientListResponse: One page of summaries
    """
    summaries: List[PatientSummary] = [summarize_item(item) for item in repository.scan()]
    if pending is not None:
        summaries = [s for s in summaries if s.has_doctor_response != pending]
    return PatientListResponse.of(summaries, page_params)
