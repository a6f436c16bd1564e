"""
Intake Router - API endpoints for patient intake submissions and records.
"""
from typing import Any, Dict, Optional
import logging

from fastapi import APIRouter, Depends, Query, Request

from ..auth.dependencies import get_caller, require_doctor
from ..auth.schemas import VerifiedClaims
from ..collaborators import Collaborators
from ..config import Settings
from ..core.middleware import annotate_request
from ..core.pagination import PageParams
from ..dependencies import get_collaborators, get_settings, read_json_object
from ..exceptions import AppException, InternalServerError
from .schemas import IntakeSubmitResponse, PatientListResponse
from .service import INTAKE_ACCEPTED_MESSAGE, get_patient_record, list_patients, submit_intake

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/intake", response_model=IntakeSubmitResponse)
async def submit_intake_route(
    request: Request,
    caller: Optional[VerifiedClaims] = Depends(get_caller),
    settings: Settings = Depends(get_settings),
    collaborators: Collaborators = Depends(get_collaborators)
):
    """
    Submit a patient intake form

    The body is the intake form as JSON. On success the new patientId is
    returned; the record is stored with its AI summary attached.
    """
    try:
        data = await read_json_object(request)
        record = await submit_intake(
            data,
            repository=collaborators.repository,
            summarizer=collaborators.summarizer
        )
        annotate_request(request, patientId=record.patient_id)
        return IntakeSubmitResponse(patient_id=record.patient_id, message=INTAKE_ACCEPTED_MESSAGE)
    except AppException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error during intake submission: {str(e)}")
        raise InternalServerError(str(e), expose_details=settings.expose_error_details)

@router.get("/patients", response_model=PatientListResponse)
async def list_patients_route(
    pending: Optional[bool] = Query(None, description="Only records without (true) or with (false) a doctor response"),
    page_params: PageParams = Depends(),
    caller: VerifiedClaims = Depends(require_doctor),
    settings: Settings = Depends(get_settings),
    collaborators: Collaborators = Depends(get_collaborators)
):
    """
    Get a paginated list of intake records for the doctor dashboard

    Records are ordered oldest first.
    """
    try:
        return list_patients(collaborators.repository, page_params, pending=pending)
    except AppException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error listing patients: {str(e)}")
        raise InternalServerError(str(e), expose_details=settings.expose_error_details)

@router.get("/patients/{patient_id}")
async def get_patient_route(
    patient_id: str,
    request: Request,
    caller: VerifiedClaims = Depends(require_doctor),
    settings: Settings = Depends(get_settings),
    collaborators: Collaborators = Depends(get_collaborators)
) -> Dict[str, Any]:
    """
    Get a stored intake record by patient ID

    The record is returned as stored, including any merged doctor response.
    """
    try:
        annotate_request(request, patientId=patient_id)
        return get_patient_record(collaborators.repository, patient_id)
    except AppException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error reading patient {patient_id}: {str(e)}")
        raise InternalServerError(str(e), expose_details=settings.expose_error_details)
