"""
Doctor Router - API endpoints for the doctor directory and doctor responses.
"""
from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
import logging

from ..auth.dependencies import require_doctor
from ..auth.schemas import VerifiedClaims
from ..collaborators import Collaborators
from ..config import Settings
from ..core.middleware import annotate_request
from ..dependencies import get_collaborators, get_settings, read_json_object
from ..exceptions import AppException, InternalServerError
from .schemas import DoctorDirectoryResponse, DoctorResponseSubmitResponse
from .service import DOCTOR_RESPONSE_MESSAGE, get_doctors, submit_doctor_response

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/doctors", response_model=DoctorDirectoryResponse)
async def list_doctors(
    department: Optional[str] = Query(None, description="Filter by department (e.g. Cardiology)"),
    settings: Settings = Depends(get_settings)
):
    """
    Get the doctor directory

    An unknown department returns an empty list, not an error.
    """
    try:
        doctors = get_doctors(department)
        return DoctorDirectoryResponse(count=len(doctors), doctors=doctors)
    except Exception as e:
        logger.exception(f"Unexpected error fetching doctors: {str(e)}")
        raise InternalServerError(str(e), expose_details=settings.expose_error_details)

@router.post("/doctor-response", response_model=DoctorResponseSubmitResponse)
async def submit_doctor_response_route(
    request: Request,
    background_tasks: BackgroundTasks,
    caller: VerifiedClaims = Depends(require_doctor),
    settings: Settings = Depends(get_settings),
    collaborators: Collaborators = Depends(get_collaborators)
):
    """
    Submit a doctor's response to a patient intake

    Stores prescription, sick leave and notes on the patient's record and
    notifies the patient once the response has been sent.
    """
    try:
        data = await read_json_object(request)
        response = await submit_doctor_response(
            data,
            repository=collaborators.repository,
            notifier=collaborators.notifier,
            merge_policy=settings.doctor_response_merge_policy,
            background_tasks=background_tasks
        )
        annotate_request(request, patientId=response.patient_id, responseId=response.response_id)
        return DoctorResponseSubmitResponse(message=DOCTOR_RESPONSE_MESSAGE, response_id=response.response_id)
    except AppException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error during doctor response submission: {str(e)}")
        raise InternalServerError(str(e), expose_details=settings.expose_error_details)
