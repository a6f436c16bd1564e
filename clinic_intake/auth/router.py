"""
Auth Router - Caller identity endpoint.

Sign-up and sign-in belong to the external identity service; this router only
reports what a presented token proves.
"""
from typing import Optional

from fastapi import APIRouter, Depends

from .dependencies import get_caller
from .schemas import CallerResponse, VerifiedClaims

router = APIRouter()

@router.get("/me", response_model=CallerResponse)
async def read_current_caller(caller: Optional[VerifiedClaims] = Depends(get_caller)):
    """
    Get the current caller's verified claims

    Anonymous callers (allowed only while authentication is optional) get
    authenticated=false.
    """
    return CallerResponse(authenticated=caller is not None, claims=caller)
