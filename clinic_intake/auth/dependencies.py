"""
FastAPI dependencies for authentication and authorization.

A bearer token, when present, is always verified by the identity provider.
Anonymous callers may use the open routes only while auth_required is off;
group-guarded routes always need a verified token.
"""
from typing import Optional
import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..collaborators import Collaborators
from ..config import Settings
from ..dependencies import get_collaborators, get_settings
from .exceptions import AuthenticationFailed, PermissionDenied
from .schemas import VerifiedClaims

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
    collaborators: Collaborators = Depends(get_collaborators)
) -> Optional[VerifiedClaims]:
    """
    Resolve the caller's verified claims.

    Returns:
        VerifiedClaims, or None for an anonymous caller when auth is optional

    Raises:
        AuthenticationFailed: If the token is invalid, or missing while
            auth_required is on
    """
    if credentials is None or not credentials.credentials:
        if settings.auth_required:
            raise AuthenticationFailed("Authentication required")
        return None
    return await collaborators.identity.authenticate(credentials.credentials)


def require_group(group_setting: str):
    """
    Build a dependency that requires membership of a configured group.

    Group-guarded routes always need a verified caller; auth_required only
    governs routes that use get_caller directly.

    Args:
        group_setting: Name of the Settings attribute holding the group

    Returns:
        Dependency returning the caller's verified claims
    """
    async def dependency(
        caller: Optional[VerifiedClaims] = Depends(get_caller),
        settings: Settings = Depends(get_settings)
    ) -> VerifiedClaims:
        group = getattr(settings, group_setting)
        if caller is None:
            logger.warning(f"Anonymous caller refused on a '{group}' route")
            raise AuthenticationFailed("Authentication required")
        if not caller.in_group(group):
            logger.warning(f"Caller {caller.subject} lacks group '{group}'")
            raise PermissionDenied(f"Access denied. Required group: {group}")
        return caller

    return dependency


require_doctor = require_group("doctor_group")
