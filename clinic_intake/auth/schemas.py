"""
Identity Schemas - Verified caller claims.
"""
from typing import List, Optional
from datetime import datetime

from ..core.schemas import CamelModel

class VerifiedClaims(CamelModel):
    """
    Verified Claims - What the identity provider vouches for

    Fields:
    - subject: Stable user identifier from the identity provider
    - email: Email address, when the token carries one
    - groups: Groups the user belongs to (e.g. "doctor", "patient")
    - expires_at: Token expiry
    """
    subject: str
    email: Optional[str] = None
    groups: List[str] = []
    expires_at: Optional[datetime] = None

    def in_group(self, group: str) -> bool:
        return group in self.groups

class CallerResponse(CamelModel):
    """Response body of the caller identity endpoint"""
    status: str = "ok"
    authenticated: bool
    claims: Optional[VerifiedClaims] = None
