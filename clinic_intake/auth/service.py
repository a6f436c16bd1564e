"""
Identity providers - verify bearer tokens into VerifiedClaims.

Handlers never decide on their own that a caller is authorized; they hand the
presented token to an IdentityProvider and act on the claims it returns.
"""
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Mapping, Optional
import logging

from jose import jwt, JWTError, ExpiredSignatureError
from pydantic import ValidationError

from .exceptions import AuthenticationFailed
from .schemas import VerifiedClaims

# Set up logging
logger = logging.getLogger(__name__)

GROUP_CLAIMS = ("groups", "cognito:groups")


class IdentityProvider(ABC):
    """Capability interface for authentication."""

    @abstractmethod
    async def authenticate(self, token: str) -> VerifiedClaims:
        """
        Verify a bearer token.

        Raises:
            AuthenticationFailed: If the token is not valid
        """


def claims_from_payload(payload: Mapping[str, Any]) -> VerifiedClaims:
    """
    Build VerifiedClaims from a decoded token payload.

    Args:
        payload: Decoded JWT claims

    Returns:
        VerifiedClaims: Normalised claims

    Raises:
        AuthenticationFailed: If the payload has no subject or malformed claims
    """
    subject = payload.get("sub")
    if not subject:
        raise AuthenticationFailed("Invalid token payload")

    groups = []
    for claim in GROUP_CLAIMS:
        value = payload.get(claim)
        if isinstance(value, str):
            groups.append(value)
        elif isinstance(value, (list, tuple)):
            groups.extend(str(group) for group in value)

    expires_at = None
    if isinstance(payload.get("exp"), (int, float)):
        expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)

    try:
        return VerifiedClaims(
            subject=str(subject),
            email=payload.get("email"),
            groups=groups,
            expires_at=expires_at
        )
    except ValidationError as e:
        logger.warning(f"Token claims for {subject} rejected: {str(e)}")
        raise AuthenticationFailed("Invalid token payload")


class JWTIdentityProvider(IdentityProvider):
    """
    Verifies signed JWTs issued by the identity service.

    Args:
        secret_key: Verification key
        algorithm: Signing algorithm (typically HS256)
        audience: Expected aud claim, if any
        access_token_expire_minutes: Lifetime used by issue_token
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        audience: Optional[str] = None,
        access_token_expire_minutes: int = 30
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.audience = audience
        self.access_token_expire_minutes = access_token_expire_minutes

    async def authenticate(self, token: str) -> VerifiedClaims:
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                audience=self.audience,
                options={"verify_aud": self.audience is not None}
            )
        except ExpiredSignatureError:
            logger.warning("Rejected expired token")
            raise AuthenticationFailed("Token has expired")
        except JWTError as e:
            logger.warning(f"Rejected invalid token: {str(e)}")
            raise AuthenticationFailed()
        return claims_from_payload(payload)

    def issue_token(
        self,
        subject: str,
        groups: Iterable[str] = (),
        email: Optional[str] = None,
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Create a signed token for development and tests.

        Args:
            subject: User identifier
            groups: Group memberships
            email: Optional email claim
            expires_delta: Token lifetime (defaults to configured minutes)

        Returns:
            str: Encoded JWT token
        """
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=self.access_token_expire_minutes)
        )
        to_encode: Dict[str, Any] = {"sub": subject, "groups": list(groups), "exp": expire}
        if email:
            to_encode["email"] = email
        if self.audience:
            to_encode["aud"] = self.audience
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)


class StaticTokenIdentityProvider(IdentityProvider):
    """Maps opaque tokens to fixed claims. Unknown tokens are rejected."""

    def __init__(self, tokens: Optional[Mapping[str, VerifiedClaims]] = None):
        self.tokens = dict(tokens or {})

    async def authenticate(self, token: str) -> VerifiedClaims:
        claims = self.tokens.get(token)
        if claims is None:
            raise AuthenticationFailed()
        return claims
