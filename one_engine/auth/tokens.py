# =============================================================================
# Bearer Token Verification
# =============================================================================
#
# This module provides:
#   - Authorization header parsing ("Bearer <token>")
#   - JWT verification against the configured key material
#   - Access token creation (used by refresh and local tooling)
#
# Every verification failure collapses into InvalidTokenError with one
# fixed message. Callers never learn whether a signature was wrong or a
# token expired.
#
# =============================================================================

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Sequence
import logging

from pydantic import BaseModel, ValidationError
import jwt

from one_engine.auth.errors import InvalidTokenError, MalformedHeaderError
from one_engine.config import Settings
from one_engine.core.utils import generate_id, utc_now

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "
INVALID_TOKEN_MESSAGE = "Invalid or expired token"


# =============================================================================
# Models
# =============================================================================

class TokenPayload(BaseModel):
    """Verified JWT claims."""
    sub: str  # user_id
    role: str = "user"
    project_id: str | None = None  # tenant scope (convenience, not a trust boundary)
    email: str | None = None
    exp: datetime
    iat: datetime | None = None
    type: str = "access"


# =============================================================================
# Header Parsing
# =============================================================================

def extract_bearer(header: str | None) -> str:
    """
    Pull the token out of an Authorization header value.

    Raises:
        MalformedHeaderError: header missing, wrong scheme or empty token
    """
    if not header or not header.startswith(BEARER_PREFIX):
        raise MalformedHeaderError("Missing or malformed Authorization header")

    token = header[len(BEARER_PREFIX):].strip()
    if not token:
        raise MalformedHeaderError("Missing or malformed Authorization header")

    return token


# =============================================================================
# Verification
# =============================================================================

class TokenVerifier:
    """
    Verifies signed access tokens.

    Keys are tried in order; the first is the current signing key and the
    rest are rotated-out keys still accepted for verification.
    """

    def __init__(self, keys: Sequence[str], algorithm: str = "HS256"):
        if not keys:
            raise ValueError("TokenVerifier needs at least one verification key")
        self.keys = list(keys)
        self.algorithm = algorithm

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenVerifier:
        return cls(settings.verification_keys, settings.jwt_algorithm)

    def verify(self, token: str) -> TokenPayload:
        """
        Decode and validate a JWT access token.

        Returns:
            TokenPayload with validated claims

        Raises:
            InvalidTokenError: for any failure
        """
        claims = self._decode(token)

        if claims.get("type", "access") != "access":
            raise InvalidTokenError(INVALID_TOKEN_MESSAGE)

        try:
            return TokenPayload.model_validate(claims)
        except ValidationError:
            raise InvalidTokenError(INVALID_TOKEN_MESSAGE)

    def _decode(self, token: str) -> dict[str, Any]:
        for key in self.keys:
            try:
                return jwt.decode(
                    token,
                    key,
                    algorithms=[self.algorithm],
                    options={"require": ["exp", "sub"]},
                )
            except jwt.InvalidSignatureError:
                continue  # maybe signed with a rotated key
            except jwt.InvalidTokenError as e:
                logger.debug(f"Token rejected: {type(e).__name__}")
                raise InvalidTokenError(INVALID_TOKEN_MESSAGE)

        logger.debug("Token rejected: signature matched no verification key")
        raise InvalidTokenError(INVALID_TOKEN_MESSAGE)


# =============================================================================
# Token Creation
# =============================================================================

def create_access_token(
    settings: Settings,
    user_id: str,
    role: str = "user",
    project_id: str | None = None,
    email: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token signed with the current key."""
    now = utc_now()
    expire = now + (expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes))

    payload: dict[str, Any] = {
        "sub": user_id,
        "role": role,
        "exp": expire,
        "iat": now,
        "type": "access",
        "jti": generate_id("tok"),
    }
    if project_id:
        payload["project_id"] = project_id
    if email:
        payload["email"] = email

    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
