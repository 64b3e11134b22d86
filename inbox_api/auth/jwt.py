"""JWT bearer tokens identifying the inbox owner."""

from datetime import datetime, timedelta, timezone
from uuid import UUID

from jose import jwt

from inbox_api.config import settings

# Claim names checked for the user id, in order.
USER_ID_CLAIMS = (
    "sub",
    "http://schemas.xmlsoap.org/ws/2005/05/identity/claims/nameidentifier",
)


def create_access_token(user_id: str | UUID, expires_minutes: int | None = None) -> str:
    """Create a short-lived access token whose subject is ``user_id``."""
    minutes = settings.access_token_expire_minutes if expires_minutes is None else expires_minutes
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    payload = {
        "sub": str(user_id),
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict | None:
    """
    Decode and validate a JWT token.

    Returns the payload if valid, None if invalid or expired.
    """
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.JWTError:
        return None


def user_id_from_claims(claims: dict) -> UUID | None:
    """Return the first claim in ``USER_ID_CLAIMS`` that parses as a UUID."""
    for claim in USER_ID_CLAIMS:
        value = claims.get(claim)
        if not value:
            continue
        try:
            return UUID(str(value))
        except ValueError:
            continue
    return None
