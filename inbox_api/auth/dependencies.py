"""Identity dependencies for FastAPI endpoints."""

from uuid import UUID

from fastapi import Header, HTTPException, status

from inbox_api.auth.jwt import decode_token, user_id_from_claims
from inbox_api.config import settings


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={
            "error": {
                "code": "UNAUTHORIZED",
                "message": message,
            }
        },
    )


async def get_current_user_id(
    authorization: str | None = Header(default=None),
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
) -> UUID:
    """
    Resolve the acting user's id.

    A bearer token wins when present. The ``X-User-Id`` header is only
    trusted when ``settings.user_id_header_enabled`` (non-production by
    default).

    Raises:
        HTTPException: 401 if no usable identity is supplied
    """
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token:
            raise _unauthorized("Invalid authorization header")

        claims = decode_token(token.strip())
        if claims is None:
            raise _unauthorized("Invalid or expired token")

        user_id = user_id_from_claims(claims)
        if user_id is None:
            raise _unauthorized("Token does not identify a user")
        return user_id

    if x_user_id and settings.user_id_header_enabled:
        try:
            return UUID(x_user_id.strip())
        except ValueError:
            raise _unauthorized("Invalid X-User-Id header") from None

    raise _unauthorized("Authentication required")
