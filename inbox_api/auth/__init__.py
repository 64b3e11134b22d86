"""Identity resolution for the notification inbox API."""

from inbox_api.auth.dependencies import get_current_user_id
from inbox_api.auth.jwt import create_access_token, decode_token, user_id_from_claims

__all__ = [
    "get_current_user_id",
    "create_access_token",
    "decode_token",
    "user_id_from_claims",
]
