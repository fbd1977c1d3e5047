from .jwt_handler import verify_access_token
from .api_key import verify_api_key, INTERNAL_HEADERS
from .dependencies import get_current_user, get_owner_id, verify_internal_api_key
from .rate_limiter import limiter, user_id_or_ip

__all__ = [
    "verify_access_token",
    "verify_api_key",
    "INTERNAL_HEADERS",
    "get_current_user",
    "get_owner_id",
    "verify_internal_api_key",
    "limiter",
    "user_id_or_ip"
]
