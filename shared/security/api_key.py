"""
Internal service-to-service key. Falls back to an insecure default with a loud
warning so local runs work, while a production misconfiguration stays visible.
"""
import secrets
import warnings

from shared.config.settings import INTERNAL_API_KEY as _CONFIGURED_KEY

if not _CONFIGURED_KEY:
    warnings.warn(
        "INTERNAL_API_KEY is not set. Using an insecure default. "
        "Set this env var in production!",
        stacklevel=2,
    )
    _CONFIGURED_KEY = "insecure-default-change-me"

INTERNAL_API_KEY: str = _CONFIGURED_KEY

# Headers the order service attaches to every catalog/payment call
INTERNAL_HEADERS = {"X-Internal-API-Key": INTERNAL_API_KEY}


def verify_api_key(provided_key: str) -> bool:
    """Verify an API key using constant-time comparison to prevent timing attacks."""
    if not provided_key:
        return False
    return secrets.compare_digest(str(provided_key), str(INTERNAL_API_KEY))
