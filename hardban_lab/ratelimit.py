"""Request rate limits: a default per-client quota plus a tighter one for uploads and imports."""
import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from hardban_lab.config import settings
from hardban_lab.exceptions import AuthError
from hardban_lab.security import decode_access_token

logger = logging.getLogger(__name__)


def client_key(request: Request) -> str:
    """Signed-in callers are counted per user, everyone else per address."""
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() == "bearer" and token:
        try:
            return f"user:{decode_access_token(token)['sub']}"
        except (AuthError, KeyError):
            logger.debug("Rate limiting unauthenticated bearer by address")
    return f"ip:{get_remote_address(request)}"


def default_limit() -> str:
    return settings.rate_limit_default


def upload_limit() -> str:
    return settings.rate_limit_uploads


limiter = Limiter(key_func=client_key, default_limits=[default_limit], enabled=settings.rate_limit_enabled)
