"""API key authentication dependency."""
import hmac
import logging
from typing import Optional
from fastapi import Header, HTTPException, Request

from app.config import settings

logger = logging.getLogger(__name__)


def secure_compare(provided: str, valid: str) -> bool:
    """Constant-time string comparison."""
    return hmac.compare_digest(provided.encode("utf-8"), valid.encode("utf-8"))


async def require_api_key(
    request: Request,
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
) -> None:
    """Reject the request unless X-API-Key matches one of the configured keys."""
    client_ip = request.client.host if request.client else "unknown"
    user_agent = request.headers.get("user-agent", "unknown")

    if not x_api_key:
        logger.warning("Auth failed: no API key provided | IP: %s | UA: %s", client_ip, user_agent)
        raise HTTPException(status_code=401, detail="API key is required")

    matches = [secure_compare(x_api_key, key) for key in settings.api_keys()]
    if not any(matches):
        logger.warning(
            "Auth failed: invalid API key | IP: %s | UA: %s | Key prefix: %s...",
            client_ip, user_agent, x_api_key[:8],
        )
        raise HTTPException(status_code=401, detail="Invalid API key")
