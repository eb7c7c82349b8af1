"""
Identity for request handlers.

Authentication is handled upstream; the acting user arrives as the
X-User-Id header set by the identity provider's gateway.
"""
from fastapi import Header, HTTPException
from typing import Optional
import logging

logger = logging.getLogger("dailychallenge")


async def get_current_user_id(
    x_user_id: Optional[str] = Header(None, description="Acting user id supplied by the identity provider")
) -> str:
    """
    Extract current user ID from request headers.

    Raises:
        HTTPException 401: Missing identity
    """
    if x_user_id and x_user_id.strip():
        return x_user_id.strip()

    logger.debug("Request without X-User-Id header")
    raise HTTPException(
        status_code=401,
        detail="Missing X-User-Id header",
    )
