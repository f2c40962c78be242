# backend/api/v1/auth.py
import logging
from typing import Optional

from fastapi import Header, HTTPException, status

from config import settings

logger = logging.getLogger(__name__)


async def verify_admin_token(x_admin_token: Optional[str] = Header(None, alias="X-Admin-Token")):
    """
    Verify admin authentication token

    In production, replace with proper JWT/OAuth2 authentication
    """
    if x_admin_token != settings.ADMIN_SECRET:
        logger.warning("Invalid admin token attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "Invalid or missing admin token",
                "error_code": "UNAUTHORIZED"
            },
            headers={"WWW-Authenticate": "Bearer"}
        )
    return True
