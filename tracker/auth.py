"""
API key check shared by every discipline and quarter route.
"""
import logging
import os

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from tracker.constants import API_KEY_HEADER_NAME, DEFAULT_API_KEY

logger = logging.getLogger("tracker.auth")

API_KEY = os.getenv("TRACKER_API_KEY", DEFAULT_API_KEY)

api_key_header = APIKeyHeader(name=API_KEY_HEADER_NAME, auto_error=False)


async def verify_api_key(api_key: str = Security(api_key_header)) -> str:
    """Reject requests whose key header is missing or wrong"""
    if api_key is None:
        logger.warning(f"Request without {API_KEY_HEADER_NAME} header")
    if api_key != API_KEY:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API Key"
        )
    return api_key
