"""
Bearer-token check for the internal pipeline routes.

Cron jobs and operators trigger the snapshot pipeline with
PIPELINE_API_TOKEN. The read API (/v1/games, /v1/player-stats) is open.
"""

import secrets
from typing import Optional

from fastapi import HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.settings import settings

# auto_error=False so a missing header gets the same 401 as a wrong token
security = HTTPBearer(auto_error=False)


def verify_pipeline_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> str:
    """
    Raises:
        HTTPException: 500 if no token is configured, 401 if the request's
            token is missing or wrong
    """
    expected = settings.pipeline_api_token
    if expected is None:
        raise HTTPException(
            status_code=500,
            detail="Server misconfigured: PIPELINE_API_TOKEN not set",
        )

    if credentials is None or not secrets.compare_digest(
        credentials.credentials.encode(), expected.get_secret_value().encode()
    ):
        raise HTTPException(
            status_code=401,
            detail="Invalid pipeline authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return credentials.credentials
