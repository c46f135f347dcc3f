"""FastAPI dependencies for the caller identity."""

import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.requests import Request

from consult_core.auth.jwt import get_token_handler
from consult_core.exceptions import AuthenticationError
from consult_core.models.identity import CurrentUser

logger = logging.getLogger(__name__)

# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentUser:
    """
    FastAPI dependency to get the current authenticated user.

    Raises:
        AuthenticationError: 401 if the bearer token is missing or invalid
    """
    if credentials is None or not credentials.credentials:
        logger.warning(f"No bearer token on {request.method} {request.url.path}")
        raise AuthenticationError("Authentication required")
    return get_token_handler().decode_token(credentials.credentials)


CurrentUserDep = Depends(get_current_user)
