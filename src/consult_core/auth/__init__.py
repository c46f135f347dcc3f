"""Caller identity and service-to-service authentication."""

from consult_core.auth.dependencies import CurrentUserDep, get_current_user
from consult_core.auth.internal_service import InternalAuthDep, require_internal_api_key
from consult_core.auth.jwt import JWTTokenHandler

__all__ = [
    "CurrentUserDep",
    "InternalAuthDep",
    "JWTTokenHandler",
    "get_current_user",
    "require_internal_api_key",
]
