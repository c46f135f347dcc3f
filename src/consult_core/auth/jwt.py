"""JWT access tokens carrying the caller identity.

Tokens are issued by the platform's identity service; this module only needs
to verify them (and to mint them for local development and tests).
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from consult_core.config import JWTSettings, get_settings
from consult_core.exceptions import AuthenticationError
from consult_core.models.identity import CurrentUser, UserRole

logger = logging.getLogger(__name__)


class JWTTokenHandler:
    """Handler for JWT token generation and validation."""

    def __init__(self, config: Optional[JWTSettings] = None):
        self.config = config or get_settings().jwt
        self.secret_key = self.config.secret_key
        self.algorithm = self.config.algorithm

    def create_access_token(
        self,
        user_id: str,
        role: UserRole = UserRole.CLIENT,
        expires_delta: Optional[timedelta] = None,
        **extra_claims: Any,
    ) -> str:
        """Create an access token for a user."""
        now = datetime.now(timezone.utc)
        expires = now + (expires_delta or timedelta(minutes=self.config.access_token_expire_minutes))
        claims: Dict[str, Any] = {
            "sub": user_id,
            "role": UserRole(role).value,
            "iat": int(now.timestamp()),
            "exp": int(expires.timestamp()),
            "type": "access",
        }
        claims.update(extra_claims)
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def decode_token(self, token: str) -> CurrentUser:
        """
        Decode and validate an access token.

        Raises:
            AuthenticationError: Bad signature, expired, wrong type or missing claims
        """
        try:
            claims = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            logger.warning(f"JWT token validation failed: {e}")
            raise AuthenticationError(f"Invalid token: {str(e)}") from e

        if claims.get("type", "access") != "access":
            raise AuthenticationError("Invalid token type")
        user_id = claims.get("sub")
        if not user_id:
            raise AuthenticationError("Token has no subject")
        try:
            role = UserRole(claims.get("role", UserRole.CLIENT.value))
        except ValueError as e:
            raise AuthenticationError("Token carries an unknown role") from e
        return CurrentUser(user_id=user_id, role=role)


_token_handler: Optional[JWTTokenHandler] = None


def get_token_handler() -> JWTTokenHandler:
    """Get the global JWT token handler."""
    global _token_handler
    if _token_handler is None:
        _token_handler = JWTTokenHandler()
    return _token_handler
