"""Realtime signaling provider client.

The provider mints the opaque token a participant presents when joining a
video channel. The default provider signs a short-lived JWT with the shared
signaling secret, which is what self-hosted signaling servers verify.
"""

import logging
import time
from datetime import datetime
from typing import Optional, Protocol

from jose import JWTError, jwt

from consult_core.config import SignalingSettings, get_settings
from consult_core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


class SignalingProvider(Protocol):
    """Mints join tokens for realtime channels."""

    async def create_token(
        self, channel_id: str, subject_id: int, role: str, expires_at: datetime
    ) -> str:
        ...


class JWTSignalingProvider:
    """Signaling provider issuing HS256 JWT join tokens."""

    def __init__(self, config: Optional[SignalingSettings] = None):
        self.config = config or get_settings().signaling

    @property
    def app_id(self) -> str:
        return self.config.app_id

    async def create_token(
        self, channel_id: str, subject_id: int, role: str, expires_at: datetime
    ) -> str:
        """
        Create a join token for one channel.

        Args:
            channel_id: Channel the token grants access to
            subject_id: Numeric participant id
            role: Participant role (e.g. publisher)
            expires_at: Expiry in local wall-clock time, as reported to the caller

        Raises:
            ExternalServiceError: If the token cannot be signed
        """
        issued_at = int(time.time())
        claims = {
            "iss": self.config.app_id,
            "sub": str(subject_id),
            "channel": channel_id,
            "role": role,
            "iat": issued_at,
            "exp": issued_at + self.config.token_ttl_seconds,
        }
        try:
            token = jwt.encode(claims, self.config.secret_key, algorithm=self.config.algorithm)
        except JWTError as e:
            logger.error(f"Error signing signaling token for channel {channel_id}: {e}")
            raise ExternalServiceError("signaling", "Failed to create session token") from e
        logger.debug(f"Issued signaling token for channel {channel_id}, subject {subject_id}")
        return token
