"""Database connection and session management."""

from consult_core.database.connection import (
    check_connection,
    close_engine,
    create_engine,
    get_engine,
)
from consult_core.database.models import (
    AvailabilityWindow,
    Base,
    Consultation,
    ConsultationMessage,
    LawyerProfile,
    User,
)
from consult_core.database.session import (
    close_db,
    get_session_context,
    get_session_factory,
    init_db,
)

__all__ = [
    # Models
    "Base",
    "User",
    "LawyerProfile",
    "AvailabilityWindow",
    "Consultation",
    "ConsultationMessage",
    # Connection
    "get_engine",
    "create_engine",
    "close_engine",
    "check_connection",
    # Session
    "get_session_context",
    "get_session_factory",
    "init_db",
    "close_db",
]
