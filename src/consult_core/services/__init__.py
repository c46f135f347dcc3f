"""Business logic services."""

from consult_core.services.availability_service import (
    AvailabilityResolver,
    SlotSequence,
    get_availability_resolver,
)
from consult_core.services.booking_service import BookingTransactionManager, get_booking_manager
from consult_core.services.conflict_service import ConflictDetector, find_conflicts
from consult_core.services.consultations_service import ConsultationsService, get_consultations_service
from consult_core.services.credential_service import SessionCredentialIssuer, get_credential_issuer
from consult_core.services.lifecycle_service import (
    Actor,
    ConsultationLifecycleService,
    check_transition,
    get_lifecycle_service,
)
from consult_core.services.locks import LawyerLockRegistry
from consult_core.services.messages_service import MessagesService, get_messages_service
from consult_core.services.notification_service import (
    LoggingNotifier,
    NotificationDispatcher,
    Notifier,
)

__all__ = [
    "Actor",
    "AvailabilityResolver",
    "BookingTransactionManager",
    "ConflictDetector",
    "ConsultationLifecycleService",
    "ConsultationsService",
    "LawyerLockRegistry",
    "LoggingNotifier",
    "MessagesService",
    "NotificationDispatcher",
    "Notifier",
    "SessionCredentialIssuer",
    "SlotSequence",
    "check_transition",
    "find_conflicts",
    "get_availability_resolver",
    "get_booking_manager",
    "get_consultations_service",
    "get_credential_issuer",
    "get_lifecycle_service",
    "get_messages_service",
]
