"""Repositories package."""

from consult_core.repositories.availability_repository import AvailabilityRepository
from consult_core.repositories.base import BaseRepository
from consult_core.repositories.consultations_repository import ConsultationsRepository
from consult_core.repositories.lawyers_repository import LawyersRepository
from consult_core.repositories.messages_repository import MessagesRepository

__all__ = [
    "BaseRepository",
    "AvailabilityRepository",
    "ConsultationsRepository",
    "LawyersRepository",
    "MessagesRepository",
]
