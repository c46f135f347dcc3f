"""Request and response models."""

from consult_core.models.validation import parse_request

__all__ = ["parse_request"]
