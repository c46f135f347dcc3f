"""Utility functions."""

from consult_core.utils.datetime_utils import local_now, to_wall_clock, wall_clock_now
from consult_core.utils.logging import (
    get_logger,
    log_error,
    log_request,
    set_request_id,
    setup_logging,
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "set_request_id",
    "log_request",
    "log_error",
    # Time
    "local_now",
    "to_wall_clock",
    "wall_clock_now",
]
