"""
Utility modules for the push notification mailer.
"""

from ghmailer.utils.logging import (
    get_logger,
    setup_logging,
    log_push_event,
    log_delivery,
    log_error_with_context,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "log_push_event",
    "log_delivery",
    "log_error_with_context",
]
