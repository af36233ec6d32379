"""Business logic services package."""

from ghmailer.services.event_decoder import (
    DecodeError,
    decode_push_event
)
from ghmailer.services.filter_engine import (
    RefParseError,
    extract_branch,
    filter_commits
)
from ghmailer.services.notifier import (
    DeliveryError,
    EmailNotifier,
    build_commit_message
)
from ghmailer.services.push_dispatcher import (
    Notifier,
    PushDispatcher
)

__all__ = [
    'DecodeError',
    'decode_push_event',
    'RefParseError',
    'extract_branch',
    'filter_commits',
    'DeliveryError',
    'EmailNotifier',
    'build_commit_message',
    'Notifier',
    'PushDispatcher'
]
