"""Data models for the push notification mailer."""

from .api_response import DispatchResult, WebhookResponse
from .push_event import Author, Commit, PushEvent, Repository
from .subscriber import Filter, Subscriber

__all__ = [
    # Push event models
    "Author",
    "Commit",
    "Repository",
    "PushEvent",
    # Subscriber models
    "Filter",
    "Subscriber",
    # API response models
    "WebhookResponse",
    "DispatchResult",
]
