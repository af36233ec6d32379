"""API response data models."""

from typing import List

from pydantic import BaseModel


class WebhookResponse(BaseModel):
    """Response from webhook handler."""

    status: str
    message: str


class DispatchResult(BaseModel):
    """Result of notifying subscribers about one push event."""

    matched_count: int = 0
    delivered_count: int = 0
    failed_count: int = 0
    errors: List[str] = []

    @property
    def success(self) -> bool:
        return not self.errors
