"""
Event Ingestion component.

Decodes raw push webhook payloads into PushEvent models.
"""

from typing import List, Optional, Union

from pydantic import ValidationError

from ghmailer.models.push_event import PushEvent


class DecodeError(Exception):
    """Raised when a push payload is malformed or incomplete."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or []


def _format_error(error: dict) -> str:
    location = ".".join(str(part) for part in error.get("loc", ())) or "payload"
    return f"{location}: {error.get('msg', 'invalid')}"


def decode_push_event(payload: Union[bytes, str]) -> PushEvent:
    """
    Decode a JSON push payload.

    Unknown fields are ignored. A payload without a ``commits`` key decodes
    to an event with no commits.

    Args:
        payload: Raw request body

    Returns:
        Decoded push event

    Raises:
        DecodeError: If the payload is not a JSON object or lacks ``ref``,
            ``repository.name``, ``commits[].id`` or ``commits[].author.email``
    """
    try:
        return PushEvent.model_validate_json(payload)
    except ValidationError as e:
        errors = [_format_error(error) for error in e.errors()]
        raise DecodeError(
            f"Invalid push event payload: {'; '.join(errors)}",
            errors=errors
        ) from e
