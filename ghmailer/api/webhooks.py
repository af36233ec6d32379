"""
Webhook endpoint for source-code push notifications.
"""

import hashlib
import hmac
import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Request

from ghmailer.config import Settings
from ghmailer.models.api_response import WebhookResponse
from ghmailer.models.push_event import PushEvent
from ghmailer.services.event_decoder import DecodeError, decode_push_event
from ghmailer.services.push_dispatcher import PushDispatcher

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhooks"])

SIGNATURE_PREFIX = "sha256="


def get_settings(request: Request) -> Settings:
    """Settings the running application was created with."""
    return request.app.state.settings


def get_dispatcher(request: Request) -> PushDispatcher:
    """Dispatcher bound to the application's configuration."""
    return request.app.state.dispatcher


def verify_webhook_signature(payload: bytes, signature: Optional[str], secret: str) -> bool:
    """
    Verify webhook signature for security.

    Args:
        payload: Raw request payload
        signature: Signature from request header, optionally prefixed
            with ``sha256=``
        secret: Shared webhook secret

    Returns:
        True if signature is valid, False otherwise
    """
    if not signature:
        return False

    if signature.startswith(SIGNATURE_PREFIX):
        signature = signature[len(SIGNATURE_PREFIX):]

    expected_signature = hmac.new(
        secret.encode(),
        payload,
        hashlib.sha256
    ).hexdigest()

    # Constant-time comparison
    return hmac.compare_digest(signature.encode("utf-8"), expected_signature.encode())


async def dispatch_push_event_async(dispatcher: PushDispatcher, event: PushEvent) -> None:
    """
    Notify subscribers about a push event in the background.

    Args:
        dispatcher: Dispatcher to run
        event: Decoded push event
    """
    try:
        result = await dispatcher.dispatch(event)
        if not result.success:
            logger.warning(
                f"{result.failed_count} notification(s) failed for push to {event.repository.name}"
            )
    except Exception as e:
        logger.error(f"Error dispatching push event: {e}", exc_info=True)


@router.post("/push", response_model=WebhookResponse)
async def handle_push_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    x_hub_signature: Optional[str] = Header(None, alias="X-Hub-Signature-256"),
    settings: Settings = Depends(get_settings),
    dispatcher: PushDispatcher = Depends(get_dispatcher)
) -> WebhookResponse:
    """
    Receive a push webhook and notify matching subscribers.

    This endpoint:
    1. Validates the webhook signature when a secret is configured
    2. Decodes the push event payload
    3. Schedules one filtering and dispatch pass in the background
    4. Returns 200 OK immediately

    Raises:
        HTTPException: If the signature is invalid (401) or the payload
            cannot be decoded (400)
    """
    try:
        payload = await request.body()

        if settings.webhook_secret and not verify_webhook_signature(
            payload, x_hub_signature, settings.webhook_secret
        ):
            logger.warning("Invalid webhook signature received")
            raise HTTPException(status_code=401, detail="Invalid webhook signature")

        try:
            push_event = decode_push_event(payload)
        except DecodeError as e:
            logger.warning(f"Rejected push payload: {e}")
            raise HTTPException(status_code=400, detail=str(e))

        logger.info(
            f"Received push to {push_event.repository.name} ({push_event.ref}) "
            f"with {len(push_event.commits)} commit(s)"
        )

        background_tasks.add_task(dispatch_push_event_async, dispatcher, push_event)

        return WebhookResponse(
            status="accepted",
            message=f"Push to {push_event.repository.name} accepted for processing"
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error handling webhook: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error processing webhook")
