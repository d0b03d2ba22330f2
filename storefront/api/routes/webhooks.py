"""Webhook API routes for Stripe."""

import logging

from fastapi import APIRouter, Request, status

from storefront.services.checkout_service import CheckoutService
from storefront.services.settings_service import SettingsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post(
    "/stripe",
    status_code=status.HTTP_200_OK,
    summary="Handle Stripe webhooks",
    description="Receives Stripe events. The signature is verified when a webhook secret is configured.",
    responses={400: {"description": "Missing or invalid signature"}},
)
async def stripe_webhook(request: Request) -> dict[str, str]:
    """Handle Stripe webhook events.

    Handles:
    - checkout.session.completed: marks the order or donation as paid
    - checkout.session.async_payment_succeeded: same, for delayed payment methods

    Every other event type is acknowledged and ignored.

    Args:
        request: FastAPI request object for reading raw body and headers.

    Returns:
        dict: Acknowledgment message.

    Raises:
        SignatureInvalidError: 400 if the signature is missing or invalid.
    """
    # Raw body; the signature covers the exact bytes
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    logger.debug("Webhook payload size: %d bytes", len(payload))

    service = CheckoutService()
    webhook_secret = SettingsService().resolve_webhook_secret()
    event = service.gateway.parse_webhook_event(payload, sig_header, webhook_secret)

    logger.info("Processing Stripe webhook event: %s (%s)", event.get("type"), event.get("id"))
    await service.reconcile_from_webhook(event)

    return {"status": "received"}
