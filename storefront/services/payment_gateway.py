"""Stripe Checkout adapter: session creation, status pull and webhook parsing."""

import json
import logging
from typing import Any

import stripe

from storefront.api.middleware.error_handler import GatewayError, SignatureInvalidError
from storefront.core.config import get_settings
from storefront.core.stripe import get_stripe
from storefront.services.settings_service import SettingsService

logger = logging.getLogger(__name__)

# Seconds a signed webhook timestamp stays acceptable
WEBHOOK_TOLERANCE_SECONDS = 300

ORDER_KIND = "order"
DONATION_KIND = "donation"


def stripe_object_id(value: Any) -> str | None:
    """Return the id of an expandable Stripe field (string or object)."""
    if value is None or isinstance(value, str):
        return value
    return getattr(value, "id", None)


class PaymentGateway:
    """Thin adapter around Stripe Checkout Sessions."""

    def __init__(self, settings_service: SettingsService | None = None) -> None:
        """Initialize gateway.

        Args:
            settings_service: Optional credential resolver for testing.
        """
        self.stripe = get_stripe()
        self.settings = get_settings()
        self.settings_service = settings_service or SettingsService()

    def _success_url(self, path: str) -> str:
        return f"{self.settings.client_url.rstrip('/')}{path}?session_id={{CHECKOUT_SESSION_ID}}"

    def _cancel_url(self, path: str) -> str:
        return f"{self.settings.client_url.rstrip('/')}{path}"

    def _create_session(self, params: dict[str, Any]) -> dict[str, str]:
        try:
            session = self.stripe.checkout.Session.create(
                api_key=self.settings_service.resolve_secret_key(),
                **params,
            )
        except stripe.StripeError as e:
            logger.error("Stripe error creating checkout session: %s", str(e))
            raise GatewayError("Failed to create checkout session") from e

        return {"session_id": session.id, "url": session.url}

    def create_order_session(self, order: dict[str, Any], package: dict[str, Any]) -> dict[str, str]:
        """Create a one-item Checkout Session for an order.

        The order id is the session's client_reference_id so webhook events
        can be matched back to the order.

        Args:
            order: Pending order row (price is the snapshotted amount).
            package: Package the order was placed for.

        Returns:
            dict: Contains session_id and url.

        Raises:
            GatewayError: If the Stripe API call fails.
        """
        product_data: dict[str, Any] = {"name": f"{order['package_name']} Design Package"}
        if package.get("description"):
            product_data["description"] = package["description"]

        params: dict[str, Any] = {
            "payment_method_types": ["card"],
            "mode": "payment",
            "customer_email": order["customer_email"],
            "client_reference_id": order["id"],
            "line_items": [
                {
                    "price_data": {
                        "currency": self.settings.currency,
                        "product_data": product_data,
                        "unit_amount": order["price"],
                    },
                    "quantity": 1,
                }
            ],
            "metadata": {
                "type": ORDER_KIND,
                "order_id": order["id"],
                "package_id": order["package_id"],
                "customer_name": order["customer_name"],
            },
            "success_url": self._success_url("/success"),
            "cancel_url": self._cancel_url("/packages"),
        }
        return self._create_session(params)

    def create_donation_session(self, donation: dict[str, Any]) -> dict[str, str]:
        """Create a one-item Checkout Session for a donation.

        Metadata carries type=donation so webhook handling can tell the
        reference id apart from an order id.

        Args:
            donation: Pending donation row.

        Returns:
            dict: Contains session_id and url.

        Raises:
            GatewayError: If the Stripe API call fails.
        """
        product_data: dict[str, Any] = {"name": "Donation"}
        if donation.get("message"):
            product_data["description"] = donation["message"][:500]

        params: dict[str, Any] = {
            "payment_method_types": ["card"],
            "mode": "payment",
            "customer_email": donation["donor_email"],
            "client_reference_id": donation["id"],
            "line_items": [
                {
                    "price_data": {
                        "currency": self.settings.currency,
                        "product_data": product_data,
                        "unit_amount": donation["amount"],
                    },
                    "quantity": 1,
                }
            ],
            "metadata": {
                "type": DONATION_KIND,
                "donation_id": donation["id"],
                "donor_name": donation["donor_name"],
            },
            "success_url": self._success_url("/donate/success"),
            "cancel_url": self._cancel_url("/donate"),
        }
        return self._create_session(params)

    def retrieve_session_status(self, session_id: str) -> dict[str, Any]:
        """Pull the current payment status of a Checkout Session.

        Args:
            session_id: Stripe Checkout Session ID.

        Returns:
            dict: {"paid": bool, "payment_intent": str | None}.

        Raises:
            GatewayError: If the Stripe API call fails.
        """
        try:
            session = self.stripe.checkout.Session.retrieve(
                session_id,
                api_key=self.settings_service.resolve_secret_key(),
            )
        except stripe.StripeError as e:
            raise GatewayError("Failed to retrieve checkout session") from e

        return {
            "paid": getattr(session, "payment_status", None) == "paid",
            "payment_intent": stripe_object_id(getattr(session, "payment_intent", None)),
        }

    def parse_webhook_event(
        self,
        payload: bytes,
        sig_header: str | None,
        webhook_secret: str | None,
    ) -> dict[str, Any]:
        """Verify (when a secret is configured) and parse a webhook payload.

        The signature covers the exact raw bytes, so the payload must not be
        re-encoded before this call. Verification is local HMAC work and
        never calls the Stripe API. Without a secret the payload is parsed
        unverified.

        Args:
            payload: Raw request body.
            sig_header: Stripe-Signature header value.
            webhook_secret: Signing secret, or None to skip verification.

        Returns:
            dict: The event.

        Raises:
            SignatureInvalidError: If the signature is missing or wrong, or the payload is not an event.
        """
        try:
            body = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SignatureInvalidError("Webhook payload is not valid UTF-8") from e

        if webhook_secret:
            if not sig_header:
                raise SignatureInvalidError("Missing Stripe-Signature header")
            try:
                stripe.WebhookSignature.verify_header(
                    body, sig_header, webhook_secret, WEBHOOK_TOLERANCE_SECONDS
                )
            except stripe.SignatureVerificationError as e:
                logger.warning("Invalid webhook signature: %s", str(e))
                raise SignatureInvalidError("Invalid signature") from e
        else:
            logger.warning("Webhook secret not configured; accepting unverified webhook payload")

        try:
            event = json.loads(body)
        except json.JSONDecodeError as e:
            raise SignatureInvalidError("Webhook payload is not valid JSON") from e

        if not isinstance(event, dict) or "type" not in event:
            raise SignatureInvalidError("Webhook payload is not an event")

        data = event.get("data")
        if not isinstance(data, dict) or not isinstance(data.get("object"), dict):
            raise SignatureInvalidError("Webhook event has no data object")

        return event
