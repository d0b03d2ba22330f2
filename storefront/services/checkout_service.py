"""Order and donation lifecycle: purchase intents, checkout and payment reconciliation.

A purchase is written as ``pending`` before the customer is sent to Stripe.
Two independent paths later confirm payment: the Stripe webhook (push) and a
status pull when the customer's success page fetches the record by session id.
Both funnel into ``_mark_paid``, which only moves a record forward from
``pending`` and is safe to apply any number of times.
"""

import logging
import re
import uuid
from typing import Any

from storefront.api.middleware.error_handler import (
    InvalidTransitionError,
    NotFoundError,
    RangeError,
    ValidationError,
)
from storefront.core.database import session_scope
from storefront.models import (
    ANONYMOUS_DONOR,
    MAX_DONATION_AMOUNT,
    MIN_DONATION_AMOUNT,
    ORDER_TRANSITIONS,
    Donation,
    DonationStatus,
    Order,
    OrderStatus,
    Package,
)
from storefront.models.base import utcnow
from storefront.schemas.checkout import DonationCreate, OrderCreate
from storefront.services.catalog_service import CatalogService
from storefront.services.payment_gateway import DONATION_KIND, ORDER_KIND, PaymentGateway, stripe_object_id

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Events that confirm a Checkout Session has been paid
PAID_EVENT_TYPES = frozenset({
    "checkout.session.completed",
    "checkout.session.async_payment_succeeded",
})

# Initial status, shared by orders and donations
PENDING = OrderStatus.PENDING.value

_MODELS = {ORDER_KIND: Order, DONATION_KIND: Donation}
_PAID_STATUS = {ORDER_KIND: OrderStatus.PAID.value, DONATION_KIND: DonationStatus.COMPLETED.value}


def _clean(value: str | None) -> str | None:
    """Strip a string, turning blanks into None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def _validate_email(email: str | None, field: str) -> str:
    email = _clean(email)
    if not email:
        raise ValidationError(
            "Missing required fields",
            details=[{"loc": [field], "msg": "Field required", "type": "missing"}],
        )
    if not EMAIL_PATTERN.match(email):
        raise ValidationError(
            "Invalid email address",
            details=[{"loc": [field], "msg": "Not a valid email address", "type": "value_error"}],
        )
    return email


class CheckoutService:
    """Service for order/donation creation, Stripe checkout and reconciliation."""

    def __init__(self, gateway: PaymentGateway | None = None) -> None:
        """Initialize checkout service.

        Args:
            gateway: Optional payment gateway for testing.
        """
        self._gateway = gateway
        self.catalog = CatalogService()

    @property
    def gateway(self) -> PaymentGateway:
        """Get payment gateway."""
        if self._gateway is None:
            self._gateway = PaymentGateway()
        return self._gateway

    # Purchase intents

    async def create_order(self, data: OrderCreate) -> dict[str, Any]:
        """Validate and store a pending order.

        The package name and price are copied onto the order so later catalog
        changes never alter it.

        Args:
            data: Order request data.

        Returns:
            dict: The created order.

        Raises:
            ValidationError: If name, email or package id is missing, or the email is malformed.
            NotFoundError: If the package does not exist or is inactive.
        """
        customer_name = _clean(data.customer_name)
        package_id = _clean(data.package_id)

        missing = [
            field
            for field, value in (("package_id", package_id), ("customer_name", customer_name))
            if not value
        ]
        if missing:
            raise ValidationError(
                "Missing required fields",
                details=[{"loc": [f], "msg": "Field required", "type": "missing"} for f in missing],
            )
        customer_email = _validate_email(data.customer_email, "customer_email")

        with session_scope() as db:
            package = db.get(Package, package_id)
            if package is None or not package.active:
                raise NotFoundError("Package not found")

            order = Order(
                id=str(uuid.uuid4()),
                customer_name=customer_name,
                customer_email=customer_email,
                customer_phone=_clean(data.customer_phone),
                project_description=_clean(data.project_description),
                package_id=package.id,
                package_name=package.name,
                price=package.price,
                status=OrderStatus.PENDING.value,
            )
            db.add(order)
            db.flush()
            result = order.to_dict()

        logger.info("Order %s created for package %s", result["id"], package_id)
        return result

    async def create_donation(self, data: DonationCreate) -> dict[str, Any]:
        """Validate and store a pending donation.

        Args:
            data: Donation request data.

        Returns:
            dict: The created donation.

        Raises:
            ValidationError: If email or amount is missing, or the email is malformed.
            RangeError: If the amount is outside [MIN_DONATION_AMOUNT, MAX_DONATION_AMOUNT].
        """
        if data.amount is None:
            raise ValidationError(
                "Missing required fields",
                details=[{"loc": ["amount"], "msg": "Field required", "type": "missing"}],
            )
        donor_email = _validate_email(data.donor_email, "donor_email")

        if not MIN_DONATION_AMOUNT <= data.amount <= MAX_DONATION_AMOUNT:
            raise RangeError(
                f"Donation amount must be between {MIN_DONATION_AMOUNT} and {MAX_DONATION_AMOUNT} cents"
            )

        donor_name = None if data.is_anonymous else _clean(data.donor_name)

        with session_scope() as db:
            donation = Donation(
                id=str(uuid.uuid4()),
                donor_name=donor_name or ANONYMOUS_DONOR,
                donor_email=donor_email,
                amount=data.amount,
                message=_clean(data.message),
                status=DonationStatus.PENDING.value,
            )
            db.add(donation)
            db.flush()
            result = donation.to_dict()

        logger.info("Donation %s created for %d cents", result["id"], data.amount)
        return result

    async def attach_session(self, kind: str, record_id: str, session_id: str) -> None:
        """Store the Stripe session id on a freshly created record.

        Args:
            kind: "order" or "donation".
            record_id: Order or donation id.
            session_id: Stripe Checkout Session ID.

        Raises:
            NotFoundError: If the record does not exist.
        """
        model = _MODELS[kind]
        with session_scope() as db:
            record = db.get(model, record_id)
            if record is None:
                raise NotFoundError(f"{kind.capitalize()} not found")
            record.stripe_session_id = session_id
            if kind == ORDER_KIND:
                record.updated_at = utcnow()

    # Checkout

    async def checkout_order(self, data: OrderCreate) -> dict[str, str]:
        """Create a pending order and its Stripe Checkout Session.

        Returns:
            dict: Contains id, session_id and url.

        Raises:
            GatewayError: If Stripe fails; the order stays pending without a session.
        """
        order = await self.create_order(data)
        package = await self.catalog.get_package(order["package_id"]) or {}

        session = self.gateway.create_order_session(order, package)
        await self.attach_session(ORDER_KIND, order["id"], session["session_id"])

        return {"id": order["id"], **session}

    async def checkout_donation(self, data: DonationCreate) -> dict[str, str]:
        """Create a pending donation and its Stripe Checkout Session.

        Returns:
            dict: Contains id, session_id and url.

        Raises:
            GatewayError: If Stripe fails; the donation stays pending without a session.
        """
        donation = await self.create_donation(data)
        session = self.gateway.create_donation_session(donation)
        await self.attach_session(DONATION_KIND, donation["id"], session["session_id"])

        return {"id": donation["id"], **session}

    # Reconciliation

    def _mark_paid(self, kind: str, record_id: str, payment_intent: str | None) -> dict[str, Any] | None:
        """Move a pending record to its paid state.

        Records past pending keep their status; a missing payment intent id
        is still filled in. Applying this twice leaves the same state.

        Returns:
            dict | None: The record after the update, or None if it does not exist.
        """
        model = _MODELS[kind]
        with session_scope() as db:
            record = db.get(model, record_id)
            if record is None:
                return None

            changed = False
            if record.status == PENDING:
                record.status = _PAID_STATUS[kind]
                changed = True
                logger.info("%s %s marked as %s", kind.capitalize(), record_id, record.status)
            elif record.status == OrderStatus.CANCELLED.value:
                logger.warning("Payment confirmed for cancelled %s %s; status left unchanged", kind, record_id)

            if payment_intent and not record.stripe_payment_intent:
                record.stripe_payment_intent = payment_intent
                changed = True

            if changed and kind == ORDER_KIND:
                record.updated_at = utcnow()

            db.flush()
            return record.to_dict()

    async def reconcile_from_webhook(self, event: dict[str, Any]) -> dict[str, Any] | None:
        """Apply a Stripe webhook event.

        Paid checkout events are routed by metadata.type to an order or a
        donation; every other event type is logged and ignored.

        Args:
            event: Parsed Stripe event.

        Returns:
            dict | None: The updated record, or None if the event was ignored.
        """
        event_type = event.get("type", "")
        if event_type not in PAID_EVENT_TYPES:
            logger.info("Unhandled webhook event type: %s", event_type)
            return None

        session = event["data"]["object"]
        if event_type == "checkout.session.completed" and session.get("payment_status") == "unpaid":
            # Delayed payment methods confirm later via async_payment_succeeded
            logger.info("Checkout session %s completed but not yet paid", session.get("id"))
            return None

        metadata = session.get("metadata")
        if not isinstance(metadata, dict):
            metadata = {}
        kind = metadata.get("type") or ORDER_KIND
        if kind not in _MODELS:
            logger.warning("Webhook for session %s has unknown type %r", session.get("id"), kind)
            return None

        record_id = session.get("client_reference_id") or metadata.get(f"{kind}_id")
        if not record_id:
            logger.warning("Webhook missing reference id: %s", session.get("id"))
            return None

        record = self._mark_paid(kind, record_id, stripe_object_id(session.get("payment_intent")))
        if record is None:
            logger.warning("%s not found for webhook: %s", kind.capitalize(), record_id)
        return record

    def _refresh_from_gateway(self, kind: str, record: dict[str, Any]) -> dict[str, Any]:
        """Pull live status for a pending record; failures leave it as-is."""
        if record["status"] != PENDING or not record.get("stripe_session_id"):
            return record

        try:
            status = self.gateway.retrieve_session_status(record["stripe_session_id"])
            if status["paid"]:
                updated = self._mark_paid(kind, record["id"], status["payment_intent"])
                if updated is not None:
                    return updated
        except Exception as e:
            logger.warning("Could not refresh %s %s from Stripe: %s", kind, record["id"], e)

        return record

    async def get_order_by_session(self, session_id: str) -> dict[str, Any]:
        """Get an order by Stripe session id, reconciling it if still pending.

        Raises:
            NotFoundError: If no order has this session id.
        """
        with session_scope() as db:
            order = db.query(Order).filter(Order.stripe_session_id == session_id).first()
            if order is None:
                raise NotFoundError("Order not found")
            record = order.to_dict()

        return self._refresh_from_gateway(ORDER_KIND, record)

    async def get_donation_by_session(self, session_id: str) -> dict[str, Any]:
        """Get a donation by Stripe session id, reconciling it if still pending.

        Raises:
            NotFoundError: If no donation has this session id.
        """
        with session_scope() as db:
            donation = db.query(Donation).filter(Donation.stripe_session_id == session_id).first()
            if donation is None:
                raise NotFoundError("Donation not found")
            record = donation.to_dict()

        return self._refresh_from_gateway(DONATION_KIND, record)

    # Admin

    async def update_order_status(self, order_id: str, status: str, force: bool = False) -> dict[str, Any]:
        """Change an order's status as an admin.

        Args:
            order_id: The order id.
            status: Target status value.
            force: Allow an edge outside ORDER_TRANSITIONS (logged as an override).

        Returns:
            dict: The updated order.

        Raises:
            ValidationError: If the status is not a known value.
            NotFoundError: If the order does not exist.
            InvalidTransitionError: If the edge is not allowed and force is False.
        """
        try:
            target = OrderStatus(status)
        except ValueError as e:
            allowed = ", ".join(s.value for s in OrderStatus)
            raise ValidationError(f"Invalid status '{status}'. Expected one of: {allowed}") from e

        with session_scope() as db:
            order = db.get(Order, order_id)
            if order is None:
                raise NotFoundError("Order not found")

            current = OrderStatus(order.status)
            if target == current:
                return order.to_dict()

            if target not in ORDER_TRANSITIONS[current]:
                if not force:
                    raise InvalidTransitionError(current.value, target.value)
                logger.warning(
                    "Admin override: order %s status %s -> %s",
                    order_id,
                    current.value,
                    target.value,
                )

            order.status = target.value
            order.updated_at = utcnow()
            db.flush()
            result = order.to_dict()

        logger.info("Order %s status changed %s -> %s", order_id, current.value, target.value)
        return result

    async def list_orders(self) -> list[dict[str, Any]]:
        """Get all orders, newest first."""
        with session_scope() as db:
            orders = db.query(Order).order_by(Order.created_at.desc()).all()
            return [o.to_dict() for o in orders]

    async def list_donations(self) -> dict[str, Any]:
        """Get all donations, newest first, with totals.

        Returns:
            dict: items, total_count and completed_amount (cents).
        """
        with session_scope() as db:
            donations = db.query(Donation).order_by(Donation.created_at.desc()).all()
            items = [d.to_dict() for d in donations]

        completed_amount = sum(
            d["amount"] for d in items if d["status"] == DonationStatus.COMPLETED.value
        )
        return {"items": items, "total_count": len(items), "completed_amount": completed_amount}
