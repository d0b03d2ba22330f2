"""Unit tests for CheckoutService."""

from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import MagicMock

import pytest

from storefront.api.middleware.error_handler import (
    GatewayError,
    InvalidTransitionError,
    NotFoundError,
    RangeError,
    ValidationError,
)
from storefront.core.database import session_scope
from storefront.models import Donation, Order, Package
from storefront.schemas.checkout import DonationCreate, OrderCreate
from storefront.services.checkout_service import CheckoutService


@pytest.fixture
def mock_gateway() -> MagicMock:
    """Create a mock payment gateway."""
    gateway = MagicMock()
    gateway.create_order_session.return_value = {
        "session_id": "cs_test_order",
        "url": "https://checkout.stripe.com/c/pay/cs_test_order",
    }
    gateway.create_donation_session.return_value = {
        "session_id": "cs_test_donation",
        "url": "https://checkout.stripe.com/c/pay/cs_test_donation",
    }
    gateway.retrieve_session_status.return_value = {"paid": False, "payment_intent": None}
    return gateway


@pytest.fixture
def checkout_service(mock_gateway: MagicMock) -> CheckoutService:
    """Create CheckoutService with a mocked gateway."""
    return CheckoutService(gateway=mock_gateway)


def order_request(**overrides: Any) -> OrderCreate:
    data = {
        "package_id": "starter",
        "customer_name": "Ada Lovelace",
        "customer_email": "a@b.com",
    }
    data.update(overrides)
    return OrderCreate(**data)


def donation_request(**overrides: Any) -> DonationCreate:
    data = {"amount": 2500, "donor_email": "donor@example.com", "donor_name": "Grace"}
    data.update(overrides)
    return DonationCreate(**data)


def completed_event(record_id: str, kind: str = "order", payment_intent: str = "pi_123", **session: Any) -> dict:
    obj = {
        "id": "cs_test_order",
        "object": "checkout.session",
        "client_reference_id": record_id,
        "payment_status": "paid",
        "payment_intent": payment_intent,
        "metadata": {"type": kind, f"{kind}_id": record_id},
    }
    obj.update(session)
    return {"id": "evt_1", "type": "checkout.session.completed", "data": {"object": obj}}


class TestCreateOrder:
    """Tests for create_order method."""

    @pytest.mark.asyncio
    async def test_creates_pending_order_with_package_snapshot(self, checkout_service: CheckoutService) -> None:
        """Test that the order copies the package name and price."""
        order = await checkout_service.create_order(order_request(customer_phone=" 555-0100 "))

        assert order["status"] == "pending"
        assert order["package_id"] == "starter"
        assert order["package_name"] == "Starter"
        assert order["price"] == 49900
        assert order["customer_phone"] == "555-0100"
        assert order["stripe_session_id"] is None

    @pytest.mark.asyncio
    async def test_price_change_does_not_alter_existing_order(self, checkout_service: CheckoutService) -> None:
        """Test that catalog edits after purchase leave the order untouched."""
        order = await checkout_service.create_order(order_request())

        with session_scope() as db:
            package = db.get(Package, "starter")
            package.price = 59900
            package.name = "Starter Plus"

        orders = await checkout_service.list_orders()
        assert orders[0]["id"] == order["id"]
        assert orders[0]["price"] == 49900
        assert orders[0]["package_name"] == "Starter"

    @pytest.mark.asyncio
    async def test_missing_fields_raise_validation_error(self, checkout_service: CheckoutService) -> None:
        """Test that missing name or package is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            await checkout_service.create_order(order_request(customer_name="  ", package_id=None))

        assert exc_info.value.message == "Missing required fields"
        assert {d["loc"][0] for d in exc_info.value.details} == {"customer_name", "package_id"}

    @pytest.mark.asyncio
    async def test_missing_email_raises_validation_error(self, checkout_service: CheckoutService) -> None:
        """Test that a missing email is rejected."""
        with pytest.raises(ValidationError, match="Missing required fields"):
            await checkout_service.create_order(order_request(customer_email=None))

    @pytest.mark.asyncio
    async def test_malformed_email_raises_validation_error(self, checkout_service: CheckoutService) -> None:
        """Test that a malformed email is rejected."""
        with pytest.raises(ValidationError, match="Invalid email address"):
            await checkout_service.create_order(order_request(customer_email="not-an-email"))

    @pytest.mark.asyncio
    async def test_unknown_package_raises_not_found(self, checkout_service: CheckoutService) -> None:
        """Test that an unknown package id is rejected."""
        with pytest.raises(NotFoundError, match="Package not found"):
            await checkout_service.create_order(order_request(package_id="platinum"))

    @pytest.mark.asyncio
    async def test_inactive_package_raises_not_found(self, checkout_service: CheckoutService) -> None:
        """Test that inactive packages cannot be ordered."""
        with session_scope() as db:
            db.get(Package, "enterprise").active = False

        with pytest.raises(NotFoundError):
            await checkout_service.create_order(order_request(package_id="enterprise"))

    @pytest.mark.asyncio
    async def test_rejected_order_is_not_stored(self, checkout_service: CheckoutService) -> None:
        """Test that validation failures write nothing."""
        with pytest.raises(ValidationError):
            await checkout_service.create_order(order_request(customer_email="bad"))

        assert await checkout_service.list_orders() == []


class TestCreateDonation:
    """Tests for create_donation method."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [100, 99_999_900])
    async def test_accepts_amounts_at_bounds(self, checkout_service: CheckoutService, amount: int) -> None:
        """Test that the minimum and maximum amounts are accepted."""
        donation = await checkout_service.create_donation(donation_request(amount=amount))

        assert donation["amount"] == amount
        assert donation["status"] == "pending"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [99, 99_999_901, 0, -500])
    async def test_rejects_amounts_out_of_range(self, checkout_service: CheckoutService, amount: int) -> None:
        """Test that amounts outside the bounds raise RangeError."""
        with pytest.raises(RangeError):
            await checkout_service.create_donation(donation_request(amount=amount))

    @pytest.mark.asyncio
    async def test_missing_amount_raises_validation_error(self, checkout_service: CheckoutService) -> None:
        """Test that a missing amount is a validation error, not a range error."""
        with pytest.raises(ValidationError, match="Missing required fields"):
            await checkout_service.create_donation(donation_request(amount=None))

    @pytest.mark.asyncio
    async def test_anonymous_flag_hides_name(self, checkout_service: CheckoutService) -> None:
        """Test that anonymous donations store 'Anonymous'."""
        donation = await checkout_service.create_donation(donation_request(is_anonymous=True))

        assert donation["donor_name"] == "Anonymous"

    @pytest.mark.asyncio
    async def test_blank_name_becomes_anonymous(self, checkout_service: CheckoutService) -> None:
        """Test that a blank donor name is stored as 'Anonymous'."""
        donation = await checkout_service.create_donation(donation_request(donor_name="   "))

        assert donation["donor_name"] == "Anonymous"

    @pytest.mark.asyncio
    async def test_malformed_email_raises_validation_error(self, checkout_service: CheckoutService) -> None:
        """Test that donor emails are validated."""
        with pytest.raises(ValidationError, match="Invalid email address"):
            await checkout_service.create_donation(donation_request(donor_email="donor@"))


class TestCheckout:
    """Tests for checkout_order and checkout_donation methods."""

    @pytest.mark.asyncio
    async def test_checkout_order_attaches_session(
        self, checkout_service: CheckoutService, mock_gateway: MagicMock
    ) -> None:
        """Test that the created session is stored on the order."""
        result = await checkout_service.checkout_order(order_request())

        assert result["session_id"] == "cs_test_order"
        assert result["url"].startswith("https://checkout.stripe.com/")

        order_arg, package_arg = mock_gateway.create_order_session.call_args.args
        assert order_arg["id"] == result["id"]
        assert package_arg["id"] == "starter"

        order = await checkout_service.get_order_by_session("cs_test_order")
        assert order["id"] == result["id"]
        assert order["status"] == "pending"

    @pytest.mark.asyncio
    async def test_gateway_failure_leaves_pending_order_without_session(
        self, checkout_service: CheckoutService, mock_gateway: MagicMock
    ) -> None:
        """Test that a Stripe failure surfaces and the order stays pending."""
        mock_gateway.create_order_session.side_effect = GatewayError("Failed to create checkout session")

        with pytest.raises(GatewayError):
            await checkout_service.checkout_order(order_request())

        orders = await checkout_service.list_orders()
        assert len(orders) == 1
        assert orders[0]["status"] == "pending"
        assert orders[0]["stripe_session_id"] is None

    @pytest.mark.asyncio
    async def test_checkout_donation_attaches_session(self, checkout_service: CheckoutService) -> None:
        """Test that the donation session is stored on the donation."""
        result = await checkout_service.checkout_donation(donation_request())

        donation = await checkout_service.get_donation_by_session("cs_test_donation")
        assert donation["id"] == result["id"]
        assert donation["amount"] == 2500


class TestReconcileFromWebhook:
    """Tests for reconcile_from_webhook method."""

    @pytest.mark.asyncio
    async def test_completed_event_marks_order_paid(self, checkout_service: CheckoutService) -> None:
        """Test the full starter purchase reconciled by webhook."""
        order = await checkout_service.create_order(order_request())

        updated = await checkout_service.reconcile_from_webhook(completed_event(order["id"]))

        assert updated["status"] == "paid"
        assert updated["price"] == 49900
        assert updated["customer_email"] == "a@b.com"
        assert updated["stripe_payment_intent"] == "pi_123"

    @pytest.mark.asyncio
    async def test_applying_event_twice_is_idempotent(self, checkout_service: CheckoutService) -> None:
        """Test that a redelivered event leaves the same state."""
        order = await checkout_service.create_order(order_request())
        event = completed_event(order["id"])

        first = await checkout_service.reconcile_from_webhook(event)
        second = await checkout_service.reconcile_from_webhook(event)

        assert first == second

    @pytest.mark.asyncio
    async def test_completed_event_marks_donation_completed(self, checkout_service: CheckoutService) -> None:
        """Test that metadata.type routes the event to donations."""
        donation = await checkout_service.create_donation(donation_request())

        updated = await checkout_service.reconcile_from_webhook(
            completed_event(donation["id"], kind="donation", payment_intent="pi_456")
        )

        assert updated["status"] == "completed"
        assert updated["stripe_payment_intent"] == "pi_456"

    @pytest.mark.asyncio
    async def test_falls_back_to_metadata_id(self, checkout_service: CheckoutService) -> None:
        """Test that the metadata id is used without client_reference_id."""
        donation = await checkout_service.create_donation(donation_request())
        event = completed_event(donation["id"], kind="donation", client_reference_id=None)

        updated = await checkout_service.reconcile_from_webhook(event)

        assert updated["status"] == "completed"

    @pytest.mark.asyncio
    async def test_async_payment_succeeded_marks_paid(self, checkout_service: CheckoutService) -> None:
        """Test that delayed payment confirmation is handled."""
        order = await checkout_service.create_order(order_request())
        event = completed_event(order["id"])
        event["type"] = "checkout.session.async_payment_succeeded"

        updated = await checkout_service.reconcile_from_webhook(event)

        assert updated["status"] == "paid"

    @pytest.mark.asyncio
    async def test_unpaid_completed_event_is_skipped(self, checkout_service: CheckoutService) -> None:
        """Test that a completed but unpaid session does not mark the order paid."""
        order = await checkout_service.create_order(order_request())

        result = await checkout_service.reconcile_from_webhook(
            completed_event(order["id"], payment_status="unpaid")
        )

        assert result is None
        orders = await checkout_service.list_orders()
        assert orders[0]["status"] == "pending"

    @pytest.mark.asyncio
    async def test_other_event_types_are_ignored(self, checkout_service: CheckoutService) -> None:
        """Test that unrelated events change nothing."""
        order = await checkout_service.create_order(order_request())
        event = completed_event(order["id"])
        event["type"] = "checkout.session.expired"

        assert await checkout_service.reconcile_from_webhook(event) is None
        orders = await checkout_service.list_orders()
        assert orders[0]["status"] == "pending"

    @pytest.mark.asyncio
    async def test_unknown_record_is_ignored(self, checkout_service: CheckoutService) -> None:
        """Test that events for unknown orders are acknowledged without error."""
        assert await checkout_service.reconcile_from_webhook(completed_event("missing-order")) is None

    @pytest.mark.asyncio
    async def test_unknown_kind_is_ignored(self, checkout_service: CheckoutService) -> None:
        """Test that an unknown metadata type is ignored."""
        order = await checkout_service.create_order(order_request())

        assert await checkout_service.reconcile_from_webhook(completed_event(order["id"], kind="gift")) is None

    @pytest.mark.asyncio
    async def test_cancelled_order_is_not_reopened(self, checkout_service: CheckoutService) -> None:
        """Test that payment for a cancelled order keeps it cancelled."""
        order = await checkout_service.create_order(order_request())
        await checkout_service.update_order_status(order["id"], "cancelled")

        updated = await checkout_service.reconcile_from_webhook(completed_event(order["id"]))

        assert updated["status"] == "cancelled"
        assert updated["stripe_payment_intent"] == "pi_123"

    @pytest.mark.asyncio
    async def test_later_status_is_not_rolled_back(self, checkout_service: CheckoutService) -> None:
        """Test that a late webhook does not move an in-progress order back to paid."""
        order = await checkout_service.create_order(order_request())
        await checkout_service.reconcile_from_webhook(completed_event(order["id"]))
        await checkout_service.update_order_status(order["id"], "in_progress")

        updated = await checkout_service.reconcile_from_webhook(completed_event(order["id"]))

        assert updated["status"] == "in_progress"


class TestReconcileOnRead:
    """Tests for get_order_by_session and get_donation_by_session."""

    @pytest.mark.asyncio
    async def test_pull_marks_paid_session(self, checkout_service: CheckoutService, mock_gateway: MagicMock) -> None:
        """Test that a paid session found on read updates the order."""
        created = await checkout_service.checkout_order(order_request())
        mock_gateway.retrieve_session_status.return_value = {"paid": True, "payment_intent": "pi_123"}

        order = await checkout_service.get_order_by_session(created["session_id"])

        assert order["status"] == "paid"
        assert order["stripe_payment_intent"] == "pi_123"
        mock_gateway.retrieve_session_status.assert_called_once_with("cs_test_order")

    @pytest.mark.asyncio
    async def test_unpaid_session_stays_pending(self, checkout_service: CheckoutService) -> None:
        """Test that an unpaid session leaves the order pending."""
        created = await checkout_service.checkout_order(order_request())

        order = await checkout_service.get_order_by_session(created["session_id"])

        assert order["status"] == "pending"

    @pytest.mark.asyncio
    async def test_gateway_error_returns_stored_state(
        self, checkout_service: CheckoutService, mock_gateway: MagicMock
    ) -> None:
        """Test that a failed pull is suppressed and the stored record is returned."""
        created = await checkout_service.checkout_order(order_request())
        mock_gateway.retrieve_session_status.side_effect = GatewayError("Failed to retrieve checkout session")

        order = await checkout_service.get_order_by_session(created["session_id"])

        assert order["status"] == "pending"

    @pytest.mark.asyncio
    async def test_paid_order_is_not_pulled_again(
        self, checkout_service: CheckoutService, mock_gateway: MagicMock
    ) -> None:
        """Test that records past pending skip the gateway."""
        created = await checkout_service.checkout_order(order_request())
        await checkout_service.reconcile_from_webhook(completed_event(created["id"]))

        order = await checkout_service.get_order_by_session(created["session_id"])

        assert order["status"] == "paid"
        mock_gateway.retrieve_session_status.assert_not_called()

    @pytest.mark.asyncio
    async def test_webhook_and_pull_converge_in_either_order(
        self, checkout_service: CheckoutService, mock_gateway: MagicMock
    ) -> None:
        """Test that push-then-pull and pull-then-push end in the same state."""
        mock_gateway.retrieve_session_status.return_value = {"paid": True, "payment_intent": "pi_123"}

        first = await checkout_service.checkout_order(order_request())
        await checkout_service.reconcile_from_webhook(completed_event(first["id"]))
        push_then_pull = await checkout_service.get_order_by_session(first["session_id"])

        mock_gateway.create_order_session.return_value = {"session_id": "cs_test_second", "url": "https://x"}
        second = await checkout_service.checkout_order(order_request())
        await checkout_service.get_order_by_session(second["session_id"])
        pull_then_push = await checkout_service.reconcile_from_webhook(completed_event(second["id"]))

        for key in ("status", "stripe_payment_intent", "price", "package_name"):
            assert push_then_pull[key] == pull_then_push[key]

    @pytest.mark.asyncio
    async def test_donation_pull_marks_completed(
        self, checkout_service: CheckoutService, mock_gateway: MagicMock
    ) -> None:
        """Test that donations are reconciled on read too."""
        created = await checkout_service.checkout_donation(donation_request())
        mock_gateway.retrieve_session_status.return_value = {"paid": True, "payment_intent": "pi_789"}

        donation = await checkout_service.get_donation_by_session(created["session_id"])

        assert donation["status"] == "completed"
        assert donation["stripe_payment_intent"] == "pi_789"

    @pytest.mark.asyncio
    async def test_unknown_session_raises_not_found(self, checkout_service: CheckoutService) -> None:
        """Test that unknown session ids raise NotFoundError."""
        with pytest.raises(NotFoundError, match="Order not found"):
            await checkout_service.get_order_by_session("cs_unknown")
        with pytest.raises(NotFoundError, match="Donation not found"):
            await checkout_service.get_donation_by_session("cs_unknown")


class TestUpdateOrderStatus:
    """Tests for update_order_status method."""

    @pytest.mark.asyncio
    async def test_allowed_transitions(self, checkout_service: CheckoutService) -> None:
        """Test walking an order through its normal lifecycle."""
        order = await checkout_service.create_order(order_request())

        for status in ("paid", "in_progress", "completed"):
            updated = await checkout_service.update_order_status(order["id"], status)
            assert updated["status"] == status

    @pytest.mark.asyncio
    async def test_disallowed_transition_raises(self, checkout_service: CheckoutService) -> None:
        """Test that skipping payment is rejected."""
        order = await checkout_service.create_order(order_request())

        with pytest.raises(InvalidTransitionError) as exc_info:
            await checkout_service.update_order_status(order["id"], "completed")

        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_terminal_state_cannot_be_left(self, checkout_service: CheckoutService) -> None:
        """Test that cancelled orders stay cancelled without force."""
        order = await checkout_service.create_order(order_request())
        await checkout_service.update_order_status(order["id"], "cancelled")

        with pytest.raises(InvalidTransitionError):
            await checkout_service.update_order_status(order["id"], "paid")

    @pytest.mark.asyncio
    async def test_force_overrides_transition_table(self, checkout_service: CheckoutService) -> None:
        """Test that force applies a disallowed edge."""
        order = await checkout_service.create_order(order_request())
        await checkout_service.update_order_status(order["id"], "cancelled")

        updated = await checkout_service.update_order_status(order["id"], "pending", force=True)

        assert updated["status"] == "pending"

    @pytest.mark.asyncio
    async def test_same_state_is_noop(self, checkout_service: CheckoutService) -> None:
        """Test that writing the current status changes nothing."""
        order = await checkout_service.create_order(order_request())

        updated = await checkout_service.update_order_status(order["id"], "pending")

        assert updated == order

    @pytest.mark.asyncio
    async def test_unknown_status_raises_validation_error(self, checkout_service: CheckoutService) -> None:
        """Test that unknown status strings are rejected."""
        order = await checkout_service.create_order(order_request())

        with pytest.raises(ValidationError, match="Invalid status"):
            await checkout_service.update_order_status(order["id"], "shipped")

    @pytest.mark.asyncio
    async def test_unknown_order_raises_not_found(self, checkout_service: CheckoutService) -> None:
        """Test that unknown order ids raise NotFoundError."""
        with pytest.raises(NotFoundError):
            await checkout_service.update_order_status("missing", "paid")


class TestListings:
    """Tests for list_orders and list_donations methods."""

    @pytest.mark.asyncio
    async def test_orders_newest_first(self, checkout_service: CheckoutService) -> None:
        """Test that orders are listed by creation time descending."""
        older = await checkout_service.create_order(order_request())
        newer = await checkout_service.create_order(order_request(package_id="professional"))

        with session_scope() as db:
            db.get(Order, older["id"]).created_at = datetime.now(timezone.utc) - timedelta(days=1)

        orders = await checkout_service.list_orders()

        assert [o["id"] for o in orders] == [newer["id"], older["id"]]

    @pytest.mark.asyncio
    async def test_donation_totals_count_completed_only(self, checkout_service: CheckoutService) -> None:
        """Test that totals include every donation but only completed amounts."""
        paid = await checkout_service.create_donation(donation_request(amount=5000))
        await checkout_service.create_donation(donation_request(amount=1500))
        await checkout_service.reconcile_from_webhook(completed_event(paid["id"], kind="donation"))

        result = await checkout_service.list_donations()

        assert result["total_count"] == 2
        assert result["completed_amount"] == 5000

    @pytest.mark.asyncio
    async def test_donations_newest_first(self, checkout_service: CheckoutService) -> None:
        """Test that donations are listed by creation time descending."""
        older = await checkout_service.create_donation(donation_request())
        newer = await checkout_service.create_donation(donation_request())

        with session_scope() as db:
            db.get(Donation, older["id"]).created_at = datetime.now(timezone.utc) - timedelta(hours=1)

        result = await checkout_service.list_donations()

        assert [d["id"] for d in result["items"]] == [newer["id"], older["id"]]
