"""Checkout API routes: purchase intents and post-checkout lookups."""

from fastapi import APIRouter, status

from storefront.schemas.checkout import (
    CheckoutSessionResponse,
    DonationCreate,
    DonationResponse,
    OrderCreate,
    OrderResponse,
)
from storefront.services.checkout_service import CheckoutService

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post(
    "/orders",
    response_model=CheckoutSessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create order checkout",
    description="Creates a pending order for a package and a Stripe Checkout Session to pay for it.",
)
async def create_order_checkout(data: OrderCreate) -> CheckoutSessionResponse:
    """Create a pending order and return the Stripe redirect.

    The frontend should redirect to the returned url.

    Args:
        data: Order details.

    Returns:
        CheckoutSessionResponse: Order id, session id and checkout url.
    """
    service = CheckoutService()
    result = await service.checkout_order(data)
    return CheckoutSessionResponse(**result)


@router.post(
    "/donations",
    response_model=CheckoutSessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create donation checkout",
    description="Creates a pending donation and a Stripe Checkout Session to pay for it.",
)
async def create_donation_checkout(data: DonationCreate) -> CheckoutSessionResponse:
    """Create a pending donation and return the Stripe redirect.

    Args:
        data: Donation details (amount in cents).

    Returns:
        CheckoutSessionResponse: Donation id, session id and checkout url.
    """
    service = CheckoutService()
    result = await service.checkout_donation(data)
    return CheckoutSessionResponse(**result)


# Post-checkout lookups, mounted at /orders and /donations
orders_router = APIRouter(prefix="/orders", tags=["orders"])
donations_router = APIRouter(prefix="/donations", tags=["donations"])


@orders_router.get(
    "/session/{session_id}",
    response_model=OrderResponse,
    summary="Get order by checkout session",
    description="Returns the order for a Stripe session, confirming payment with Stripe if still pending.",
)
async def get_order_by_session(session_id: str) -> OrderResponse:
    """Get order for the success page.

    Raises:
        NotFoundError: If no order has this session id.
    """
    service = CheckoutService()
    order = await service.get_order_by_session(session_id)
    return OrderResponse(**order)


@donations_router.get(
    "/session/{session_id}",
    response_model=DonationResponse,
    summary="Get donation by checkout session",
    description="Returns the donation for a Stripe session, confirming payment with Stripe if still pending.",
)
async def get_donation_by_session(session_id: str) -> DonationResponse:
    """Get donation for the success page.

    Raises:
        NotFoundError: If no donation has this session id.
    """
    service = CheckoutService()
    donation = await service.get_donation_by_session(session_id)
    return DonationResponse(**donation)
