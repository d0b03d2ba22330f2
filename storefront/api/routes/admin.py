"""Admin dashboard API routes. All endpoints require an admin bearer token."""

from fastapi import APIRouter

from storefront.api.deps import AdminUser
from storefront.schemas.checkout import (
    DonationListResponse,
    DonationResponse,
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
)
from storefront.schemas.settings import PaymentSettingsResponse, PaymentSettingsUpdate
from storefront.services.checkout_service import CheckoutService
from storefront.services.settings_service import SettingsService

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    responses={401: {"description": "Authentication required or invalid token"}},
)


@router.get(
    "/orders",
    response_model=OrderListResponse,
    summary="List orders",
    description="Returns all orders, newest first.",
)
async def list_orders(admin: AdminUser) -> OrderListResponse:
    """List all orders."""
    service = CheckoutService()
    orders = await service.list_orders()
    return OrderListResponse(items=[OrderResponse(**o) for o in orders])


@router.patch(
    "/orders/{order_id}",
    response_model=OrderResponse,
    summary="Update order status",
    description="Moves an order along its lifecycle. Set force to bypass the transition rules.",
    responses={
        404: {"description": "Order not found"},
        409: {"description": "Transition not allowed"},
        422: {"description": "Unknown status"},
    },
)
async def update_order_status(order_id: str, data: OrderStatusUpdate, admin: AdminUser) -> OrderResponse:
    """Change an order's status.

    Raises:
        NotFoundError: If the order does not exist.
        InvalidTransitionError: If the edge is not allowed and force is not set.
    """
    service = CheckoutService()
    order = await service.update_order_status(order_id, data.status, force=data.force)
    return OrderResponse(**order)


@router.get(
    "/donations",
    response_model=DonationListResponse,
    summary="List donations",
    description="Returns all donations, newest first, with the count and completed total.",
)
async def list_donations(admin: AdminUser) -> DonationListResponse:
    """List all donations with totals."""
    service = CheckoutService()
    result = await service.list_donations()
    return DonationListResponse(
        items=[DonationResponse(**d) for d in result["items"]],
        total_count=result["total_count"],
        completed_amount=result["completed_amount"],
    )


@router.get(
    "/settings",
    response_model=PaymentSettingsResponse,
    summary="Get payment settings",
    description="Returns the effective Stripe settings with secrets masked.",
)
async def get_settings_view(admin: AdminUser) -> PaymentSettingsResponse:
    """Get masked payment settings."""
    service = SettingsService()
    return PaymentSettingsResponse(**await service.get_payment_settings())


@router.put(
    "/settings",
    response_model=PaymentSettingsResponse,
    summary="Update payment settings",
    description=(
        "Stores Stripe credentials. Omitted fields and masked values are left unchanged; "
        "an empty string clears the stored value."
    ),
)
async def update_settings(data: PaymentSettingsUpdate, admin: AdminUser) -> PaymentSettingsResponse:
    """Update stored payment settings."""
    service = SettingsService()
    result = await service.update_payment_settings(data.model_dump(exclude_unset=True))
    return PaymentSettingsResponse(**result)
