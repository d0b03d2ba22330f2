"""Checkout, order and donation Pydantic schemas for API request/response models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field

from storefront.core.money import format_amount
from storefront.models.donation import DonationStatus
from storefront.models.order import OrderStatus


class OrderCreate(BaseModel):
    """Schema for creating an order via POST /checkout/orders.

    Required fields are checked by the checkout service so that missing
    values surface as validation errors with a single message.
    """

    model_config = ConfigDict(from_attributes=True)

    package_id: str | None = Field(default=None, description="Package to purchase")
    customer_name: str | None = Field(default=None, max_length=255, description="Customer full name")
    customer_email: str | None = Field(default=None, max_length=255, description="Customer email")
    customer_phone: str | None = Field(default=None, max_length=64, description="Optional phone number")
    project_description: str | None = Field(default=None, max_length=5000, description="Free-text project brief")


class DonationCreate(BaseModel):
    """Schema for creating a donation via POST /checkout/donations."""

    model_config = ConfigDict(from_attributes=True)

    amount: int | None = Field(default=None, description="Donation amount in cents")
    donor_email: str | None = Field(default=None, max_length=255, description="Donor email")
    donor_name: str | None = Field(default=None, max_length=255, description="Donor name (blank for anonymous)")
    message: str | None = Field(default=None, max_length=2000, description="Optional message")
    is_anonymous: bool = Field(default=False, description="Hide the donor name")


class CheckoutSessionResponse(BaseModel):
    """Schema for checkout session creation response."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(description="Created order or donation identifier")
    session_id: str = Field(description="Stripe Checkout Session ID")
    url: str = Field(description="Stripe Checkout URL to redirect to")


class OrderResponse(BaseModel):
    """Schema for order API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(description="Order unique identifier")
    customer_name: str = Field(description="Customer name")
    customer_email: str = Field(description="Customer email")
    customer_phone: str | None = Field(default=None, description="Customer phone")
    project_description: str | None = Field(default=None, description="Project brief")
    package_id: str = Field(description="Purchased package")
    package_name: str = Field(description="Package name at purchase time")
    price: int = Field(description="Price in cents at purchase time")
    status: OrderStatus = Field(description="Order status")
    stripe_session_id: str | None = Field(default=None, description="Stripe Checkout Session ID")
    stripe_payment_intent: str | None = Field(default=None, description="Stripe PaymentIntent ID")
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime = Field(description="Last update timestamp")

    @computed_field
    @property
    def price_formatted(self) -> str:
        """Human-readable price."""
        return format_amount(self.price)


class OrderListResponse(BaseModel):
    """Schema for order list API responses."""

    model_config = ConfigDict(from_attributes=True)

    items: list[OrderResponse] = Field(description="List of orders")


class OrderStatusUpdate(BaseModel):
    """Schema for PATCH /admin/orders/{order_id}."""

    model_config = ConfigDict(from_attributes=True)

    status: str = Field(description="Target status")
    force: bool = Field(
        default=False,
        description="Bypass the transition table (logged as an administrative override)",
    )


class DonationResponse(BaseModel):
    """Schema for donation API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(description="Donation unique identifier")
    donor_name: str = Field(description="Donor name or 'Anonymous'")
    donor_email: str = Field(description="Donor email")
    amount: int = Field(description="Amount in cents")
    message: str | None = Field(default=None, description="Donor message")
    status: DonationStatus = Field(description="Donation status")
    stripe_session_id: str | None = Field(default=None, description="Stripe Checkout Session ID")
    stripe_payment_intent: str | None = Field(default=None, description="Stripe PaymentIntent ID")
    created_at: datetime = Field(description="Creation timestamp")

    @computed_field
    @property
    def amount_formatted(self) -> str:
        """Human-readable amount."""
        return format_amount(self.amount)


class DonationListResponse(BaseModel):
    """Schema for donation list API responses."""

    model_config = ConfigDict(from_attributes=True)

    items: list[DonationResponse] = Field(description="List of donations")
    total_count: int = Field(description="Number of donations")
    completed_amount: int = Field(description="Sum of completed donations in cents")

    @computed_field
    @property
    def completed_amount_formatted(self) -> str:
        """Human-readable completed total."""
        return format_amount(self.completed_amount)
