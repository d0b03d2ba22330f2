"""Database model definitions."""

from storefront.models.base import Base
from storefront.models.donation import (
    ANONYMOUS_DONOR,
    MAX_DONATION_AMOUNT,
    MIN_DONATION_AMOUNT,
    Donation,
    DonationStatus,
)
from storefront.models.order import ORDER_TRANSITIONS, Order, OrderStatus
from storefront.models.package import Package
from storefront.models.setting import Setting

__all__ = [
    "Base",
    "Package",
    "Order",
    "OrderStatus",
    "ORDER_TRANSITIONS",
    "Donation",
    "DonationStatus",
    "ANONYMOUS_DONOR",
    "MIN_DONATION_AMOUNT",
    "MAX_DONATION_AMOUNT",
    "Setting",
]
