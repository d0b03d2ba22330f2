"""Order model and status definitions."""

from enum import Enum
from typing import Any

from sqlalchemy import Column, Integer, String, Text

from storefront.models.base import Base, UTCDateTime, utcnow


class OrderStatus(str, Enum):
    """Order lifecycle states.

    pending -> paid -> in_progress -> completed, with cancelled reachable
    from any non-terminal state.
    """

    PENDING = "pending"
    PAID = "paid"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Allowed admin transitions; same-state writes are handled as no-ops by the caller
ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PAID, OrderStatus.CANCELLED}),
    OrderStatus.PAID: frozenset({OrderStatus.IN_PROGRESS, OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.IN_PROGRESS: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


class Order(Base):
    """Purchase of a single package.

    package_name and price are snapshots taken when the order is created
    and are never recomputed from the live catalog.
    """

    __tablename__ = "orders"

    id = Column(String, primary_key=True)
    customer_name = Column(String, nullable=False)
    customer_email = Column(String, nullable=False)
    customer_phone = Column(String, nullable=True)
    project_description = Column(Text, nullable=True)

    package_id = Column(String, nullable=False)
    package_name = Column(String, nullable=False)
    price = Column(Integer, nullable=False)  # cents

    status = Column(String, nullable=False, default=OrderStatus.PENDING.value)
    stripe_session_id = Column(String, nullable=True, index=True)
    stripe_payment_intent = Column(String, nullable=True)

    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "customer_name": self.customer_name,
            "customer_email": self.customer_email,
            "customer_phone": self.customer_phone,
            "project_description": self.project_description,
            "package_id": self.package_id,
            "package_name": self.package_name,
            "price": self.price,
            "status": self.status,
            "stripe_session_id": self.stripe_session_id,
            "stripe_payment_intent": self.stripe_payment_intent,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
