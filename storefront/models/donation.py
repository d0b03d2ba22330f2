"""Donation model and status definitions."""

from enum import Enum
from typing import Any

from sqlalchemy import Column, Integer, String, Text

from storefront.models.base import Base, UTCDateTime, utcnow

ANONYMOUS_DONOR = "Anonymous"

# Donation bounds in cents: $1.00 to $999,999.00
MIN_DONATION_AMOUNT = 100
MAX_DONATION_AMOUNT = 99_999_900


class DonationStatus(str, Enum):
    """Donation lifecycle states."""

    PENDING = "pending"
    COMPLETED = "completed"


class Donation(Base):
    """Standalone payment not tied to a package."""

    __tablename__ = "donations"

    id = Column(String, primary_key=True)
    donor_name = Column(String, nullable=False, default=ANONYMOUS_DONOR)
    donor_email = Column(String, nullable=False)
    amount = Column(Integer, nullable=False)  # cents
    message = Column(Text, nullable=True)

    status = Column(String, nullable=False, default=DonationStatus.PENDING.value)
    stripe_session_id = Column(String, nullable=True, index=True)
    stripe_payment_intent = Column(String, nullable=True)

    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "donor_name": self.donor_name,
            "donor_email": self.donor_email,
            "amount": self.amount,
            "message": self.message,
            "status": self.status,
            "stripe_session_id": self.stripe_session_id,
            "stripe_payment_intent": self.stripe_payment_intent,
            "created_at": self.created_at,
        }
