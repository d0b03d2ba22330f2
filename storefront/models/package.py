"""Package catalog model."""

from typing import Any

from sqlalchemy import JSON, Boolean, Column, Integer, String, Text

from storefront.models.base import Base


class Package(Base):
    """Fixed-price design package offered in the storefront.

    Prices are stored in minor currency units (cents).
    """

    __tablename__ = "packages"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Integer, nullable=False)  # cents
    features = Column(JSON, nullable=False, default=list)
    delivery_days = Column(Integer, nullable=True)
    active = Column(Boolean, nullable=False, default=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "features": list(self.features or []),
            "delivery_days": self.delivery_days,
            "active": bool(self.active),
        }
