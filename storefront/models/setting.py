"""Key/value settings model for payment provider credentials."""

from sqlalchemy import Column, String, Text

from storefront.models.base import Base, UTCDateTime, utcnow


class Setting(Base):
    """A single stored setting, overwritten in place without history."""

    __tablename__ = "settings"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow)
