"""Payment settings schemas for the admin API."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

SettingSource = Literal["database", "environment", "unset"]


class SettingValue(BaseModel):
    """A single credential as shown to admins."""

    model_config = ConfigDict(from_attributes=True)

    value: str = Field(description="Value; secret-like values are masked")
    source: SettingSource = Field(description="Where the effective value comes from")


class PaymentSettingsResponse(BaseModel):
    """Response schema for GET /admin/settings."""

    model_config = ConfigDict(from_attributes=True)

    stripe_publishable_key: SettingValue
    stripe_secret_key: SettingValue
    stripe_webhook_secret: SettingValue


class PaymentSettingsUpdate(BaseModel):
    """Request schema for PUT /admin/settings.

    Omitted fields are left untouched, masked values are ignored and empty
    strings clear the stored value.
    """

    model_config = ConfigDict(from_attributes=True)

    stripe_publishable_key: str | None = Field(default=None, max_length=512)
    stripe_secret_key: str | None = Field(default=None, max_length=512)
    stripe_webhook_secret: str | None = Field(default=None, max_length=512)


class PublishableKeyResponse(BaseModel):
    """Public response exposing the Stripe publishable key."""

    model_config = ConfigDict(from_attributes=True)

    publishable_key: str = Field(description="Stripe publishable key (may be empty)")
