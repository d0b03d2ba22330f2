"""Package catalog schemas."""

from pydantic import BaseModel, ConfigDict, Field, computed_field

from storefront.core.money import format_amount


class PackageResponse(BaseModel):
    """Schema for package API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(description="Package identifier (e.g. 'starter')")
    name: str = Field(description="Display name")
    description: str | None = Field(default=None, description="Short description")
    price: int = Field(ge=0, description="Price in cents")
    features: list[str] = Field(default_factory=list, description="Ordered feature list")
    delivery_days: int | None = Field(default=None, description="Delivery time in days")
    active: bool = Field(default=True, description="Whether the package can be ordered")

    @computed_field
    @property
    def price_formatted(self) -> str:
        """Human-readable price."""
        return format_amount(self.price)


class PackageListResponse(BaseModel):
    """Schema for package list API responses."""

    model_config = ConfigDict(from_attributes=True)

    items: list[PackageResponse] = Field(description="Active packages")
