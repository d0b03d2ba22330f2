"""Public settings API routes."""

from fastapi import APIRouter

from storefront.schemas.settings import PublishableKeyResponse
from storefront.services.settings_service import SettingsService

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get(
    "/stripe-publishable-key",
    response_model=PublishableKeyResponse,
    summary="Get Stripe publishable key",
    description="Returns the publishable key the frontend needs for Stripe.js. Empty when unset.",
)
async def get_publishable_key() -> PublishableKeyResponse:
    """Get the effective Stripe publishable key."""
    service = SettingsService()
    return PublishableKeyResponse(publishable_key=service.resolve_publishable_key())
