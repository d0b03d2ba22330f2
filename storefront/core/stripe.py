"""Stripe client configuration."""

import logging

import stripe

from storefront.core.config import get_settings

logger = logging.getLogger(__name__)


def configure_stripe() -> None:
    """Configure Stripe SDK defaults from settings.

    This should be called once at application startup. Individual API calls
    still pass the resolved secret key explicitly, since keys stored through
    the admin settings API override the environment at runtime.
    """
    settings = get_settings()
    if settings.stripe_secret_key:
        stripe.api_key = settings.stripe_secret_key
    else:
        logger.warning("Stripe secret key not configured in environment. Checkout will rely on stored settings.")


def get_stripe() -> stripe:
    """Get the Stripe module.

    Returns:
        stripe: The Stripe module.

    Note:
        Stripe SDK uses module-level configuration, so this returns
        the stripe module itself. Tests patch this function to swap in a mock.
    """
    return stripe
