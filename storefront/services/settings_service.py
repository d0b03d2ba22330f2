"""Payment credential resolution and admin settings management."""

import logging
from dataclasses import dataclass
from threading import Lock
from typing import Any

from storefront.core.config import PLACEHOLDER_STRIPE_SECRET_KEY, get_settings
from storefront.core.database import session_scope
from storefront.models import Setting

logger = logging.getLogger(__name__)

PUBLISHABLE_KEY = "stripe_publishable_key"
SECRET_KEY = "stripe_secret_key"
WEBHOOK_SECRET = "stripe_webhook_secret"

SETTING_KEYS = (PUBLISHABLE_KEY, SECRET_KEY, WEBHOOK_SECRET)
SECRET_SETTING_KEYS = frozenset({SECRET_KEY, WEBHOOK_SECRET})

MASK_PREFIX = "••••••••"


def mask_secret(value: str) -> str:
    """Mask a secret, leaving only its last four characters visible.

    Values of four characters or fewer are masked entirely.
    """
    if not value:
        return ""
    if len(value) <= 4:
        return MASK_PREFIX
    return f"{MASK_PREFIX}{value[-4:]}"


def is_masked(value: str) -> bool:
    """Check whether a submitted value is the masked placeholder we handed out."""
    return value.startswith(MASK_PREFIX)


@dataclass(frozen=True)
class ProviderCredentials:
    """Effective Stripe credentials for one resolution."""

    secret_key: str
    publishable_key: str
    webhook_secret: str | None


# Cached snapshot, invalidated on every settings write
_credentials_cache: ProviderCredentials | None = None
_cache_lock = Lock()


def invalidate_credentials_cache() -> None:
    """Drop the cached credential snapshot."""
    global _credentials_cache
    with _cache_lock:
        _credentials_cache = None


class SettingsService:
    """Service resolving Stripe credentials from stored settings and environment.

    Precedence is stored setting, then environment configuration, then a
    placeholder. Resolution never raises.
    """

    def __init__(self) -> None:
        """Initialize settings service."""
        self.settings = get_settings()

    def _load_stored(self) -> dict[str, str]:
        with session_scope() as db:
            rows = db.query(Setting).filter(Setting.key.in_(SETTING_KEYS)).all()
            return {row.key: row.value for row in rows if row.value}

    def _environment_defaults(self) -> dict[str, str]:
        return {
            PUBLISHABLE_KEY: self.settings.stripe_publishable_key,
            SECRET_KEY: self.settings.stripe_secret_key,
            WEBHOOK_SECRET: self.settings.stripe_webhook_secret,
        }

    def resolve(self) -> ProviderCredentials:
        """Resolve all credentials at once, using the cached snapshot when present.

        Returns:
            ProviderCredentials: Effective credentials.
        """
        global _credentials_cache
        with _cache_lock:
            if _credentials_cache is not None:
                return _credentials_cache

        stored = self._load_stored()
        env = self._environment_defaults()

        def pick(key: str) -> str:
            return stored.get(key) or env.get(key) or ""

        credentials = ProviderCredentials(
            secret_key=pick(SECRET_KEY) or PLACEHOLDER_STRIPE_SECRET_KEY,
            publishable_key=pick(PUBLISHABLE_KEY),
            webhook_secret=pick(WEBHOOK_SECRET) or None,
        )

        with _cache_lock:
            _credentials_cache = credentials
        return credentials

    def resolve_secret_key(self) -> str:
        return self.resolve().secret_key

    def resolve_publishable_key(self) -> str:
        return self.resolve().publishable_key

    def resolve_webhook_secret(self) -> str | None:
        return self.resolve().webhook_secret

    async def get_payment_settings(self) -> dict[str, dict[str, Any]]:
        """Get effective settings for the admin dashboard.

        Secret-like values are masked and each entry reports its source.

        Returns:
            dict: Mapping of setting key to {"value", "source"}.
        """
        stored = self._load_stored()
        env = self._environment_defaults()

        result: dict[str, dict[str, Any]] = {}
        for key in SETTING_KEYS:
            if stored.get(key):
                value, source = stored[key], "database"
            elif env.get(key):
                value, source = env[key], "environment"
            else:
                value, source = "", "unset"

            if key in SECRET_SETTING_KEYS:
                value = mask_secret(value)
            result[key] = {"value": value, "source": source}

        return result

    async def update_payment_settings(self, updates: dict[str, str | None]) -> dict[str, dict[str, Any]]:
        """Apply admin changes to stored settings.

        For each known key: None leaves it untouched, a masked value is a
        no-op, a blank string deletes the stored row and anything else is
        written in place.

        Args:
            updates: Mapping of setting key to submitted value.

        Returns:
            dict: Settings after the update, as returned by get_payment_settings.
        """
        changed: list[str] = []

        with session_scope() as db:
            for key in SETTING_KEYS:
                value = updates.get(key)
                if value is None:
                    continue

                value = value.strip()
                if is_masked(value):
                    continue

                row = db.get(Setting, key)

                if not value:
                    if row is not None:
                        db.delete(row)
                        changed.append(key)
                    continue

                if row is None:
                    db.add(Setting(key=key, value=value))
                elif row.value != value:
                    row.value = value
                else:
                    continue
                changed.append(key)

        invalidate_credentials_cache()
        if changed:
            logger.info("Payment settings updated: %s", ", ".join(changed))

        return await self.get_payment_settings()
