"""Admin authentication: password hashing, login and token issuance."""

import hashlib
import hmac
import logging
import secrets
from functools import lru_cache

from storefront.api.middleware.auth import decode_admin_token, encode_admin_token
from storefront.api.middleware.error_handler import InvalidCredentialsError, RateLimitError
from storefront.core.config import get_settings
from storefront.core.rate_limiter import get_rate_limiter
from storefront.schemas.auth import AdminContext

logger = logging.getLogger(__name__)

HASH_ALGORITHM = "pbkdf2_sha256"
HASH_ITERATIONS = 390_000
SALT_BYTES = 16


def hash_password(password: str, salt: bytes | None = None, iterations: int = HASH_ITERATIONS) -> str:
    """Hash a password with a random salt.

    Returns:
        str: "pbkdf2_sha256$<iterations>$<salt hex>$<hash hex>".
    """
    salt = salt if salt is not None else secrets.token_bytes(SALT_BYTES)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return f"{HASH_ALGORITHM}${iterations}${salt.hex()}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    """Check a password against an encoded hash in constant time.

    Malformed hashes never verify.
    """
    try:
        algorithm, iterations, salt_hex, digest_hex = encoded.split("$")
        if algorithm != HASH_ALGORITHM:
            return False
        expected = bytes.fromhex(digest_hex)
        digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), bytes.fromhex(salt_hex), int(iterations))
    except ValueError:
        return False
    return hmac.compare_digest(digest, expected)


@lru_cache
def get_admin_password_hash() -> str | None:
    """Get the configured admin password hash.

    ADMIN_PASSWORD_HASH wins; otherwise ADMIN_PASSWORD is hashed once per
    process. Returns None when neither is set, which disables login.
    """
    settings = get_settings()
    if settings.admin_password_hash:
        return settings.admin_password_hash
    if settings.admin_password:
        return hash_password(settings.admin_password)
    logger.warning("No admin password configured; admin login is disabled")
    return None


class AdminAuthService:
    """Service for the single admin role's login and token checks."""

    def __init__(self) -> None:
        """Initialize admin auth service."""
        self.settings = get_settings()
        self.limiter = get_rate_limiter()

    async def issue_token(self, password: str, client_key: str) -> dict[str, str | int]:
        """Exchange the admin password for a signed bearer token.

        Args:
            password: Submitted password.
            client_key: Identifier of the caller for rate limiting (e.g. client host).

        Returns:
            dict: access_token, token_type and expires_in.

        Raises:
            RateLimitError: If the caller has made too many attempts.
            InvalidCredentialsError: If the password is wrong or login is disabled.
        """
        key = f"login:{client_key}"
        allowed, _, retry_after = await self.limiter.check_and_increment(
            key,
            max_requests=self.settings.login_rate_limit_attempts,
            window_seconds=self.settings.login_rate_limit_window_seconds,
        )
        if not allowed:
            raise RateLimitError(
                message="Too many login attempts. Please wait before trying again.",
                retry_after=retry_after,
            )

        encoded = get_admin_password_hash()
        if not encoded or not verify_password(password, encoded):
            logger.warning("Failed admin login from %s", client_key)
            raise InvalidCredentialsError()

        await self.limiter.reset(key)
        token, ttl = encode_admin_token()
        logger.info("Admin token issued to %s", client_key)

        return {"access_token": token, "token_type": "bearer", "expires_in": ttl}

    def verify_token(self, token: str) -> AdminContext:
        """Verify a bearer token.

        Raises:
            AuthError: If the token is invalid or expired.
        """
        return decode_admin_token(token).to_admin_context()
