"""Admin bearer token signing and verification."""

import time
from enum import Enum
from typing import Any

import jwt

from storefront.core.config import get_settings
from storefront.schemas.auth import TokenPayload

ALGORITHM = "HS256"
ADMIN_ROLE = "admin"


class AuthErrorCode(str, Enum):
    """Authentication error codes."""

    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    INVALID_TOKEN = "INVALID_TOKEN"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    FORBIDDEN_ROLE = "FORBIDDEN_ROLE"


class AuthError(Exception):
    """Authentication error with specific error code.

    Raised when token validation fails for any reason.
    The error code indicates the specific failure reason.
    """

    def __init__(self, message: str, code: AuthErrorCode) -> None:
        """Initialize authentication error.

        Args:
            message: Human-readable error description.
            code: Specific error code for programmatic handling.
        """
        self.message = message
        self.code = code
        super().__init__(message)


def encode_admin_token(ttl_seconds: int | None = None, now: int | None = None) -> tuple[str, int]:
    """Sign a new admin token.

    Args:
        ttl_seconds: Token lifetime (defaults to ADMIN_TOKEN_TTL_SECONDS).
        now: Issue time as Unix epoch (defaults to current time).

    Returns:
        tuple: (token, ttl_seconds)
    """
    settings = get_settings()
    ttl = ttl_seconds if ttl_seconds is not None else settings.admin_token_ttl_seconds
    issued_at = int(time.time()) if now is None else now

    payload: dict[str, Any] = {
        "sub": ADMIN_ROLE,
        "role": ADMIN_ROLE,
        "iat": issued_at,
        "exp": issued_at + ttl,
    }
    token = jwt.encode(payload, settings.jwt_secret, algorithm=ALGORITHM)
    return token, ttl


def decode_admin_token(token: str) -> TokenPayload:
    """Decode and validate an admin token.

    Validates the HMAC signature, expiration, required claims and role.

    Args:
        token: The token string to decode.

    Returns:
        TokenPayload: Validated token payload.

    Raises:
        AuthError: If token is invalid, expired, has a wrong signature or role.
    """
    settings = get_settings()

    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[ALGORITHM],
            options={
                "verify_signature": True,
                "verify_exp": True,
                "verify_iat": True,
                "require": ["exp", "iat", "sub"],
            },
        )

    except jwt.ExpiredSignatureError as e:
        raise AuthError(
            "Token has expired",
            AuthErrorCode.TOKEN_EXPIRED,
        ) from e

    except jwt.InvalidSignatureError as e:
        raise AuthError(
            "Invalid token signature",
            AuthErrorCode.INVALID_SIGNATURE,
        ) from e

    except jwt.MissingRequiredClaimError as e:
        raise AuthError(
            f"Token missing required claim: {e}",
            AuthErrorCode.INVALID_TOKEN,
        ) from e

    except jwt.InvalidTokenError as e:
        raise AuthError(
            f"Invalid token: {e}",
            AuthErrorCode.INVALID_TOKEN,
        ) from e

    if payload.get("role") != ADMIN_ROLE:
        raise AuthError("Token does not grant admin access", AuthErrorCode.FORBIDDEN_ROLE)

    return TokenPayload(
        sub=payload["sub"],
        role=payload["role"],
        exp=payload["exp"],
        iat=payload["iat"],
    )
