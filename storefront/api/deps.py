"""FastAPI dependency injection functions."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from storefront.api.middleware.auth import AuthError, AuthErrorCode, decode_admin_token
from storefront.schemas.auth import AdminContext


async def get_current_admin(
    authorization: Annotated[str, Header(description="Bearer token")] = "",
) -> AdminContext:
    """Extract and validate the admin token from the Authorization header.

    Args:
        authorization: The Authorization header value (Bearer token).

    Returns:
        AdminContext: The authenticated admin's context.

    Raises:
        HTTPException: 401 if token is missing, invalid, or expired.
    """
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Extract the token from "Bearer <token>" format
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format. Expected: Bearer <token>",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_admin_token(parts[1])
        return payload.to_admin_context()

    except AuthError as e:
        if e.code == AuthErrorCode.TOKEN_EXPIRED:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token has expired",
                headers={"WWW-Authenticate": "Bearer"},
            ) from e

        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


# Type alias for dependency injection
AdminUser = Annotated[AdminContext, Depends(get_current_admin)]
