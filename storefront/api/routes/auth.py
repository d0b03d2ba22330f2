"""Admin authentication API routes."""

from fastapi import APIRouter, Request

from storefront.api.deps import AdminUser
from storefront.schemas.auth import LoginRequest, LoginResponse, VerifyResponse
from storefront.services.auth_service import AdminAuthService

router = APIRouter(prefix="/auth", tags=["auth"])


def _client_key(request: Request) -> str:
    """Identify the caller for login rate limiting."""
    return request.client.host if request.client else "unknown"


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Admin login",
    description="Exchange the admin password for a bearer token.",
    responses={
        401: {"description": "Invalid credentials"},
        429: {"description": "Too many login attempts"},
    },
)
async def login(data: LoginRequest, request: Request) -> LoginResponse:
    """Log in as admin.

    Args:
        data: Login request with the admin password.
        request: Incoming request, used to key the rate limit.

    Returns:
        LoginResponse: Access token and its lifetime.

    Raises:
        InvalidCredentialsError: 401 if the password is wrong.
        RateLimitError: 429 if the caller exceeded the attempt limit.
    """
    service = AdminAuthService()
    result = await service.issue_token(data.password, _client_key(request))
    return LoginResponse(**result)


@router.get(
    "/verify",
    response_model=VerifyResponse,
    summary="Verify admin token",
    description="Returns the token's role and expiry if the bearer token is valid.",
    responses={401: {"description": "Authentication required or invalid token"}},
)
async def verify(admin: AdminUser) -> VerifyResponse:
    """Check the current bearer token."""
    return VerifyResponse(authenticated=True, role=admin.role, expires_at=admin.expires_at)
