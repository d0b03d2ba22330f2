"""Admin authentication schemas."""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    """Request schema for admin login."""

    model_config = ConfigDict(from_attributes=True)

    password: str = Field(..., description="Admin password", max_length=256)


class LoginResponse(BaseModel):
    """Response schema for admin login."""

    model_config = ConfigDict(from_attributes=True)

    access_token: str = Field(description="Signed bearer token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(description="Token lifetime in seconds")


class TokenPayload(BaseModel):
    """Claims carried by an admin bearer token."""

    model_config = ConfigDict(from_attributes=True)

    sub: str = Field(description="Subject - always 'admin'")
    role: str = Field(description="Role claim")
    exp: int = Field(description="Expiration timestamp (Unix epoch)")
    iat: int = Field(description="Issued at timestamp (Unix epoch)")

    @property
    def expiration_datetime(self) -> datetime:
        """Get expiration as datetime object."""
        return datetime.fromtimestamp(self.exp, tz=timezone.utc)

    def to_admin_context(self) -> "AdminContext":
        """Convert token payload to AdminContext."""
        return AdminContext(subject=self.sub, role=self.role, expires_at=self.expiration_datetime)


class AdminContext(BaseModel):
    """Authenticated admin context for the current request."""

    model_config = ConfigDict(from_attributes=True)

    subject: str = Field(description="Token subject")
    role: str = Field(description="Role")
    expires_at: datetime = Field(description="Token expiry")


class VerifyResponse(BaseModel):
    """Response for the token verification endpoint."""

    model_config = ConfigDict(from_attributes=True)

    authenticated: bool = Field(default=True, description="Authentication status")
    role: str = Field(description="Role from the token")
    expires_at: datetime = Field(description="Token expiry")
