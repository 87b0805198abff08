"""Authentication schemas."""
from pydantic import BaseModel, EmailStr, Field


class AdminLogin(BaseModel):
    """Admin login request."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class Token(BaseModel):
    """Token response."""

    access_token: str
    refresh_token: str | None = None
    token_type: str = "bearer"
    expires_in: int | None = None
    email: str


class AdminResponse(BaseModel):
    """Signed-in admin."""

    user_id: str
    email: str
    admin_id: str

    class Config:
        from_attributes = True


class SessionStatus(BaseModel):
    """Whether the browser holds a valid admin marker cookie."""

    admin: bool
    email: str | None = None


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
