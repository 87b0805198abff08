"""Authentication API endpoints."""
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from app.api.deps import get_access_token, get_current_admin
from app.config import get_settings
from app.database import BackendClient, get_backend
from app.schemas.auth import AdminLogin, AdminResponse, MessageResponse, SessionStatus, Token
from app.services.admin_auth import (
    AdminIdentity,
    AdminVerificationError,
    AuthenticationError,
    NotAdminError,
    create_admin_marker,
    login as admin_login,
    logout as admin_logout,
    read_admin_marker,
)

router = APIRouter(prefix="/auth", tags=["auth"])
settings = get_settings()


def set_admin_cookie(response: Response, email: str) -> None:
    """Issue the admin UX marker cookie."""
    response.set_cookie(
        key=settings.admin_cookie_name,
        value=create_admin_marker(email, settings),
        httponly=True,
        secure=settings.admin_cookie_secure,
        samesite=settings.admin_cookie_samesite,
        path="/",
        max_age=settings.admin_cookie_max_age_seconds,
    )


def clear_admin_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.admin_cookie_name,
        path="/",
        secure=settings.admin_cookie_secure,
        httponly=True,
        samesite=settings.admin_cookie_samesite,
    )


@router.post("/login", response_model=Token)
async def login(
    credentials: AdminLogin,
    response: Response,
    backend: BackendClient = Depends(get_backend),
):
    """Sign in and get tokens."""
    try:
        session = await admin_login(backend, credentials.email, credentials.password)
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        )
    except NotAdminError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    except AdminVerificationError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))

    set_admin_cookie(response, session.admin.email)
    return Token(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_in=session.expires_in,
        email=session.admin.email,
    )


@router.get("/me", response_model=AdminResponse)
async def me(admin: AdminIdentity = Depends(get_current_admin)):
    """Current admin, re-verified against admin_users."""
    return admin


@router.get("/session", response_model=SessionStatus)
async def session_status(request: Request):
    """Whether the admin marker cookie is present and valid."""
    email = read_admin_marker(request.cookies.get(settings.admin_cookie_name), settings)
    return SessionStatus(admin=email is not None, email=email)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    token: str = Depends(get_access_token),
    backend: BackendClient = Depends(get_backend),
):
    """Sign out of the hosted session and clear the marker cookie."""
    await admin_logout(backend, token)
    clear_admin_cookie(response)
    return MessageResponse(message="Successfully logged out")
