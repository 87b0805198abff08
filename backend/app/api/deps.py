"""API dependencies."""
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.database import BackendClient, get_backend
from app.services.admin_auth import (
    AdminIdentity,
    AdminVerificationError,
    AuthenticationError,
    NotAdminError,
    verify_admin,
)
from app.services.realtime import LiveRegistry

bearer_scheme = HTTPBearer(auto_error=False)


def get_access_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """Bearer token of the signed-in admin."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not signed in (missing access token).",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


async def get_current_admin(
    token: str = Depends(get_access_token),
    backend: BackendClient = Depends(get_backend),
) -> AdminIdentity:
    """Verify the token with the auth service and the admin_users table."""
    try:
        return await verify_admin(backend, token)
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


async def get_admin_backend(
    token: str = Depends(get_access_token),
    backend: BackendClient = Depends(get_backend),
    _admin: AdminIdentity = Depends(get_current_admin),
) -> BackendClient:
    """Backend handle acting as the verified admin."""
    return backend.as_user(token)


def get_live_registry(request: Request) -> LiveRegistry:
    """Live collections built at startup."""
    return request.app.state.live
