"""Admin sign-in and verification.

The hosted auth service owns identities; a signed-in user only counts as an
admin while their email is listed in ``admin_users``. The ``snapwin-admin``
cookie is a UX marker for the browser and never authorizes anything.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging

from jose import JWTError, jwt

from app.config import Settings
from app.database import BackendClient, BackendError

logger = logging.getLogger(__name__)

ADMIN_USERS_TABLE = "admin_users"


class AuthenticationError(Exception):
    """Sign-in failed or the session token is no longer valid."""


class NotAdminError(Exception):
    """Authenticated, but not listed as an admin."""


class AdminVerificationError(Exception):
    """The admin lookup itself failed."""


@dataclass
class AdminIdentity:
    user_id: str
    email: str
    admin_id: str


@dataclass
class AdminSession:
    access_token: str
    refresh_token: str | None
    expires_in: int | None
    admin: AdminIdentity


async def find_admin(backend: BackendClient, email: str) -> dict | None:
    return await backend.table(ADMIN_USERS_TABLE).select("id").eq("email", email).maybe_single()


async def _sign_out_after_rejection(backend: BackendClient, access_token: str) -> None:
    try:
        await backend.sign_out(access_token)
    except BackendError as exc:
        logger.warning("Sign-out after rejected login failed: %s", exc.message)


async def _require_admin(backend: BackendClient, access_token: str, user: dict) -> AdminIdentity:
    email = str(user.get("email") or "").strip()
    if not email:
        raise AuthenticationError("Could not get user data.")

    try:
        admin = await find_admin(backend.as_user(access_token), email)
    except BackendError as exc:
        logger.warning("admin_users lookup for %s failed: %s", email, exc.message)
        raise AdminVerificationError("Could not verify admin permissions.") from exc

    if admin is None:
        raise NotAdminError("You are not authorized to access the admin dashboard.")

    return AdminIdentity(user_id=str(user.get("id") or ""), email=email, admin_id=str(admin.get("id") or ""))


async def login(backend: BackendClient, email: str, password: str) -> AdminSession:
    """Sign in with email/password and confirm admin membership."""
    try:
        session = await backend.sign_in_with_password(email, password)
    except BackendError as exc:
        raise AuthenticationError(exc.message) from exc

    access_token = session.get("access_token")
    if not access_token:
        raise AuthenticationError("Could not get user data.")

    try:
        admin = await _require_admin(backend, access_token, session.get("user") or {})
    except (AuthenticationError, AdminVerificationError, NotAdminError):
        await _sign_out_after_rejection(backend, access_token)
        raise

    logger.info("Admin %s signed in", admin.email)
    return AdminSession(
        access_token=access_token,
        refresh_token=session.get("refresh_token"),
        expires_in=session.get("expires_in"),
        admin=admin,
    )


async def verify_admin(backend: BackendClient, access_token: str) -> AdminIdentity:
    """Re-check a bearer token against auth and ``admin_users``."""
    try:
        user = await backend.get_user(access_token)
    except BackendError as exc:
        raise AuthenticationError(exc.message) from exc
    return await _require_admin(backend, access_token, user)


async def logout(backend: BackendClient, access_token: str) -> None:
    try:
        await backend.sign_out(access_token)
    except BackendError as exc:
        logger.warning("Hosted sign-out failed: %s", exc.message)


def create_admin_marker(email: str, settings: Settings) -> str:
    """Signed cookie value telling the browser an admin signed in."""
    expire = datetime.now(timezone.utc) + timedelta(seconds=settings.admin_cookie_max_age_seconds)
    return jwt.encode(
        {"sub": email, "exp": expire, "type": "admin_marker"},
        settings.session_secret,
        algorithm=settings.algorithm,
    )


def read_admin_marker(value: str | None, settings: Settings) -> str | None:
    """Email from a valid marker, or None."""
    if not value:
        return None
    try:
        payload = jwt.decode(value, settings.session_secret, algorithms=[settings.algorithm])
    except JWTError:
        return None
    if payload.get("type") != "admin_marker":
        return None
    return payload.get("sub")
