"""Hosted backend client: relational data, auth, object storage and functions.

The admin API owns no storage of its own. Every read and write goes through
one ``BackendClient`` built at startup and handed to request handlers via
``get_backend``. Table access follows the hosted service's REST filter
syntax (``col=eq.value``, ``or=(...)``, ``order=col.desc``).
"""
from collections.abc import Iterable
import logging
from typing import Any

import httpx
from fastapi import Request

from app.config import Settings

logger = logging.getLogger(__name__)

_LIST_SPECIAL_CHARS = set(',()" \t\n')


class BackendError(Exception):
    """A hosted query, auth or storage call failed."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str | None = None,
        details: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details


def _error_from_response(response: httpx.Response) -> BackendError:
    """Build a BackendError carrying the service's own message when it sent one."""
    try:
        body = response.json()
    except ValueError:
        body = None

    message = f"Request failed with status {response.status_code}"
    code = None
    details = None
    if isinstance(body, dict):
        for key in ("message", "error_description", "msg", "error"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                message = value
                break
        if body.get("code") is not None:
            code = str(body["code"])
        if isinstance(body.get("details"), str):
            details = body["details"]

    return BackendError(message, status_code=response.status_code, code=code, details=details)


def escape_ilike(text: str) -> str:
    """Escape pattern metacharacters so user input matches literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _format_value(value: Any) -> str:
    if value is True:
        return "true"
    if value is False:
        return "false"
    if value is None:
        return "null"
    return str(value)


def _quote_reserved(text: str) -> str:
    """Double-quote a value that holds list or group delimiters."""
    if any(ch in _LIST_SPECIAL_CHARS for ch in text):
        return '"' + text.replace('"', '\\"') + '"'
    return text


def _format_list(values: Iterable[Any]) -> str:
    return f"({','.join(_quote_reserved(_format_value(value)) for value in values)})"


class Query:
    """Chainable query against one hosted table."""

    def __init__(self, client: "BackendClient", table: str):
        self._client = client
        self.table = table
        self._select = "*"
        self._filters: list[tuple[str, str]] = []
        self._order: list[str] = []
        self._offset: int | None = None
        self._limit: int | None = None

    def select(self, columns: str | Iterable[str]) -> "Query":
        if not isinstance(columns, str):
            columns = ",".join(columns)
        self._select = columns.replace(" ", "") or "*"
        return self

    def _filter(self, column: str, expression: str) -> "Query":
        self._filters.append((column, expression))
        return self

    def eq(self, column: str, value: Any) -> "Query":
        return self._filter(column, f"eq.{_format_value(value)}")

    def neq(self, column: str, value: Any) -> "Query":
        return self._filter(column, f"neq.{_format_value(value)}")

    def gte(self, column: str, value: Any) -> "Query":
        return self._filter(column, f"gte.{_format_value(value)}")

    def lte(self, column: str, value: Any) -> "Query":
        return self._filter(column, f"lte.{_format_value(value)}")

    def ilike(self, column: str, pattern: str) -> "Query":
        return self._filter(column, f"ilike.{pattern}")

    def in_(self, column: str, values: Iterable[Any]) -> "Query":
        return self._filter(column, f"in.{_format_list(values)}")

    def is_null(self, column: str) -> "Query":
        return self._filter(column, "is.null")

    def not_null(self, column: str) -> "Query":
        return self._filter(column, "not.is.null")

    def or_(self, *conditions: str) -> "Query":
        """Match any of the raw conditions, e.g. ``"title.ilike.%x%"``."""
        return self._filter("or", f"({','.join(conditions)})")

    def ilike_any(self, columns: Iterable[str], text: str) -> "Query":
        """Substring match on any of ``columns``, wildcards in ``text`` taken literally."""
        pattern = _quote_reserved(f"%{escape_ilike(text)}%")
        return self.or_(*(f"{column}.ilike.{pattern}" for column in columns))

    def order(self, column: str, desc: bool = True) -> "Query":
        self._order.append(f"{column}.{'desc' if desc else 'asc'}")
        return self

    def range(self, start: int, end: int) -> "Query":
        """Inclusive row window, like ``range(0, 49)`` for the first 50 rows."""
        self._offset = start
        self._limit = end - start + 1
        return self

    def limit(self, count: int) -> "Query":
        self._limit = count
        return self

    @property
    def filters(self) -> list[tuple[str, str]]:
        return list(self._filters)

    def params(self) -> list[tuple[str, str]]:
        params = [("select", self._select), *self._filters]
        if self._order:
            params.append(("order", ",".join(self._order)))
        if self._offset is not None:
            params.append(("offset", str(self._offset)))
        if self._limit is not None:
            params.append(("limit", str(self._limit)))
        return params

    @property
    def path(self) -> str:
        return f"/rest/v1/{self.table}"

    async def execute(self) -> list[dict]:
        """Run the query and return its rows."""
        response = await self._client.request("GET", self.path, params=self.params())
        data = response.json() if response.content else []
        if not isinstance(data, list):
            raise BackendError(f"Unexpected response shape from table '{self.table}'.")
        return [row for row in data if isinstance(row, dict)]

    async def maybe_single(self) -> dict | None:
        """Return the first matching row or None."""
        self._limit = 1
        rows = await self.execute()
        return rows[0] if rows else None

    async def insert(self, row: dict) -> dict:
        """Insert one row and return it as stored."""
        response = await self._client.request(
            "POST",
            self.path,
            params=[("select", self._select)],
            json=row,
            headers={"Prefer": "return=representation"},
        )
        data = response.json() if response.content else []
        if isinstance(data, list) and data and isinstance(data[0], dict):
            return data[0]
        if isinstance(data, dict):
            return data
        raise BackendError(f"Insert into '{self.table}' returned no row.")

    async def update(self, values: dict) -> list[dict]:
        """Update the filtered rows and return them as stored."""
        if not self._filters:
            raise ValueError("Refusing to update without a filter.")
        response = await self._client.request(
            "PATCH",
            self.path,
            params=[("select", self._select), *self._filters],
            json=values,
            headers={"Prefer": "return=representation"},
        )
        data = response.json() if response.content else []
        return [row for row in data if isinstance(row, dict)] if isinstance(data, list) else []


class BackendClient:
    """Single handle to the hosted backend services."""

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
        access_token: str | None = None,
        http: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.access_token = access_token
        self._http = http or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "BackendClient":
        return cls(
            settings.backend_url,
            settings.backend_anon_key,
            timeout=settings.request_timeout_seconds,
            transport=transport,
        )

    def as_user(self, access_token: str) -> "BackendClient":
        """Same connection pool, authorized as the signed-in admin."""
        return BackendClient(
            self.base_url,
            self.anon_key,
            access_token=access_token,
            http=self._http,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    def _headers(self, token: str | None, extra: dict | None) -> dict:
        bearer = token or self.access_token or self.anon_key
        headers = {"apikey": self.anon_key, "Authorization": f"Bearer {bearer}"}
        if extra:
            headers.update(extra)
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: list[tuple[str, str]] | dict | None = None,
        json: Any = None,
        content: bytes | None = None,
        headers: dict | None = None,
        token: str | None = None,
        raise_for_status: bool = True,
    ) -> httpx.Response:
        try:
            response = await self._http.request(
                method,
                path,
                params=params,
                json=json,
                content=content,
                headers=self._headers(token, headers),
            )
        except httpx.HTTPError as exc:
            logger.warning("Backend %s %s failed: %s", method, path, exc)
            raise BackendError(f"Backend request failed: {exc}") from exc

        if raise_for_status and response.is_error:
            error = _error_from_response(response)
            logger.warning(
                "Backend %s %s returned %s: %s",
                method,
                path,
                response.status_code,
                error.message,
            )
            raise error
        return response

    def table(self, name: str) -> Query:
        return Query(self, name)

    # ────────────────────────────────────────────
    # Auth
    # ────────────────────────────────────────────

    async def sign_in_with_password(self, email: str, password: str) -> dict:
        """Exchange email/password for a session (access and refresh tokens)."""
        response = await self.request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        return response.json()

    async def get_user(self, access_token: str) -> dict:
        response = await self.request("GET", "/auth/v1/user", token=access_token)
        return response.json()

    async def sign_out(self, access_token: str) -> None:
        await self.request("POST", "/auth/v1/logout", token=access_token)

    # ────────────────────────────────────────────
    # Storage
    # ────────────────────────────────────────────

    async def upload(
        self,
        bucket: str,
        path: str,
        content: bytes,
        content_type: str = "application/octet-stream",
        cache_control: str = "3600",
        upsert: bool = False,
    ) -> str:
        """Store a file under ``bucket/path`` and return the path."""
        await self.request(
            "POST",
            f"/storage/v1/object/{bucket}/{path}",
            content=content,
            headers={
                "Content-Type": content_type,
                "cache-control": f"max-age={cache_control}",
                "x-upsert": "true" if upsert else "false",
            },
        )
        return path

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{bucket}/{path}"

    # ────────────────────────────────────────────
    # Functions
    # ────────────────────────────────────────────

    async def invoke_function(self, name: str, payload: dict, access_token: str) -> httpx.Response:
        """POST to a hosted function; the caller interprets the status."""
        return await self.request(
            "POST",
            f"/functions/v1/{name}",
            json=payload,
            token=access_token,
            raise_for_status=False,
        )


def get_backend(request: Request) -> BackendClient:
    """Dependency that provides the shared backend handle."""
    return request.app.state.backend
