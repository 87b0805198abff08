"""Support request queue."""
from datetime import datetime, timezone

from app.database import BackendClient
from app.models.support import SupportRequest
from app.services.mutations import MutationResult, run_mutation
from app.services.normalizers import normalize_rows, normalize_support_request

# The mobile app writes intermediate states that admins see as pending
STATUS_GROUPS = {
    "open": {"open"},
    "pending": {"pending", "in_progress", "waiting_customer"},
    "closed": {"closed"},
}
STATUS_OPTIONS = ("open", "pending", "closed")


async def list_support_requests(backend: BackendClient) -> list[SupportRequest]:
    rows = await (
        backend.table(SupportRequest.__tablename__)
        .select(SupportRequest.columns)
        .order("created_at", desc=True)
        .execute()
    )
    return normalize_rows(rows, normalize_support_request)


def filter_by_status(requests: list[SupportRequest], status: str = "all") -> list[SupportRequest]:
    if status == "all":
        return requests
    group = STATUS_GROUPS.get(status)
    if group is None:
        raise ValueError(f"Status filter must be one of: all, {', '.join(STATUS_GROUPS)}.")
    return [r for r in requests if (r.status or "").lower() in group]


async def get_support_request(backend: BackendClient, request_id: str) -> SupportRequest | None:
    row = await (
        backend.table(SupportRequest.__tablename__)
        .select(SupportRequest.columns)
        .eq("id", request_id)
        .maybe_single()
    )
    return normalize_support_request(row) if row else None


async def update_status(backend: BackendClient, request_id: str, status: str) -> MutationResult:
    status = status.strip().lower()
    if status not in STATUS_OPTIONS:
        raise ValueError(f"Status must be one of: {', '.join(STATUS_OPTIONS)}.")
    query = backend.table(SupportRequest.__tablename__).select(SupportRequest.columns).eq("id", request_id)
    return await run_mutation(
        lambda: query.update({"status": status, "updated_at": datetime.now(timezone.utc).isoformat()})
    )
