"""Page through a campaign's delivery log."""
import logging

from app.database import BackendClient, BackendError
from app.models.campaign import Delivery
from app.models.customer import CustomerRef
from app.schemas.campaign import DeliveryStatusFilter
from app.services.normalizers import normalize_customer_ref, normalize_delivery, normalize_rows, unique_strings

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
CUSTOMER_BATCH_SIZE = 500


class CustomerCache:
    """Customer id -> display record, filled lazily for one page view."""

    def __init__(self, backend: BackendClient, batch_size: int = CUSTOMER_BATCH_SIZE):
        self.backend = backend
        self.batch_size = batch_size
        self.entries: dict[str, CustomerRef] = {}

    def get(self, customer_id: str) -> CustomerRef | None:
        return self.entries.get(customer_id)

    def missing(self, customer_ids: list[str]) -> list[str]:
        return [cid for cid in unique_strings(customer_ids) if cid not in self.entries]

    async def resolve(self, customer_ids: list[str]) -> int:
        """Look up ids not cached yet; returns how many were added."""
        missing = self.missing(customer_ids)
        added = 0
        for start in range(0, len(missing), self.batch_size):
            batch = missing[start:start + self.batch_size]
            rows = await (
                self.backend.table("customers")
                .select("id,name,email")
                .in_("id", batch)
                .limit(len(batch))
                .execute()
            )
            for ref in normalize_rows(rows, normalize_customer_ref):
                if ref.id not in self.entries:
                    added += 1
                self.entries[ref.id] = ref
        return added


class DeliveryPaginator:
    """Accumulates delivery pages for one campaign and status filter.

    ``load(reset=True)`` starts over from the first page; ``load()`` appends
    the next one. A failed page keeps what was already loaded and records
    the message in ``error``.
    """

    def __init__(
        self,
        backend: BackendClient,
        campaign_id: str,
        status: DeliveryStatusFilter = DeliveryStatusFilter.ALL,
        page_size: int = DEFAULT_PAGE_SIZE,
        customers: CustomerCache | None = None,
    ):
        self.backend = backend
        self.campaign_id = campaign_id
        self.status = status
        self.page_size = page_size
        self.customers = customers or CustomerCache(backend)

        self.deliveries: list[Delivery] = []
        self.page = 0
        self.has_more = True
        self.error: str | None = None

    def _query(self, page: int):
        start = page * self.page_size
        query = (
            self.backend.table(Delivery.__tablename__)
            .select(Delivery.columns)
            .eq("campaign_id", self.campaign_id)
            .order("created_at", desc=True)
            .range(start, start + self.page_size - 1)
        )
        if self.status is DeliveryStatusFilter.PENDING:
            query = query.eq("push_attempted", False)
        elif self.status is DeliveryStatusFilter.OK:
            query = query.eq("push_attempted", True).eq("push_ok", True)
        elif self.status is DeliveryStatusFilter.FAILED:
            query = query.eq("push_attempted", True).eq("push_ok", False)
        return query

    async def load(self, reset: bool = False) -> list[Delivery]:
        """Fetch one page; returns the rows of that page."""
        self.error = None
        page = 0 if reset else self.page
        try:
            rows = await self._query(page).execute()
        except BackendError as exc:
            self.error = exc.message or "Failed to load deliveries."
            return []

        fetched = normalize_rows(rows, normalize_delivery)
        if reset:
            self.deliveries = fetched
            self.page = 1
        else:
            self.deliveries.extend(fetched)
            self.page += 1
        # Only a full page can be followed by another one
        self.has_more = len(rows) == self.page_size

        try:
            await self.customers.resolve([d.customer_id for d in fetched])
        except BackendError as exc:
            logger.warning("Customer lookup for campaign %s failed: %s", self.campaign_id, exc.message)
            self.error = exc.message
        return fetched
