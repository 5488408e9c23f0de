"""Filtered, paginated reads over hours worked, invoices, users and reports."""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from cleaning_billing.errors import NotFound
from cleaning_billing.models.base import EntityKind
from cleaning_billing.queries.filters import (
    ALL_OWNERS,
    HoursWorkedFilters,
    InvoiceFilters,
    OwnerScope,
    ReportFilters,
    UserFilters,
)
from cleaning_billing.queries.live import LiveQuery, PageCallback
from cleaning_billing.queries.pagination import Page, validate_paging
from cleaning_billing.store.base import RecordStore, Row
from cleaning_billing.store.filters import Contains, Eq, IsAbsent, Predicate, Sort

# Most recent first
HOURS_SORT = (Sort("date_worked"), Sort("created_at"))
INVOICE_SORT = (Sort("date_off"), Sort("created_at"))
REPORT_SORT = (Sort("report_date"), Sort("created_at"))
USER_SORT = (Sort("created_at"),)


class QueryService:
    """Read side of the billing domain.

    Every list method takes an owner scope (a user id or ``ALL_OWNERS``), a
    typed filter set and 1-based paging, and returns a ``Page`` whose
    ``total_count`` covers all pages.
    """

    def __init__(
        self,
        store: RecordStore,
        default_page_size: int = 10,
        max_page_size: int = 100,
    ) -> None:
        self.store = store
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    async def _run(
        self,
        kind: EntityKind,
        owner: UUID | OwnerScope,
        predicates: Sequence[Predicate],
        sort: Sequence[Sort],
        page: int,
        page_size: int | None,
    ) -> Page:
        page_size = page_size or self.default_page_size
        validate_paging(page, page_size, self.max_page_size)

        scoped = list(predicates)
        if isinstance(owner, UUID):
            scoped.insert(0, Eq("user_id", owner))

        result = await self.store.query(kind, scoped, sort, page, page_size)
        return Page(
            items=result.rows,
            total_count=result.total_count,
            page=page,
            page_size=page_size,
        )

    # ------------------------------------------------------------------
    # Hours worked
    # ------------------------------------------------------------------

    async def list_hours_worked(
        self,
        owner: UUID | OwnerScope,
        filters: HoursWorkedFilters | None = None,
        page: int = 1,
        page_size: int | None = None,
    ) -> Page:
        filters = filters or HoursWorkedFilters()
        return await self._run(
            EntityKind.HOURS_WORKED, owner, filters.predicates(), HOURS_SORT, page, page_size
        )

    async def get_hours_worked(self, hours_worked_id: UUID) -> Row:
        row = await self.store.get(EntityKind.HOURS_WORKED, hours_worked_id)
        if row is None:
            raise NotFound.for_record(EntityKind.HOURS_WORKED, hours_worked_id)
        return row

    async def selectable_hours(
        self, owner: UUID, invoice_id: UUID | None = None
    ) -> list[Row]:
        """Hours an invoice form may offer: unbilled ones plus those already on ``invoice_id``."""
        unbilled = await self.store.query(
            EntityKind.HOURS_WORKED,
            [Eq("user_id", owner), IsAbsent("invoice_id")],
            HOURS_SORT,
        )
        rows = list(unbilled.rows)
        if invoice_id is not None:
            linked = await self.store.query(
                EntityKind.HOURS_WORKED,
                [Eq("user_id", owner), Eq("invoice_id", invoice_id)],
                HOURS_SORT,
            )
            rows.extend(linked.rows)
            rows.sort(key=lambda r: (r["date_worked"], r["created_at"]), reverse=True)
        return rows

    # ------------------------------------------------------------------
    # Invoices
    # ------------------------------------------------------------------

    async def list_invoices(
        self,
        owner: UUID | OwnerScope,
        filters: InvoiceFilters | None = None,
        page: int = 1,
        page_size: int | None = None,
        include_hours: bool = True,
    ) -> Page:
        filters = filters or InvoiceFilters()
        result = await self._run(
            EntityKind.INVOICE, owner, filters.predicates(), INVOICE_SORT, page, page_size
        )
        if include_hours:
            for invoice in result.items:
                invoice["hours_worked"] = await self.linked_hours(invoice["invoice_id"])
        return result

    async def get_invoice(self, invoice_id: UUID, include_hours: bool = True) -> Row:
        row = await self.store.get(EntityKind.INVOICE, invoice_id)
        if row is None:
            raise NotFound.for_record(EntityKind.INVOICE, invoice_id)
        if include_hours:
            row["hours_worked"] = await self.linked_hours(invoice_id)
        return row

    async def linked_hours(self, invoice_id: UUID) -> list[Row]:
        result = await self.store.query(
            EntityKind.HOURS_WORKED, [Eq("invoice_id", invoice_id)], HOURS_SORT
        )
        return result.rows

    # ------------------------------------------------------------------
    # Users and customers
    # ------------------------------------------------------------------

    async def list_users(
        self,
        filters: UserFilters | None = None,
        page: int = 1,
        page_size: int | None = None,
    ) -> Page:
        filters = filters or UserFilters()
        return await self._run(
            EntityKind.USER, ALL_OWNERS, filters.predicates(), USER_SORT, page, page_size
        )

    async def search_customers(self, text: str, limit: int = 10) -> list[Row]:
        """Customers whose name contains ``text``, for autocomplete."""
        predicates: list[Predicate] = []
        if text.strip():
            predicates.append(Contains("full_name", text.strip()))
        result = await self.store.query(
            EntityKind.CUSTOMER,
            predicates,
            (Sort("full_name", descending=False),),
            page=1,
            page_size=limit,
        )
        return result.rows

    # ------------------------------------------------------------------
    # Field reports
    # ------------------------------------------------------------------

    async def list_reports(
        self,
        owner: UUID | OwnerScope,
        filters: ReportFilters | None = None,
        page: int = 1,
        page_size: int | None = None,
    ) -> Page:
        filters = filters or ReportFilters()
        return await self._run(
            EntityKind.REPORT, owner, filters.predicates(), REPORT_SORT, page, page_size
        )

    # ------------------------------------------------------------------
    # Live views
    # ------------------------------------------------------------------

    def live_hours_worked(
        self,
        owner: UUID | OwnerScope,
        filters: HoursWorkedFilters | None = None,
        page: int = 1,
        page_size: int | None = None,
        on_update: PageCallback | None = None,
    ) -> LiveQuery:
        return LiveQuery(
            self.store,
            [EntityKind.HOURS_WORKED],
            lambda: self.list_hours_worked(owner, filters, page, page_size),
            scope=owner,
            on_update=on_update,
        )

    def live_invoices(
        self,
        owner: UUID | OwnerScope,
        filters: InvoiceFilters | None = None,
        page: int = 1,
        page_size: int | None = None,
        on_update: PageCallback | None = None,
    ) -> LiveQuery:
        # Linked hours feed the embedded rows, so watch both kinds
        return LiveQuery(
            self.store,
            [EntityKind.INVOICE, EntityKind.HOURS_WORKED],
            lambda: self.list_invoices(owner, filters, page, page_size),
            scope=owner,
            on_update=on_update,
        )

    def live_reports(
        self,
        owner: UUID | OwnerScope,
        filters: ReportFilters | None = None,
        page: int = 1,
        page_size: int | None = None,
        on_update: PageCallback | None = None,
    ) -> LiveQuery:
        return LiveQuery(
            self.store,
            [EntityKind.REPORT],
            lambda: self.list_reports(owner, filters, page, page_size),
            scope=owner,
            on_update=on_update,
        )
