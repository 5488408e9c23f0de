"""Query, filter and paginate layer."""

from cleaning_billing.queries.filters import (
    ALL_OWNERS,
    CustomerFilter,
    CustomerFilterMode,
    HoursWorkedFilters,
    InvoiceFilters,
    OwnerScope,
    Presence,
    ReportFilters,
    UserFilters,
    looks_like_identifier,
)
from cleaning_billing.queries.live import LiveQuery
from cleaning_billing.queries.pagination import Page, validate_paging
from cleaning_billing.queries.query_service import QueryService

__all__ = [
    "ALL_OWNERS",
    "CustomerFilter",
    "CustomerFilterMode",
    "HoursWorkedFilters",
    "InvoiceFilters",
    "OwnerScope",
    "Presence",
    "ReportFilters",
    "UserFilters",
    "looks_like_identifier",
    "LiveQuery",
    "Page",
    "validate_paging",
    "QueryService",
]
