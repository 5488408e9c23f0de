"""Typed filter sets for list views.

Each field defaults to ``UNSET`` (no constraint). Empty strings coming from
cleared form fields are treated the same as ``UNSET``. A request for
"unbilled only" is spelled ``invoice_id=Presence.ABSENT`` and is never
confused with leaving the field out.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any
from uuid import UUID

from cleaning_billing.errors import ValidationFailure
from cleaning_billing.store.filters import (
    UNSET,
    Between,
    Contains,
    Eq,
    IsAbsent,
    IsPresent,
    Predicate,
    Unset,
)

# Canonical UUID (versions 1-5, RFC 4122 variant)
IDENTIFIER_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


class OwnerScope:
    """Scope covering every owner (administrator views)."""

    _instance: OwnerScope | None = None

    def __new__(cls) -> OwnerScope:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ALL_OWNERS"


ALL_OWNERS = OwnerScope()


class Presence(Enum):
    """Whether a nullable reference must be set or unset."""

    ABSENT = "absent"
    PRESENT = "present"


def looks_like_identifier(value: str) -> bool:
    """True if ``value`` has the shape of a record identifier."""
    return bool(IDENTIFIER_PATTERN.match(value.strip()))


def _given(value: Any) -> bool:
    if isinstance(value, Unset):
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


class CustomerFilterMode(str, Enum):
    ID = "id"
    TEXT = "text"


@dataclass(frozen=True)
class CustomerFilter:
    """Customer filter value, either an exact id or free text.

    ``infer`` reproduces the dual-purpose form field: an identifier-shaped
    string is an exact match, anything else a partial name match. Callers
    that know which one they hold should use ``by_id``/``by_text``.
    """

    mode: CustomerFilterMode
    value: str

    @classmethod
    def by_id(cls, customer_id: UUID | str) -> CustomerFilter:
        return cls(CustomerFilterMode.ID, str(UUID(str(customer_id))))

    @classmethod
    def by_text(cls, text: str) -> CustomerFilter:
        return cls(CustomerFilterMode.TEXT, text.strip())

    @classmethod
    def infer(cls, value: str | UUID) -> CustomerFilter:
        if isinstance(value, UUID) or looks_like_identifier(value):
            return cls.by_id(value)
        return cls.by_text(value)

    def to_predicate(self) -> Predicate:
        if self.mode == CustomerFilterMode.ID:
            return Eq("customer_id", UUID(self.value))
        return Contains("customer_name", self.value)


def _customer_predicate(value: CustomerFilter | str | UUID) -> Predicate:
    if not isinstance(value, CustomerFilter):
        value = CustomerFilter.infer(value)
    return value.to_predicate()


def _date_range(field: str, low: Any, high: Any) -> list[Predicate]:
    low = low if _given(low) else None
    high = high if _given(high) else None
    if low is None and high is None:
        return []
    if low is not None and high is not None and low > high:
        raise ValidationFailure(
            f"{field} range is empty: start is after end", ["date_from", "date_to"]
        )
    return [Between(field, low, high)]


def _reference(field: str, value: Any) -> list[Predicate]:
    if not _given(value):
        return []
    if value is Presence.ABSENT:
        return [IsAbsent(field)]
    if value is Presence.PRESENT:
        return [IsPresent(field)]
    return [Eq(field, value)]


@dataclass(frozen=True)
class HoursWorkedFilters:
    """Filters for the hours-worked list."""

    date_worked: date | Unset = UNSET
    date_from: date | Unset = UNSET
    date_to: date | Unset = UNSET
    customer: CustomerFilter | str | UUID | Unset = UNSET
    type_work: str | Unset = UNSET
    description: str | Unset = UNSET
    invoice_id: UUID | Presence | Unset = UNSET

    def predicates(self) -> list[Predicate]:
        predicates: list[Predicate] = []
        if _given(self.date_worked):
            predicates.append(Eq("date_worked", self.date_worked))
        predicates.extend(_date_range("date_worked", self.date_from, self.date_to))
        if _given(self.customer):
            predicates.append(_customer_predicate(self.customer))  # type: ignore[arg-type]
        if _given(self.type_work):
            predicates.append(Eq("type_work", self.type_work))
        if _given(self.description):
            predicates.append(Contains("description", self.description))  # type: ignore[arg-type]
        predicates.extend(_reference("invoice_id", self.invoice_id))
        return predicates


@dataclass(frozen=True)
class InvoiceFilters:
    """Filters for the invoice list."""

    invoice_number: str | Unset = UNSET
    status: str | Unset = UNSET
    date_off: date | Unset = UNSET
    date_from: date | Unset = UNSET
    date_to: date | Unset = UNSET

    def predicates(self) -> list[Predicate]:
        predicates: list[Predicate] = []
        if _given(self.invoice_number):
            predicates.append(Eq("invoice_number", self.invoice_number))
        if _given(self.status):
            predicates.append(Eq("status", self.status))
        if _given(self.date_off):
            predicates.append(Eq("date_off", self.date_off))
        predicates.extend(_date_range("date_off", self.date_from, self.date_to))
        return predicates


@dataclass(frozen=True)
class UserFilters:
    """Filters for the user list. Soft-deleted users are hidden by default."""

    full_name: str | Unset = UNSET
    email: str | Unset = UNSET
    role: str | Unset = UNSET
    active: bool | Unset = UNSET
    include_deleted: bool = False

    def predicates(self) -> list[Predicate]:
        predicates: list[Predicate] = []
        if not self.include_deleted:
            predicates.append(IsAbsent("deleted_at"))
        if _given(self.full_name):
            predicates.append(Contains("full_name", self.full_name))  # type: ignore[arg-type]
        if _given(self.email):
            predicates.append(Contains("email", self.email))  # type: ignore[arg-type]
        if _given(self.role):
            predicates.append(Eq("role", self.role))
        if _given(self.active):
            predicates.append(Eq("active", self.active))
        return predicates


@dataclass(frozen=True)
class ReportFilters:
    """Filters for the field report list."""

    report_date: date | Unset = UNSET
    date_from: date | Unset = UNSET
    date_to: date | Unset = UNSET
    customer: CustomerFilter | str | UUID | Unset = UNSET

    def predicates(self) -> list[Predicate]:
        predicates: list[Predicate] = []
        if _given(self.report_date):
            predicates.append(Eq("report_date", self.report_date))
        predicates.extend(_date_range("report_date", self.date_from, self.date_to))
        if _given(self.customer):
            predicates.append(_customer_predicate(self.customer))  # type: ignore[arg-type]
        return predicates
