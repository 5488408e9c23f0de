"""ORM models."""

from cleaning_billing.models.base import Base, EntityKind, TimestampMixin, UpdatedAtMixin
from cleaning_billing.models.billing import HoursWorked, Invoice, Report
from cleaning_billing.models.user import Customer, User

MODEL_FOR_KIND: dict[EntityKind, type[Base]] = {
    EntityKind.HOURS_WORKED: HoursWorked,
    EntityKind.INVOICE: Invoice,
    EntityKind.USER: User,
    EntityKind.CUSTOMER: Customer,
    EntityKind.REPORT: Report,
}

__all__ = [
    "Base",
    "EntityKind",
    "TimestampMixin",
    "UpdatedAtMixin",
    "HoursWorked",
    "Invoice",
    "Report",
    "Customer",
    "User",
    "MODEL_FOR_KIND",
]
