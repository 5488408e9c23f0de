"""Hours worked, invoice and field report models."""

from __future__ import annotations

from datetime import date, time
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Date, ForeignKey, Numeric, String, Time
from sqlalchemy.orm import Mapped, mapped_column

from cleaning_billing.models.base import Base, TimestampMixin, UpdatedAtMixin


class Invoice(Base, TimestampMixin, UpdatedAtMixin):
    """Billing document aggregating linked hours worked.

    ``total`` is derived from the linked hours and is written only by the
    association engine's recompute step.
    """

    __tablename__ = "invoice"

    invoice_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    invoice_number: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("app_user.user_id", ondelete="RESTRICT"),
        nullable=False,
    )

    # Payee banking details
    account_name: Mapped[str] = mapped_column(String, nullable=False)
    account_number: Mapped[str] = mapped_column(String, nullable=False)
    bsb: Mapped[str] = mapped_column(String, nullable=False)
    bank: Mapped[str | None] = mapped_column(String, nullable=True)
    abn: Mapped[str] = mapped_column(String, nullable=False)

    # Contact
    mobile_number: Mapped[str] = mapped_column(String, nullable=False)
    address: Mapped[str] = mapped_column(String, nullable=False)

    status: Mapped[str] = mapped_column(String, nullable=False, default="created")
    date_off: Mapped[date] = mapped_column(Date, nullable=False)
    total: Mapped[Decimal] = mapped_column(
        Numeric(14, 4), nullable=False, default=Decimal("0")
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('created', 'sent', 'in_review', 'paid')",
            name="invoice_status_check",
        ),
        CheckConstraint("total >= 0", name="invoice_total_non_negative"),
    )


class HoursWorked(Base, TimestampMixin):
    """One unit of billable labor for a customer on a date."""

    __tablename__ = "hours_worked"

    hours_worked_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    date_worked: Mapped[date] = mapped_column(Date, nullable=False)
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("app_user.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    customer_id: Mapped[UUID] = mapped_column(
        ForeignKey("customer.customer_id", ondelete="RESTRICT"),
        nullable=False,
    )
    type_work: Mapped[str] = mapped_column(String, nullable=False)
    type_work_other: Mapped[str | None] = mapped_column(String, nullable=True)
    rate_hour: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    hours: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    description: Mapped[str] = mapped_column(String, nullable=False, default="")

    # Set only through the association engine
    invoice_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("invoice.invoice_id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    __table_args__ = (
        CheckConstraint(
            "type_work IN ('domestic', 'commercial', 'training', 'other')",
            name="hours_worked_type_work_check",
        ),
        CheckConstraint("hours >= 0", name="hours_worked_hours_non_negative"),
        CheckConstraint("rate_hour >= 0", name="hours_worked_rate_non_negative"),
    )


class Report(Base, TimestampMixin):
    """Field report filed by an employee after a visit."""

    __tablename__ = "report"

    report_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    report_date: Mapped[date] = mapped_column(Date, nullable=False)
    report_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("app_user.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    customer_id: Mapped[UUID] = mapped_column(
        ForeignKey("customer.customer_id", ondelete="RESTRICT"),
        nullable=False,
    )
    description: Mapped[str] = mapped_column(String, nullable=False, default="")
