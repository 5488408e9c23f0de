"""User and customer models."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from cleaning_billing.models.base import Base, TimestampMixin, UpdatedAtMixin


class User(Base, TimestampMixin, UpdatedAtMixin):
    """Application user (administrator or employee)."""

    __tablename__ = "app_user"

    user_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    full_name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    role: Mapped[str] = mapped_column(String, nullable=False, default="employee")
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        CheckConstraint(
            "role IN ('administrator', 'employee')",
            name="app_user_role_check",
        ),
    )


class Customer(Base, TimestampMixin):
    """Customer receiving cleaning services."""

    __tablename__ = "customer"

    customer_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    full_name: Mapped[str] = mapped_column(String, nullable=False)
