"""Pydantic schemas for API request/response models."""

from datetime import date, datetime, time
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from cleaning_billing.calculators import present
from cleaning_billing.queries import Page
from cleaning_billing.services import InvoiceStatus, WorkType


class ErrorResponse(BaseModel):
    """Error body returned for every handled failure."""

    detail: str
    code: str
    fields: list[str] = Field(default_factory=list)


class ListMeta(BaseModel):
    """Paging fields shared by list responses."""

    total: int
    page: int
    page_size: int
    page_count: int


def page_meta(page: Page) -> dict:
    """List metadata for a query page."""
    return {
        "total": page.total_count,
        "page": page.page,
        "page_size": page.page_size,
        "page_count": page.page_count,
    }


# ============================================================================
# Hours worked
# ============================================================================


class HoursWorkedCreate(BaseModel):
    """Schema for logging hours."""

    date_worked: date
    customer_id: UUID
    type_work: WorkType
    type_work_other: str | None = None
    hours: Decimal = Field(ge=0)
    rate_hour: Decimal = Field(ge=0)
    description: str = ""
    user_id: UUID | None = None


class HoursWorkedUpdate(BaseModel):
    """Schema for editing hours. Only sent fields are changed."""

    date_worked: date | None = None
    customer_id: UUID | None = None
    type_work: WorkType | None = None
    type_work_other: str | None = None
    hours: Decimal | None = Field(default=None, ge=0)
    rate_hour: Decimal | None = Field(default=None, ge=0)
    description: str | None = None
    user_id: UUID | None = None


class HoursWorkedResponse(BaseModel):
    """Schema for an hours-worked row."""

    model_config = ConfigDict(from_attributes=True)

    hours_worked_id: UUID
    date_worked: date
    user_id: UUID
    customer_id: UUID
    customer_name: str = ""
    type_work: str
    type_work_other: str | None = None
    rate_hour: Decimal
    hours: Decimal
    description: str
    invoice_id: UUID | None = None
    created_at: datetime


class HoursWorkedListResponse(ListMeta):
    items: list[HoursWorkedResponse]


# ============================================================================
# Invoices
# ============================================================================


class InvoiceFields(BaseModel):
    """Editable invoice fields."""

    account_name: str | None = None
    account_number: str | None = None
    bsb: str | None = None
    bank: str | None = None
    abn: str | None = None
    mobile_number: str | None = None
    address: str | None = None


class InvoiceCreate(InvoiceFields):
    """Schema for raising an invoice from selected hours."""

    hour_ids: list[UUID]
    invoice_number: str | None = None
    user_id: UUID | None = None


class InvoiceUpdate(InvoiceFields):
    """Schema for editing an invoice.

    ``hour_ids`` is the complete desired linked set; omit it to keep the
    current one.
    """

    hour_ids: list[UUID] | None = None
    status: InvoiceStatus | None = None
    user_id: UUID | None = None


class InvoiceStatusUpdate(BaseModel):
    status: InvoiceStatus


class InvoiceResponse(BaseModel):
    """Schema for an invoice with its linked hours."""

    model_config = ConfigDict(from_attributes=True)

    invoice_id: UUID
    invoice_number: str
    user_id: UUID
    account_name: str
    account_number: str
    bsb: str
    bank: str | None = None
    abn: str
    mobile_number: str
    address: str
    status: str
    date_off: date
    total: Decimal
    created_at: datetime
    updated_at: datetime
    hours_worked: list[HoursWorkedResponse] = Field(default_factory=list)

    @field_serializer("total")
    def serialize_total(self, total: Decimal) -> str:
        return str(present(total))


class InvoiceListResponse(ListMeta):
    items: list[InvoiceResponse]


# ============================================================================
# Users, customers, reports
# ============================================================================


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    full_name: str
    email: str
    role: str
    active: bool
    deleted_at: datetime | None = None
    created_at: datetime


class UserListResponse(ListMeta):
    items: list[UserResponse]


class UserActiveUpdate(BaseModel):
    active: bool


class CustomerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    customer_id: UUID
    full_name: str


class ReportCreate(BaseModel):
    report_date: date
    report_time: time | None = None
    customer_id: UUID
    description: str
    user_id: UUID | None = None


class ReportUpdate(BaseModel):
    report_date: date | None = None
    report_time: time | None = None
    customer_id: UUID | None = None
    description: str | None = None


class ReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    report_id: UUID
    report_date: date
    report_time: time | None = None
    user_id: UUID
    customer_id: UUID
    customer_name: str = ""
    description: str
    created_at: datetime


class ReportListResponse(ListMeta):
    items: list[ReportResponse]
