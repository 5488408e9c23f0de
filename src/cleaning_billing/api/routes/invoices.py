"""Invoice API endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, Response, status

from cleaning_billing.api.dependencies import CurrentActor, Engine, Queries
from cleaning_billing.api.schemas import (
    ErrorResponse,
    HoursWorkedResponse,
    InvoiceCreate,
    InvoiceListResponse,
    InvoiceResponse,
    InvoiceStatusUpdate,
    InvoiceUpdate,
    page_meta,
)
from cleaning_billing.errors import ValidationFailure
from cleaning_billing.queries import InvoiceFilters
from cleaning_billing.store.filters import UNSET

router = APIRouter(prefix="/invoices", tags=["invoices"])


async def _invoice_response(queries: Queries, invoice_id: UUID) -> InvoiceResponse:
    row = await queries.get_invoice(invoice_id)
    return InvoiceResponse.model_validate(row)


# ============================================================================
# Reads
# ============================================================================


@router.get(
    "",
    response_model=InvoiceListResponse,
    responses={403: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def list_invoices(
    actor: CurrentActor,
    queries: Queries,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int | None, Query(ge=1)] = None,
    user_id: UUID | None = None,
    invoice_number: str | None = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    date_off: date | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> InvoiceListResponse:
    """List invoices with their linked hours, most recent issue date first."""
    filters = InvoiceFilters(
        invoice_number=invoice_number or UNSET,
        status=status_filter or UNSET,
        date_off=date_off or UNSET,
        date_from=date_from or UNSET,
        date_to=date_to or UNSET,
    )
    result = await queries.list_invoices(actor.scope_for(user_id), filters, page, page_size)
    return InvoiceListResponse(
        items=[InvoiceResponse.model_validate(row) for row in result.items],
        **page_meta(result),
    )


@router.get(
    "/selectable-hours",
    response_model=list[HoursWorkedResponse],
    responses={403: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def selectable_hours(
    actor: CurrentActor,
    queries: Queries,
    user_id: UUID | None = None,
    invoice_id: UUID | None = None,
) -> list[HoursWorkedResponse]:
    """Hours an invoice form can offer: unbilled ones plus those on ``invoice_id``."""
    owner = actor.scope_for(user_id)
    if not isinstance(owner, UUID):
        raise ValidationFailure("Choose whose hours to invoice", ["user_id"])
    rows = await queries.selectable_hours(owner, invoice_id)
    return [HoursWorkedResponse.model_validate(row) for row in rows]


@router.get(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_invoice(
    actor: CurrentActor,
    queries: Queries,
    invoice_id: Annotated[UUID, Path()],
) -> InvoiceResponse:
    row = await queries.get_invoice(invoice_id)
    actor.ensure_can_act_for(row["user_id"])
    return InvoiceResponse.model_validate(row)


# ============================================================================
# Writes
# ============================================================================


@router.post(
    "",
    response_model=InvoiceResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        403: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def create_invoice(
    actor: CurrentActor,
    engine: Engine,
    queries: Queries,
    payload: InvoiceCreate,
) -> InvoiceResponse:
    """Raise an invoice over the selected hours.

    The issue date and total are computed; the status starts at ``created``.
    """
    fields = payload.model_dump(exclude_none=True, exclude={"hour_ids"})
    row = await engine.create_invoice(actor, fields, payload.hour_ids)
    return await _invoice_response(queries, row["invoice_id"])


@router.patch(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def update_invoice(
    actor: CurrentActor,
    engine: Engine,
    queries: Queries,
    invoice_id: Annotated[UUID, Path()],
    payload: InvoiceUpdate,
) -> InvoiceResponse:
    """Edit an invoice. ``hour_ids``, when sent, replaces the linked set."""
    changes = payload.model_dump(exclude_unset=True, exclude={"hour_ids"})
    hour_ids = payload.hour_ids if "hour_ids" in payload.model_fields_set else None
    await engine.edit_invoice(actor, invoice_id, hour_ids, changes)
    return await _invoice_response(queries, invoice_id)


@router.post(
    "/{invoice_id}/status",
    response_model=InvoiceResponse,
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def change_invoice_status(
    actor: CurrentActor,
    engine: Engine,
    queries: Queries,
    invoice_id: Annotated[UUID, Path()],
    payload: InvoiceStatusUpdate,
) -> InvoiceResponse:
    await engine.transition_status(actor, invoice_id, payload.status.value)
    return await _invoice_response(queries, invoice_id)


@router.post(
    "/{invoice_id}/recompute",
    response_model=InvoiceResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def recompute_invoice_total(
    actor: CurrentActor,
    engine: Engine,
    queries: Queries,
    invoice_id: Annotated[UUID, Path()],
) -> InvoiceResponse:
    """Re-sum the linked hours, e.g. after a partly applied batch."""
    invoice = await queries.get_invoice(invoice_id, include_hours=False)
    actor.ensure_can_act_for(invoice["user_id"])
    await engine.recompute_total(invoice_id)
    return await _invoice_response(queries, invoice_id)


@router.delete(
    "/{invoice_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def delete_invoice(
    actor: CurrentActor,
    engine: Engine,
    invoice_id: Annotated[UUID, Path()],
) -> Response:
    """Delete an invoice, releasing its hours back to unbilled."""
    await engine.delete_invoice(actor, invoice_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
