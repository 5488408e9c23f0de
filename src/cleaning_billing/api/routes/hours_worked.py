"""Hours worked API endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, Response, status

from cleaning_billing.api.dependencies import CurrentActor, Hours, Queries
from cleaning_billing.api.schemas import (
    ErrorResponse,
    HoursWorkedCreate,
    HoursWorkedListResponse,
    HoursWorkedResponse,
    HoursWorkedUpdate,
    page_meta,
)
from cleaning_billing.errors import ValidationFailure
from cleaning_billing.queries import CustomerFilter, HoursWorkedFilters, Presence
from cleaning_billing.store.filters import UNSET

router = APIRouter(prefix="/hours-worked", tags=["hours-worked"])


def parse_invoice_filter(value: str | None):
    """``unbilled``, ``billed`` or an invoice id; ``None`` means no constraint."""
    if value is None or not value.strip():
        return UNSET
    if value == "unbilled":
        return Presence.ABSENT
    if value == "billed":
        return Presence.PRESENT
    try:
        return UUID(value)
    except ValueError:
        raise ValidationFailure(
            "invoice must be 'unbilled', 'billed' or an invoice id", ["invoice"]
        ) from None


@router.get(
    "",
    response_model=HoursWorkedListResponse,
    responses={403: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def list_hours_worked(
    actor: CurrentActor,
    queries: Queries,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int | None, Query(ge=1)] = None,
    user_id: UUID | None = None,
    date_worked: date | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    customer: str | None = None,
    customer_id: UUID | None = None,
    type_work: str | None = None,
    description: str | None = None,
    invoice: str | None = None,
) -> HoursWorkedListResponse:
    """List hours worked, newest first.

    ``customer`` matches an id exactly or a name partially; ``customer_id``
    is always an exact match.
    """
    customer_filter = UNSET
    if customer_id is not None:
        customer_filter = CustomerFilter.by_id(customer_id)
    elif customer:
        customer_filter = CustomerFilter.infer(customer)

    filters = HoursWorkedFilters(
        date_worked=date_worked or UNSET,
        date_from=date_from or UNSET,
        date_to=date_to or UNSET,
        customer=customer_filter,
        type_work=type_work or UNSET,
        description=description or UNSET,
        invoice_id=parse_invoice_filter(invoice),
    )
    result = await queries.list_hours_worked(
        actor.scope_for(user_id), filters, page, page_size
    )
    return HoursWorkedListResponse(
        items=[HoursWorkedResponse.model_validate(row) for row in result.items],
        **page_meta(result),
    )


@router.post(
    "",
    response_model=HoursWorkedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={403: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def create_hours_worked(
    actor: CurrentActor,
    hours: Hours,
    payload: HoursWorkedCreate,
) -> HoursWorkedResponse:
    """Log hours worked. New records are never linked to an invoice."""
    row = await hours.create(actor, payload.model_dump(exclude_none=True))
    return HoursWorkedResponse.model_validate(row)


@router.get(
    "/{hours_worked_id}",
    response_model=HoursWorkedResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_hours_worked(
    actor: CurrentActor,
    hours: Hours,
    hours_worked_id: Annotated[UUID, Path()],
) -> HoursWorkedResponse:
    row = await hours.get(actor, hours_worked_id)
    return HoursWorkedResponse.model_validate(row)


@router.patch(
    "/{hours_worked_id}",
    response_model=HoursWorkedResponse,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def update_hours_worked(
    actor: CurrentActor,
    hours: Hours,
    hours_worked_id: Annotated[UUID, Path()],
    payload: HoursWorkedUpdate,
) -> HoursWorkedResponse:
    """Edit hours. Hours, rate and owner are locked while on an invoice."""
    row = await hours.update(
        actor, hours_worked_id, payload.model_dump(exclude_unset=True)
    )
    return HoursWorkedResponse.model_validate(row)


@router.delete(
    "/{hours_worked_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def delete_hours_worked(
    actor: CurrentActor,
    hours: Hours,
    hours_worked_id: Annotated[UUID, Path()],
) -> Response:
    """Delete hours that are not on any invoice."""
    await hours.delete(actor, hours_worked_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
