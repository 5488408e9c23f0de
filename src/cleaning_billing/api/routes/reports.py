"""Field report API endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, Response, status

from cleaning_billing.api.dependencies import CurrentActor, Queries, Reports
from cleaning_billing.api.schemas import (
    ErrorResponse,
    ReportCreate,
    ReportListResponse,
    ReportResponse,
    ReportUpdate,
    page_meta,
)
from cleaning_billing.queries import CustomerFilter, ReportFilters
from cleaning_billing.store.filters import UNSET

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get(
    "",
    response_model=ReportListResponse,
    responses={403: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def list_reports(
    actor: CurrentActor,
    queries: Queries,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int | None, Query(ge=1)] = None,
    user_id: UUID | None = None,
    report_date: date | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    customer: str | None = None,
) -> ReportListResponse:
    filters = ReportFilters(
        report_date=report_date or UNSET,
        date_from=date_from or UNSET,
        date_to=date_to or UNSET,
        customer=CustomerFilter.infer(customer) if customer else UNSET,
    )
    result = await queries.list_reports(actor.scope_for(user_id), filters, page, page_size)
    return ReportListResponse(
        items=[ReportResponse.model_validate(row) for row in result.items],
        **page_meta(result),
    )


@router.post(
    "",
    response_model=ReportResponse,
    status_code=status.HTTP_201_CREATED,
    responses={403: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def create_report(
    actor: CurrentActor,
    reports: Reports,
    payload: ReportCreate,
) -> ReportResponse:
    row = await reports.create(actor, payload.model_dump(exclude_none=True))
    return ReportResponse.model_validate(row)


@router.get(
    "/{report_id}",
    response_model=ReportResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_report(
    actor: CurrentActor,
    reports: Reports,
    report_id: Annotated[UUID, Path()],
) -> ReportResponse:
    row = await reports.get(actor, report_id)
    return ReportResponse.model_validate(row)


@router.patch(
    "/{report_id}",
    response_model=ReportResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def update_report(
    actor: CurrentActor,
    reports: Reports,
    report_id: Annotated[UUID, Path()],
    payload: ReportUpdate,
) -> ReportResponse:
    row = await reports.update(actor, report_id, payload.model_dump(exclude_unset=True))
    return ReportResponse.model_validate(row)


@router.delete(
    "/{report_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_report(
    actor: CurrentActor,
    reports: Reports,
    report_id: Annotated[UUID, Path()],
) -> Response:
    await reports.delete(actor, report_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
