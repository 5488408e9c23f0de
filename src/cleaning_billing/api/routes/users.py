"""User administration endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query

from cleaning_billing.api.dependencies import CurrentActor, Queries, Users
from cleaning_billing.api.schemas import (
    ErrorResponse,
    UserActiveUpdate,
    UserListResponse,
    UserResponse,
    page_meta,
)
from cleaning_billing.queries import UserFilters
from cleaning_billing.store.filters import UNSET

router = APIRouter(prefix="/users", tags=["users"])


@router.get(
    "",
    response_model=UserListResponse,
    responses={403: {"model": ErrorResponse}},
)
async def list_users(
    actor: CurrentActor,
    queries: Queries,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int | None, Query(ge=1)] = None,
    full_name: str | None = None,
    email: str | None = None,
    role: str | None = None,
    active: bool | None = None,
    include_deleted: bool = False,
) -> UserListResponse:
    """List user accounts. Soft-deleted users are hidden unless asked for."""
    actor.ensure_admin()
    filters = UserFilters(
        full_name=full_name or UNSET,
        email=email or UNSET,
        role=role or UNSET,
        active=UNSET if active is None else active,
        include_deleted=include_deleted,
    )
    result = await queries.list_users(filters, page, page_size)
    return UserListResponse(
        items=[UserResponse.model_validate(row) for row in result.items],
        **page_meta(result),
    )


@router.patch(
    "/{user_id}/active",
    response_model=UserResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def set_user_active(
    actor: CurrentActor,
    users: Users,
    user_id: Annotated[UUID, Path()],
    payload: UserActiveUpdate,
) -> UserResponse:
    row = await users.set_active(actor, user_id, payload.active)
    return UserResponse.model_validate(row)


@router.delete(
    "/{user_id}",
    response_model=UserResponse,
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def delete_user(
    actor: CurrentActor,
    users: Users,
    user_id: Annotated[UUID, Path()],
) -> UserResponse:
    """Soft-delete a user. Their hours and invoices are kept."""
    row = await users.soft_delete(actor, user_id)
    return UserResponse.model_validate(row)
