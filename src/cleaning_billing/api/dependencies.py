"""FastAPI dependencies for dependency injection."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request, status

from cleaning_billing.config import get_settings
from cleaning_billing.queries import QueryService
from cleaning_billing.services import (
    Actor,
    AssociationEngine,
    HoursService,
    ReportService,
    Role,
    UserService,
)
from cleaning_billing.store import RecordStore


def get_store(request: Request) -> RecordStore:
    """Record store created at startup."""
    return request.app.state.store


async def get_actor(
    x_user_id: Annotated[str | None, Header()] = None,
    x_user_role: Annotated[str | None, Header()] = None,
    x_user_active: Annotated[str | None, Header()] = None,
) -> Actor:
    """Build the acting user from identity headers set by the auth proxy."""
    if not x_user_id or not x_user_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-User-ID and X-User-Role headers are required",
        )
    try:
        user_id = UUID(x_user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid X-User-ID format",
        )
    try:
        role = Role(x_user_role)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid X-User-Role",
        )
    active = (x_user_active or "true").lower() != "false"
    return Actor(user_id=user_id, role=role, active=active)


StoreDep = Annotated[RecordStore, Depends(get_store)]
CurrentActor = Annotated[Actor, Depends(get_actor)]


def get_engine(store: StoreDep) -> AssociationEngine:
    return AssociationEngine(store)


def get_queries(store: StoreDep) -> QueryService:
    settings = get_settings()
    return QueryService(
        store,
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
    )


def get_hours_service(store: StoreDep) -> HoursService:
    return HoursService(store)


def get_report_service(store: StoreDep) -> ReportService:
    return ReportService(store)


def get_user_service(store: StoreDep) -> UserService:
    return UserService(store)


# Type aliases for cleaner dependency injection
Engine = Annotated[AssociationEngine, Depends(get_engine)]
Queries = Annotated[QueryService, Depends(get_queries)]
Hours = Annotated[HoursService, Depends(get_hours_service)]
Reports = Annotated[ReportService, Depends(get_report_service)]
Users = Annotated[UserService, Depends(get_user_service)]
