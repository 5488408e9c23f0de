"""Pytest fixtures for billing tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from cleaning_billing.database import make_session_factory
from cleaning_billing.errors import StoreUnavailable
from cleaning_billing.events import ChangeFeed
from cleaning_billing.models import Base, EntityKind
from cleaning_billing.queries import QueryService
from cleaning_billing.services import Actor, AssociationEngine, HoursService, Role
from cleaning_billing.store import Row, SqlAlchemyRecordStore

# One in-memory database shared by every session of a test
TEST_DATABASE_URL = "sqlite+aiosqlite://"

# Days 1-15 issue on the 15th
TODAY = date(2024, 3, 10)

INVOICE_FIELDS = {
    "account_name": "Ana Perez",
    "account_number": "12345678",
    "bsb": "062-000",
    "bank": "CBA",
    "abn": "51 824 753 556",
    "mobile_number": "0400 000 000",
    "address": "1 George St, Sydney",
}


class FlakyStore(SqlAlchemyRecordStore):
    """Record store whose updates fail for chosen record ids."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.fail_updates_for: set[UUID] = set()
        self.fail_deletes = False

    async def update(self, kind, record_id, fields):
        if record_id in self.fail_updates_for:
            raise StoreUnavailable(f"Could not update {kind.value} {record_id}")
        return await super().update(kind, record_id, fields)

    async def delete(self, kind, record_id):
        if self.fail_deletes:
            raise StoreUnavailable(f"Could not delete {kind.value} {record_id}")
        return await super().delete(kind, record_id)


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return make_session_factory(db_engine)


@pytest.fixture
def feed() -> ChangeFeed:
    return ChangeFeed()


@pytest.fixture
def store(session_factory, feed) -> FlakyStore:
    """Record store with failure injection switched off."""
    return FlakyStore(session_factory, feed)


@pytest.fixture
def association(store) -> AssociationEngine:
    return AssociationEngine(store, today=lambda: TODAY)


@pytest.fixture
def hours_service(store, association) -> HoursService:
    return HoursService(store, association)


@pytest.fixture
def queries(store) -> QueryService:
    return QueryService(store, default_page_size=10, max_page_size=100)


# ----------------------------------------------------------------------------
# Seed data
# ----------------------------------------------------------------------------


@pytest.fixture
async def admin_user(store) -> Row:
    return await store.insert(
        EntityKind.USER,
        {"full_name": "Office Admin", "email": "admin@example.com", "role": "administrator"},
    )


@pytest.fixture
async def employee_user(store) -> Row:
    return await store.insert(
        EntityKind.USER,
        {"full_name": "Ana Perez", "email": "ana@example.com", "role": "employee"},
    )


@pytest.fixture
async def other_employee_user(store) -> Row:
    return await store.insert(
        EntityKind.USER,
        {"full_name": "Ben Carter", "email": "ben@example.com", "role": "employee"},
    )


@pytest.fixture
def admin(admin_user) -> Actor:
    return Actor(user_id=admin_user["user_id"], role=Role.ADMINISTRATOR)


@pytest.fixture
def employee(employee_user) -> Actor:
    return Actor(user_id=employee_user["user_id"], role=Role.EMPLOYEE)


@pytest.fixture
def other_employee(other_employee_user) -> Actor:
    return Actor(user_id=other_employee_user["user_id"], role=Role.EMPLOYEE)


@pytest.fixture
async def customers(store) -> dict[str, Row]:
    names = {"maria": "Maria Lopez", "mariana": "Mariana Cafe", "john": "John Doe"}
    return {
        key: await store.insert(EntityKind.CUSTOMER, {"full_name": name})
        for key, name in names.items()
    }


@pytest.fixture
def make_hours(store, employee_user, customers):
    """Factory inserting an unbilled hours-worked row directly."""

    async def _make(
        hours: str = "1",
        rate_hour: str = "10",
        date_worked: date = date(2024, 3, 1),
        user_id: UUID | None = None,
        customer: str = "maria",
        description: str = "",
        type_work: str = "domestic",
    ) -> Row:
        return await store.insert(
            EntityKind.HOURS_WORKED,
            {
                "hours_worked_id": uuid4(),
                "date_worked": date_worked,
                "user_id": user_id or employee_user["user_id"],
                "customer_id": customers[customer]["customer_id"],
                "type_work": type_work,
                "hours": Decimal(hours),
                "rate_hour": Decimal(rate_hour),
                "description": description,
            },
        )

    return _make
