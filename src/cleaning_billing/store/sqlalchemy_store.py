"""SQLAlchemy implementation of the record store.

Each call opens its own session and commits before returning, so every
operation is an independent unit of work. Change events are published
after the commit, outside the session.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any
from uuid import UUID

from sqlalchemy import Select, func, inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import InstrumentedAttribute

from cleaning_billing.errors import NotFound, StoreUnavailable
from cleaning_billing.events import ChangeFeed, ChangeOperation
from cleaning_billing.models import MODEL_FOR_KIND, Base, Customer, EntityKind
from cleaning_billing.store.base import QueryResult, RecordStore, Row
from cleaning_billing.store.filters import (
    Between,
    Contains,
    Eq,
    IsAbsent,
    IsPresent,
    Predicate,
    Sort,
)

logger = logging.getLogger(__name__)

# Kinds whose rows carry the customer's display name
ENRICHED_KINDS = {EntityKind.HOURS_WORKED, EntityKind.REPORT}

CUSTOMER_NAME = "customer_name"


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqlAlchemyRecordStore(RecordStore):
    """Record store backed by an async SQLAlchemy session factory."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        feed: ChangeFeed | None = None,
    ) -> None:
        super().__init__(feed)
        self.session_factory = session_factory

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def query(
        self,
        kind: EntityKind,
        predicates: Sequence[Predicate] = (),
        sort: Sequence[Sort] = (),
        page: int = 1,
        page_size: int | None = None,
    ) -> QueryResult:
        if page < 1:
            raise ValueError("page is 1-based")

        model = MODEL_FOR_KIND[kind]
        stmt = self._base_select(kind)
        for predicate in predicates:
            stmt = stmt.where(self._clause(kind, predicate))

        count_stmt = select(func.count()).select_from(stmt.subquery())

        order_by = []
        for key in sort:
            column = self._column(kind, key.field)
            order_by.append(column.desc() if key.descending else column.asc())
        # Stable tiebreak so pages never overlap
        order_by.append(self._primary_key(model).asc())
        stmt = stmt.order_by(*order_by)

        if page_size is not None:
            stmt = stmt.offset((page - 1) * page_size).limit(page_size)

        try:
            async with self.session_factory() as session:
                total = await session.scalar(count_stmt) or 0
                result = await session.execute(stmt)
                rows = [self._to_row(kind, record) for record in result.all()]
        except SQLAlchemyError as exc:
            logger.exception("Query on %s failed", kind.value)
            raise StoreUnavailable(f"Could not load {kind.value} records") from exc

        return QueryResult(rows=rows, total_count=total)

    async def get(self, kind: EntityKind, record_id: UUID) -> Row | None:
        model = MODEL_FOR_KIND[kind]
        stmt = self._base_select(kind).where(self._primary_key(model) == record_id)
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                record = result.one_or_none()
        except SQLAlchemyError as exc:
            logger.exception("Read of %s %s failed", kind.value, record_id)
            raise StoreUnavailable(f"Could not load {kind.value} {record_id}") from exc

        if record is None:
            return None
        return self._to_row(kind, record)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def insert(self, kind: EntityKind, fields: Mapping[str, Any]) -> Row:
        model = MODEL_FOR_KIND[kind]
        try:
            async with self.session_factory() as session:
                obj = model(**dict(fields))
                session.add(obj)
                await session.flush()
                await session.refresh(obj)
                row = obj.to_dict()
                await session.commit()
        except SQLAlchemyError as exc:
            logger.exception("Insert into %s failed", kind.value)
            raise StoreUnavailable(f"Could not save {kind.value} record") from exc

        record_id = row[self._primary_key(model).key]
        await self._enrich(kind, row)
        await self._notify(
            kind, ChangeOperation.INSERT, record_id, self._owner(kind, row), list(fields)
        )
        return row

    async def update(
        self, kind: EntityKind, record_id: UUID, fields: Mapping[str, Any]
    ) -> Row:
        model = MODEL_FOR_KIND[kind]
        try:
            async with self.session_factory() as session:
                obj = await session.get(model, record_id)
                if obj is None:
                    raise NotFound.for_record(kind, record_id)
                for name, value in fields.items():
                    if name not in model.__table__.columns:
                        raise ValueError(f"{kind.value} has no field {name!r}")
                    setattr(obj, name, value)
                await session.flush()
                await session.refresh(obj)
                row = obj.to_dict()
                await session.commit()
        except SQLAlchemyError as exc:
            logger.exception("Update of %s %s failed", kind.value, record_id)
            raise StoreUnavailable(f"Could not update {kind.value} {record_id}") from exc

        await self._enrich(kind, row)
        await self._notify(
            kind, ChangeOperation.UPDATE, record_id, self._owner(kind, row), list(fields)
        )
        return row

    async def delete(self, kind: EntityKind, record_id: UUID) -> None:
        model = MODEL_FOR_KIND[kind]
        try:
            async with self.session_factory() as session:
                obj = await session.get(model, record_id)
                if obj is None:
                    raise NotFound.for_record(kind, record_id)
                owner = self._owner(kind, obj.to_dict())
                await session.delete(obj)
                await session.commit()
        except SQLAlchemyError as exc:
            logger.exception("Delete of %s %s failed", kind.value, record_id)
            raise StoreUnavailable(f"Could not delete {kind.value} {record_id}") from exc

        await self._notify(kind, ChangeOperation.DELETE, record_id, owner)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _base_select(self, kind: EntityKind) -> Select[Any]:
        model = MODEL_FOR_KIND[kind]
        if kind in ENRICHED_KINDS:
            return select(model, Customer.full_name).outerjoin(
                Customer, model.customer_id == Customer.customer_id
            )
        return select(model)

    def _column(self, kind: EntityKind, name: str) -> Any:
        if name == CUSTOMER_NAME and kind in ENRICHED_KINDS:
            return Customer.full_name
        model = MODEL_FOR_KIND[kind]
        column = getattr(model, name, None)
        if not isinstance(column, InstrumentedAttribute):
            raise ValueError(f"{kind.value} has no field {name!r}")
        return column

    def _clause(self, kind: EntityKind, predicate: Predicate) -> Any:
        column = self._column(kind, predicate.field)
        if isinstance(predicate, Eq):
            if predicate.value is None:
                raise ValueError("use IsAbsent to match missing values")
            return column == predicate.value
        if isinstance(predicate, Contains):
            return column.ilike(f"%{_escape_like(predicate.text)}%", escape="\\")
        if isinstance(predicate, Between):
            clauses = []
            if predicate.low is not None:
                clauses.append(column >= predicate.low)
            if predicate.high is not None:
                clauses.append(column <= predicate.high)
            return clauses[0] if len(clauses) == 1 else clauses[0] & clauses[1]
        if isinstance(predicate, IsAbsent):
            return column.is_(None)
        if isinstance(predicate, IsPresent):
            return column.is_not(None)
        raise TypeError(f"Unsupported predicate {predicate!r}")

    @staticmethod
    def _primary_key(model: type[Base]) -> Any:
        return getattr(model, inspect(model).primary_key[0].key)

    @staticmethod
    def _to_row(kind: EntityKind, record: Any) -> Row:
        if kind in ENRICHED_KINDS:
            obj, customer_name = record
            row = obj.to_dict()
            row[CUSTOMER_NAME] = customer_name or ""
            return row
        return record[0].to_dict()

    async def _enrich(self, kind: EntityKind, row: Row) -> None:
        if kind not in ENRICHED_KINDS:
            return
        customer_name = ""
        if row.get("customer_id") is not None:
            try:
                async with self.session_factory() as session:
                    customer = await session.get(Customer, row["customer_id"])
            except SQLAlchemyError as exc:
                logger.exception("Customer lookup for %s failed", kind.value)
                raise StoreUnavailable("Could not load customer") from exc
            if customer is not None:
                customer_name = customer.full_name
        row[CUSTOMER_NAME] = customer_name

    @staticmethod
    def _owner(kind: EntityKind, row: Row) -> UUID | None:
        return row.get("user_id")
