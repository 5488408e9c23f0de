"""Abstract record store interface.

Every operation is a discrete round trip. There is no transaction spanning
two calls, so callers composing several writes must tolerate partial
application.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from cleaning_billing.events import ChangeEvent, ChangeFeed, ChangeHandler, ChangeOperation, Subscription
from cleaning_billing.models.base import EntityKind
from cleaning_billing.store.filters import Predicate, Sort

Row = dict[str, Any]


@dataclass
class QueryResult:
    """One page of rows plus the match count across all pages."""

    rows: list[Row] = field(default_factory=list)
    total_count: int = 0


class RecordStore(ABC):
    """Queryable, filterable, paginated store for billing records."""

    def __init__(self, feed: ChangeFeed | None = None) -> None:
        self.feed = feed or ChangeFeed()

    @abstractmethod
    async def query(
        self,
        kind: EntityKind,
        predicates: Sequence[Predicate] = (),
        sort: Sequence[Sort] = (),
        page: int = 1,
        page_size: int | None = None,
    ) -> QueryResult:
        """Return matching rows for a 1-based page. ``page_size=None`` returns all."""

    @abstractmethod
    async def get(self, kind: EntityKind, record_id: UUID) -> Row | None:
        """Get a record by id."""

    @abstractmethod
    async def insert(self, kind: EntityKind, fields: Mapping[str, Any]) -> Row:
        """Insert a record. Returns the stored row."""

    @abstractmethod
    async def update(
        self, kind: EntityKind, record_id: UUID, fields: Mapping[str, Any]
    ) -> Row:
        """Update a record. Raises NotFound if the id does not resolve."""

    @abstractmethod
    async def delete(self, kind: EntityKind, record_id: UUID) -> None:
        """Delete a record. Raises NotFound if the id does not resolve."""

    def subscribe(
        self,
        kind: EntityKind,
        on_change: ChangeHandler,
        scope: UUID | None = None,
    ) -> Subscription:
        """Listen for committed changes to ``kind``; ``scope`` limits to one owner."""
        return self.feed.subscribe(kind, on_change, scope=scope)

    async def _notify(
        self,
        kind: EntityKind,
        operation: ChangeOperation,
        record_id: UUID,
        owner_id: UUID | None,
        changed_fields: Sequence[str] = (),
    ) -> None:
        await self.feed.publish(
            ChangeEvent(
                kind=kind,
                operation=operation,
                record_id=record_id,
                owner_id=owner_id,
                changed_fields=tuple(changed_fields),
            )
        )
