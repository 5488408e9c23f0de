"""Live-updating list views.

A ``LiveQuery`` holds the latest page of a query and re-runs it whenever
the record store reports a change to one of the watched entity kinds in the
view's owner scope. Views must be closed to release their subscriptions;
the async context manager does this on exit.

Usage:
    async with queries.live_hours_worked(actor_scope, filters) as view:
        render(view.page)
        ...
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any
from uuid import UUID

from cleaning_billing.events import ChangeEvent, Subscription
from cleaning_billing.models.base import EntityKind
from cleaning_billing.queries.filters import OwnerScope
from cleaning_billing.queries.pagination import Page
from cleaning_billing.store.base import RecordStore

logger = logging.getLogger(__name__)

PageCallback = Callable[[Page], Any]


class LiveQuery:
    """A query result kept current by change notifications."""

    def __init__(
        self,
        store: RecordStore,
        kinds: Sequence[EntityKind],
        fetch: Callable[[], Awaitable[Page]],
        scope: UUID | OwnerScope,
        on_update: PageCallback | None = None,
    ) -> None:
        self._store = store
        self._kinds = tuple(kinds)
        self._fetch = fetch
        self._scope = scope if isinstance(scope, UUID) else None
        self._on_update = on_update
        self._subscriptions: list[Subscription] = []
        self._page: Page | None = None
        self._lock = asyncio.Lock()
        self.refresh_count = 0

    @property
    def page(self) -> Page:
        if self._page is None:
            raise RuntimeError("LiveQuery has not been started")
        return self._page

    @property
    def is_open(self) -> bool:
        return bool(self._subscriptions)

    async def start(self) -> Page:
        """Subscribe to changes and load the first page."""
        if not self._subscriptions:
            self._subscriptions = [
                self._store.subscribe(kind, self._on_change, scope=self._scope)
                for kind in self._kinds
            ]
        return await self.refresh()

    async def refresh(self) -> Page:
        """Re-run the query now."""
        async with self._lock:
            self._page = await self._fetch()
            self.refresh_count += 1
            page = self._page
        if self._on_update is not None:
            result = self._on_update(page)
            if inspect.isawaitable(result):
                await result
        return page

    async def _on_change(self, event: ChangeEvent) -> None:
        if not self.is_open:
            return
        logger.debug("Refreshing live view after %s", event.event_type)
        await self.refresh()

    def close(self) -> None:
        """Release subscriptions. Safe to call more than once."""
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []

    async def __aenter__(self) -> LiveQuery:
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
