"""Change feed for live-updating views.

The feed provides:
- Subscription keyed by entity kind and (optionally) owner scope
- Sync and async handlers
- Error isolation (a failing handler doesn't stop the others)
- Explicit unsubscription through the returned ``Subscription``

Usage:
    feed = ChangeFeed()

    async def on_change(event: ChangeEvent) -> None:
        await view.refresh()

    subscription = feed.subscribe(EntityKind.HOURS_WORKED, on_change, scope=user_id)
    ...
    subscription.unsubscribe()
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Union
from uuid import UUID

from cleaning_billing.events.types import ChangeEvent
from cleaning_billing.models.base import EntityKind

logger = logging.getLogger(__name__)

ChangeHandler = Callable[[ChangeEvent], Union[None, Awaitable[None]]]


@dataclass
class HandlerRegistration:
    """Registration of a change handler."""

    handler: ChangeHandler
    kind: EntityKind
    scope: UUID | None  # None = every owner
    is_async: bool

    def matches(self, event: ChangeEvent) -> bool:
        if event.kind != self.kind:
            return False
        return self.scope is None or event.owner_id == self.scope


class Subscription:
    """Handle returned by ``ChangeFeed.subscribe``.

    Can be used as a context manager; leaving the block unsubscribes.
    """

    def __init__(self, feed: ChangeFeed, registration: HandlerRegistration) -> None:
        self._feed = feed
        self._registration = registration
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    @property
    def kind(self) -> EntityKind:
        return self._registration.kind

    def unsubscribe(self) -> None:
        """Stop receiving events. Safe to call more than once."""
        if self._active:
            self._feed._remove(self._registration)
            self._active = False

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.unsubscribe()


class ChangeFeed:
    """In-process publish/subscribe channel for record changes.

    Handlers run in subscription order; async handlers are awaited one at a
    time so that views refreshing against the same store do not interleave.
    """

    def __init__(self) -> None:
        self._handlers: list[HandlerRegistration] = []

    def subscribe(
        self,
        kind: EntityKind,
        handler: ChangeHandler,
        scope: UUID | None = None,
    ) -> Subscription:
        """Register a handler for changes to ``kind`` within ``scope``."""
        registration = HandlerRegistration(
            handler=handler,
            kind=kind,
            scope=scope,
            is_async=inspect.iscoroutinefunction(handler),
        )
        self._handlers.append(registration)
        return Subscription(self, registration)

    def _remove(self, registration: HandlerRegistration) -> None:
        self._handlers = [reg for reg in self._handlers if reg is not registration]

    def subscriber_count(self, kind: EntityKind | None = None) -> int:
        """Number of live registrations, optionally for one kind."""
        if kind is None:
            return len(self._handlers)
        return sum(1 for reg in self._handlers if reg.kind == kind)

    async def publish(self, event: ChangeEvent) -> list[Exception]:
        """Deliver an event to every matching handler.

        Returns list of any exceptions raised by handlers.
        """
        errors: list[Exception] = []

        # Snapshot: handlers may unsubscribe while we iterate
        for reg in list(self._handlers):
            if not reg.matches(event):
                continue
            try:
                if reg.is_async:
                    await reg.handler(event)  # type: ignore[misc]
                else:
                    reg.handler(event)
            except Exception as e:
                logger.exception(
                    "Handler %s failed for event %s",
                    reg.handler,
                    event.event_type,
                )
                errors.append(e)

        return errors
