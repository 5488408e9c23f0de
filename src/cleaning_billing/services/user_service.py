"""User account administration."""

from __future__ import annotations

import logging
from uuid import UUID

from cleaning_billing.errors import Conflict, NotFound
from cleaning_billing.models.base import EntityKind, utcnow
from cleaning_billing.services.actor import Actor
from cleaning_billing.store.base import RecordStore, Row

logger = logging.getLogger(__name__)

USER = EntityKind.USER


class UserService:
    """Soft delete and activation of user accounts. Administrators only."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def _require_visible(self, user_id: UUID) -> Row:
        row = await self.store.get(USER, user_id)
        if row is None or row["deleted_at"] is not None:
            raise NotFound.for_record(USER, user_id)
        return row

    async def soft_delete(self, actor: Actor, user_id: UUID) -> Row:
        """Hide a user from listings by stamping ``deleted_at``."""
        actor.ensure_admin()
        if user_id == actor.user_id:
            raise Conflict("You cannot delete your own account")
        await self._require_visible(user_id)
        row = await self.store.update(USER, user_id, {"deleted_at": utcnow(), "active": False})
        logger.info("User %s soft-deleted by %s", user_id, actor.user_id)
        return row

    async def set_active(self, actor: Actor, user_id: UUID, active: bool) -> Row:
        actor.ensure_admin()
        await self._require_visible(user_id)
        row = await self.store.update(USER, user_id, {"active": active})
        logger.info("User %s active=%s", user_id, active)
        return row
