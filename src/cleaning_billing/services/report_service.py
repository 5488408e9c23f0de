"""Field report management."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from uuid import UUID, uuid4

from cleaning_billing.errors import NotFound, ValidationFailure
from cleaning_billing.models.base import EntityKind
from cleaning_billing.services.actor import Actor
from cleaning_billing.store.base import RecordStore, Row

logger = logging.getLogger(__name__)

REPORT = EntityKind.REPORT

REQUIRED_FIELDS = ("report_date", "customer_id", "description")
EDITABLE_FIELDS = frozenset(
    {"report_date", "report_time", "user_id", "customer_id", "description"}
)


class ReportService:
    """Create, edit and delete field reports."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def get(self, actor: Actor, report_id: UUID) -> Row:
        row = await self.store.get(REPORT, report_id)
        if row is None:
            raise NotFound.for_record(REPORT, report_id)
        actor.ensure_can_act_for(row["user_id"])
        return row

    async def create(self, actor: Actor, fields: Mapping[str, Any]) -> Row:
        self._check_fields(fields)
        missing = [
            name
            for name in REQUIRED_FIELDS
            if fields.get(name) is None or not str(fields[name]).strip()
        ]
        if missing:
            raise ValidationFailure(f"Missing required fields: {', '.join(missing)}", missing)

        owner = fields.get("user_id") or actor.user_id
        actor.ensure_can_act_for(owner)
        row = await self.store.insert(
            REPORT, {**fields, "report_id": uuid4(), "user_id": owner}
        )
        logger.info("Report %s filed by user %s", row["report_id"], owner)
        return row

    async def update(self, actor: Actor, report_id: UUID, changes: Mapping[str, Any]) -> Row:
        await self.get(actor, report_id)
        self._check_fields(changes)
        for name in REQUIRED_FIELDS:
            if name in changes and (changes[name] is None or not str(changes[name]).strip()):
                raise ValidationFailure(f"{name} cannot be empty", [name])
        if "user_id" in changes:
            actor.ensure_can_act_for(changes["user_id"])
        return await self.store.update(REPORT, report_id, changes)

    async def delete(self, actor: Actor, report_id: UUID) -> None:
        await self.get(actor, report_id)
        await self.store.delete(REPORT, report_id)

    @staticmethod
    def _check_fields(fields: Mapping[str, Any]) -> None:
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValidationFailure(
                f"Unknown fields: {', '.join(sorted(unknown))}", sorted(unknown)
            )
