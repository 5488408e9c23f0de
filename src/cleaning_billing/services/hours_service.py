"""Hours-worked record management."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from cleaning_billing.errors import Conflict, NotFound, ValidationFailure
from cleaning_billing.models.base import EntityKind
from cleaning_billing.services.actor import Actor
from cleaning_billing.services.association import AssociationEngine
from cleaning_billing.store.base import RecordStore, Row

logger = logging.getLogger(__name__)

HOURS = EntityKind.HOURS_WORKED

CENTS = Decimal("0.01")


class WorkType(str, Enum):
    """Kinds of cleaning work."""

    DOMESTIC = "domestic"
    COMMERCIAL = "commercial"
    TRAINING = "training"
    OTHER = "other"


REQUIRED_FIELDS = ("date_worked", "customer_id", "type_work", "hours", "rate_hour")

# Changing these on a linked record would silently change an invoice total
BILLABLE_FIELDS = frozenset({"hours", "rate_hour", "user_id"})

EDITABLE_FIELDS = frozenset(
    {
        "date_worked",
        "user_id",
        "customer_id",
        "type_work",
        "type_work_other",
        "rate_hour",
        "hours",
        "description",
    }
)


def validate_hours_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Check required fields, work type and amounts. Returns normalized fields."""
    missing = [
        name
        for name in REQUIRED_FIELDS
        if fields.get(name) is None or (isinstance(fields.get(name), str) and not fields[name].strip())
    ]
    if missing:
        raise ValidationFailure(f"Missing required fields: {', '.join(missing)}", missing)

    normalized = dict(fields)
    try:
        work_type = WorkType(fields["type_work"])
    except ValueError:
        raise ValidationFailure(
            f"Unknown work type {fields['type_work']!r}", ["type_work"]
        ) from None
    normalized["type_work"] = work_type.value

    if work_type == WorkType.OTHER:
        other = str(fields.get("type_work_other") or "").strip()
        if not other:
            raise ValidationFailure(
                "Describe the work when the type is 'other'", ["type_work_other"]
            )
        normalized["type_work_other"] = other
    else:
        normalized["type_work_other"] = None

    for name in ("hours", "rate_hour"):
        try:
            amount = Decimal(str(fields[name]))
        except InvalidOperation:
            raise ValidationFailure(f"{name} must be a number", [name]) from None
        if not amount.is_finite():
            raise ValidationFailure(f"{name} must be a number", [name])
        try:
            scaled = amount.quantize(CENTS)
        except InvalidOperation:
            raise ValidationFailure(f"{name} is too large", [name]) from None
        if amount != scaled:
            raise ValidationFailure(f"{name} allows at most 2 decimal places", [name])
        if amount < 0:
            raise ValidationFailure(f"{name} cannot be negative", [name])
        normalized[name] = amount

    return normalized


class HoursService:
    """Create, edit and delete hours-worked records.

    Linking to invoices is not done here; it belongs to the association
    engine. Deletion goes through ``AssociationEngine.delete_guarded``.
    """

    def __init__(self, store: RecordStore, engine: AssociationEngine | None = None):
        self.store = store
        self.engine = engine or AssociationEngine(store)

    async def get(self, actor: Actor, hours_worked_id: UUID) -> Row:
        row = await self.store.get(HOURS, hours_worked_id)
        if row is None:
            raise NotFound.for_record(HOURS, hours_worked_id)
        actor.ensure_can_act_for(row["user_id"])
        return row

    async def create(self, actor: Actor, fields: Mapping[str, Any]) -> Row:
        if "invoice_id" in fields:
            raise ValidationFailure(
                "Hours are added to invoices from the invoice, not here", ["invoice_id"]
            )
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValidationFailure(f"Unknown fields: {', '.join(sorted(unknown))}", sorted(unknown))

        values = validate_hours_fields(fields)
        owner = values.get("user_id") or actor.user_id
        actor.ensure_can_act_for(owner)

        row = await self.store.insert(
            HOURS,
            {
                **values,
                "hours_worked_id": uuid4(),
                "user_id": owner,
                "description": values.get("description") or "",
                "invoice_id": None,
            },
        )
        logger.info("Hours record %s created for user %s", row["hours_worked_id"], owner)
        return row

    async def update(
        self, actor: Actor, hours_worked_id: UUID, changes: Mapping[str, Any]
    ) -> Row:
        current = await self.get(actor, hours_worked_id)

        if "invoice_id" in changes:
            raise ValidationFailure(
                "Use the invoice to add or remove hours", ["invoice_id"]
            )
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationFailure(f"Unknown fields: {', '.join(sorted(unknown))}", sorted(unknown))

        if current["invoice_id"] is not None and BILLABLE_FIELDS.intersection(changes):
            raise Conflict(
                "These hours are on an invoice; remove them from the invoice "
                "before changing hours, rate or owner"
            )
        if "user_id" in changes:
            actor.ensure_can_act_for(changes["user_id"])

        merged = {name: current.get(name) for name in EDITABLE_FIELDS}
        merged.update(changes)
        values = validate_hours_fields(merged)

        update = {name: values[name] for name in EDITABLE_FIELDS if name in changes}
        if "type_work" in changes:
            update["type_work_other"] = values["type_work_other"]
        if not update:
            return current
        return await self.store.update(HOURS, hours_worked_id, update)

    async def delete(self, actor: Actor, hours_worked_id: UUID) -> None:
        await self.get(actor, hours_worked_id)
        await self.engine.delete_guarded(hours_worked_id)
