"""Hours-worked ↔ invoice association engine.

Keeps the linkage invariant (an hours-worked record points at zero or one
invoice) and the derived invoice total consistent across link, unlink and
delete operations.

The record store offers no multi-record transaction, so workflows are a
sequence of individually idempotent steps:

- link_batch / unlink_batch: set or clear ``invoice_id`` per record
- recompute_total: re-sum the linked set and write ``total``

Hours are checked before any write: they must belong to the invoice owner,
and only administrators may move hours already on another invoice. Moving
hours recomputes the invoice they left.

A failure mid-workflow leaves the steps already committed in place and
surfaces the error. Re-running the workflow (or just ``recompute_total``)
converges on the correct state.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from cleaning_billing.calculators import compute_issue_date, format_invoice_number, invoice_total
from cleaning_billing.errors import (
    BillingError,
    Conflict,
    NotFound,
    PartialBatchFailure,
    PermissionDenied,
    StoreUnavailable,
    ValidationFailure,
)
from cleaning_billing.models.base import EntityKind
from cleaning_billing.services.actor import Actor
from cleaning_billing.services.state_machine import InvoiceStateMachine, InvoiceStatus
from cleaning_billing.store.base import RecordStore, Row
from cleaning_billing.store.filters import Eq, Sort

logger = logging.getLogger(__name__)

HOURS = EntityKind.HOURS_WORKED
INVOICE = EntityKind.INVOICE

REQUIRED_INVOICE_FIELDS = (
    "account_name",
    "account_number",
    "bsb",
    "abn",
    "mobile_number",
    "address",
)

# Fields only the engine may write
DERIVED_INVOICE_FIELDS = frozenset(
    {"invoice_id", "total", "date_off", "created_at", "updated_at"}
)


def _unique(ids: Iterable[UUID]) -> list[UUID]:
    """De-duplicate while keeping caller order."""
    seen: set[UUID] = set()
    result = []
    for record_id in ids:
        if record_id not in seen:
            seen.add(record_id)
            result.append(record_id)
    return result


def plan_relink(
    old_ids: Iterable[UUID], new_ids: Iterable[UUID]
) -> tuple[list[UUID], list[UUID]]:
    """Split a change of linked set into (to_unlink, to_link).

    ``to_unlink = old - new`` and ``to_link = new - old``; ids in both are
    left alone.
    """
    old = _unique(old_ids)
    new = _unique(new_ids)
    old_set, new_set = set(old), set(new)
    to_unlink = [i for i in old if i not in new_set]
    to_link = [i for i in new if i not in old_set]
    return to_unlink, to_link


class AssociationEngine:
    """Link hours worked to invoices and keep invoice totals derived.

    Operations:
    - link_batch: point a set of hours at an invoice
    - unlink_batch: clear the invoice reference on a set of hours
    - recompute_total: the only writer of ``invoice.total``
    - delete_guarded: delete hours only while unlinked
    - create_invoice / edit_invoice / delete_invoice: composite workflows
    - transition_status: role-aware status changes
    """

    def __init__(
        self,
        store: RecordStore,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.store = store
        self._today = today

    # ------------------------------------------------------------------
    # Primitive operations
    # ------------------------------------------------------------------

    async def link_batch(self, invoice_id: UUID, hour_ids: Iterable[UUID]) -> list[UUID]:
        """Set ``invoice_id`` on every record in ``hour_ids``.

        Does not recompute the target's total. Records taken from another
        invoice leave that invoice short, so every such source invoice is
        recomputed once the batch has run, even when the batch fails part
        way. Returns the ids updated.
        """
        await self._require(INVOICE, invoice_id)
        sources: list[UUID] = []

        async def link_one(hour_id: UUID) -> None:
            row = await self._require(HOURS, hour_id)
            await self.store.update(HOURS, hour_id, {"invoice_id": invoice_id})
            previous = row["invoice_id"]
            if previous is not None and previous != invoice_id and previous not in sources:
                sources.append(previous)

        try:
            return await self._apply_batch(hour_ids, link_one, "link")
        finally:
            await self._recompute_sources(sources)

    async def unlink_batch(self, hour_ids: Iterable[UUID]) -> list[UUID]:
        """Clear ``invoice_id`` on every record in ``hour_ids``."""

        async def unlink_one(hour_id: UUID) -> None:
            await self.store.update(HOURS, hour_id, {"invoice_id": None})

        return await self._apply_batch(hour_ids, unlink_one, "unlink")

    async def _apply_batch(
        self,
        hour_ids: Iterable[UUID],
        apply_one: Callable[[UUID], Awaitable[None]],
        action: str,
    ) -> list[UUID]:
        applied: list[UUID] = []
        failed: dict[UUID, BillingError] = {}

        for hour_id in _unique(hour_ids):
            try:
                await apply_one(hour_id)
            except (NotFound, StoreUnavailable) as exc:
                failed[hour_id] = exc
            else:
                applied.append(hour_id)

        if failed:
            logger.warning(
                "%s batch partly applied: %d ok, %d failed (%s)",
                action,
                len(applied),
                len(failed),
                ", ".join(str(i) for i in failed),
            )
            raise PartialBatchFailure(
                f"Could not {action} {len(failed)} of {len(applied) + len(failed)} "
                "hours records; retry to finish",
                applied_ids=applied,
                failed=failed,
            )

        logger.info("%s batch applied to %d hours records", action, len(applied))
        return applied

    async def linked_hours(self, invoice_id: UUID) -> list[Row]:
        """Every hours-worked row currently pointing at ``invoice_id``."""
        result = await self.store.query(
            HOURS, [Eq("invoice_id", invoice_id)], (Sort("date_worked"),)
        )
        return result.rows

    async def recompute_total(
        self, invoice_id: UUID, changes: Mapping[str, Any] | None = None
    ) -> Row:
        """Re-sum the linked hours and write the invoice total.

        ``changes`` are other invoice fields to write in the same update.
        Returns the updated invoice row.
        """
        lines = await self.linked_hours(invoice_id)
        total = invoice_total(lines)
        row = await self.store.update(INVOICE, invoice_id, {**(changes or {}), "total": total})
        logger.info(
            "Invoice %s total recomputed over %d lines: %s", invoice_id, len(lines), total
        )
        return row

    async def delete_guarded(self, hour_id: UUID) -> None:
        """Delete an hours-worked record only if it is not linked.

        The check and the delete are separate round trips; a link made in
        between is not detected.
        """
        row = await self._require(HOURS, hour_id)
        if row["invoice_id"] is not None:
            raise Conflict(
                "These hours are on an invoice; remove them from the invoice "
                "before deleting"
            )
        await self.store.delete(HOURS, hour_id)
        logger.info("Hours record %s deleted", hour_id)

    # ------------------------------------------------------------------
    # Workflows
    # ------------------------------------------------------------------

    async def create_invoice(
        self,
        actor: Actor,
        fields: Mapping[str, Any],
        hour_ids: Iterable[UUID],
    ) -> Row:
        """Insert an invoice, link its hours and settle the total.

        Steps run in order and stop at the first failure; committed steps
        are not compensated.
        """
        actor.ensure_active()
        hour_ids = _unique(hour_ids)
        if not hour_ids:
            raise ValidationFailure(
                "Select at least one hours record to invoice", ["hour_ids"]
            )

        fields = dict(fields)
        self._reject_derived(fields)
        missing = [
            name
            for name in REQUIRED_INVOICE_FIELDS
            if not str(fields.get(name) or "").strip()
        ]
        if missing:
            raise ValidationFailure(
                f"Missing required fields: {', '.join(missing)}", missing
            )

        owner = fields.get("user_id") or actor.user_id
        actor.ensure_can_act_for(owner)
        await self._check_linkable(actor, owner, hour_ids)

        issue_date = compute_issue_date(self._today())
        invoice_id = uuid4()
        await self.store.insert(
            INVOICE,
            {
                **fields,
                "invoice_id": invoice_id,
                "invoice_number": fields.get("invoice_number")
                or format_invoice_number(issue_date, invoice_id),
                "user_id": owner,
                "status": InvoiceStatus.CREATED.value,
                "date_off": issue_date,
                "total": Decimal("0"),
            },
        )
        logger.info("Invoice %s created for user %s", invoice_id, owner)

        await self.link_batch(invoice_id, hour_ids)
        return await self.recompute_total(invoice_id)

    async def edit_invoice(
        self,
        actor: Actor,
        invoice_id: UUID,
        hour_ids: Iterable[UUID] | None = None,
        changes: Mapping[str, Any] | None = None,
    ) -> Row:
        """Change an invoice's linked hours and/or its other fields.

        ``hour_ids`` is the complete desired linked set; ``None`` leaves the
        set as it is. The total is always recomputed over the full current
        linked set, which also repairs drift left by earlier failures.
        """
        invoice = await self._require(INVOICE, invoice_id)
        self._check_edit_rights(actor, invoice)

        changes = dict(changes or {})
        self._reject_derived(changes)
        cleared = [
            name
            for name in REQUIRED_INVOICE_FIELDS
            if name in changes and not str(changes[name] or "").strip()
        ]
        if cleared:
            raise ValidationFailure(f"Fields cannot be empty: {', '.join(cleared)}", cleared)

        if "status" in changes:
            to_status = changes["status"]
            if to_status == invoice["status"]:
                del changes["status"]
            else:
                InvoiceStateMachine.validate_transition(
                    invoice["status"], to_status, actor.role
                )
                changes["status"] = InvoiceStatus(to_status).value

        owner = invoice["user_id"]
        owner_changed = "user_id" in changes and changes["user_id"] != owner
        if owner_changed:
            actor.ensure_admin()
            owner = changes["user_id"]

        if hour_ids is not None:
            hour_ids = _unique(hour_ids)
            if not hour_ids:
                raise ValidationFailure(
                    "An invoice must keep at least one hours record", ["hour_ids"]
                )

        current = [row["hours_worked_id"] for row in await self.linked_hours(invoice_id)]
        if owner_changed:
            # The whole final set must belong to the new owner
            await self._check_linkable(
                actor, owner, current if hour_ids is None else hour_ids, invoice_id
            )

        if hour_ids is not None:
            to_unlink, to_link = plan_relink(current, hour_ids)
            if not owner_changed:
                await self._check_linkable(actor, owner, to_link, invoice_id)
            if to_unlink:
                await self.unlink_batch(to_unlink)
            if to_link:
                await self.link_batch(invoice_id, to_link)

        return await self.recompute_total(invoice_id, changes)

    async def transition_status(
        self, actor: Actor, invoice_id: UUID, to_status: str
    ) -> Row:
        """Move an invoice to ``to_status`` if the role's transition table allows it."""
        invoice = await self._require(INVOICE, invoice_id)
        self._check_edit_rights(actor, invoice)

        from_status = invoice["status"]
        if to_status == from_status:
            return invoice
        InvoiceStateMachine.validate_transition(from_status, to_status, actor.role)

        row = await self.store.update(
            INVOICE, invoice_id, {"status": InvoiceStatus(to_status).value}
        )
        logger.info("Invoice %s status %s -> %s", invoice_id, from_status, to_status)
        return row

    async def delete_invoice(self, actor: Actor, invoice_id: UUID) -> None:
        """Unlink every hours record on the invoice, then delete it.

        The two steps are separate writes. If the delete fails after the
        unlink, the invoice remains with no linked hours; retrying is safe.
        """
        invoice = await self._require(INVOICE, invoice_id)
        self._check_edit_rights(actor, invoice)

        linked = [row["hours_worked_id"] for row in await self.linked_hours(invoice_id)]
        if linked:
            await self.unlink_batch(linked)
        await self.store.delete(INVOICE, invoice_id)
        logger.info("Invoice %s deleted, %d hours records released", invoice_id, len(linked))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _require(self, kind: EntityKind, record_id: UUID) -> Row:
        row = await self.store.get(kind, record_id)
        if row is None:
            raise NotFound.for_record(kind, record_id)
        return row

    async def _check_linkable(
        self,
        actor: Actor,
        owner: UUID,
        hour_ids: Iterable[UUID],
        invoice_id: UUID | None = None,
    ) -> None:
        """Reject hours that cannot go on ``owner``'s invoice ``invoice_id``.

        Every record must exist and belong to ``owner``. Only administrators
        may take records already linked to a different invoice.
        """
        for hour_id in hour_ids:
            row = await self._require(HOURS, hour_id)
            if row["user_id"] != owner:
                raise PermissionDenied(
                    f"Hours record {hour_id} belongs to another user"
                )
            linked_to = row["invoice_id"]
            if linked_to is not None and linked_to != invoice_id and not actor.is_admin:
                raise Conflict(
                    f"Hours record {hour_id} is already on invoice {linked_to}"
                )

    async def _recompute_sources(self, invoice_ids: Iterable[UUID]) -> None:
        for source_id in invoice_ids:
            try:
                await self.recompute_total(source_id)
            except NotFound:
                logger.info("Invoice %s gone before its total was settled", source_id)

    @staticmethod
    def _reject_derived(fields: Mapping[str, Any]) -> None:
        derived = sorted(DERIVED_INVOICE_FIELDS.intersection(fields))
        if derived:
            raise ValidationFailure(
                f"Fields are computed and cannot be set: {', '.join(derived)}", derived
            )

    @staticmethod
    def _check_edit_rights(actor: Actor, invoice: Row) -> None:
        actor.ensure_can_act_for(invoice["user_id"])
        if not InvoiceStateMachine.can_edit(invoice["status"], actor.role):
            raise PermissionDenied(
                f"Invoices in status '{invoice['status']}' can only be changed "
                "by an administrator"
            )
