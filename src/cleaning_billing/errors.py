"""Error taxonomy for billing operations.

Every error carries a short, user-facing message and a stable code that the
HTTP layer passes through to clients.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID


class BillingError(Exception):
    """Base class for all billing errors."""

    code = "BILLING_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationFailure(BillingError):
    """Caller passed an empty required field or an empty link set."""

    code = "VALIDATION_FAILED"

    def __init__(self, message: str, fields: list[str] | None = None):
        self.fields = fields or []
        super().__init__(message)


class Conflict(BillingError):
    """Operation conflicts with the current linkage state of a record."""

    code = "CONFLICT"


class NotFound(BillingError):
    """Referenced id does not resolve at read time."""

    code = "NOT_FOUND"

    @classmethod
    def for_record(cls, kind: Any, record_id: UUID) -> NotFound:
        label = getattr(kind, "value", kind)
        return cls(f"{label} {record_id} not found")


class StoreUnavailable(BillingError):
    """A read or write against the record store failed."""

    code = "STORE_UNAVAILABLE"


class PermissionDenied(BillingError):
    """Acting user's role or ownership does not allow the operation."""

    code = "PERMISSION_DENIED"


class PartialBatchFailure(BillingError):
    """A link or unlink batch was only partly applied.

    Applied updates are not rolled back. Retrying the batch is safe because
    setting or clearing ``invoice_id`` is idempotent.
    """

    code = "PARTIAL_BATCH_FAILURE"

    def __init__(
        self,
        message: str,
        applied_ids: list[UUID],
        failed: dict[UUID, BillingError],
    ):
        self.applied_ids = applied_ids
        self.failed = failed
        super().__init__(message)

    @property
    def failed_ids(self) -> list[UUID]:
        return list(self.failed)
