"""Invoice status state machine with role-aware transition validation."""

from __future__ import annotations

from enum import Enum

from cleaning_billing.errors import BillingError
from cleaning_billing.services.actor import Role


class InvoiceStatus(str, Enum):
    """Invoice status values, in lifecycle order."""

    CREATED = "created"
    SENT = "sent"
    IN_REVIEW = "in_review"
    PAID = "paid"


class InvalidTransitionError(BillingError):
    """Raised when an invalid status transition is attempted."""

    code = "INVALID_TRANSITION"

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class InvoiceStateMachine:
    """State machine for invoice status transitions.

    Allowed transitions:
    - created → sent (administrators and employees)
    - sent → in_review (administrators)
    - in_review → paid (administrators)

    Paid is terminal.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        InvoiceStatus.CREATED: [InvoiceStatus.SENT],
        InvoiceStatus.SENT: [InvoiceStatus.IN_REVIEW],
        InvoiceStatus.IN_REVIEW: [InvoiceStatus.PAID],
        InvoiceStatus.PAID: [],
    }

    EMPLOYEE_TRANSITIONS: dict[str, list[str]] = {
        InvoiceStatus.CREATED: [InvoiceStatus.SENT],
    }

    # Statuses in which an employee may still edit their own invoice
    EMPLOYEE_EDITABLE = {InvoiceStatus.CREATED}

    @classmethod
    def _table(cls, role: Role) -> dict[str, list[str]]:
        if role == Role.ADMINISTRATOR:
            return cls.VALID_TRANSITIONS
        return cls.EMPLOYEE_TRANSITIONS

    @classmethod
    def can_transition(
        cls, from_status: str, to_status: str, role: Role = Role.ADMINISTRATOR
    ) -> bool:
        """Check if a transition is valid for the role."""
        allowed = cls._table(role).get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(
        cls, from_status: str, to_status: str, role: Role = Role.ADMINISTRATOR
    ) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if to_status not in cls.VALID_TRANSITIONS:
            raise InvalidTransitionError(from_status, to_status, "unknown status")
        if cls.can_transition(from_status, to_status, role):
            return
        if cls.can_transition(from_status, to_status, Role.ADMINISTRATOR):
            raise InvalidTransitionError(
                from_status, to_status, "only administrators can make this change"
            )
        raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def get_next_statuses(
        cls, current_status: str, role: Role = Role.ADMINISTRATOR
    ) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls._table(role).get(current_status, [])

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return not cls.VALID_TRANSITIONS.get(status, [])

    @classmethod
    def can_edit(cls, status: str, role: Role) -> bool:
        """Check if an invoice in this status may be edited by the role."""
        if role == Role.ADMINISTRATOR:
            return True
        return status in cls.EMPLOYEE_EDITABLE
