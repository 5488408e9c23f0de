"""Tests for invoice status state machine."""

import pytest

from cleaning_billing.services import Role
from cleaning_billing.services.state_machine import (
    InvalidTransitionError,
    InvoiceStateMachine,
    InvoiceStatus,
)


class TestInvoiceStateMachine:
    """Test state machine transitions."""

    def test_valid_transitions(self):
        """Forward single steps are allowed for administrators."""
        assert InvoiceStateMachine.can_transition("created", "sent") is True
        assert InvoiceStateMachine.can_transition("sent", "in_review") is True
        assert InvoiceStateMachine.can_transition("in_review", "paid") is True

    def test_invalid_transitions(self):
        # Can't skip review
        assert InvoiceStateMachine.can_transition("sent", "paid") is False
        # No going back
        assert InvoiceStateMachine.can_transition("sent", "created") is False
        # Paid is terminal
        assert InvoiceStateMachine.can_transition("paid", "created") is False

    def test_employee_may_only_send(self):
        assert InvoiceStateMachine.can_transition("created", "sent", Role.EMPLOYEE) is True
        assert InvoiceStateMachine.can_transition("sent", "in_review", Role.EMPLOYEE) is False
        assert InvoiceStateMachine.can_transition("in_review", "paid", Role.EMPLOYEE) is False

    def test_validate_transition_raises(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            InvoiceStateMachine.validate_transition("created", "paid")

        assert exc_info.value.from_status == "created"
        assert exc_info.value.to_status == "paid"
        assert exc_info.value.code == "INVALID_TRANSITION"

    def test_validate_transition_names_admin_only_moves(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            InvoiceStateMachine.validate_transition("sent", "in_review", Role.EMPLOYEE)

        assert "only administrators" in exc_info.value.reason

    def test_unknown_status_rejected(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            InvoiceStateMachine.validate_transition("created", "archived")

        assert exc_info.value.reason == "unknown status"

    def test_next_statuses(self):
        assert InvoiceStateMachine.get_next_statuses("created") == [InvoiceStatus.SENT]
        assert InvoiceStateMachine.get_next_statuses("sent", Role.EMPLOYEE) == []

    def test_is_terminal(self):
        assert InvoiceStateMachine.is_terminal("paid") is True
        assert InvoiceStateMachine.is_terminal("created") is False

    def test_can_edit(self):
        assert InvoiceStateMachine.can_edit("created", Role.EMPLOYEE) is True
        assert InvoiceStateMachine.can_edit("sent", Role.EMPLOYEE) is False
        assert InvoiceStateMachine.can_edit("paid", Role.ADMINISTRATOR) is True
