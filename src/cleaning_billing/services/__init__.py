"""Billing services."""

from cleaning_billing.services.actor import Actor, Role
from cleaning_billing.services.association import AssociationEngine, plan_relink
from cleaning_billing.services.hours_service import HoursService, WorkType
from cleaning_billing.services.report_service import ReportService
from cleaning_billing.services.state_machine import (
    InvalidTransitionError,
    InvoiceStateMachine,
    InvoiceStatus,
)
from cleaning_billing.services.user_service import UserService

__all__ = [
    "Actor",
    "Role",
    "AssociationEngine",
    "plan_relink",
    "HoursService",
    "WorkType",
    "ReportService",
    "InvalidTransitionError",
    "InvoiceStateMachine",
    "InvoiceStatus",
    "UserService",
]
