"""Invoice issue-date derivation and numbering."""

from __future__ import annotations

import calendar
from datetime import date
from uuid import UUID

# Invoices raised on or before this day are dated the 15th
MID_MONTH_CUTOFF = 15


def compute_issue_date(today: date) -> date:
    """Issue date for an invoice created on ``today``.

    Days 1-15 give the 15th of the month; later days give the last
    calendar day of the month.
    """
    if today.day <= MID_MONTH_CUTOFF:
        return today.replace(day=MID_MONTH_CUTOFF)
    _, last_day = calendar.monthrange(today.year, today.month)
    return today.replace(day=last_day)


def format_invoice_number(issue_date: date, invoice_id: UUID) -> str:
    """Display number, e.g. ``INV-202410-3FA2C1``."""
    return f"INV-{issue_date:%Y%m}-{invoice_id.hex[:6].upper()}"
