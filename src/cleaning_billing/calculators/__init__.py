"""Pure calculations used by the association engine."""

from cleaning_billing.calculators.issue_date import (
    MID_MONTH_CUTOFF,
    compute_issue_date,
    format_invoice_number,
)
from cleaning_billing.calculators.totals import (
    OUTPUT_PRECISION,
    invoice_total,
    line_amount,
    present,
    to_decimal,
)

__all__ = [
    "MID_MONTH_CUTOFF",
    "compute_issue_date",
    "format_invoice_number",
    "OUTPUT_PRECISION",
    "invoice_total",
    "line_amount",
    "present",
    "to_decimal",
]
