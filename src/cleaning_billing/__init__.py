"""Billing for a cleaning business: hours worked, invoices and field reports."""

__version__ = "0.1.0"
