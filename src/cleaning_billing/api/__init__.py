"""HTTP API for the billing service."""

from cleaning_billing.api.app import create_app

__all__ = ["create_app"]
