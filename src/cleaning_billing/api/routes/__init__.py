"""API route modules."""

from cleaning_billing.api.routes.customers import router as customers_router
from cleaning_billing.api.routes.health import router as health_router
from cleaning_billing.api.routes.hours_worked import router as hours_worked_router
from cleaning_billing.api.routes.invoices import router as invoices_router
from cleaning_billing.api.routes.reports import router as reports_router
from cleaning_billing.api.routes.users import router as users_router

__all__ = [
    "customers_router",
    "health_router",
    "hours_worked_router",
    "invoices_router",
    "reports_router",
    "users_router",
]
