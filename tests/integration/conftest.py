"""API test fixtures."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from cleaning_billing.api.app import create_app


@pytest.fixture
async def client(store) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to an app serving the test store."""
    app = create_app(store=store)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def auth_headers(actor) -> dict[str, str]:
    return {"X-User-ID": str(actor.user_id), "X-User-Role": actor.role.value}


@pytest.fixture
def admin_headers(admin) -> dict[str, str]:
    return auth_headers(admin)


@pytest.fixture
def employee_headers(employee) -> dict[str, str]:
    return auth_headers(employee)


@pytest.fixture
def other_employee_headers(other_employee) -> dict[str, str]:
    return auth_headers(other_employee)
