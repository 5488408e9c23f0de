"""Tests for hours, report and user services."""

from datetime import date, time
from decimal import Decimal
from uuid import uuid4

import pytest

from cleaning_billing.errors import Conflict, NotFound, PermissionDenied, ValidationFailure
from cleaning_billing.models import EntityKind
from cleaning_billing.services import ReportService, UserService

from .conftest import INVOICE_FIELDS


@pytest.fixture
def hours_fields(customers):
    return {
        "date_worked": date(2024, 3, 4),
        "customer_id": customers["maria"]["customer_id"],
        "type_work": "commercial",
        "hours": Decimal("4"),
        "rate_hour": Decimal("32.50"),
        "description": "Office floors",
    }


@pytest.fixture
def reports(store) -> ReportService:
    return ReportService(store)


@pytest.fixture
def users(store) -> UserService:
    return UserService(store)


class TestHoursService:
    async def test_create_is_unlinked(self, hours_service, employee, hours_fields):
        row = await hours_service.create(employee, hours_fields)

        assert row["invoice_id"] is None
        assert row["user_id"] == employee.user_id
        assert row["customer_name"] == "Maria Lopez"
        assert row["type_work_other"] is None

    async def test_create_cannot_link(self, hours_service, employee, hours_fields):
        with pytest.raises(ValidationFailure):
            await hours_service.create(employee, {**hours_fields, "invoice_id": uuid4()})

    async def test_other_needs_description(self, hours_service, employee, hours_fields):
        with pytest.raises(ValidationFailure) as exc_info:
            await hours_service.create(employee, {**hours_fields, "type_work": "other"})
        assert exc_info.value.fields == ["type_work_other"]

        row = await hours_service.create(
            employee,
            {**hours_fields, "type_work": "other", "type_work_other": "Window washing"},
        )
        assert row["type_work_other"] == "Window washing"

    @pytest.mark.parametrize(
        "changes, field",
        [
            ({"hours": Decimal("-1")}, "hours"),
            ({"rate_hour": "abc"}, "rate_hour"),
            ({"rate_hour": "NaN"}, "rate_hour"),
            ({"hours": "Infinity"}, "hours"),
            ({"hours": Decimal("1.234")}, "hours"),
            ({"rate_hour": "1e40"}, "rate_hour"),
            ({"type_work": "gardening"}, "type_work"),
            ({"customer_id": None}, "customer_id"),
        ],
    )
    async def test_invalid_fields(self, hours_service, employee, hours_fields, changes, field):
        with pytest.raises(ValidationFailure) as exc_info:
            await hours_service.create(employee, {**hours_fields, **changes})
        assert exc_info.value.fields == [field]

    async def test_trailing_zeros_allowed(self, hours_service, employee, hours_fields):
        row = await hours_service.create(employee, {**hours_fields, "hours": "2.500"})
        assert row["hours"] == Decimal("2.5")

    async def test_employee_cannot_log_for_others(
        self, hours_service, employee, other_employee, hours_fields
    ):
        with pytest.raises(PermissionDenied):
            await hours_service.create(
                employee, {**hours_fields, "user_id": other_employee.user_id}
            )

    async def test_admin_logs_for_employee(self, hours_service, admin, employee, hours_fields):
        row = await hours_service.create(admin, {**hours_fields, "user_id": employee.user_id})
        assert row["user_id"] == employee.user_id

    async def test_update_unlinked(self, hours_service, employee, hours_fields):
        row = await hours_service.create(employee, hours_fields)
        row = await hours_service.update(
            employee, row["hours_worked_id"], {"hours": Decimal("5"), "description": "Floors"}
        )
        assert row["hours"] == Decimal("5")
        assert row["description"] == "Floors"

    async def test_linked_billable_fields_locked(
        self, hours_service, association, employee, hours_fields
    ):
        row = await hours_service.create(employee, hours_fields)
        await association.create_invoice(employee, INVOICE_FIELDS, [row["hours_worked_id"]])

        with pytest.raises(Conflict):
            await hours_service.update(employee, row["hours_worked_id"], {"rate_hour": Decimal("40")})

        # Non-billable fields stay editable
        updated = await hours_service.update(
            employee, row["hours_worked_id"], {"description": "Office floors and kitchen"}
        )
        assert updated["description"] == "Office floors and kitchen"

    async def test_update_cannot_relink(self, hours_service, employee, hours_fields):
        row = await hours_service.create(employee, hours_fields)
        with pytest.raises(ValidationFailure):
            await hours_service.update(employee, row["hours_worked_id"], {"invoice_id": uuid4()})

    async def test_delete_guarded(self, hours_service, association, store, employee, hours_fields):
        linked = await hours_service.create(employee, hours_fields)
        free = await hours_service.create(employee, hours_fields)
        await association.create_invoice(employee, INVOICE_FIELDS, [linked["hours_worked_id"]])

        with pytest.raises(Conflict):
            await hours_service.delete(employee, linked["hours_worked_id"])
        await hours_service.delete(employee, free["hours_worked_id"])

        assert await store.get(EntityKind.HOURS_WORKED, free["hours_worked_id"]) is None

    async def test_other_employee_cannot_read(
        self, hours_service, employee, other_employee, hours_fields
    ):
        row = await hours_service.create(employee, hours_fields)
        with pytest.raises(PermissionDenied):
            await hours_service.get(other_employee, row["hours_worked_id"])


class TestReportService:
    async def test_create_and_update(self, reports, employee, customers):
        row = await reports.create(
            employee,
            {
                "report_date": date(2024, 3, 4),
                "report_time": time(9, 30),
                "customer_id": customers["john"]["customer_id"],
                "description": "Broken window in the hall",
            },
        )
        assert row["customer_name"] == "John Doe"
        assert row["user_id"] == employee.user_id

        row = await reports.update(employee, row["report_id"], {"description": "Fixed"})
        assert row["description"] == "Fixed"

    async def test_description_required(self, reports, employee, customers):
        with pytest.raises(ValidationFailure) as exc_info:
            await reports.create(
                employee,
                {
                    "report_date": date(2024, 3, 4),
                    "customer_id": customers["john"]["customer_id"],
                    "description": " ",
                },
            )
        assert exc_info.value.fields == ["description"]

    async def test_delete(self, reports, employee, customers):
        row = await reports.create(
            employee,
            {
                "report_date": date(2024, 3, 4),
                "customer_id": customers["john"]["customer_id"],
                "description": "All good",
            },
        )
        await reports.delete(employee, row["report_id"])
        with pytest.raises(NotFound):
            await reports.get(employee, row["report_id"])


class TestUserService:
    async def test_soft_delete(self, users, queries, admin, employee):
        row = await users.soft_delete(admin, employee.user_id)

        assert row["deleted_at"] is not None
        assert row["active"] is False
        listed = await queries.list_users()
        assert employee.user_id not in [u["user_id"] for u in listed.items]

        with pytest.raises(NotFound):
            await users.soft_delete(admin, employee.user_id)

    async def test_cannot_delete_self(self, users, admin):
        with pytest.raises(Conflict):
            await users.soft_delete(admin, admin.user_id)

    async def test_employees_cannot_administer(self, users, employee, other_employee):
        with pytest.raises(PermissionDenied):
            await users.set_active(employee, other_employee.user_id, False)

    async def test_toggle_active(self, users, admin, employee):
        row = await users.set_active(admin, employee.user_id, False)
        assert row["active"] is False
        row = await users.set_active(admin, employee.user_id, True)
        assert row["active"] is True
