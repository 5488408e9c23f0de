"""Tests for filtered, paginated queries."""

from datetime import date, timedelta
from uuid import uuid4

import pytest

from cleaning_billing.errors import NotFound, PermissionDenied, ValidationFailure
from cleaning_billing.models import EntityKind
from cleaning_billing.queries import (
    ALL_OWNERS,
    CustomerFilter,
    HoursWorkedFilters,
    InvoiceFilters,
    Presence,
    UserFilters,
)

from .conftest import INVOICE_FIELDS


class TestPagination:
    async def test_pages_cover_all_rows(self, queries, employee, make_hours):
        start = date(2024, 1, 1)
        for offset in range(25):
            await make_hours(date_worked=start + timedelta(days=offset))

        first = await queries.list_hours_worked(employee.user_id, page=1, page_size=10)
        third = await queries.list_hours_worked(employee.user_id, page=3, page_size=10)

        assert first.total_count == 25
        assert len(first.items) == 10
        # Newest first
        assert first.items[0]["date_worked"] == date(2024, 1, 25)
        assert (first.first_index, first.last_index) == (1, 10)
        assert first.has_next is True

        assert len(third.items) == 5
        assert third.items[-1]["date_worked"] == date(2024, 1, 1)
        assert (third.first_index, third.last_index) == (21, 25)
        assert third.has_next is False
        assert third.page_count == 3

    async def test_pages_do_not_overlap_on_equal_sort_keys(self, queries, employee, make_hours):
        for _ in range(12):
            await make_hours(date_worked=date(2024, 3, 1))

        first = await queries.list_hours_worked(employee.user_id, page=1, page_size=5)
        second = await queries.list_hours_worked(employee.user_id, page=2, page_size=5)
        third = await queries.list_hours_worked(employee.user_id, page=3, page_size=5)

        ids = [row["hours_worked_id"] for page in (first, second, third) for row in page.items]
        assert len(ids) == len(set(ids)) == 12

    async def test_default_page_size(self, queries, employee, make_hours):
        for _ in range(12):
            await make_hours()
        page = await queries.list_hours_worked(employee.user_id)
        assert page.page_size == 10
        assert len(page.items) == 10

    async def test_page_past_end_is_empty(self, queries, employee, make_hours):
        await make_hours()
        page = await queries.list_hours_worked(employee.user_id, page=4)
        assert page.items == []
        assert page.total_count == 1

    @pytest.mark.parametrize("page, page_size", [(0, 10), (1, 0), (1, 101)])
    async def test_invalid_paging(self, queries, employee, page, page_size):
        with pytest.raises(ValidationFailure):
            await queries.list_hours_worked(employee.user_id, page=page, page_size=page_size)


class TestHoursWorkedFilters:
    async def test_customer_text_matches_names_partially(
        self, queries, employee, customers, make_hours
    ):
        await make_hours(customer="maria")
        await make_hours(customer="mariana")
        await make_hours(customer="john")

        page = await queries.list_hours_worked(
            employee.user_id, HoursWorkedFilters(customer="maria")
        )

        assert page.total_count == 2
        assert {row["customer_name"] for row in page.items} == {"Maria Lopez", "Mariana Cafe"}

    async def test_customer_identifier_matches_exactly(
        self, queries, employee, customers, make_hours
    ):
        await make_hours(customer="maria")
        await make_hours(customer="mariana")

        maria_id = customers["maria"]["customer_id"]
        page = await queries.list_hours_worked(
            employee.user_id, HoursWorkedFilters(customer=str(maria_id))
        )

        assert page.total_count == 1
        assert page.items[0]["customer_id"] == maria_id

    async def test_explicit_customer_id(self, queries, employee, customers, make_hours):
        await make_hours(customer="john")
        page = await queries.list_hours_worked(
            employee.user_id,
            HoursWorkedFilters(customer=CustomerFilter.by_id(customers["john"]["customer_id"])),
        )
        assert page.total_count == 1

    async def test_unbilled_versus_omitted(
        self, queries, association, employee, make_hours
    ):
        billed = await make_hours()
        await make_hours()
        await make_hours()
        await association.create_invoice(employee, INVOICE_FIELDS, [billed["hours_worked_id"]])

        everything = await queries.list_hours_worked(employee.user_id, HoursWorkedFilters())
        unbilled = await queries.list_hours_worked(
            employee.user_id, HoursWorkedFilters(invoice_id=Presence.ABSENT)
        )
        only_billed = await queries.list_hours_worked(
            employee.user_id, HoursWorkedFilters(invoice_id=Presence.PRESENT)
        )

        assert everything.total_count == 3
        assert unbilled.total_count == 2
        assert only_billed.total_count == 1
        assert only_billed.items[0]["hours_worked_id"] == billed["hours_worked_id"]

    async def test_date_range_and_description(self, queries, employee, make_hours):
        await make_hours(date_worked=date(2024, 2, 28), description="Deep clean")
        await make_hours(date_worked=date(2024, 3, 5), description="deep clean kitchen")
        await make_hours(date_worked=date(2024, 3, 6), description="Windows")

        page = await queries.list_hours_worked(
            employee.user_id,
            HoursWorkedFilters(
                date_from=date(2024, 3, 1), date_to=date(2024, 3, 31), description="DEEP"
            ),
        )
        assert page.total_count == 1
        assert page.items[0]["date_worked"] == date(2024, 3, 5)

    async def test_like_wildcards_are_literal(self, queries, employee, make_hours):
        await make_hours(description="100% done")
        await make_hours(description="1000 done")
        page = await queries.list_hours_worked(
            employee.user_id, HoursWorkedFilters(description="100%")
        )
        assert page.total_count == 1


class TestOwnerScope:
    async def test_owner_sees_only_own_rows(
        self, queries, employee, other_employee, make_hours
    ):
        await make_hours()
        await make_hours(user_id=other_employee.user_id)

        own = await queries.list_hours_worked(employee.user_id)
        everyone = await queries.list_hours_worked(ALL_OWNERS)

        assert own.total_count == 1
        assert everyone.total_count == 2

    async def test_actor_scope(self, admin, employee, other_employee):
        assert employee.scope_for() == employee.user_id
        assert admin.scope_for() is ALL_OWNERS
        assert admin.scope_for(employee.user_id) == employee.user_id
        with pytest.raises(PermissionDenied):
            employee.scope_for(other_employee.user_id)


class TestInvoiceQueries:
    async def test_invoices_embed_linked_hours(self, queries, association, employee, make_hours):
        h1 = await make_hours(hours="3", rate_hour="20")
        h2 = await make_hours(hours="2", rate_hour="25")
        await association.create_invoice(
            employee, INVOICE_FIELDS, [h1["hours_worked_id"], h2["hours_worked_id"]]
        )

        page = await queries.list_invoices(employee.user_id, InvoiceFilters(status="created"))

        assert page.total_count == 1
        assert len(page.items[0]["hours_worked"]) == 2

    async def test_status_filter(self, queries, association, employee, make_hours):
        h1 = await make_hours()
        invoice = await association.create_invoice(employee, INVOICE_FIELDS, [h1["hours_worked_id"]])
        await association.transition_status(employee, invoice["invoice_id"], "sent")

        assert (await queries.list_invoices(ALL_OWNERS, InvoiceFilters(status="created"))).total_count == 0
        assert (await queries.list_invoices(ALL_OWNERS, InvoiceFilters(status="sent"))).total_count == 1

    async def test_get_missing_invoice(self, queries):
        with pytest.raises(NotFound):
            await queries.get_invoice(uuid4())

    async def test_selectable_hours(self, queries, association, employee, make_hours):
        on_invoice = await make_hours()
        free = await make_hours()
        elsewhere = await make_hours()
        invoice = await association.create_invoice(
            employee, INVOICE_FIELDS, [on_invoice["hours_worked_id"]]
        )
        await association.create_invoice(employee, INVOICE_FIELDS, [elsewhere["hours_worked_id"]])

        for_new = await queries.selectable_hours(employee.user_id)
        for_edit = await queries.selectable_hours(employee.user_id, invoice["invoice_id"])

        assert [r["hours_worked_id"] for r in for_new] == [free["hours_worked_id"]]
        assert {r["hours_worked_id"] for r in for_edit} == {
            free["hours_worked_id"],
            on_invoice["hours_worked_id"],
        }


class TestUsersAndCustomers:
    async def test_deleted_users_hidden(self, queries, store, admin_user, employee_user):
        await store.update(
            EntityKind.USER, employee_user["user_id"], {"deleted_at": admin_user["created_at"]}
        )

        visible = await queries.list_users()
        everyone = await queries.list_users(UserFilters(include_deleted=True))

        assert [u["user_id"] for u in visible.items] == [admin_user["user_id"]]
        assert everyone.total_count == 2

    async def test_customer_search(self, queries, customers):
        rows = await queries.search_customers("mari")
        assert [r["full_name"] for r in rows] == ["Maria Lopez", "Mariana Cafe"]

    async def test_customer_search_blank_returns_all(self, queries, customers):
        assert len(await queries.search_customers("", limit=2)) == 2
