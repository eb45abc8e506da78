"""Tests for common utilities — filters, pagination, atomic blocks and
RFC 7807 error rendering.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from campus_admin.common.exceptions import ConflictError, StorageFailure
from campus_admin.common.filters import _get_column, apply_filters
from campus_admin.common.pagination import PaginationMeta, paginate
from campus_admin.common.transactions import atomic
from campus_admin.directory.models import Department, Employee
from tests.conftest import _make_department, _make_employee


# ── Helpers ─────────────────────────────────────────────────────────


async def _seed_employee(db: AsyncSession, dept_id, **kwargs) -> Employee:
    kwargs.setdefault("email", f"{uuid.uuid4().hex[:8]}@campus.edu")
    emp = Employee(**_make_employee(department_id=dept_id, **kwargs))
    db.add(emp)
    await db.flush()
    return emp


async def _department_count(db: AsyncSession) -> int:
    return (await db.execute(select(func.count()).select_from(Department))).scalar_one()


# ═════════════════════════════════════════════════════════════════════
# FILTER TESTS
# ═════════════════════════════════════════════════════════════════════


class TestApplyFilters:
    """Tests for apply_filters utility."""

    async def test_filter_by_equality(self, db: AsyncSession, test_department):
        await _seed_employee(db, test_department["id"], first_name="Alice")
        await _seed_employee(db, test_department["id"], first_name="Bob")

        query = apply_filters(select(Employee), Employee, {"first_name": "Alice"})
        employees = (await db.execute(query)).scalars().all()
        assert len(employees) == 1
        assert employees[0].first_name == "Alice"

    async def test_filter_none_values_skipped(self, db: AsyncSession, test_department):
        await _seed_employee(db, test_department["id"])

        query = apply_filters(select(Employee), Employee, {"first_name": None, "is_active": True})
        assert len((await db.execute(query)).scalars().all()) == 1

    async def test_filter_by_ilike(self, db: AsyncSession, test_department):
        await _seed_employee(db, test_department["id"], first_name="Alexander")
        await _seed_employee(db, test_department["id"], first_name="Bobby")

        query = apply_filters(select(Employee), Employee, {"first_name__ilike": "alex"})
        employees = (await db.execute(query)).scalars().all()
        assert [e.first_name for e in employees] == ["Alexander"]

    async def test_filter_by_from_to_range(self, db: AsyncSession, test_department):
        await _seed_employee(db, test_department["id"], first_name="Low", monthly_salary=Decimal("15000.00"))
        await _seed_employee(db, test_department["id"], first_name="Mid", monthly_salary=Decimal("30000.00"))
        await _seed_employee(db, test_department["id"], first_name="High", monthly_salary=Decimal("90000.00"))

        query = apply_filters(select(Employee), Employee, {
            "monthly_salary__from": Decimal("20000.00"),
            "monthly_salary__to": Decimal("50000.00"),
        })
        employees = (await db.execute(query)).scalars().all()
        assert [e.first_name for e in employees] == ["Mid"]

    async def test_filter_by_in(self, db: AsyncSession, test_department):
        for name in ("Alice", "Bob", "Charlie"):
            await _seed_employee(db, test_department["id"], first_name=name)

        query = apply_filters(select(Employee), Employee, {"first_name__in": ["Alice", "Charlie"]})
        employees = (await db.execute(query)).scalars().all()
        assert {e.first_name for e in employees} == {"Alice", "Charlie"}

    async def test_filter_nonexistent_column_ignored(self, db: AsyncSession, test_department):
        await _seed_employee(db, test_department["id"])

        query = apply_filters(select(Employee), Employee, {"nonexistent_field": "value"})
        assert len((await db.execute(query)).scalars().all()) == 1


class TestGetColumn:
    """Tests for _get_column helper."""

    def test_get_existing_column(self):
        assert _get_column(Employee, "first_name") is not None

    def test_get_nonexistent_column(self):
        assert _get_column(Employee, "totally_fake_column") is None


# ═════════════════════════════════════════════════════════════════════
# PAGINATION TESTS
# ═════════════════════════════════════════════════════════════════════


class TestPagination:
    """Tests for pagination helper."""

    async def test_paginate_first_page(self, db: AsyncSession, test_department):
        for i in range(5):
            await _seed_employee(db, test_department["id"], first_name=f"P{i}")

        rows, meta = await paginate(
            db, select(Employee).order_by(Employee.first_name), page=1, page_size=3,
        )
        assert [e.first_name for e in rows] == ["P0", "P1", "P2"]
        assert meta.total == 5
        assert meta.total_pages == 2
        assert meta.has_next is True
        assert meta.has_prev is False

    async def test_paginate_page_2(self, db: AsyncSession, test_department):
        for i in range(5):
            await _seed_employee(db, test_department["id"], first_name=f"Q{i}")

        rows, meta = await paginate(
            db, select(Employee).order_by(Employee.first_name), page=2, page_size=3,
        )
        assert len(rows) == 2
        assert meta.has_prev is True
        assert meta.has_next is False

    async def test_paginate_empty_result(self, db: AsyncSession):
        query = select(Employee).where(Employee.first_name == "ZZZ_NONEXISTENT")
        rows, meta = await paginate(db, query, page=1, page_size=10)
        assert rows == []
        assert meta.total == 0
        assert meta.total_pages == 0

    def test_meta_build(self):
        meta = PaginationMeta.build(page=3, page_size=10, total=21)
        assert meta.total_pages == 3
        assert meta.has_next is False
        assert meta.has_prev is True


# ═════════════════════════════════════════════════════════════════════
# ATOMIC BLOCKS
# ═════════════════════════════════════════════════════════════════════


class TestAtomic:
    """A failing block leaves nothing behind."""

    async def test_commits_nothing_on_error(self, db: AsyncSession, test_department):
        with pytest.raises(RuntimeError):
            async with atomic(db, "test.error"):
                db.add(Department(**_make_department(name="Nursing", code="CON")))
                await db.flush()
                raise RuntimeError("boom")

        assert await _department_count(db) == 1

    async def test_unique_violation_maps_to_conflict(self, db: AsyncSession, test_department):
        with pytest.raises(ConflictError) as exc_info:
            async with atomic(db, "test.conflict", conflict=("code", "COE")):
                db.add(Department(**_make_department(name="Duplicate", code="COE")))

        assert exc_info.value.status_code == 409
        assert "code" in exc_info.value.errors
        assert await _department_count(db) == 1

    async def test_unique_violation_without_conflict_is_storage_failure(
        self, db: AsyncSession, test_department,
    ):
        with pytest.raises(StorageFailure) as exc_info:
            async with atomic(db, "test.storage"):
                db.add(Department(**_make_department(name="Duplicate", code="COE")))

        assert exc_info.value.status_code == 500
        assert exc_info.value.operation == "test.storage"

    async def test_successful_block_flushes(self, db: AsyncSession):
        async with atomic(db, "test.ok"):
            db.add(Department(**_make_department(name="Nursing", code="CON")))

        assert await _department_count(db) == 1


# ═════════════════════════════════════════════════════════════════════
# ERROR RENDERING
# ═════════════════════════════════════════════════════════════════════


class TestProblemDetails:
    """Errors are served as application/problem+json."""

    async def test_not_found_renders_problem_detail(self, client, admin_headers):
        missing = uuid.uuid4()
        resp = await client.get(f"/api/v1/payroll/{missing}", headers=admin_headers)

        assert resp.status_code == 404
        assert resp.headers["content-type"].startswith("application/problem+json")
        body = resp.json()
        assert body["type"].endswith("/not-found")
        assert body["status"] == 404
        assert body["instance"] == f"/api/v1/payroll/{missing}"
        assert str(missing) in body["detail"]

    async def test_request_validation_lists_fields(self, client, admin_headers):
        resp = await client.get("/api/v1/attendance", params={"page": 0}, headers=admin_headers)

        assert resp.status_code == 422
        body = resp.json()
        assert body["type"].endswith("/validation-error")
        assert "page" in body["errors"]

    async def test_health_needs_no_auth(self, client):
        resp = await client.get("/api/v1/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"
