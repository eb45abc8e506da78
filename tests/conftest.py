"""Shared test fixtures — async DB, client, auth helpers, factories.

Reusable across all test modules (attendance, payroll, tuition, common).
Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.

Factory fixtures commit their rows so a service-level rollback (which
discards everything uncommitted on the shared connection) leaves the seed
data in place.
"""

from __future__ import annotations

import os

# Set test JWT_SECRET before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")

import uuid
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from campus_admin.auth.service import create_access_token
from campus_admin.common.constants import (
    AttendanceStatus,
    EmployeePosition,
    UserRole,
)
from campus_admin.database import Base, get_db
from campus_admin.main import create_app

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
import campus_admin.common.audit  # noqa: F401
import campus_admin.directory.models  # noqa: F401
import campus_admin.attendance.models  # noqa: F401
import campus_admin.payroll.models  # noqa: F401
import campus_admin.tuition.models  # noqa: F401

# ── SQLite compat: compile PG-specific types to TEXT/CHAR ───────────

from sqlalchemy.dialects.postgresql import JSONB, UUID as PG_UUID
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, "sqlite")
def _jsonb_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(PG_UUID, "sqlite")
def _uuid_sqlite(element, compiler, **kw):
    return "CHAR(36)"


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    from campus_admin.common.rate_limit import limiter

    limiter.reset()
    yield


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

def _make_department(*, name: str = "College of Engineering", code: str = "COE") -> dict:
    return dict(
        id=uuid.uuid4(),
        name=name,
        code=code,
        is_active=True,
        created_at=datetime.now(timezone.utc),
    )


def _make_employee(
    *,
    email: str = "maria.santos@campus.edu",
    first_name: str = "Maria",
    last_name: str = "Santos",
    position: EmployeePosition = EmployeePosition.professor,
    monthly_salary: Decimal = Decimal("40000.00"),
    department_id: uuid.UUID | None = None,
) -> dict:
    return dict(
        id=uuid.uuid4(),
        employee_code=f"EMP-{uuid.uuid4().hex[:6].upper()}",
        first_name=first_name,
        last_name=last_name,
        email=email,
        position=position,
        monthly_salary=monthly_salary,
        department_id=department_id,
        is_active=True,
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )


def _make_course(*, code: str = "BSCS", name: str = "BS Computer Science",
                 department_id: uuid.UUID | None = None) -> dict:
    return dict(id=uuid.uuid4(), code=code, name=name, department_id=department_id)


def _make_student(
    *,
    first_name: str = "Juan",
    last_name: str = "Dela Cruz",
    course_id: uuid.UUID | None = None,
    year_level: int = 1,
) -> dict:
    return dict(
        id=uuid.uuid4(),
        student_number=f"2024-{uuid.uuid4().hex[:5].upper()}",
        first_name=first_name,
        last_name=last_name,
        email=f"{uuid.uuid4().hex[:8]}@students.campus.edu",
        course_id=course_id,
        year_level=year_level,
        created_at=datetime.now(timezone.utc),
    )


def _make_enrollment(
    *,
    student_id: uuid.UUID,
    course_id: uuid.UUID | None = None,
    department_id: uuid.UUID | None = None,
    total_fee: Decimal = Decimal("40000.00"),
    academic_year: str = "2024-2025",
    semester: int = 1,
) -> dict:
    return dict(
        id=uuid.uuid4(),
        student_id=student_id,
        course_id=course_id,
        department_id=department_id,
        academic_year=academic_year,
        semester=semester,
        enrollment_date=date(2024, 6, 10),
        total_fee=total_fee,
        remaining_balance=total_fee,
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )


def _make_attendance(
    *,
    employee_id: uuid.UUID,
    day: date,
    time_in: time | None = time(8, 0),
    time_out: time | None = time(17, 0),
    lunch: tuple[time, time] | None = (time(12, 0), time(13, 0)),
    overtime: tuple[time, time] | None = None,
    status: AttendanceStatus = AttendanceStatus.present,
) -> dict:
    """Keyword arguments for ``AttendanceService.create``."""
    return dict(
        employee_id=employee_id,
        date=day,
        status=status,
        time_in=time_in,
        time_out=time_out,
        lunch_start=lunch[0] if lunch else None,
        lunch_end=lunch[1] if lunch else None,
        overtime_start=overtime[0] if overtime else None,
        overtime_end=overtime[1] if overtime else None,
    )


@pytest.fixture
async def test_department(db) -> dict:
    from campus_admin.directory.models import Department

    data = _make_department()
    db.add(Department(**data))
    await db.commit()
    return data


@pytest.fixture
async def test_employee(db, test_department) -> dict:
    """Insert an active professor earning 40,000 a month."""
    from campus_admin.directory.models import Employee

    data = _make_employee(department_id=test_department["id"])
    db.add(Employee(**data))
    await db.commit()
    return data


@pytest.fixture
async def admin_employee(db, test_department) -> dict:
    """The employee who acts on the admin token."""
    from campus_admin.directory.models import Employee

    data = _make_employee(
        email="admin@campus.edu",
        first_name="Ana",
        last_name="Reyes",
        position=EmployeePosition.registrar,
        department_id=test_department["id"],
    )
    db.add(Employee(**data))
    await db.commit()
    return data


@pytest.fixture
async def test_course(db, test_department) -> dict:
    from campus_admin.directory.models import Course

    data = _make_course(department_id=test_department["id"])
    db.add(Course(**data))
    await db.commit()
    return data


@pytest.fixture
async def test_student(db, test_course) -> dict:
    from campus_admin.directory.models import Student

    data = _make_student(course_id=test_course["id"])
    db.add(Student(**data))
    await db.commit()
    return data


@pytest.fixture
async def test_enrollment(db, test_student, test_course, test_department) -> dict:
    """Enrollment with a 40,000.00 fee and nothing paid yet."""
    from campus_admin.directory.models import Enrollment

    data = _make_enrollment(
        student_id=test_student["id"],
        course_id=test_course["id"],
        department_id=test_department["id"],
    )
    db.add(Enrollment(**data))
    await db.commit()
    return data


# ── Auth helpers ────────────────────────────────────────────────────

def make_auth_headers(
    employee_id: uuid.UUID,
    role: UserRole = UserRole.admin,
    expired: bool = False,
) -> dict[str, str]:
    """Bearer headers carrying a JWT for *employee_id* acting as *role*."""
    expires_in = timedelta(hours=-1) if expired else None
    token = create_access_token(employee_id, role, expires_in=expires_in)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_employee) -> dict[str, str]:
    return make_auth_headers(admin_employee["id"], UserRole.admin)
