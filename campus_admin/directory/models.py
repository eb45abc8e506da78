"""Directory ORM models: Department, Employee, Course, Student, Enrollment.

SQLAlchemy 2.0 async-compatible models with Mapped[] annotations.
These are the collaborator stores the payroll and tuition modules read from:
the employee directory (monthly salary, position) and the enrollment store
(total fee, remaining balance).
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campus_admin.common.constants import (
    EmployeePosition,
    EnrollmentPaymentStatus,
    EnrollmentStatus,
    enum_values,
)
from campus_admin.config import settings
from campus_admin.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ═════════════════════════════════════════════════════════════════════
# Department
# ═════════════════════════════════════════════════════════════════════


class Department(Base):
    """Academic / administrative department."""

    __tablename__ = "departments"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    code: Mapped[str] = mapped_column(sa.String(20), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(sa.String(150), nullable=False)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )

    # ── Relationships ───────────────────────────────────────────────
    employees: Mapped[list[Employee]] = relationship(back_populates="department")

    def __repr__(self) -> str:
        return f"<Department {self.name!r} ({self.code})>"


# ═════════════════════════════════════════════════════════════════════
# Employee
# ═════════════════════════════════════════════════════════════════════


class Employee(Base):
    """Staff member — owns DTRs and payroll records."""

    __tablename__ = "employees"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_code: Mapped[str] = mapped_column(
        sa.String(20), unique=True, nullable=False,
    )
    first_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    email: Mapped[str] = mapped_column(
        sa.String(255), unique=True, nullable=False,
    )
    position: Mapped[EmployeePosition] = mapped_column(
        sa.Enum(
            EmployeePosition,
            name="employee_position",
            values_callable=enum_values,
        ),
        nullable=False,
    )
    monthly_salary: Mapped[Decimal] = mapped_column(
        sa.Numeric(12, 2), nullable=False, default=Decimal("40000.00"),
    )
    department_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("departments.id"),
    )
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow,
    )

    # ── Relationships ───────────────────────────────────────────────
    department: Mapped[Optional[Department]] = relationship(
        back_populates="employees", lazy="selectin",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return (
            f"<Employee {self.employee_code} "
            f"{self.first_name} {self.last_name}>"
        )


# ═════════════════════════════════════════════════════════════════════
# Course
# ═════════════════════════════════════════════════════════════════════


class Course(Base):
    """Degree programme a student is enrolled in."""

    __tablename__ = "courses"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    code: Mapped[str] = mapped_column(sa.String(20), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    department_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("departments.id"),
    )

    def __repr__(self) -> str:
        return f"<Course {self.code}>"


# ═════════════════════════════════════════════════════════════════════
# Student
# ═════════════════════════════════════════════════════════════════════


class Student(Base):
    __tablename__ = "students"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    student_number: Mapped[str] = mapped_column(
        sa.String(30), unique=True, nullable=False,
    )
    first_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(sa.String(255), unique=True)
    course_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("courses.id"),
    )
    year_level: Mapped[int] = mapped_column(sa.Integer, default=1)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )

    # ── Relationships ───────────────────────────────────────────────
    course: Mapped[Optional[Course]] = relationship(lazy="selectin")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<Student {self.student_number}>"


# ═════════════════════════════════════════════════════════════════════
# Enrollment
# ═════════════════════════════════════════════════════════════════════


class Enrollment(Base):
    """A student's registration for one academic year + semester.

    ``remaining_balance`` is owned by the tuition ledger: it always equals
    ``total_fee`` minus the sum of tuition payments against this enrollment.
    """

    __tablename__ = "enrollments"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    student_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
    )
    course_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("courses.id"),
    )
    department_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("departments.id"),
    )
    academic_year: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    semester: Mapped[int] = mapped_column(sa.SmallInteger, nullable=False)
    enrollment_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    status: Mapped[EnrollmentStatus] = mapped_column(
        sa.Enum(
            EnrollmentStatus,
            name="enrollment_status",
            values_callable=enum_values,
        ),
        default=EnrollmentStatus.pending,
    )
    payment_status: Mapped[EnrollmentPaymentStatus] = mapped_column(
        sa.Enum(
            EnrollmentPaymentStatus,
            name="enrollment_payment_status",
            values_callable=enum_values,
        ),
        default=EnrollmentPaymentStatus.pending,
    )
    total_fee: Mapped[Decimal] = mapped_column(
        sa.Numeric(10, 2), nullable=False, default=lambda: settings.DEFAULT_TUITION_FEE,
    )
    remaining_balance: Mapped[Decimal] = mapped_column(
        sa.Numeric(10, 2), nullable=False, default=lambda: settings.DEFAULT_TUITION_FEE,
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow,
    )

    # ── Relationships ───────────────────────────────────────────────
    student: Mapped[Student] = relationship(lazy="selectin")
    course: Mapped[Optional[Course]] = relationship(lazy="selectin")

    __table_args__ = (
        sa.CheckConstraint("remaining_balance <= total_fee", name="ck_enrollment_balance_le_fee"),
    )

    def __repr__(self) -> str:
        return (
            f"<Enrollment student_id={self.student_id} "
            f"{self.academic_year}/{self.semester}>"
        )
