"""Attendance ORM models: AttendanceRecord (daily time record)."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campus_admin.common.constants import AttendanceStatus, LeaveType, enum_values
from campus_admin.database import Base


class AttendanceRecord(Base):
    """One employee's attendance for one calendar date.

    ``hours_worked``, ``overtime_hours`` and ``pay_period`` are derived by
    ``AttendanceService`` from the time fields and never taken from input.
    """

    __tablename__ = "attendance_records"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "date", name="uq_attendance_emp_date"),
        sa.Index("ix_attendance_emp_paid_date", "employee_id", "is_paid", "date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    time_in: Mapped[Optional[time]] = mapped_column(sa.Time)
    time_out: Mapped[Optional[time]] = mapped_column(sa.Time)
    lunch_start: Mapped[Optional[time]] = mapped_column(sa.Time)
    lunch_end: Mapped[Optional[time]] = mapped_column(sa.Time)
    overtime_start: Mapped[Optional[time]] = mapped_column(sa.Time)
    overtime_end: Mapped[Optional[time]] = mapped_column(sa.Time)
    status: Mapped[AttendanceStatus] = mapped_column(
        sa.Enum(
            AttendanceStatus,
            name="attendance_status",
            values_callable=enum_values,
        ),
        nullable=False,
        default=AttendanceStatus.present,
    )
    leave_type: Mapped[Optional[LeaveType]] = mapped_column(
        sa.Enum(LeaveType, name="leave_type", values_callable=enum_values),
    )
    remarks: Mapped[Optional[str]] = mapped_column(sa.Text)
    hours_worked: Mapped[Decimal] = mapped_column(
        sa.Numeric(5, 2), nullable=False, default=Decimal("0.00"),
    )
    overtime_hours: Mapped[Decimal] = mapped_column(
        sa.Numeric(5, 2), nullable=False, default=Decimal("0.00"),
    )
    is_paid: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    pay_period: Mapped[Optional[date]] = mapped_column(sa.Date)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("employees.id", name="fk_attendance_created_by", ondelete="SET NULL"),
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    employee: Mapped["campus_admin.directory.models.Employee"] = relationship(
        foreign_keys=[employee_id], lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<AttendanceRecord employee_id={self.employee_id} date={self.date}>"
