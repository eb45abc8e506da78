"""Payroll ORM models: PayrollRecord.

SQLAlchemy 2.0 async-compatible models.
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
    PayrollPaymentMethod,
    PayrollStatus,
    enum_values,
)
from campus_admin.database import Base


class PayrollRecord(Base):
    """One employee's pay for one pay window.

    Amounts are frozen at creation from the employee's unpaid DTRs; later
    edits only touch allowances, deductions, status and payment method.
    """

    __tablename__ = "payroll_records"
    __table_args__ = (
        sa.CheckConstraint("pay_period_end >= pay_period_start", name="ck_payroll_period_order"),
        sa.CheckConstraint("allowances >= 0", name="ck_payroll_allowances_nonneg"),
        sa.CheckConstraint("deductions >= 0", name="ck_payroll_deductions_nonneg"),
        sa.Index("ix_payroll_emp_period", "employee_id", "pay_period_start"),
        sa.Index("ix_payroll_status", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    pay_period_start: Mapped[date] = mapped_column(sa.Date, nullable=False)
    pay_period_end: Mapped[date] = mapped_column(sa.Date, nullable=False)
    basic_salary: Mapped[Decimal] = mapped_column(
        sa.Numeric(12, 2), nullable=False, default=Decimal("0.00"),
    )
    overtime_pay: Mapped[Decimal] = mapped_column(
        sa.Numeric(12, 2), nullable=False, default=Decimal("0.00"),
    )
    allowances: Mapped[Decimal] = mapped_column(
        sa.Numeric(12, 2), nullable=False, default=Decimal("0.00"),
    )
    deductions: Mapped[Decimal] = mapped_column(
        sa.Numeric(12, 2), nullable=False, default=Decimal("0.00"),
    )
    tax: Mapped[Decimal] = mapped_column(
        sa.Numeric(12, 2), nullable=False, default=Decimal("0.00"),
    )
    net_salary: Mapped[Decimal] = mapped_column(
        sa.Numeric(12, 2), nullable=False, default=Decimal("0.00"),
    )
    payment_method: Mapped[PayrollPaymentMethod] = mapped_column(
        sa.Enum(
            PayrollPaymentMethod,
            name="payroll_payment_method",
            values_callable=enum_values,
        ),
        nullable=False,
        default=PayrollPaymentMethod.bank_transfer,
    )
    status: Mapped[PayrollStatus] = mapped_column(
        sa.Enum(PayrollStatus, name="payroll_status", values_callable=enum_values),
        nullable=False,
        default=PayrollStatus.pending,
    )
    remarks: Mapped[Optional[str]] = mapped_column(sa.Text)
    paid_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("employees.id", name="fk_payroll_created_by", ondelete="SET NULL"),
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
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

    @property
    def gross_salary(self) -> Decimal:
        return self.basic_salary + self.overtime_pay + self.allowances

    def __repr__(self) -> str:
        return (
            f"<PayrollRecord employee_id={self.employee_id} "
            f"{self.pay_period_start}..{self.pay_period_end} {self.status}>"
        )
