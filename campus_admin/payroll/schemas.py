"""Payroll Pydantic v2 schemas — request / response validation."""


import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from campus_admin.attendance.schemas import AttendanceRecordResponse
from campus_admin.common.constants import PayrollPaymentMethod, PayrollStatus
from campus_admin.common.pagination import PaginationMeta
from campus_admin.directory.schemas import EmployeeBrief


# ═════════════════════════════════════════════════════════════════════
# Write payloads
# ═════════════════════════════════════════════════════════════════════


class PayrollCreate(BaseModel):
    """Run payroll for one employee over a pay window."""

    employee_id: uuid.UUID
    pay_period_start: date
    pay_period_end: date
    allowances: Decimal = Field(Decimal("0.00"), ge=0, decimal_places=2)
    deductions: Decimal = Field(Decimal("0.00"), ge=0, decimal_places=2)
    payment_method: PayrollPaymentMethod = PayrollPaymentMethod.bank_transfer
    remarks: Optional[str] = Field(None, max_length=2000)


class PayrollUpdate(BaseModel):
    """Status / payment-method change, optionally re-keying allowances and deductions."""

    status: PayrollStatus
    payment_method: PayrollPaymentMethod
    allowances: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    deductions: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    remarks: Optional[str] = Field(None, max_length=2000)


# ═════════════════════════════════════════════════════════════════════
# Read models
# ═════════════════════════════════════════════════════════════════════


class PayrollResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    pay_period_start: date
    pay_period_end: date
    basic_salary: Decimal
    overtime_pay: Decimal
    allowances: Decimal
    deductions: Decimal
    tax: Decimal
    gross_salary: Decimal
    net_salary: Decimal
    payment_method: PayrollPaymentMethod
    status: PayrollStatus
    remarks: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_by: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PayrollDetail(PayrollResponse):
    employee: Optional[EmployeeBrief] = None


class PayrollWithAttendance(BaseModel):
    """A payroll together with the DTRs in its window."""

    payroll: PayrollDetail
    attendance: list[AttendanceRecordResponse]


class PayrollStats(BaseModel):
    total: int = 0
    pending: int = 0
    processing: int = 0
    completed: int = 0
    rejected: int = 0


class PayrollListResponse(BaseModel):
    data: list[PayrollDetail]
    meta: PaginationMeta
    stats: PayrollStats


# ═════════════════════════════════════════════════════════════════════
# Reports
# ═════════════════════════════════════════════════════════════════════


class PayrollTotals(BaseModel):
    basic_salary: Decimal = Decimal("0.00")
    overtime_pay: Decimal = Decimal("0.00")
    allowances: Decimal = Decimal("0.00")
    deductions: Decimal = Decimal("0.00")
    tax: Decimal = Decimal("0.00")
    net_salary: Decimal = Decimal("0.00")


class PayrollReport(BaseModel):
    start_date: date
    end_date: date
    status: Optional[PayrollStatus] = None
    records: list[PayrollDetail]
    totals: PayrollTotals
