"""Attendance Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Update / *Request  → request bodies (write)
  - *Response                     → response bodies (read)
  - *Row / *Stats                 → report rows
"""


import uuid
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from campus_admin.common.constants import AttendanceStatus, LeaveType
from campus_admin.common.pagination import PaginationMeta
from campus_admin.directory.schemas import EmployeeBrief


# ═════════════════════════════════════════════════════════════════════
# Write payloads
# ═════════════════════════════════════════════════════════════════════


class AttendanceTimes(BaseModel):
    """Time-of-day fields shared by create and update."""

    time_in: Optional[time] = None
    time_out: Optional[time] = None
    lunch_start: Optional[time] = None
    lunch_end: Optional[time] = None
    overtime_start: Optional[time] = None
    overtime_end: Optional[time] = None


class AttendanceCreate(AttendanceTimes):
    """Payload for submitting a DTR."""

    employee_id: uuid.UUID
    date: date
    status: AttendanceStatus = AttendanceStatus.present
    leave_type: Optional[LeaveType] = None
    remarks: Optional[str] = Field(None, max_length=2000)


class AttendanceUpdate(AttendanceTimes):
    """Payload for editing a DTR. Derived fields are recomputed."""

    date: date
    status: AttendanceStatus
    leave_type: Optional[LeaveType] = None
    remarks: Optional[str] = Field(None, max_length=2000)


class MarkPaidRequest(BaseModel):
    record_ids: list[uuid.UUID] = Field(..., min_length=1)


class MarkPaidResponse(BaseModel):
    updated: int


# ═════════════════════════════════════════════════════════════════════
# Read models
# ═════════════════════════════════════════════════════════════════════


class AttendanceRecordResponse(BaseModel):
    """Single DTR."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    date: date
    time_in: Optional[time] = None
    time_out: Optional[time] = None
    lunch_start: Optional[time] = None
    lunch_end: Optional[time] = None
    overtime_start: Optional[time] = None
    overtime_end: Optional[time] = None
    status: AttendanceStatus
    leave_type: Optional[LeaveType] = None
    remarks: Optional[str] = None
    hours_worked: Decimal
    overtime_hours: Decimal
    is_paid: bool
    pay_period: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AttendanceDetail(AttendanceRecordResponse):
    employee: Optional[EmployeeBrief] = None


class AttendanceListResponse(BaseModel):
    data: list[AttendanceDetail]
    meta: PaginationMeta


# ═════════════════════════════════════════════════════════════════════
# Reports
# ═════════════════════════════════════════════════════════════════════


class PayrollExportRow(BaseModel):
    """Per-employee totals over a window, for payroll preparation."""

    employee: EmployeeBrief
    total_hours: Decimal = Decimal("0.00")
    overtime_hours: Decimal = Decimal("0.00")
    days_present: int = 0
    days_absent: int = 0
    days_late: int = 0
    days_half_day: int = 0
    days_on_leave: int = 0


class PayrollExportResponse(BaseModel):
    start_date: date
    end_date: date
    rows: list[PayrollExportRow]


class EmployeeAttendanceStats(BaseModel):
    employee: EmployeeBrief
    present: int = 0
    absent: int = 0
    late: int = 0
    half_day: int = 0
    on_leave: int = 0
    total_hours: Decimal = Decimal("0.00")
    overtime_hours: Decimal = Decimal("0.00")


class AttendanceReport(BaseModel):
    """Attendance analytics for a date range."""

    start_date: date
    end_date: date
    department_id: Optional[uuid.UUID] = None
    total_employees: int = 0
    total_attendance_records: int = 0
    present_count: int = 0
    absent_count: int = 0
    late_count: int = 0
    half_day_count: int = 0
    on_leave_count: int = 0
    average_hours: Decimal = Decimal("0.00")
    total_overtime_hours: Decimal = Decimal("0.00")
    employee_stats: list[EmployeeAttendanceStats] = []
