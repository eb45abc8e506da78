"""Enums and constants for Campus Admin — stored by value in the database."""

from __future__ import annotations

import enum


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    admin = "admin"
    registrar = "registrar"
    treasurer = "treasurer"
    professor = "professor"


class EmployeePosition(str, enum.Enum):
    registrar = "registrar"
    treasurer = "treasurer"
    professor = "professor"


# ── Attendance (DTR) ────────────────────────────────────────────────

class AttendanceStatus(str, enum.Enum):
    present = "Present"
    absent = "Absent"
    late = "Late"
    half_day = "Half Day"
    on_leave = "On Leave"


class LeaveType(str, enum.Enum):
    sick = "Sick Leave"
    vacation = "Vacation Leave"
    personal = "Personal Leave"
    emergency = "Emergency Leave"
    parental = "Maternity/Paternity Leave"


# Statuses that require both time_in and time_out
TIMED_STATUSES = frozenset(
    {AttendanceStatus.present, AttendanceStatus.late, AttendanceStatus.half_day}
)


# ── Payroll ─────────────────────────────────────────────────────────

class PayrollStatus(str, enum.Enum):
    pending = "pending"
    processing = "processing"
    completed = "completed"
    rejected = "rejected"


class PayrollPaymentMethod(str, enum.Enum):
    bank_transfer = "bank_transfer"
    cash = "cash"
    check = "check"


PAYROLL_TRANSITIONS: dict[PayrollStatus, frozenset[PayrollStatus]] = {
    PayrollStatus.pending: frozenset(
        {PayrollStatus.processing, PayrollStatus.completed, PayrollStatus.rejected}
    ),
    PayrollStatus.processing: frozenset(
        {PayrollStatus.completed, PayrollStatus.rejected}
    ),
    PayrollStatus.completed: frozenset(),
    PayrollStatus.rejected: frozenset(),
}


# ── Enrollment / Tuition ────────────────────────────────────────────

class EnrollmentStatus(str, enum.Enum):
    enrolled = "Enrolled"
    pending = "Pending"
    cancelled = "Cancelled"


class EnrollmentPaymentStatus(str, enum.Enum):
    pending = "Pending"
    completed = "Completed"


class TuitionPaymentMethod(str, enum.Enum):
    cash = "Cash"
    bank_transfer = "Bank Transfer"
    online = "Online"


class PaymentStatus(str, enum.Enum):
    pending = "Pending"
    completed = "Completed"
    failed = "Failed"


# ── Misc constants ──────────────────────────────────────────────────

RECEIPT_PREFIX = "RCP"
RECEIPT_DATE_FORMAT = "%B %d, %Y"      # March 10, 2024
RECEIPT_TIME_FORMAT = "%I:%M %p"       # 09:30 AM
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 10


def enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """``values_callable`` for ``sa.Enum`` so rows store the enum value."""
    return [member.value for member in enum_cls]
