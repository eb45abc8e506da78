"""Attendance service layer — daily time records (DTR).

Business logic:
  - One DTR per employee per date
  - hours_worked / overtime_hours derived from the time fields, never from input
  - pay_period bucketing (1st-15th, 16th-end of month)
  - Paid DTRs are frozen until the owning payroll is deleted
  - Payroll export and attendance analytics over a date range
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from datetime import date, time
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from campus_admin.attendance.calculations import (
    ZERO_HOURS,
    interval_hours,
    interval_minutes,
    pay_period_for,
    round_hours,
    worked_hours,
)
from campus_admin.attendance.models import AttendanceRecord
from campus_admin.attendance.schemas import (
    AttendanceDetail,
    AttendanceListResponse,
    AttendanceRecordResponse,
    AttendanceReport,
    EmployeeAttendanceStats,
    PayrollExportResponse,
    PayrollExportRow,
)
from campus_admin.common.audit import create_audit_entry
from campus_admin.common.constants import (
    TIMED_STATUSES,
    AttendanceStatus,
    LeaveType,
)
from campus_admin.common.exceptions import (
    ConflictError,
    InvalidStateError,
    NotFoundException,
    ValidationException,
)
from campus_admin.common.filters import apply_filters
from campus_admin.common.pagination import paginate
from campus_admin.common.transactions import atomic
from campus_admin.directory.models import Employee
from campus_admin.directory.service import DirectoryService

logger = logging.getLogger(__name__)

_STATUS_COUNTERS: dict[AttendanceStatus, str] = {
    AttendanceStatus.present: "present",
    AttendanceStatus.absent: "absent",
    AttendanceStatus.late: "late",
    AttendanceStatus.half_day: "half_day",
    AttendanceStatus.on_leave: "on_leave",
}


# ═════════════════════════════════════════════════════════════════════
# AttendanceService
# ═════════════════════════════════════════════════════════════════════


class AttendanceService:
    """Async DTR operations: submit, edit, mark paid, report."""

    # ── Helpers ─────────────────────────────────────────────────────

    @staticmethod
    def compute_hours(
        *,
        status: AttendanceStatus,
        leave_type: Optional[LeaveType] = None,
        time_in: Optional[time] = None,
        time_out: Optional[time] = None,
        lunch_start: Optional[time] = None,
        lunch_end: Optional[time] = None,
        overtime_start: Optional[time] = None,
        overtime_end: Optional[time] = None,
    ) -> tuple[Decimal, Decimal]:
        """Validate a DTR's fields and return ``(hours_worked, overtime_hours)``.

        Raises ValidationException with every failing field at once.
        """
        errors: dict[str, list[str]] = {}

        if status in TIMED_STATUSES:
            if time_in is None:
                errors.setdefault("time_in", []).append(
                    f"time_in is required when status is {status.value}."
                )
            if time_out is None:
                errors.setdefault("time_out", []).append(
                    f"time_out is required when status is {status.value}."
                )
        if status == AttendanceStatus.on_leave and leave_type is None:
            errors.setdefault("leave_type", []).append(
                "leave_type is required when status is On Leave."
            )

        if interval_minutes(time_in, time_out) < 0:
            errors.setdefault("time_out", []).append("time_out must not be earlier than time_in.")
        if interval_minutes(lunch_start, lunch_end) < 0:
            errors.setdefault("lunch_end", []).append("lunch_end must not be earlier than lunch_start.")
        if interval_minutes(overtime_start, overtime_end) < 0:
            errors.setdefault("overtime_end", []).append(
                "overtime_end must not be earlier than overtime_start."
            )
        if errors:
            raise ValidationException(errors)

        hours = worked_hours(time_in, time_out, lunch_start, lunch_end)
        if hours < ZERO_HOURS:
            raise ValidationException(
                {"lunch_end": ["Lunch break cannot be longer than the time worked."]}
            )
        overtime = interval_hours(overtime_start, overtime_end)
        return hours, overtime

    @staticmethod
    def _snapshot(record: AttendanceRecord) -> dict[str, Any]:
        return AttendanceRecordResponse.model_validate(record).model_dump(mode="json")

    @staticmethod
    def to_detail(record: AttendanceRecord) -> AttendanceDetail:
        """Convert an ORM AttendanceRecord (employee loaded) to a response schema."""
        detail = AttendanceDetail.model_validate(
            AttendanceRecordResponse.model_validate(record).model_dump()
        )
        if record.employee is not None:
            detail.employee = DirectoryService.employee_brief(record.employee)
        return detail

    @staticmethod
    def _validate_date_range(start_date: date, end_date: date) -> None:
        if start_date > end_date:
            raise ValidationException(
                {"end_date": ["end_date must be on or after start_date."]}
            )

    # ── Reads ───────────────────────────────────────────────────────

    @staticmethod
    async def get(db: AsyncSession, record_id: uuid.UUID) -> AttendanceRecord:
        record = await db.get(AttendanceRecord, record_id)
        if record is None:
            raise NotFoundException("AttendanceRecord", record_id)
        return record

    @staticmethod
    async def list_records(
        db: AsyncSession,
        *,
        employee_id: Optional[uuid.UUID] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        status: Optional[AttendanceStatus] = None,
        is_paid: Optional[bool] = None,
        page: int = 1,
        page_size: int = 10,
    ) -> AttendanceListResponse:
        """Paginated DTR list, newest date first."""
        query = apply_filters(
            select(AttendanceRecord),
            AttendanceRecord,
            {
                "employee_id": employee_id,
                "date__from": from_date,
                "date__to": to_date,
                "status": status,
                "is_paid": is_paid,
            },
        ).order_by(AttendanceRecord.date.desc(), AttendanceRecord.created_at.desc())

        records, meta = await paginate(db, query, page=page, page_size=page_size)
        return AttendanceListResponse(
            data=[AttendanceService.to_detail(r) for r in records],
            meta=meta,
        )

    # ── Writes ──────────────────────────────────────────────────────

    @staticmethod
    async def create(
        db: AsyncSession,
        employee_id: uuid.UUID,
        *,
        date: date,
        status: AttendanceStatus = AttendanceStatus.present,
        time_in: Optional[time] = None,
        time_out: Optional[time] = None,
        lunch_start: Optional[time] = None,
        lunch_end: Optional[time] = None,
        overtime_start: Optional[time] = None,
        overtime_end: Optional[time] = None,
        leave_type: Optional[LeaveType] = None,
        remarks: Optional[str] = None,
        actor_id: Optional[uuid.UUID] = None,
    ) -> AttendanceRecord:
        """Submit a DTR for one employee and date.

        Raises:
            NotFoundException: unknown employee.
            ValidationException: missing/invalid time fields or leave type.
            ConflictError: a DTR already exists for (employee, date).
        """
        employee = await DirectoryService.get_employee(db, employee_id)
        hours, overtime = AttendanceService.compute_hours(
            status=status,
            leave_type=leave_type,
            time_in=time_in,
            time_out=time_out,
            lunch_start=lunch_start,
            lunch_end=lunch_end,
            overtime_start=overtime_start,
            overtime_end=overtime_end,
        )

        existing = await db.execute(
            select(AttendanceRecord.id).where(
                AttendanceRecord.employee_id == employee_id,
                AttendanceRecord.date == date,
            )
        )
        if existing.first() is not None:
            raise ConflictError(
                "date",
                date.isoformat(),
                detail="A DTR record already exists for this employee on this date.",
            )

        record = AttendanceRecord(
            employee_id=employee_id,
            employee=employee,
            date=date,
            time_in=time_in,
            time_out=time_out,
            lunch_start=lunch_start,
            lunch_end=lunch_end,
            overtime_start=overtime_start,
            overtime_end=overtime_end,
            status=status,
            leave_type=leave_type,
            remarks=remarks,
            hours_worked=hours,
            overtime_hours=overtime,
            is_paid=False,
            pay_period=pay_period_for(date),
            created_by=actor_id,
        )
        async with atomic(db, "attendance.create", conflict=("date", date.isoformat())):
            db.add(record)
            await db.flush()
            await create_audit_entry(
                db,
                action="create",
                entity_type="attendance_record",
                entity_id=record.id,
                actor_id=actor_id,
                new_values=AttendanceService._snapshot(record),
            )

        logger.info(
            "DTR %s created for employee %s on %s (%s h, %s h OT)",
            record.id, employee_id, date, hours, overtime,
        )
        return record

    @staticmethod
    async def update(
        db: AsyncSession,
        record_id: uuid.UUID,
        *,
        date: date,
        status: AttendanceStatus,
        time_in: Optional[time] = None,
        time_out: Optional[time] = None,
        lunch_start: Optional[time] = None,
        lunch_end: Optional[time] = None,
        overtime_start: Optional[time] = None,
        overtime_end: Optional[time] = None,
        leave_type: Optional[LeaveType] = None,
        remarks: Optional[str] = None,
        actor_id: Optional[uuid.UUID] = None,
    ) -> AttendanceRecord:
        """Edit a DTR and recompute its derived fields.

        The (employee, date) uniqueness is left to the table's unique key; a
        collision surfaces as ConflictError.
        """
        record = await AttendanceService.get(db, record_id)
        if record.is_paid:
            raise InvalidStateError(
                "AttendanceRecord", record_id,
                "Paid attendance records cannot be modified.",
            )
        hours, overtime = AttendanceService.compute_hours(
            status=status,
            leave_type=leave_type,
            time_in=time_in,
            time_out=time_out,
            lunch_start=lunch_start,
            lunch_end=lunch_end,
            overtime_start=overtime_start,
            overtime_end=overtime_end,
        )
        old_values = AttendanceService._snapshot(record)

        async with atomic(db, "attendance.update", conflict=("date", date.isoformat())):
            record.date = date
            record.status = status
            record.time_in = time_in
            record.time_out = time_out
            record.lunch_start = lunch_start
            record.lunch_end = lunch_end
            record.overtime_start = overtime_start
            record.overtime_end = overtime_end
            record.leave_type = leave_type
            record.remarks = remarks
            record.hours_worked = hours
            record.overtime_hours = overtime
            record.pay_period = pay_period_for(date)
            await db.flush()
            await create_audit_entry(
                db,
                action="update",
                entity_type="attendance_record",
                entity_id=record.id,
                actor_id=actor_id,
                old_values=old_values,
                new_values=AttendanceService._snapshot(record),
            )

        return record

    @staticmethod
    async def delete(
        db: AsyncSession,
        record_id: uuid.UUID,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> None:
        record = await AttendanceService.get(db, record_id)
        if record.is_paid:
            raise InvalidStateError(
                "AttendanceRecord", record_id,
                "Paid attendance records cannot be deleted.",
            )
        old_values = AttendanceService._snapshot(record)
        async with atomic(db, "attendance.delete"):
            await create_audit_entry(
                db,
                action="delete",
                entity_type="attendance_record",
                entity_id=record.id,
                actor_id=actor_id,
                old_values=old_values,
            )
            await db.delete(record)

    @staticmethod
    async def mark_paid(
        db: AsyncSession,
        record_ids: Iterable[uuid.UUID],
    ) -> int:
        """Bulk-set ``is_paid`` on the given DTRs and return how many were updated.

        Ownership and period are not checked; callers (payroll runs) pass the
        exact set they aggregated.
        """
        ids = set(record_ids)
        if not ids:
            return 0

        found = set(
            (await db.execute(
                select(AttendanceRecord.id).where(AttendanceRecord.id.in_(ids))
            )).scalars().all()
        )
        missing = ids - found
        if missing:
            raise ValidationException(
                {"record_ids": [f"Unknown attendance record id: {m}" for m in sorted(map(str, missing))]}
            )

        result = await db.execute(
            update(AttendanceRecord)
            .where(AttendanceRecord.id.in_(ids))
            .values(is_paid=True)
            .execution_options(synchronize_session="fetch")
        )
        logger.info("Marked %d DTR(s) as paid", result.rowcount)
        return result.rowcount

    # ── Reports ─────────────────────────────────────────────────────

    @staticmethod
    async def export_for_payroll(
        db: AsyncSession,
        *,
        start_date: date,
        end_date: date,
        employee_id: Optional[uuid.UUID] = None,
    ) -> PayrollExportResponse:
        """Per-employee hour totals and day counts over [start_date, end_date]."""
        AttendanceService._validate_date_range(start_date, end_date)

        query = apply_filters(
            select(AttendanceRecord),
            AttendanceRecord,
            {"date__from": start_date, "date__to": end_date, "employee_id": employee_id},
        ).order_by(AttendanceRecord.date)
        records = (await db.execute(query)).scalars().all()

        rows: dict[uuid.UUID, PayrollExportRow] = {}
        for r in records:
            row = rows.get(r.employee_id)
            if row is None:
                row = PayrollExportRow(employee=DirectoryService.employee_brief(r.employee))
                rows[r.employee_id] = row
            row.total_hours += r.hours_worked
            row.overtime_hours += r.overtime_hours
            if r.status == AttendanceStatus.present:
                row.days_present += 1
            elif r.status == AttendanceStatus.absent:
                row.days_absent += 1
            elif r.status == AttendanceStatus.late:
                row.days_late += 1
            elif r.status == AttendanceStatus.half_day:
                row.days_half_day += 1
            elif r.status == AttendanceStatus.on_leave:
                row.days_on_leave += 1

        return PayrollExportResponse(
            start_date=start_date,
            end_date=end_date,
            rows=list(rows.values()),
        )

    @staticmethod
    async def attendance_report(
        db: AsyncSession,
        *,
        start_date: date,
        end_date: date,
        department_id: Optional[uuid.UUID] = None,
    ) -> AttendanceReport:
        """Headline counts and per-employee stats for a date range."""
        AttendanceService._validate_date_range(start_date, end_date)

        emp_query = select(Employee).order_by(Employee.last_name, Employee.first_name)
        if department_id is not None:
            emp_query = emp_query.where(Employee.department_id == department_id)
        employees = (await db.execute(emp_query)).scalars().all()

        stats: dict[uuid.UUID, EmployeeAttendanceStats] = {
            e.id: EmployeeAttendanceStats(employee=DirectoryService.employee_brief(e))
            for e in employees
        }
        report = AttendanceReport(
            start_date=start_date,
            end_date=end_date,
            department_id=department_id,
            total_employees=len(employees),
        )
        if not stats:
            return report

        records = (await db.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.employee_id.in_(stats.keys()),
                AttendanceRecord.date >= start_date,
                AttendanceRecord.date <= end_date,
            )
        )).scalars().all()

        total_hours = ZERO_HOURS
        for r in records:
            emp_stats = stats[r.employee_id]
            counter = _STATUS_COUNTERS[r.status]
            setattr(emp_stats, counter, getattr(emp_stats, counter) + 1)
            setattr(report, f"{counter}_count", getattr(report, f"{counter}_count") + 1)
            emp_stats.total_hours += r.hours_worked
            emp_stats.overtime_hours += r.overtime_hours
            total_hours += r.hours_worked
            report.total_overtime_hours += r.overtime_hours

        report.total_attendance_records = len(records)
        if records:
            report.average_hours = round_hours(total_hours / len(records))
        report.employee_stats = list(stats.values())
        return report
