"""Payroll service layer — pay runs over unpaid DTRs.

Business logic:
  - hourly_rate = monthly_salary / PAYROLL_MONTHLY_HOURS
  - overtime_rate = hourly_rate * PAYROLL_OVERTIME_MULTIPLIER
  - basic = sum(hours_worked) * hourly_rate, overtime = sum(overtime_hours) * overtime_rate
  - net = basic + overtime + allowances - deductions - tax
  - Aggregating DTRs, inserting the payroll and marking the DTRs paid is one unit
  - Deleting a pending payroll releases the DTRs in its window
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from campus_admin.attendance.calculations import ZERO_HOURS
from campus_admin.attendance.models import AttendanceRecord
from campus_admin.attendance.schemas import AttendanceRecordResponse
from campus_admin.attendance.service import AttendanceService
from campus_admin.common.audit import create_audit_entry
from campus_admin.common.constants import (
    PAYROLL_TRANSITIONS,
    PayrollPaymentMethod,
    PayrollStatus,
)
from campus_admin.common.exceptions import (
    InvalidStateError,
    NotFoundException,
    ValidationException,
)
from campus_admin.common.pagination import paginate
from campus_admin.common.transactions import atomic
from campus_admin.config import settings
from campus_admin.directory.models import Employee
from campus_admin.directory.schemas import EligibleEmployee
from campus_admin.directory.service import DirectoryService
from campus_admin.payroll.models import PayrollRecord
from campus_admin.payroll.schemas import (
    PayrollDetail,
    PayrollListResponse,
    PayrollReport,
    PayrollResponse,
    PayrollStats,
    PayrollTotals,
    PayrollWithAttendance,
)
from campus_admin.payroll.tax import TaxPolicy, get_tax_policy, round_money

logger = logging.getLogger(__name__)

ZERO_MONEY = Decimal("0.00")


class PayrollService:
    """Async payroll operations: run, adjust, release, report."""

    # ── Helpers ─────────────────────────────────────────────────────

    @staticmethod
    def rates_for(monthly_salary: Decimal) -> tuple[Decimal, Decimal]:
        """Return ``(hourly_rate, overtime_rate)`` for a monthly salary, unrounded."""
        hourly_rate = Decimal(monthly_salary) / settings.PAYROLL_MONTHLY_HOURS
        return hourly_rate, hourly_rate * settings.PAYROLL_OVERTIME_MULTIPLIER

    @staticmethod
    def _check_amounts(
        errors: dict[str, list[str]],
        allowances: Optional[Decimal],
        deductions: Optional[Decimal],
    ) -> None:
        if allowances is not None and allowances < 0:
            errors.setdefault("allowances", []).append("allowances must not be negative.")
        if deductions is not None and deductions < 0:
            errors.setdefault("deductions", []).append("deductions must not be negative.")

    @staticmethod
    def _snapshot(payroll: PayrollRecord) -> dict[str, Any]:
        return PayrollResponse.model_validate(payroll).model_dump(mode="json")

    @staticmethod
    def to_detail(payroll: PayrollRecord) -> PayrollDetail:
        detail = PayrollDetail.model_validate(
            PayrollResponse.model_validate(payroll).model_dump()
        )
        if payroll.employee is not None:
            detail.employee = DirectoryService.employee_brief(payroll.employee)
        return detail

    # ── Reads ───────────────────────────────────────────────────────

    @staticmethod
    async def get(db: AsyncSession, payroll_id: uuid.UUID) -> PayrollRecord:
        payroll = await db.get(PayrollRecord, payroll_id)
        if payroll is None:
            raise NotFoundException("PayrollRecord", payroll_id)
        return payroll

    @staticmethod
    async def covered_attendance(
        db: AsyncSession,
        payroll: PayrollRecord,
    ) -> list[AttendanceRecord]:
        """DTRs of the payroll's employee inside its window, by date."""
        result = await db.execute(
            select(AttendanceRecord)
            .where(
                AttendanceRecord.employee_id == payroll.employee_id,
                AttendanceRecord.date >= payroll.pay_period_start,
                AttendanceRecord.date <= payroll.pay_period_end,
            )
            .order_by(AttendanceRecord.date)
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_with_attendance(
        db: AsyncSession,
        payroll_id: uuid.UUID,
    ) -> PayrollWithAttendance:
        payroll = await PayrollService.get(db, payroll_id)
        records = await PayrollService.covered_attendance(db, payroll)
        return PayrollWithAttendance(
            payroll=PayrollService.to_detail(payroll),
            attendance=[AttendanceRecordResponse.model_validate(r) for r in records],
        )

    @staticmethod
    async def stats(db: AsyncSession) -> PayrollStats:
        rows = (await db.execute(
            select(PayrollRecord.status, func.count()).group_by(PayrollRecord.status)
        )).all()
        stats = PayrollStats()
        for status, count in rows:
            setattr(stats, PayrollStatus(status).value, count)
            stats.total += count
        return stats

    @staticmethod
    async def list_payrolls(
        db: AsyncSession,
        *,
        search: Optional[str] = None,
        status: Optional[PayrollStatus] = None,
        page: int = 1,
        page_size: int = 10,
    ) -> PayrollListResponse:
        """Paginated payrolls, newest first, with headline counts."""
        query = select(PayrollRecord).join(
            Employee, PayrollRecord.employee_id == Employee.id,
        )
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    Employee.first_name.ilike(pattern),
                    Employee.last_name.ilike(pattern),
                    Employee.employee_code.ilike(pattern),
                )
            )
        if status is not None:
            query = query.where(PayrollRecord.status == status)
        query = query.order_by(PayrollRecord.created_at.desc())

        payrolls, meta = await paginate(db, query, page=page, page_size=page_size)
        return PayrollListResponse(
            data=[PayrollService.to_detail(p) for p in payrolls],
            meta=meta,
            stats=await PayrollService.stats(db),
        )

    @staticmethod
    async def eligible_employees(db: AsyncSession) -> list[EligibleEmployee]:
        """Employees that still have unpaid DTRs."""
        unpaid = select(AttendanceRecord.employee_id).where(
            AttendanceRecord.is_paid.is_(False)
        )
        employees = (await db.execute(
            select(Employee)
            .where(Employee.id.in_(unpaid))
            .order_by(Employee.last_name, Employee.first_name)
        )).scalars().all()

        result = []
        for emp in employees:
            hourly_rate, _ = PayrollService.rates_for(emp.monthly_salary)
            brief = DirectoryService.employee_brief(emp)
            result.append(
                EligibleEmployee(
                    **brief.model_dump(),
                    monthly_salary=emp.monthly_salary,
                    hourly_rate=round_money(hourly_rate),
                )
            )
        return result

    @staticmethod
    async def report(
        db: AsyncSession,
        *,
        start_date: date,
        end_date: date,
        status: Optional[PayrollStatus] = None,
    ) -> PayrollReport:
        """Payrolls whose window starts inside [start_date, end_date], with column totals."""
        if start_date > end_date:
            raise ValidationException(
                {"end_date": ["end_date must be on or after start_date."]}
            )
        query = select(PayrollRecord).where(
            PayrollRecord.pay_period_start >= start_date,
            PayrollRecord.pay_period_start <= end_date,
        )
        if status is not None:
            query = query.where(PayrollRecord.status == status)
        payrolls = (await db.execute(
            query.order_by(PayrollRecord.pay_period_start, PayrollRecord.created_at)
        )).scalars().all()

        totals = PayrollTotals()
        for p in payrolls:
            totals.basic_salary += p.basic_salary
            totals.overtime_pay += p.overtime_pay
            totals.allowances += p.allowances
            totals.deductions += p.deductions
            totals.tax += p.tax
            totals.net_salary += p.net_salary

        return PayrollReport(
            start_date=start_date,
            end_date=end_date,
            status=status,
            records=[PayrollService.to_detail(p) for p in payrolls],
            totals=totals,
        )

    # ── Writes ──────────────────────────────────────────────────────

    @staticmethod
    async def create(
        db: AsyncSession,
        employee_id: uuid.UUID,
        *,
        pay_period_start: date,
        pay_period_end: date,
        allowances: Decimal = ZERO_MONEY,
        deductions: Decimal = ZERO_MONEY,
        payment_method: PayrollPaymentMethod = PayrollPaymentMethod.bank_transfer,
        remarks: Optional[str] = None,
        actor_id: Optional[uuid.UUID] = None,
        tax_policy: Optional[TaxPolicy] = None,
    ) -> PayrollRecord:
        """Run payroll for one employee over [pay_period_start, pay_period_end].

        Every unpaid DTR of the employee in the window is aggregated and marked
        paid together with the insert of the pending payroll.

        Raises:
            ValidationException: reversed window or negative amounts.
            NotFoundException: unknown employee.
            StorageFailure: the unit could not be written; nothing changed.
        """
        errors: dict[str, list[str]] = {}
        if pay_period_end < pay_period_start:
            errors["pay_period_end"] = ["pay_period_end must be on or after pay_period_start."]
        PayrollService._check_amounts(errors, allowances, deductions)
        if errors:
            raise ValidationException(errors)

        employee = await DirectoryService.get_employee(db, employee_id)
        hourly_rate, overtime_rate = PayrollService.rates_for(employee.monthly_salary)
        policy = tax_policy or get_tax_policy()

        async with atomic(db, "payroll.create"):
            records = (await db.execute(
                select(AttendanceRecord)
                .where(
                    AttendanceRecord.employee_id == employee_id,
                    AttendanceRecord.is_paid.is_(False),
                    AttendanceRecord.date >= pay_period_start,
                    AttendanceRecord.date <= pay_period_end,
                )
                .order_by(AttendanceRecord.date)
                .with_for_update()
            )).scalars().all()

            total_hours = sum((r.hours_worked for r in records), ZERO_HOURS)
            total_overtime = sum((r.overtime_hours for r in records), ZERO_HOURS)
            basic_salary = round_money(total_hours * hourly_rate)
            overtime_pay = round_money(total_overtime * overtime_rate)
            allowances = round_money(Decimal(allowances))
            deductions = round_money(Decimal(deductions))
            gross = basic_salary + overtime_pay + allowances
            tax = round_money(policy(gross))

            payroll = PayrollRecord(
                employee_id=employee_id,
                employee=employee,
                pay_period_start=pay_period_start,
                pay_period_end=pay_period_end,
                basic_salary=basic_salary,
                overtime_pay=overtime_pay,
                allowances=allowances,
                deductions=deductions,
                tax=tax,
                net_salary=gross - deductions - tax,
                payment_method=payment_method,
                status=PayrollStatus.pending,
                remarks=remarks,
                created_by=actor_id,
            )
            db.add(payroll)
            await db.flush()

            await AttendanceService.mark_paid(db, [r.id for r in records])
            await create_audit_entry(
                db,
                action="create",
                entity_type="payroll",
                entity_id=payroll.id,
                actor_id=actor_id,
                new_values=PayrollService._snapshot(payroll),
            )

        if not records:
            logger.warning(
                "Payroll %s for employee %s has no unpaid DTRs in %s..%s",
                payroll.id, employee_id, pay_period_start, pay_period_end,
            )
        logger.info(
            "Payroll %s created for employee %s: %d DTR(s), %s h + %s h OT, net %s (%r)",
            payroll.id, employee_id, len(records), total_hours, total_overtime,
            payroll.net_salary, policy,
        )
        return payroll

    @staticmethod
    async def update(
        db: AsyncSession,
        payroll_id: uuid.UUID,
        *,
        status: PayrollStatus,
        payment_method: PayrollPaymentMethod,
        allowances: Optional[Decimal] = None,
        deductions: Optional[Decimal] = None,
        remarks: Optional[str] = None,
        actor_id: Optional[uuid.UUID] = None,
    ) -> PayrollRecord:
        """Move a payroll through its status machine and optionally adjust amounts.

        Net pay is recomputed from the stored basic, overtime and tax when
        allowances or deductions change. ``paid_at`` is stamped on the first
        transition into completed only.
        """
        errors: dict[str, list[str]] = {}
        PayrollService._check_amounts(errors, allowances, deductions)
        if errors:
            raise ValidationException(errors)

        payroll = await PayrollService.get(db, payroll_id)
        current = payroll.status
        if status != current and status not in PAYROLL_TRANSITIONS[current]:
            raise InvalidStateError(
                "PayrollRecord", payroll_id,
                f"Cannot change payroll status from '{current.value}' to '{status.value}'.",
            )
        old_values = PayrollService._snapshot(payroll)

        async with atomic(db, "payroll.update"):
            if allowances is not None or deductions is not None:
                if allowances is not None:
                    payroll.allowances = round_money(Decimal(allowances))
                if deductions is not None:
                    payroll.deductions = round_money(Decimal(deductions))
                payroll.net_salary = (
                    payroll.basic_salary
                    + payroll.overtime_pay
                    + payroll.allowances
                    - payroll.deductions
                    - payroll.tax
                )
            payroll.status = status
            payroll.payment_method = payment_method
            if remarks is not None:
                payroll.remarks = remarks
            if status == PayrollStatus.completed and payroll.paid_at is None:
                payroll.paid_at = datetime.now(timezone.utc)
            await db.flush()
            await create_audit_entry(
                db,
                action="update",
                entity_type="payroll",
                entity_id=payroll.id,
                actor_id=actor_id,
                old_values=old_values,
                new_values=PayrollService._snapshot(payroll),
            )

        if status != current:
            logger.info("Payroll %s: %s -> %s", payroll.id, current.value, status.value)
        return payroll

    @staticmethod
    async def delete(
        db: AsyncSession,
        payroll_id: uuid.UUID,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> None:
        """Delete a pending payroll and release every DTR of the employee in its window."""
        payroll = await PayrollService.get(db, payroll_id)
        if payroll.status != PayrollStatus.pending:
            raise InvalidStateError(
                "PayrollRecord", payroll_id,
                "Only pending payroll records can be deleted.",
            )
        old_values = PayrollService._snapshot(payroll)

        async with atomic(db, "payroll.delete"):
            result = await db.execute(
                update(AttendanceRecord)
                .where(
                    AttendanceRecord.employee_id == payroll.employee_id,
                    AttendanceRecord.date >= payroll.pay_period_start,
                    AttendanceRecord.date <= payroll.pay_period_end,
                )
                .values(is_paid=False)
                .execution_options(synchronize_session="fetch")
            )
            await create_audit_entry(
                db,
                action="delete",
                entity_type="payroll",
                entity_id=payroll.id,
                actor_id=actor_id,
                old_values=old_values,
            )
            await db.delete(payroll)

        logger.info(
            "Payroll %s deleted; %d DTR(s) released", payroll_id, result.rowcount,
        )
