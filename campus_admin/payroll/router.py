"""Payroll router — pay runs, status updates, reports.

All endpoints require an admin token.
"""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from campus_admin.auth.dependencies import require_role
from campus_admin.common.constants import PayrollStatus, UserRole
from campus_admin.common.pagination import PaginationParams
from campus_admin.database import get_db
from campus_admin.directory.models import Employee
from campus_admin.directory.schemas import EligibleEmployee
from campus_admin.payroll.schemas import (
    PayrollCreate,
    PayrollDetail,
    PayrollListResponse,
    PayrollReport,
    PayrollUpdate,
    PayrollWithAttendance,
)
from campus_admin.payroll.service import PayrollService

router = APIRouter(prefix="", tags=["payroll"])

_admin = require_role(UserRole.admin)


# ── GET / ───────────────────────────────────────────────────────────

@router.get("", response_model=PayrollListResponse)
async def list_payrolls(
    search: Optional[str] = Query(None, max_length=100, description="Employee name or code"),
    status_filter: Optional[PayrollStatus] = Query(None, alias="status"),
    pagination: PaginationParams = Depends(),
    current: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    return await PayrollService.list_payrolls(
        db,
        search=search,
        status=status_filter,
        page=pagination.page,
        page_size=pagination.page_size,
    )


# ── POST / ──────────────────────────────────────────────────────────

@router.post("", response_model=PayrollDetail, status_code=status.HTTP_201_CREATED)
async def run_payroll(
    body: PayrollCreate,
    current: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    """Aggregate the employee's unpaid DTRs in the window into a pending payroll."""
    payroll = await PayrollService.create(
        db,
        body.employee_id,
        **body.model_dump(exclude={"employee_id"}),
        actor_id=current.id,
    )
    return PayrollService.to_detail(payroll)


# ── GET /eligible-employees ─────────────────────────────────────────

@router.get("/eligible-employees", response_model=list[EligibleEmployee])
async def eligible_employees(
    current: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    return await PayrollService.eligible_employees(db)


# ── GET /report ─────────────────────────────────────────────────────

@router.get("/report", response_model=PayrollReport)
async def payroll_report(
    start_date: date = Query(...),
    end_date: date = Query(...),
    status_filter: Optional[PayrollStatus] = Query(None, alias="status"),
    current: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    return await PayrollService.report(
        db, start_date=start_date, end_date=end_date, status=status_filter,
    )


# ── GET /{payroll_id} ───────────────────────────────────────────────

@router.get("/{payroll_id}", response_model=PayrollWithAttendance)
async def get_payroll(
    payroll_id: uuid.UUID,
    current: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    """Payroll detail with the DTRs its window covers."""
    return await PayrollService.get_with_attendance(db, payroll_id)


# ── PUT /{payroll_id} ───────────────────────────────────────────────

@router.put("/{payroll_id}", response_model=PayrollDetail)
async def update_payroll(
    payroll_id: uuid.UUID,
    body: PayrollUpdate,
    current: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    payroll = await PayrollService.update(
        db, payroll_id, **body.model_dump(), actor_id=current.id,
    )
    return PayrollService.to_detail(payroll)


# ── DELETE /{payroll_id} ────────────────────────────────────────────

@router.delete("/{payroll_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_payroll(
    payroll_id: uuid.UUID,
    current: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    await PayrollService.delete(db, payroll_id, actor_id=current.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
