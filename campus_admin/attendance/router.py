"""Attendance router — daily time records, payroll export, attendance reports.

All endpoints require an admin token.
"""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from campus_admin.attendance.schemas import (
    AttendanceCreate,
    AttendanceDetail,
    AttendanceListResponse,
    AttendanceReport,
    AttendanceUpdate,
    MarkPaidRequest,
    MarkPaidResponse,
    PayrollExportResponse,
)
from campus_admin.attendance.service import AttendanceService
from campus_admin.auth.dependencies import require_role
from campus_admin.common.constants import AttendanceStatus, UserRole
from campus_admin.common.pagination import PaginationParams
from campus_admin.database import get_db
from campus_admin.directory.models import Employee

router = APIRouter(prefix="", tags=["attendance"])

_admin = require_role(UserRole.admin)


# ── GET / ───────────────────────────────────────────────────────────

@router.get("", response_model=AttendanceListResponse)
async def list_attendance(
    employee_id: Optional[uuid.UUID] = Query(None),
    from_date: Optional[date] = Query(None, description="Start date (inclusive)"),
    to_date: Optional[date] = Query(None, description="End date (inclusive)"),
    status_filter: Optional[AttendanceStatus] = Query(None, alias="status"),
    is_paid: Optional[bool] = Query(None),
    pagination: PaginationParams = Depends(),
    current: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    """List DTRs, newest first."""
    return await AttendanceService.list_records(
        db,
        employee_id=employee_id,
        from_date=from_date,
        to_date=to_date,
        status=status_filter,
        is_paid=is_paid,
        page=pagination.page,
        page_size=pagination.page_size,
    )


# ── POST / ──────────────────────────────────────────────────────────

@router.post("", response_model=AttendanceDetail, status_code=status.HTTP_201_CREATED)
async def create_attendance(
    body: AttendanceCreate,
    current: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    """Submit a DTR. Hours and pay period are computed server-side."""
    record = await AttendanceService.create(
        db,
        body.employee_id,
        **body.model_dump(exclude={"employee_id"}),
        actor_id=current.id,
    )
    return AttendanceService.to_detail(record)


# ── POST /mark-paid ─────────────────────────────────────────────────

@router.post("/mark-paid", response_model=MarkPaidResponse)
async def mark_paid(
    body: MarkPaidRequest,
    current: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    updated = await AttendanceService.mark_paid(db, body.record_ids)
    return MarkPaidResponse(updated=updated)


# ── GET /export ─────────────────────────────────────────────────────

@router.get("/export", response_model=PayrollExportResponse)
async def export_for_payroll(
    start_date: date = Query(...),
    end_date: date = Query(...),
    employee_id: Optional[uuid.UUID] = Query(None),
    current: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    """Per-employee hour totals for payroll preparation."""
    return await AttendanceService.export_for_payroll(
        db, start_date=start_date, end_date=end_date, employee_id=employee_id,
    )


# ── GET /report ─────────────────────────────────────────────────────

@router.get("/report", response_model=AttendanceReport)
async def attendance_report(
    start_date: date = Query(...),
    end_date: date = Query(...),
    department_id: Optional[uuid.UUID] = Query(None),
    current: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    return await AttendanceService.attendance_report(
        db, start_date=start_date, end_date=end_date, department_id=department_id,
    )


# ── GET /{record_id} ────────────────────────────────────────────────

@router.get("/{record_id}", response_model=AttendanceDetail)
async def get_attendance(
    record_id: uuid.UUID,
    current: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    record = await AttendanceService.get(db, record_id)
    return AttendanceService.to_detail(record)


# ── PUT /{record_id} ────────────────────────────────────────────────

@router.put("/{record_id}", response_model=AttendanceDetail)
async def update_attendance(
    record_id: uuid.UUID,
    body: AttendanceUpdate,
    current: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    """Edit an unpaid DTR; derived fields are recomputed."""
    record = await AttendanceService.update(
        db, record_id, **body.model_dump(), actor_id=current.id,
    )
    return AttendanceService.to_detail(record)


# ── DELETE /{record_id} ─────────────────────────────────────────────

@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_attendance(
    record_id: uuid.UUID,
    current: Employee = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    await AttendanceService.delete(db, record_id, actor_id=current.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
