"""Payments router — tuition and document payments, receipts, reversals.

Admin and treasurer only.
"""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from campus_admin.auth.dependencies import require_role
from campus_admin.common.constants import UserRole
from campus_admin.common.pagination import PaginationParams
from campus_admin.common.rate_limit import limiter
from campus_admin.config import settings
from campus_admin.database import get_db
from campus_admin.directory.models import Employee
from campus_admin.tuition.schemas import (
    DocumentPaymentCreate,
    PaymentListResponse,
    PaymentResponse,
    Receipt,
    ReversalResponse,
    TuitionPaymentCreate,
)
from campus_admin.tuition.service import TuitionService

router = APIRouter(prefix="", tags=["payments"])

_cashier = require_role(UserRole.admin, UserRole.treasurer)


@router.get("", response_model=PaymentListResponse)
async def list_payments(
    student_id: Optional[uuid.UUID] = Query(None),
    enrollment_id: Optional[uuid.UUID] = Query(None),
    pagination: PaginationParams = Depends(),
    current: Employee = Depends(_cashier),
    db: AsyncSession = Depends(get_db),
):
    return await TuitionService.list_payments(
        db,
        student_id=student_id,
        enrollment_id=enrollment_id,
        page=pagination.page,
        page_size=pagination.page_size,
    )


@router.post("", response_model=Receipt, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.RATE_LIMIT_PAYMENTS)
async def record_tuition_payment(
    request: Request,
    body: TuitionPaymentCreate,
    current: Employee = Depends(_cashier),
    db: AsyncSession = Depends(get_db),
):
    """Record a tuition payment and return its receipt."""
    return await TuitionService.record_payment(
        db, **body.model_dump(), actor_id=current.id,
    )


@router.post("/documents", response_model=Receipt, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.RATE_LIMIT_PAYMENTS)
async def record_document_payment(
    request: Request,
    body: DocumentPaymentCreate,
    current: Employee = Depends(_cashier),
    db: AsyncSession = Depends(get_db),
):
    return await TuitionService.record_document_payment(
        db, **body.model_dump(), actor_id=current.id,
    )


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: uuid.UUID,
    current: Employee = Depends(_cashier),
    db: AsyncSession = Depends(get_db),
):
    return await TuitionService.get_payment(db, payment_id)


@router.delete("/{payment_id}", response_model=ReversalResponse)
async def reverse_payment(
    payment_id: uuid.UUID,
    current: Employee = Depends(_cashier),
    db: AsyncSession = Depends(get_db),
):
    """Reverse a payment; the enrollment balance is recomputed without it."""
    return await TuitionService.reverse_payment(db, payment_id, actor_id=current.id)
