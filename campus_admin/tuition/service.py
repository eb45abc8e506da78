"""Tuition ledger — payments against enrollments and the balances they move.

Business logic:
  - remaining_balance = total_fee - sum(tuition payments for the enrollment)
  - The balance is recomputed from the ledger on every write, never adjusted in place
  - Receipt numbers: RCP-<unix seconds>-<100..999>
  - Document-request payments have no enrollment and no balance effect
"""

from __future__ import annotations

import logging
import random
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from campus_admin.common.audit import create_audit_entry
from campus_admin.common.constants import (
    RECEIPT_DATE_FORMAT,
    RECEIPT_PREFIX,
    RECEIPT_TIME_FORMAT,
    EnrollmentPaymentStatus,
    PaymentStatus,
    TuitionPaymentMethod,
)
from campus_admin.common.exceptions import NotFoundException, ValidationException
from campus_admin.common.filters import apply_filters
from campus_admin.common.pagination import paginate
from campus_admin.common.transactions import atomic
from campus_admin.directory.models import Employee, Enrollment, Student
from campus_admin.directory.service import DirectoryService
from campus_admin.tuition.models import Payment
from campus_admin.tuition.schemas import (
    PaymentListResponse,
    PaymentResponse,
    Receipt,
    ReversalResponse,
)

logger = logging.getLogger(__name__)

RECEIPT_ATTEMPTS = 5
CENTS = Decimal("0.01")


def generate_receipt_number(now: Optional[datetime] = None) -> str:
    """``RCP-<unix seconds>-<3 random digits>``."""
    now = now or datetime.now(timezone.utc)
    return f"{RECEIPT_PREFIX}-{int(now.timestamp())}-{random.randint(100, 999)}"


class TuitionService:
    """Async tuition operations: record, reverse, list."""

    # ── Helpers ─────────────────────────────────────────────────────

    @staticmethod
    def _check_amount(amount: Decimal) -> None:
        if amount is None or amount <= 0:
            raise ValidationException({"amount": ["amount must be greater than zero."]})
        if Decimal(amount) != Decimal(amount).quantize(CENTS):
            raise ValidationException({"amount": ["amount must have at most 2 decimal places."]})

    @staticmethod
    async def _unique_receipt_number(db: AsyncSession) -> str:
        for _ in range(RECEIPT_ATTEMPTS):
            candidate = generate_receipt_number()
            taken = await db.execute(
                select(Payment.id).where(Payment.receipt_number == candidate)
            )
            if taken.first() is None:
                return candidate
            logger.warning("Receipt number %s already issued, regenerating", candidate)
        # Last draw; the unique key decides
        return generate_receipt_number()

    @staticmethod
    async def _total_paid(
        db: AsyncSession,
        enrollment_id: uuid.UUID,
        *,
        excluding: Optional[uuid.UUID] = None,
    ) -> Decimal:
        stmt = select(func.coalesce(func.sum(Payment.amount), 0)).where(
            Payment.enrollment_id == enrollment_id
        )
        if excluding is not None:
            stmt = stmt.where(Payment.id != excluding)
        return Decimal((await db.execute(stmt)).scalar_one())

    @staticmethod
    def _apply_balance(enrollment: Enrollment, total_paid: Decimal) -> Decimal:
        new_balance = Decimal(enrollment.total_fee) - total_paid
        enrollment.remaining_balance = new_balance
        enrollment.payment_status = (
            EnrollmentPaymentStatus.completed if new_balance <= 0
            else EnrollmentPaymentStatus.pending
        )
        return new_balance

    @staticmethod
    async def _cashier_name(db: AsyncSession, actor_id: Optional[uuid.UUID]) -> Optional[str]:
        if actor_id is None:
            return None
        cashier = await db.get(Employee, actor_id)
        return cashier.full_name if cashier else None

    @staticmethod
    def _snapshot(payment: Payment) -> dict[str, Any]:
        return PaymentResponse.model_validate(payment).model_dump(mode="json")

    @staticmethod
    def _receipt(
        payment: Payment,
        student: Student,
        *,
        cashier_name: Optional[str],
        enrollment: Optional[Enrollment] = None,
        previous_balance: Optional[Decimal] = None,
        new_balance: Optional[Decimal] = None,
    ) -> Receipt:
        course = None
        if enrollment is not None and enrollment.course is not None:
            course = enrollment.course.name
        elif student.course is not None:
            course = student.course.name
        return Receipt(
            payment_id=payment.id,
            receipt_number=payment.receipt_number,
            student_id=student.id,
            student_name=student.full_name,
            student_number=student.student_number,
            date=payment.payment_date.strftime(RECEIPT_DATE_FORMAT),
            time=payment.payment_date.strftime(RECEIPT_TIME_FORMAT),
            amount=payment.amount,
            payment_method=payment.payment_method,
            cashier_name=cashier_name,
            document_type=payment.document_type,
            previous_balance=previous_balance,
            new_balance=new_balance,
            course=course,
            academic_year=enrollment.academic_year if enrollment else None,
            semester=enrollment.semester if enrollment else None,
        )

    # ── Reads ───────────────────────────────────────────────────────

    @staticmethod
    async def get_payment(db: AsyncSession, payment_id: uuid.UUID) -> Payment:
        payment = await db.get(Payment, payment_id)
        if payment is None:
            raise NotFoundException("Payment", payment_id)
        return payment

    @staticmethod
    async def list_payments(
        db: AsyncSession,
        *,
        student_id: Optional[uuid.UUID] = None,
        enrollment_id: Optional[uuid.UUID] = None,
        page: int = 1,
        page_size: int = 10,
    ) -> PaymentListResponse:
        query = apply_filters(
            select(Payment),
            Payment,
            {"student_id": student_id, "enrollment_id": enrollment_id},
        ).order_by(Payment.payment_date.desc())
        payments, meta = await paginate(db, query, page=page, page_size=page_size)
        return PaymentListResponse(
            data=[PaymentResponse.model_validate(p) for p in payments],
            meta=meta,
        )

    # ── Writes ──────────────────────────────────────────────────────

    @staticmethod
    async def record_payment(
        db: AsyncSession,
        *,
        student_id: uuid.UUID,
        enrollment_id: uuid.UUID,
        amount: Decimal,
        payment_method: TuitionPaymentMethod,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Receipt:
        """Record a tuition payment and recompute the enrollment balance.

        Raises:
            ValidationException: non-positive amount, unknown enrollment, or an
                enrollment that belongs to another student.
            NotFoundException: unknown student.
            StorageFailure: the unit could not be written; nothing changed.
        """
        TuitionService._check_amount(amount)
        student = await DirectoryService.get_student(db, student_id)
        enrollment = await DirectoryService.find_enrollment(db, enrollment_id, for_update=True)
        if enrollment is None:
            raise ValidationException({"enrollment_id": ["Enrollment not found."]})
        if enrollment.student_id != student_id:
            raise ValidationException(
                {"enrollment_id": ["Enrollment does not belong to this student."]}
            )
        previous_balance = Decimal(enrollment.remaining_balance)
        cashier_name = await TuitionService._cashier_name(db, actor_id)
        receipt_number = await TuitionService._unique_receipt_number(db)

        async with atomic(db, "tuition.record_payment", conflict=("receipt_number", receipt_number)):
            payment = Payment(
                student_id=student_id,
                enrollment_id=enrollment_id,
                amount=Decimal(amount),
                payment_method=payment_method,
                payment_date=datetime.now(timezone.utc),
                cashier_id=actor_id,
                receipt_number=receipt_number,
                status=PaymentStatus.completed,
            )
            db.add(payment)
            await db.flush()

            total_paid = await TuitionService._total_paid(db, enrollment_id)
            new_balance = TuitionService._apply_balance(enrollment, total_paid)
            await create_audit_entry(
                db,
                action="create",
                entity_type="payment",
                entity_id=payment.id,
                actor_id=actor_id,
                new_values=TuitionService._snapshot(payment),
            )

        logger.info(
            "Payment %s of %s recorded for enrollment %s; balance now %s",
            receipt_number, payment.amount, enrollment_id, new_balance,
        )
        return TuitionService._receipt(
            payment,
            student,
            cashier_name=cashier_name,
            enrollment=enrollment,
            previous_balance=previous_balance,
            new_balance=new_balance,
        )

    @staticmethod
    async def record_document_payment(
        db: AsyncSession,
        *,
        student_id: uuid.UUID,
        document_type: str,
        amount: Decimal,
        payment_method: TuitionPaymentMethod,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Receipt:
        """Record a fee for a document request. No enrollment balance moves."""
        TuitionService._check_amount(amount)
        student = await DirectoryService.get_student(db, student_id)
        cashier_name = await TuitionService._cashier_name(db, actor_id)
        receipt_number = await TuitionService._unique_receipt_number(db)

        async with atomic(db, "tuition.record_document_payment", conflict=("receipt_number", receipt_number)):
            payment = Payment(
                student_id=student_id,
                enrollment_id=None,
                document_type=document_type,
                amount=Decimal(amount),
                payment_method=payment_method,
                payment_date=datetime.now(timezone.utc),
                cashier_id=actor_id,
                receipt_number=receipt_number,
                status=PaymentStatus.completed,
            )
            db.add(payment)
            await db.flush()
            await create_audit_entry(
                db,
                action="create",
                entity_type="payment",
                entity_id=payment.id,
                actor_id=actor_id,
                new_values=TuitionService._snapshot(payment),
            )

        logger.info("Document payment %s (%s) recorded for student %s", receipt_number, document_type, student_id)
        return TuitionService._receipt(payment, student, cashier_name=cashier_name)

    @staticmethod
    async def reverse_payment(
        db: AsyncSession,
        payment_id: uuid.UUID,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> ReversalResponse:
        """Delete a payment and recompute the enrollment balance without it."""
        payment = await TuitionService.get_payment(db, payment_id)
        enrollment = None
        if payment.enrollment_id is not None:
            enrollment = await DirectoryService.find_enrollment(
                db, payment.enrollment_id, for_update=True,
            )
        old_values = TuitionService._snapshot(payment)
        receipt_number = payment.receipt_number
        enrollment_id = payment.enrollment_id
        new_balance = None

        async with atomic(db, "tuition.reverse_payment"):
            if enrollment is not None:
                total_paid = await TuitionService._total_paid(
                    db, enrollment.id, excluding=payment.id,
                )
                new_balance = TuitionService._apply_balance(enrollment, total_paid)
            await create_audit_entry(
                db,
                action="reverse",
                entity_type="payment",
                entity_id=payment.id,
                actor_id=actor_id,
                old_values=old_values,
            )
            await db.delete(payment)

        logger.info(
            "Payment %s reversed; enrollment %s balance now %s",
            receipt_number, enrollment_id, new_balance,
        )
        return ReversalResponse(
            payment_id=payment_id,
            receipt_number=receipt_number,
            enrollment_id=enrollment_id,
            new_balance=new_balance,
        )
