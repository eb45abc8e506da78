"""Tuition ORM models: Payment.

SQLAlchemy 2.0 async-compatible models.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campus_admin.common.constants import (
    PaymentStatus,
    TuitionPaymentMethod,
    enum_values,
)
from campus_admin.database import Base


class Payment(Base):
    """Money received from a student.

    Tuition payments reference an enrollment and move its remaining balance;
    document-request payments carry ``document_type`` and no enrollment.
    """

    __tablename__ = "payments"
    __table_args__ = (
        sa.CheckConstraint("amount > 0", name="ck_payment_amount_positive"),
        sa.Index("ix_payments_student", "student_id"),
        sa.Index("ix_payments_enrollment", "enrollment_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    student_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
    )
    enrollment_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("enrollments.id", ondelete="CASCADE"),
    )
    document_type: Mapped[Optional[str]] = mapped_column(sa.String(100))
    amount: Mapped[Decimal] = mapped_column(sa.Numeric(10, 2), nullable=False)
    payment_method: Mapped[TuitionPaymentMethod] = mapped_column(
        sa.Enum(
            TuitionPaymentMethod,
            name="tuition_payment_method",
            values_callable=enum_values,
        ),
        nullable=False,
    )
    payment_date: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    cashier_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("employees.id", ondelete="SET NULL"),
    )
    receipt_number: Mapped[str] = mapped_column(
        sa.String(40), unique=True, nullable=False,
    )
    status: Mapped[PaymentStatus] = mapped_column(
        sa.Enum(PaymentStatus, name="payment_status", values_callable=enum_values),
        nullable=False,
        default=PaymentStatus.completed,
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    student: Mapped["campus_admin.directory.models.Student"] = relationship(lazy="selectin")

    def __repr__(self) -> str:
        return f"<Payment {self.receipt_number} {self.amount}>"
