"""Tuition Pydantic v2 schemas — payments and receipts."""


import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from campus_admin.common.constants import PaymentStatus, TuitionPaymentMethod
from campus_admin.common.pagination import PaginationMeta


class TuitionPaymentCreate(BaseModel):
    student_id: uuid.UUID
    enrollment_id: uuid.UUID
    amount: Decimal = Field(..., decimal_places=2)
    payment_method: TuitionPaymentMethod


class DocumentPaymentCreate(BaseModel):
    """Fee for a document request (transcript, certificate...)."""

    student_id: uuid.UUID
    document_type: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., decimal_places=2)
    payment_method: TuitionPaymentMethod


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    student_id: uuid.UUID
    enrollment_id: Optional[uuid.UUID] = None
    document_type: Optional[str] = None
    amount: Decimal
    payment_method: TuitionPaymentMethod
    payment_date: datetime
    cashier_id: Optional[uuid.UUID] = None
    receipt_number: str
    status: PaymentStatus


class PaymentListResponse(BaseModel):
    data: list[PaymentResponse]
    meta: PaginationMeta


class Receipt(BaseModel):
    """Printable acknowledgement of a payment.

    Balances are only present for tuition payments.
    """

    payment_id: uuid.UUID
    receipt_number: str
    student_id: uuid.UUID
    student_name: str
    student_number: str
    date: str
    time: str
    amount: Decimal
    payment_method: TuitionPaymentMethod
    cashier_name: Optional[str] = None
    document_type: Optional[str] = None
    previous_balance: Optional[Decimal] = None
    new_balance: Optional[Decimal] = None
    course: Optional[str] = None
    academic_year: Optional[str] = None
    semester: Optional[int] = None


class ReversalResponse(BaseModel):
    payment_id: uuid.UUID
    receipt_number: str
    enrollment_id: Optional[uuid.UUID] = None
    new_balance: Optional[Decimal] = None
