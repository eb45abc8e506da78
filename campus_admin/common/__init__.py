"""Common module — shared utilities for Campus Admin."""

from campus_admin.common.audit import AuditTrail, create_audit_entry
from campus_admin.common.constants import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    AttendanceStatus,
    EmployeePosition,
    EnrollmentPaymentStatus,
    EnrollmentStatus,
    LeaveType,
    PaymentStatus,
    PayrollPaymentMethod,
    PayrollStatus,
    TuitionPaymentMethod,
    UserRole,
)
from campus_admin.common.exceptions import (
    AppException,
    ConflictError,
    DuplicateException,
    ForbiddenException,
    InvalidStateError,
    NotFoundException,
    StorageFailure,
    ValidationException,
    register_exception_handlers,
)
from campus_admin.common.filters import apply_filters
from campus_admin.common.pagination import (
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
    paginate,
)
from campus_admin.common.transactions import atomic

__all__ = [
    # Audit
    "AuditTrail",
    "create_audit_entry",
    # Constants / Enums
    "AttendanceStatus",
    "EmployeePosition",
    "EnrollmentPaymentStatus",
    "EnrollmentStatus",
    "LeaveType",
    "PaymentStatus",
    "PayrollPaymentMethod",
    "PayrollStatus",
    "TuitionPaymentMethod",
    "UserRole",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    # Exceptions
    "AppException",
    "ConflictError",
    "DuplicateException",
    "ForbiddenException",
    "InvalidStateError",
    "NotFoundException",
    "StorageFailure",
    "ValidationException",
    "register_exception_handlers",
    # Filters
    "apply_filters",
    # Pagination
    "PaginatedResponse",
    "PaginationMeta",
    "PaginationParams",
    "paginate",
    # Transactions
    "atomic",
]
