"""Directory Pydantic v2 schemas — compact representations embedded in other responses."""

import uuid
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict

from campus_admin.common.constants import EmployeePosition


class EmployeeBrief(BaseModel):
    """Minimal employee info embedded in attendance / payroll responses."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_code: str
    full_name: str
    position: EmployeePosition
    department_name: Optional[str] = None


class EligibleEmployee(EmployeeBrief):
    """Employee with unpaid DTRs, as offered when starting a payroll run."""

    monthly_salary: Decimal
    hourly_rate: Decimal


class StudentBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    student_number: str
    full_name: str
    year_level: int
