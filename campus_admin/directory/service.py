"""Directory lookups — the employee directory and enrollment store used by
the payroll and tuition services."""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from campus_admin.common.exceptions import NotFoundException
from campus_admin.directory.models import Employee, Enrollment, Student
from campus_admin.directory.schemas import EmployeeBrief


class DirectoryService:
    """Key-based reads over the collaborator stores."""

    @staticmethod
    async def get_employee(db: AsyncSession, employee_id: uuid.UUID) -> Employee:
        employee = await db.get(Employee, employee_id)
        if employee is None:
            raise NotFoundException("Employee", employee_id)
        return employee

    @staticmethod
    async def get_student(db: AsyncSession, student_id: uuid.UUID) -> Student:
        student = await db.get(Student, student_id)
        if student is None:
            raise NotFoundException("Student", student_id)
        return student

    @staticmethod
    async def find_enrollment(
        db: AsyncSession,
        enrollment_id: uuid.UUID,
        *,
        for_update: bool = False,
    ) -> Optional[Enrollment]:
        """Load an enrollment, optionally locking the row for a balance update."""
        stmt = select(Enrollment).where(Enrollment.id == enrollment_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await db.execute(stmt)
        return result.scalars().first()

    @staticmethod
    def employee_brief(employee: Employee) -> EmployeeBrief:
        return EmployeeBrief(
            id=employee.id,
            employee_code=employee.employee_code,
            full_name=employee.full_name,
            position=employee.position,
            department_name=employee.department.name if employee.department else None,
        )
