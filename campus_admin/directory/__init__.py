"""Directory module — Department, Employee, Course, Student and Enrollment stores."""

from campus_admin.directory.models import Course, Department, Employee, Enrollment, Student

__all__ = ["Course", "Department", "Employee", "Enrollment", "Student"]
