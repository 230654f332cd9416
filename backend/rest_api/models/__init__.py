"""
SQLAlchemy ORM Models Package.

Models are organized into domain-specific modules:
- base: Base class, TimestampMixin, id helpers
- organization: Company, School, Branch and their *_additional extensions
- academic: GradeLevel, AcademicYear, ClassSection and school junctions
- department: Department, DepartmentSchool, DepartmentBranch
- mock_exam: MockExam, its junctions and MockExamStatusHistory
"""

# Base classes
from .base import Base, TimestampMixin, new_id

# Organizational units
from .organization import (
    Company,
    CompanyAdditional,
    School,
    SchoolAdditional,
    Branch,
    BranchAdditional,
)

# Academic configuration
from .academic import (
    GradeLevel,
    GradeLevelSchool,
    AcademicYear,
    AcademicYearSchool,
    ClassSection,
)

# Departments
from .department import Department, DepartmentSchool, DepartmentBranch

# Mock exams
from .mock_exam import (
    MockExam,
    MockExamSchool,
    MockExamBranch,
    MockExamGradeLevel,
    MockExamStatusHistory,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "new_id",
    "Company",
    "CompanyAdditional",
    "School",
    "SchoolAdditional",
    "Branch",
    "BranchAdditional",
    "GradeLevel",
    "GradeLevelSchool",
    "AcademicYear",
    "AcademicYearSchool",
    "ClassSection",
    "Department",
    "DepartmentSchool",
    "DepartmentBranch",
    "MockExam",
    "MockExamSchool",
    "MockExamBranch",
    "MockExamGradeLevel",
    "MockExamStatusHistory",
]
