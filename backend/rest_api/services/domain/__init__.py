"""
Domain Services - Clean Architecture Application Layer.

Services contain business logic and orchestrate operations.
They use Repositories for data access and keep junction and extension
writes in the owner's transaction.

Structure:
    Router (thin controller)
        ↓
    Service (business logic)  ← YOU ARE HERE
        ↓
    Repository (data access)
        ↓
    Model (entity)

Usage:
    from rest_api.services.domain import DepartmentService

    # In router
    service = DepartmentService(db)
    departments = service.list_all(ctx.company_id, ctx.scope, filters)
"""

from .grade_level_service import GradeLevelService
from .academic_year_service import AcademicYearService
from .class_section_service import ClassSectionService, occupancy_percent
from .department_service import DepartmentService
from .organization_service import SchoolService, BranchService, get_company
from .wizard_service import OrganizationWizardService, partition_record
from .org_chart_service import OrgChartService
from .mock_exam_service import MockExamService, allowed_transitions

__all__ = [
    "GradeLevelService",
    "AcademicYearService",
    "ClassSectionService",
    "occupancy_percent",
    "DepartmentService",
    "SchoolService",
    "BranchService",
    "get_company",
    "OrganizationWizardService",
    "partition_record",
    "OrgChartService",
    "MockExamService",
    "allowed_transitions",
]
