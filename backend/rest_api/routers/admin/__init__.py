"""
Admin API router - combines all admin sub-routers.

This module provides a single router that includes all admin endpoints
organized by domain:

- organization: Company, schools, branches, the wizard and the org chart
- grade_levels: Grade level CRUD with school links
- academic_years: Academic year CRUD with school links
- class_sections: Class section CRUD with occupancy
- departments: Department CRUD and the department tree
- mock_exams: Mock exam scheduling and status transitions

All routes are prefixed with /api/admin
"""

from fastapi import APIRouter

from .organization import router as organization_router
from .grade_levels import router as grade_levels_router
from .academic_years import router as academic_years_router
from .class_sections import router as class_sections_router
from .departments import router as departments_router
from .mock_exams import router as mock_exams_router


# Create the main admin router
router = APIRouter(prefix="/api/admin")

# Include all sub-routers
# Note: Order matters for route matching - more specific routes first

# Organizational units
router.include_router(organization_router)

# Academic configuration
router.include_router(grade_levels_router)
router.include_router(academic_years_router)
router.include_router(class_sections_router)
router.include_router(departments_router)

# Assessment
router.include_router(mock_exams_router)


__all__ = ["router"]
