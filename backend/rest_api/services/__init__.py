"""
Services module for business logic.

CLEAN ARCHITECTURE:
- domain/: Application services (business logic) - USE THESE
- crud/: Repository, specifications, junction reconciliation, output building
- permissions/: Role checks and school/branch scope
- wizard/: Multi-step form definitions and controller
- hierarchy: Forest building for departments and the organization chart
- status_toggle: active <-> inactive flips

Usage:
    from rest_api.services.domain import GradeLevelService
    service = GradeLevelService(db)
    levels = service.list_all(company_id, scope, {"search": "grade"})
"""

# CRUD utilities
from .crud import (
    EntityOutputBuilder,
    JunctionReconciler,
    NameLookup,
)

# Permissions
from .permissions import PermissionContext, Scope, UNRESTRICTED

# Hierarchy and status helpers
from .hierarchy import TreeNode, build_forest, count_nodes, iter_nodes, max_depth
from .status_toggle import toggle_entity_status

# Base service classes for creating new domain services
from .base_service import BaseService, BaseCRUDService

# CLEAN ARCHITECTURE: Domain Services (PREFERRED)
from .domain import (
    GradeLevelService,
    AcademicYearService,
    ClassSectionService,
    DepartmentService,
    SchoolService,
    BranchService,
    OrganizationWizardService,
    OrgChartService,
)

__all__ = [
    # CRUD
    "EntityOutputBuilder",
    "JunctionReconciler",
    "NameLookup",
    # Permissions
    "PermissionContext",
    "Scope",
    "UNRESTRICTED",
    # Hierarchy
    "TreeNode",
    "build_forest",
    "count_nodes",
    "iter_nodes",
    "max_depth",
    "toggle_entity_status",
    # Base service classes
    "BaseService",
    "BaseCRUDService",
    # Domain services
    "GradeLevelService",
    "AcademicYearService",
    "ClassSectionService",
    "DepartmentService",
    "SchoolService",
    "BranchService",
    "OrganizationWizardService",
    "OrgChartService",
]
