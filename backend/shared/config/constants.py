"""
Centralized constants for the backend application.

Usage:
    from shared.config.constants import Roles, EntityStatus, UNSCOPED_ROLES

    if set(user["roles"]) & UNSCOPED_ROLES:
        ...
"""

from typing import Final


# =============================================================================
# User Roles
# =============================================================================


class Roles:
    """User role constants."""

    SYSTEM_ADMIN: Final[str] = "SYSTEM_ADMIN"
    ENTITY_ADMIN: Final[str] = "ENTITY_ADMIN"
    SUB_ENTITY_ADMIN: Final[str] = "SUB_ENTITY_ADMIN"
    SCHOOL_ADMIN: Final[str] = "SCHOOL_ADMIN"
    BRANCH_ADMIN: Final[str] = "BRANCH_ADMIN"

    ALL: Final[list[str]] = [SYSTEM_ADMIN, ENTITY_ADMIN, SUB_ENTITY_ADMIN, SCHOOL_ADMIN, BRANCH_ADMIN]


# Roles that see the whole tenant without a school/branch scope
UNSCOPED_ROLES: Final[frozenset[str]] = frozenset(
    {Roles.SYSTEM_ADMIN, Roles.ENTITY_ADMIN, Roles.SUB_ENTITY_ADMIN}
)
# Roles allowed to change configuration (grade levels, years, departments...)
CONFIG_WRITE_ROLES: Final[frozenset[str]] = frozenset(
    {Roles.SYSTEM_ADMIN, Roles.ENTITY_ADMIN, Roles.SUB_ENTITY_ADMIN, Roles.SCHOOL_ADMIN}
)


# =============================================================================
# Entity Status Constants
# =============================================================================


class EntityStatus:
    """Status values shared by organizational and configuration entities."""

    ACTIVE: Final[str] = "active"
    INACTIVE: Final[str] = "inactive"
    ARCHIVED: Final[str] = "archived"  # class sections only
    COMPLETED: Final[str] = "completed"  # academic years only

    TOGGLEABLE: Final[tuple[str, ...]] = (ACTIVE, INACTIVE)


class EducationLevel:
    """Grade level education stages."""

    KINDERGARTEN: Final[str] = "kindergarten"
    PRIMARY: Final[str] = "primary"
    MIDDLE: Final[str] = "middle"
    SECONDARY: Final[str] = "secondary"
    SENIOR: Final[str] = "senior"

    ALL: Final[tuple[str, ...]] = (KINDERGARTEN, PRIMARY, MIDDLE, SECONDARY, SENIOR)


class DepartmentType:
    """Department classification."""

    ACADEMIC: Final[str] = "academic"
    ADMINISTRATIVE: Final[str] = "administrative"
    SUPPORT: Final[str] = "support"
    OPERATIONS: Final[str] = "operations"

    ALL: Final[tuple[str, ...]] = (ACADEMIC, ADMINISTRATIVE, SUPPORT, OPERATIONS)


# =============================================================================
# Mock exams
# =============================================================================


class MockExamStatus:
    """Mock exam lifecycle."""

    DRAFT: Final[str] = "draft"
    PLANNED: Final[str] = "planned"
    SCHEDULED: Final[str] = "scheduled"
    MATERIALS_READY: Final[str] = "materials_ready"
    IN_PROGRESS: Final[str] = "in_progress"
    GRADING: Final[str] = "grading"
    MODERATION: Final[str] = "moderation"
    ANALYTICS_RELEASED: Final[str] = "analytics_released"
    COMPLETED: Final[str] = "completed"
    CANCELLED: Final[str] = "cancelled"

    ALL: Final[tuple[str, ...]] = (
        DRAFT,
        PLANNED,
        SCHEDULED,
        MATERIALS_READY,
        IN_PROGRESS,
        GRADING,
        MODERATION,
        ANALYTICS_RELEASED,
        COMPLETED,
        CANCELLED,
    )
    # A new exam starts in one of these
    INITIAL: Final[tuple[str, ...]] = (DRAFT, PLANNED)

    TRANSITIONS: Final[dict[str, tuple[str, ...]]] = {
        DRAFT: (PLANNED, CANCELLED),
        PLANNED: (DRAFT, SCHEDULED, CANCELLED),
        SCHEDULED: (PLANNED, MATERIALS_READY, IN_PROGRESS, CANCELLED),
        MATERIALS_READY: (SCHEDULED, IN_PROGRESS, CANCELLED),
        IN_PROGRESS: (GRADING, CANCELLED),
        GRADING: (MODERATION, ANALYTICS_RELEASED, CANCELLED),
        MODERATION: (GRADING, ANALYTICS_RELEASED, CANCELLED),
        ANALYTICS_RELEASED: (COMPLETED, CANCELLED),
        COMPLETED: (),
        CANCELLED: (),
    }


class DeliveryMode:
    """How a mock exam is sat."""

    IN_PERSON: Final[str] = "In-person"
    DIGITAL_HALL: Final[str] = "Digital (exam hall)"
    REMOTE_PROCTORED: Final[str] = "Remote proctored"

    ALL: Final[tuple[str, ...]] = (IN_PERSON, DIGITAL_HALL, REMOTE_PROCTORED)


class ExamWindow:
    """Assessment window a mock exam belongs to."""

    TERM_1: Final[str] = "Term 1"
    TERM_2: Final[str] = "Term 2"
    TERM_3: Final[str] = "Term 3"
    TRIAL_EXAMS: Final[str] = "Trial Exams"
    MOCK_SERIES: Final[str] = "Mock Series"

    ALL: Final[tuple[str, ...]] = (TERM_1, TERM_2, TERM_3, TRIAL_EXAMS, MOCK_SERIES)


# =============================================================================
# Cache namespaces
# =============================================================================


class CacheNamespace:
    """Read cache namespaces, one per listable entity."""

    COMPANIES: Final[str] = "companies"
    SCHOOLS: Final[str] = "schools"
    BRANCHES: Final[str] = "branches"
    GRADE_LEVELS: Final[str] = "grade_levels"
    ACADEMIC_YEARS: Final[str] = "academic_years"
    CLASS_SECTIONS: Final[str] = "class_sections"
    DEPARTMENTS: Final[str] = "departments"
    ORG_CHART: Final[str] = "org_chart"
    MOCK_EXAMS: Final[str] = "mock_exams"


# =============================================================================
# Limits
# =============================================================================


class Limits:
    """Input limits."""

    MAX_SEARCH_LENGTH: Final[int] = 100
    MIN_CODE_LENGTH: Final[int] = 3
    MAX_TERMS: Final[int] = 12
    MAX_BULK_DELETE: Final[int] = 200
    MIN_EXAM_TITLE_LENGTH: Final[int] = 10
    MAX_EXAM_TITLE_LENGTH: Final[int] = 200
    MIN_EXAM_DURATION_MINUTES: Final[int] = 30
    MAX_EXAM_DURATION_MINUTES: Final[int] = 300
