"""
Pydantic schemas for admin API endpoints.
Centralized to avoid circular imports and improve maintainability.

This file contains all request/response schemas used by admin routers
and returned by the domain services.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Optional
from pydantic import BaseModel, Field

from shared.config.constants import Limits


# =============================================================================
# Shared Schemas
# =============================================================================


class DeleteManyInput(BaseModel):
    ids: list[str] = Field(min_length=1, max_length=Limits.MAX_BULK_DELETE)


class DeleteManyOutput(BaseModel):
    deleted: int


class StatusToggleOutput(BaseModel):
    id: str
    status: str


# =============================================================================
# Company Schemas
# =============================================================================


class CompanyOutput(BaseModel):
    id: str
    name: str
    code: str
    description: str | None = None
    status: str
    region: str | None = None
    country: str | None = None
    address: str | None = None
    notes: str | None = None
    logo: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


# =============================================================================
# School Schemas
# =============================================================================


class SchoolOutput(BaseModel):
    id: str
    company_id: str
    name: str
    code: str
    description: str | None = None
    status: str
    address: str | None = None
    notes: str | None = None
    logo: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class SchoolCreate(BaseModel):
    name: str = Field(min_length=1)
    code: str = Field(min_length=3)
    description: str | None = None
    status: str = "active"
    address: str | None = None
    notes: str | None = None
    logo: str | None = None


class SchoolUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    code: str | None = Field(default=None, min_length=3)
    description: str | None = None
    status: str | None = None
    address: str | None = None
    notes: str | None = None
    logo: str | None = None


# =============================================================================
# Branch Schemas
# =============================================================================


class BranchOutput(BaseModel):
    id: str
    company_id: str
    school_id: str
    school_name: str | None = None
    name: str
    code: str
    description: str | None = None
    status: str
    address: str | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class BranchCreate(BaseModel):
    school_id: str
    name: str = Field(min_length=1)
    code: str = Field(min_length=3)
    description: str | None = None
    status: str = "active"
    address: str | None = None
    notes: str | None = None


class BranchUpdate(BaseModel):
    school_id: str | None = None
    name: str | None = Field(default=None, min_length=1)
    code: str | None = Field(default=None, min_length=3)
    description: str | None = None
    status: str | None = None
    address: str | None = None
    notes: str | None = None


# =============================================================================
# Grade Level Schemas
# =============================================================================


class GradeLevelOutput(BaseModel):
    id: str
    company_id: str
    name: str
    code: str
    grade_order: int
    education_level: str
    max_students_per_section: int | None = None
    total_sections: int | None = None
    status: str
    school_ids: list[str] = []
    school_names: list[str] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class GradeLevelCreate(BaseModel):
    name: str = Field(min_length=1)
    code: str = Field(min_length=1)
    grade_order: int = Field(default=0, ge=0)
    education_level: str
    max_students_per_section: int | None = Field(default=None, ge=1)
    total_sections: int | None = Field(default=None, ge=0)
    status: str = "active"
    school_ids: list[str] = []


class GradeLevelUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    code: str | None = Field(default=None, min_length=1)
    grade_order: int | None = Field(default=None, ge=0)
    education_level: str | None = None
    max_students_per_section: int | None = Field(default=None, ge=1)
    total_sections: int | None = Field(default=None, ge=0)
    status: str | None = None
    school_ids: list[str] | None = None


# =============================================================================
# Academic Year Schemas
# =============================================================================


class AcademicYearOutput(BaseModel):
    id: str
    company_id: str
    name: str
    start_date: date
    end_date: date
    total_terms: int | None = None
    current_term: int | None = None
    is_current: bool
    status: str
    school_ids: list[str] = []
    school_names: list[str] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class AcademicYearCreate(BaseModel):
    name: str = Field(min_length=1)
    start_date: date
    end_date: date
    total_terms: int | None = None
    current_term: int | None = None
    is_current: bool = False
    status: str = "active"
    school_ids: list[str] = []


class AcademicYearUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    start_date: date | None = None
    end_date: date | None = None
    total_terms: int | None = None
    current_term: int | None = None
    is_current: bool | None = None
    status: str | None = None
    school_ids: list[str] | None = None


# =============================================================================
# Class Section Schemas
# =============================================================================


class ClassSectionOutput(BaseModel):
    id: str
    company_id: str
    grade_level_id: str
    grade_level_name: str | None = None
    academic_year_id: str
    academic_year_name: str | None = None
    name: str
    code: str
    max_capacity: int
    current_enrollment: int
    occupancy_percent: int = 0
    class_teacher_name: str | None = None
    classroom_number: str | None = None
    building: str | None = None
    floor: str | None = None
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class ClassSectionCreate(BaseModel):
    grade_level_id: str
    academic_year_id: str
    name: str = Field(min_length=1)
    code: str = Field(min_length=1)
    max_capacity: int = Field(default=30, ge=1)
    current_enrollment: int = Field(default=0, ge=0)
    class_teacher_name: str | None = None
    classroom_number: str | None = None
    building: str | None = None
    floor: str | None = None
    status: str = "active"


class ClassSectionUpdate(BaseModel):
    grade_level_id: str | None = None
    academic_year_id: str | None = None
    name: str | None = Field(default=None, min_length=1)
    code: str | None = Field(default=None, min_length=1)
    max_capacity: int | None = Field(default=None, ge=1)
    current_enrollment: int | None = Field(default=None, ge=0)
    class_teacher_name: str | None = None
    classroom_number: str | None = None
    building: str | None = None
    floor: str | None = None
    status: str | None = None


# =============================================================================
# Department Schemas
# =============================================================================


class DepartmentOutput(BaseModel):
    id: str
    company_id: str
    name: str
    code: str | None = None
    description: str | None = None
    department_type: str | None = None
    parent_department_id: str | None = None
    parent_department_name: str | None = None
    head_of_department: str | None = None
    head_email: str | None = None
    employee_count: int | None = None
    status: str
    school_ids: list[str] = []
    school_names: list[str] = []
    branch_ids: list[str] = []
    branch_names: list[str] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class DepartmentCreate(BaseModel):
    name: str = Field(min_length=1)
    code: str | None = None
    description: str | None = None
    department_type: str | None = None
    parent_department_id: str | None = None
    head_of_department: str | None = None
    head_email: str | None = None
    employee_count: int | None = Field(default=None, ge=0)
    status: str = "active"
    school_ids: list[str] = []
    branch_ids: list[str] = []


class DepartmentUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    code: str | None = None
    description: str | None = None
    department_type: str | None = None
    parent_department_id: str | None = None
    head_of_department: str | None = None
    head_email: str | None = None
    employee_count: int | None = Field(default=None, ge=0)
    status: str | None = None
    school_ids: list[str] | None = None
    branch_ids: list[str] | None = None


class DepartmentTreeNode(BaseModel):
    id: str
    name: str
    code: str | None = None
    department_type: str | None = None
    status: str
    parent_department_id: str | None = None
    children: list[DepartmentTreeNode] = []


class DepartmentTreeOutput(BaseModel):
    roots: list[DepartmentTreeNode]
    total: int
    depth: int


# =============================================================================
# Mock Exam Schemas
# =============================================================================


class MockExamOutput(BaseModel):
    id: str
    company_id: str
    title: str
    subject: str | None = None
    paper_type: str | None = None
    paper_number: int | None = None
    status: str
    allowed_transitions: list[str] = []
    scheduled_date: date
    scheduled_time: time | None = None
    duration_minutes: int
    delivery_mode: str
    exam_window: str
    total_marks: int | None = None
    readiness_score: int = 0
    registered_students_count: int = 0
    flagged_students_count: int = 0
    ai_proctoring_enabled: bool = False
    release_analytics: bool = True
    allow_retakes: bool = False
    notes: str | None = None
    school_ids: list[str] = []
    school_names: list[str] = []
    branch_ids: list[str] = []
    branch_names: list[str] = []
    grade_level_ids: list[str] = []
    grade_level_names: list[str] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class MockExamCreate(BaseModel):
    title: str
    subject: str | None = None
    paper_type: str | None = None
    paper_number: int | None = Field(default=None, ge=1)
    status: str = "planned"
    scheduled_date: date
    scheduled_time: time | None = None
    duration_minutes: int = 120
    delivery_mode: str = "In-person"
    exam_window: str = "Term 1"
    total_marks: int | None = Field(default=None, gt=0)
    readiness_score: int = Field(default=0, ge=0, le=100)
    registered_students_count: int = Field(default=0, ge=0)
    flagged_students_count: int = Field(default=0, ge=0)
    ai_proctoring_enabled: bool = False
    release_analytics: bool = True
    allow_retakes: bool = False
    notes: str | None = None
    school_ids: list[str] = []
    branch_ids: list[str] = []
    grade_level_ids: list[str] = []


class MockExamUpdate(BaseModel):
    """Status is not editable here; use the transition endpoint."""

    title: str | None = None
    subject: str | None = None
    paper_type: str | None = None
    paper_number: int | None = Field(default=None, ge=1)
    scheduled_date: date | None = None
    scheduled_time: time | None = None
    duration_minutes: int | None = None
    delivery_mode: str | None = None
    exam_window: str | None = None
    total_marks: int | None = Field(default=None, gt=0)
    readiness_score: int | None = Field(default=None, ge=0, le=100)
    registered_students_count: int | None = Field(default=None, ge=0)
    flagged_students_count: int | None = Field(default=None, ge=0)
    ai_proctoring_enabled: bool | None = None
    release_analytics: bool | None = None
    allow_retakes: bool | None = None
    notes: str | None = None
    school_ids: list[str] | None = None
    branch_ids: list[str] | None = None
    grade_level_ids: list[str] | None = None


class MockExamTransitionInput(BaseModel):
    status: str
    reason: str | None = None


class MockExamStatusHistoryOutput(BaseModel):
    id: str
    mock_exam_id: str
    old_status: str
    new_status: str
    change_reason: str | None = None
    changed_by: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class MockExamStatisticsOutput(BaseModel):
    total: int
    upcoming: int
    total_students: int
    total_flagged: int
    ai_enabled: int
    avg_readiness: int


# =============================================================================
# Organization Chart Schemas
# =============================================================================


class OrgChartNode(BaseModel):
    id: str
    type: str
    name: str
    code: Optional[str] = None
    status: str
    children: list[OrgChartNode] = []


class OrgChartOutput(BaseModel):
    roots: list[OrgChartNode]
    totals: dict[str, int]
    departments: list[DepartmentTreeNode] = []


# =============================================================================
# Wizard Schemas
# =============================================================================


class WizardStepDefinition(BaseModel):
    index: int
    step_id: str
    title: str
    fields: list[str]


class WizardStepInput(BaseModel):
    step: int = Field(ge=0)
    record: dict[str, Any] = {}


class WizardStepResult(BaseModel):
    step: int
    valid: bool
    errors: dict[str, str] = {}


class WizardSubmitInput(BaseModel):
    record: dict[str, Any]
    parent_id: str | None = None


class WizardSubmitOutput(BaseModel):
    entity_type: str
    id: str


class WizardRecordOutput(BaseModel):
    entity_type: str
    id: str
    record: dict[str, Any]
