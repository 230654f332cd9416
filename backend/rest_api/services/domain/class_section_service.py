"""
Class Section Service.

Sections belong to one grade level and one academic year of the tenant.
Scoped users see the sections of grade levels offered at their schools.
"""

from __future__ import annotations

from typing import Any, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from rest_api.models import AcademicYear, ClassSection, GradeLevel, GradeLevelSchool
from rest_api.routers.admin_schemas import ClassSectionOutput
from rest_api.services.base_service import BaseCRUDService
from rest_api.services.crud import EntityOutputBuilder, NameLookup
from rest_api.services.crud.repository import InSpec, JunctionSpec, Specification
from rest_api.services.domain.references import require_choice
from rest_api.services.permissions.context import Scope
from shared.config.constants import CacheNamespace, EntityStatus
from shared.utils.exceptions import ValidationError

SECTION_STATUSES = (EntityStatus.ACTIVE, EntityStatus.INACTIVE, EntityStatus.ARCHIVED)


def occupancy_percent(current_enrollment: int | None, max_capacity: int | None) -> int:
    """Enrollment as a whole percentage of capacity, clamped to 0..100."""
    if not max_capacity or max_capacity <= 0:
        return 0
    percent = round((current_enrollment or 0) * 100 / max_capacity)
    return max(0, min(100, percent))


class ClassSectionService(BaseCRUDService[ClassSection, ClassSectionOutput]):
    cache_namespace = CacheNamespace.CLASS_SECTIONS

    def __init__(self, db: Session):
        super().__init__(
            db=db,
            model=ClassSection,
            output_schema=ClassSectionOutput,
            entity_name="Class section",
        )
        self._builder = EntityOutputBuilder(ClassSectionOutput)

    def to_outputs(self, entities: Sequence[ClassSection]) -> list[ClassSectionOutput]:
        grade_levels = NameLookup(self._db, GradeLevel).load(e.grade_level_id for e in entities)
        years = NameLookup(self._db, AcademicYear).load(e.academic_year_id for e in entities)
        return [
            self._builder.build(
                entity,
                grade_level_name=grade_levels.get(entity.grade_level_id),
                academic_year_name=years.get(entity.academic_year_id),
                occupancy_percent=occupancy_percent(
                    entity.current_enrollment, entity.max_capacity
                ),
            )
            for entity in entities
        ]

    # =========================================================================
    # Query Hooks
    # =========================================================================

    def _scope_spec(self, scope: Scope) -> Specification | None:
        if scope.school_ids is None:
            return None
        return JunctionSpec(
            ClassSection.grade_level_id,
            GradeLevelSchool.grade_level_id,
            GradeLevelSchool.school_id,
            scope.school_ids,
        )

    def _filter_specs(self, filters: dict[str, Any]) -> list[Specification]:
        specs = super()._filter_specs(filters)
        if filters.get("grade_level_ids"):
            specs.append(InSpec(ClassSection.grade_level_id, filters["grade_level_ids"]))
        if filters.get("academic_year_ids"):
            specs.append(InSpec(ClassSection.academic_year_id, filters["academic_year_ids"]))
        return specs

    # =========================================================================
    # Validation Hooks
    # =========================================================================

    def _validate_create(self, data: dict[str, Any], company_id: str, scope: Scope) -> None:
        super()._validate_create(data, company_id, scope)
        require_choice(data.get("status", EntityStatus.ACTIVE), SECTION_STATUSES, "status")
        self._require_grade_level(data.get("grade_level_id"), company_id, scope)
        self._require_academic_year(data.get("academic_year_id"), company_id)

    def _validate_update(
        self, entity: ClassSection, data: dict[str, Any], company_id: str, scope: Scope
    ) -> None:
        super()._validate_update(entity, data, company_id, scope)
        if "status" in data:
            require_choice(data["status"], SECTION_STATUSES, "status")
        if "grade_level_id" in data:
            self._require_grade_level(data["grade_level_id"], company_id, scope)
        if "academic_year_id" in data:
            self._require_academic_year(data["academic_year_id"], company_id)

    def _require_grade_level(self, grade_level_id: str | None, company_id: str, scope: Scope) -> None:
        query = select(GradeLevel.id).where(
            GradeLevel.id == grade_level_id, GradeLevel.company_id == company_id
        )
        if scope.school_ids is not None:
            query = query.where(
                JunctionSpec(
                    GradeLevel.id,
                    GradeLevelSchool.grade_level_id,
                    GradeLevelSchool.school_id,
                    scope.school_ids,
                ).to_expression()
            )
        if not grade_level_id or self._db.scalar(query) is None:
            raise ValidationError(f"Unknown grade level: {grade_level_id}", field="grade_level_id")

    def _require_academic_year(self, academic_year_id: str | None, company_id: str) -> None:
        found = self._db.scalar(
            select(AcademicYear.id).where(
                AcademicYear.id == academic_year_id, AcademicYear.company_id == company_id
            )
        )
        if not academic_year_id or found is None:
            raise ValidationError(
                f"Unknown academic year: {academic_year_id}", field="academic_year_id"
            )
