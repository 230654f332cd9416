"""
Grade Level Service.

Usage:
    from rest_api.services.domain import GradeLevelService

    service = GradeLevelService(db)
    levels = service.list_all(company_id, ctx.scope, {"education_level": ["primary"]})
    level = service.create(data, company_id, ctx.scope, ctx.user_email)
"""

from __future__ import annotations

from typing import Any, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from rest_api.models import ClassSection, GradeLevel, GradeLevelSchool, School
from rest_api.routers.admin_schemas import GradeLevelOutput
from rest_api.services.base_service import BaseCRUDService
from rest_api.services.crud import EntityOutputBuilder, JunctionReconciler, NameLookup
from rest_api.services.crud.repository import InSpec, JunctionSpec, Specification
from rest_api.services.domain.references import require_choice, require_school_refs
from rest_api.services.permissions.context import Scope
from shared.config.constants import CacheNamespace, EducationLevel, EntityStatus
from shared.utils.exceptions import DependentRecordsError

GRADE_LEVEL_SCHOOLS = JunctionReconciler(GradeLevelSchool, "grade_level_id", "school_id")


class GradeLevelService(BaseCRUDService[GradeLevel, GradeLevelOutput]):
    """
    Service for grade level management.

    Business rules:
    - A grade level is offered at one or more schools
    - Lists are sorted by grade_order, then name
    - Grade levels with class sections cannot be deleted
    """

    cache_namespace = CacheNamespace.GRADE_LEVELS
    related_namespaces = (CacheNamespace.CLASS_SECTIONS,)
    junctions = {"school_ids": GRADE_LEVEL_SCHOOLS}

    def __init__(self, db: Session):
        super().__init__(
            db=db,
            model=GradeLevel,
            output_schema=GradeLevelOutput,
            entity_name="Grade level",
        )
        self._builder = EntityOutputBuilder(GradeLevelOutput)

    def to_outputs(self, entities: Sequence[GradeLevel]) -> list[GradeLevelOutput]:
        links = GRADE_LEVEL_SCHOOLS.current_for(self._db, [e.id for e in entities])
        schools = NameLookup(self._db, School)
        schools.load(school_id for ids in links.values() for school_id in ids)
        return [
            self._builder.build(
                entity,
                school_ids=links[entity.id],
                school_names=schools.names_for(links[entity.id]),
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
            GradeLevel.id, GradeLevelSchool.grade_level_id, GradeLevelSchool.school_id, scope.school_ids
        )

    def _filter_specs(self, filters: dict[str, Any]) -> list[Specification]:
        specs = super()._filter_specs(filters)
        if filters.get("education_level"):
            specs.append(InSpec(GradeLevel.education_level, filters["education_level"]))
        if filters.get("school_ids"):
            specs.append(
                JunctionSpec(
                    GradeLevel.id,
                    GradeLevelSchool.grade_level_id,
                    GradeLevelSchool.school_id,
                    filters["school_ids"],
                )
            )
        return specs

    def _order_by(self) -> Any:
        return [GradeLevel.grade_order, GradeLevel.name]

    # =========================================================================
    # Validation Hooks
    # =========================================================================

    def _validate_create(self, data: dict[str, Any], company_id: str, scope: Scope) -> None:
        super()._validate_create(data, company_id, scope)
        require_choice(data.get("education_level"), EducationLevel.ALL, "education_level")
        require_choice(data.get("status", EntityStatus.ACTIVE), EntityStatus.TOGGLEABLE, "status")
        data["school_ids"] = require_school_refs(
            self._db, data.get("school_ids"), company_id, scope
        )

    def _validate_update(
        self, entity: GradeLevel, data: dict[str, Any], company_id: str, scope: Scope
    ) -> None:
        super()._validate_update(entity, data, company_id, scope)
        if "education_level" in data:
            require_choice(data["education_level"], EducationLevel.ALL, "education_level")
        if "status" in data:
            require_choice(data["status"], EntityStatus.TOGGLEABLE, "status")
        if "school_ids" in data:
            data["school_ids"] = require_school_refs(
                self._db, data["school_ids"], company_id, scope
            )

    def _validate_delete(self, entities: Sequence[GradeLevel], company_id: str) -> None:
        sections = self._db.scalar(
            select(func.count())
            .select_from(ClassSection)
            .where(
                ClassSection.company_id == company_id,
                ClassSection.grade_level_id.in_([e.id for e in entities]),
            )
        )
        if sections:
            raise DependentRecordsError("grade level", "class sections", sections)
