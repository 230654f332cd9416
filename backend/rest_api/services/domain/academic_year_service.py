"""
Academic Year Service.

Business rules:
- end_date after start_date and the year spans at least
  `settings.min_academic_year_days` days
- total_terms in 1..12, current_term between 1 and total_terms
- marking a year current clears the flag on the tenant's other years that
  share one of its schools, in the same transaction
- years with class sections cannot be deleted
"""

from __future__ import annotations

from datetime import date
from typing import Any, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from rest_api.models import AcademicYear, AcademicYearSchool, ClassSection, School
from rest_api.routers.admin_schemas import AcademicYearOutput
from rest_api.services.base_service import BaseCRUDService
from rest_api.services.crud import EntityOutputBuilder, JunctionReconciler, NameLookup
from rest_api.services.crud.repository import EqualsSpec, JunctionSpec, Specification
from rest_api.services.domain.references import require_choice, require_school_refs
from rest_api.services.permissions.context import Scope
from shared.config.constants import CacheNamespace, EntityStatus, Limits
from shared.config.logging import get_logger
from shared.config.settings import settings
from shared.utils.exceptions import DependentRecordsError, ValidationError

logger = get_logger(__name__)

ACADEMIC_YEAR_SCHOOLS = JunctionReconciler(AcademicYearSchool, "academic_year_id", "school_id")

YEAR_STATUSES = (EntityStatus.ACTIVE, EntityStatus.INACTIVE, EntityStatus.COMPLETED)


def validate_year_fields(
    start_date: date,
    end_date: date,
    total_terms: int | None,
    current_term: int | None,
    min_days: int | None = None,
) -> None:
    """Raise ValidationError when the date range or term counters are inconsistent."""
    min_days = settings.min_academic_year_days if min_days is None else min_days

    if end_date <= start_date:
        raise ValidationError("End date must be after start date", field="end_date")
    if (end_date - start_date).days < min_days:
        raise ValidationError(
            f"Academic year must span at least {min_days} days", field="end_date"
        )
    if total_terms is not None and not 1 <= total_terms <= Limits.MAX_TERMS:
        raise ValidationError(
            f"Total terms must be between 1 and {Limits.MAX_TERMS}", field="total_terms"
        )
    if current_term is not None:
        if current_term < 1:
            raise ValidationError("Current term must be at least 1", field="current_term")
        if total_terms is not None and current_term > total_terms:
            raise ValidationError(
                "Current term cannot exceed total terms", field="current_term"
            )


class AcademicYearService(BaseCRUDService[AcademicYear, AcademicYearOutput]):
    """Service for academic year management."""

    cache_namespace = CacheNamespace.ACADEMIC_YEARS
    related_namespaces = (CacheNamespace.CLASS_SECTIONS,)
    junctions = {"school_ids": ACADEMIC_YEAR_SCHOOLS}
    search_columns = ("name",)

    def __init__(self, db: Session):
        super().__init__(
            db=db,
            model=AcademicYear,
            output_schema=AcademicYearOutput,
            entity_name="Academic year",
        )
        self._builder = EntityOutputBuilder(AcademicYearOutput)

    def to_outputs(self, entities: Sequence[AcademicYear]) -> list[AcademicYearOutput]:
        links = ACADEMIC_YEAR_SCHOOLS.current_for(self._db, [e.id for e in entities])
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

    def get_current(self, company_id: str, school_id: str) -> AcademicYearOutput | None:
        """The year flagged current for a school, if any."""
        spec = EqualsSpec(AcademicYear.is_current, True) & JunctionSpec(
            AcademicYear.id, AcademicYearSchool.academic_year_id, AcademicYearSchool.school_id, [school_id]
        )
        found = self._repo.find_by_spec(spec, company_id, limit=1, order_by=self._order_by())
        return self.to_outputs(found)[0] if found else None

    # =========================================================================
    # Query Hooks
    # =========================================================================

    def _scope_spec(self, scope: Scope) -> Specification | None:
        if scope.school_ids is None:
            return None
        return JunctionSpec(
            AcademicYear.id,
            AcademicYearSchool.academic_year_id,
            AcademicYearSchool.school_id,
            scope.school_ids,
        )

    def _filter_specs(self, filters: dict[str, Any]) -> list[Specification]:
        specs = super()._filter_specs(filters)
        if filters.get("is_current") is not None:
            specs.append(EqualsSpec(AcademicYear.is_current, bool(filters["is_current"])))
        if filters.get("school_ids"):
            specs.append(
                JunctionSpec(
                    AcademicYear.id,
                    AcademicYearSchool.academic_year_id,
                    AcademicYearSchool.school_id,
                    filters["school_ids"],
                )
            )
        return specs

    def _order_by(self) -> Any:
        return [AcademicYear.start_date.desc(), AcademicYear.name]

    # =========================================================================
    # Validation Hooks
    # =========================================================================

    def _validate_create(self, data: dict[str, Any], company_id: str, scope: Scope) -> None:
        require_choice(data.get("status", EntityStatus.ACTIVE), YEAR_STATUSES, "status")
        validate_year_fields(
            data["start_date"],
            data["end_date"],
            data.get("total_terms"),
            data.get("current_term"),
        )
        data["school_ids"] = require_school_refs(
            self._db, data.get("school_ids"), company_id, scope
        )

    def _validate_update(
        self, entity: AcademicYear, data: dict[str, Any], company_id: str, scope: Scope
    ) -> None:
        if "status" in data:
            require_choice(data["status"], YEAR_STATUSES, "status")
        validate_year_fields(
            data.get("start_date") or entity.start_date,
            data.get("end_date") or entity.end_date,
            data["total_terms"] if "total_terms" in data else entity.total_terms,
            data["current_term"] if "current_term" in data else entity.current_term,
        )
        if "school_ids" in data:
            data["school_ids"] = require_school_refs(
                self._db, data["school_ids"], company_id, scope
            )

    def _validate_delete(self, entities: Sequence[AcademicYear], company_id: str) -> None:
        sections = self._db.scalar(
            select(func.count())
            .select_from(ClassSection)
            .where(
                ClassSection.company_id == company_id,
                ClassSection.academic_year_id.in_([e.id for e in entities]),
            )
        )
        if sections:
            raise DependentRecordsError("academic year", "class sections", sections)

    # =========================================================================
    # Lifecycle Hooks
    # =========================================================================

    def _before_commit(self, entity: AcademicYear, company_id: str) -> None:
        if not entity.is_current:
            return

        school_ids = ACADEMIC_YEAR_SCHOOLS.current(self._db, entity.id)
        if not school_ids:
            return
        sharing = JunctionSpec(
            AcademicYear.id, AcademicYearSchool.academic_year_id, AcademicYearSchool.school_id, school_ids
        )
        result = self._db.execute(
            update(AcademicYear)
            .where(
                AcademicYear.company_id == company_id,
                AcademicYear.id != entity.id,
                AcademicYear.is_current.is_(True),
                sharing.to_expression(),
            )
            .values(is_current=False)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            logger.info(
                "Cleared current flag on other academic years",
                academic_year_id=entity.id,
                company_id=company_id,
                cleared=result.rowcount,
            )
