"""
School and Branch Services.

Schools belong to the tenant company, branches to a school. Both carry an
optional 1:1 extension row (`schools_additional` / `branches_additional`)
written by the organization wizard; deletes remove it together with every
junction row that points at the deleted unit.
"""

from __future__ import annotations

from typing import Any, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from rest_api.models import (
    AcademicYearSchool,
    Branch,
    BranchAdditional,
    Company,
    DepartmentBranch,
    DepartmentSchool,
    GradeLevelSchool,
    School,
    SchoolAdditional,
)
from rest_api.routers.admin_schemas import BranchOutput, CompanyOutput, SchoolOutput
from rest_api.services.base_service import BaseCRUDService
from rest_api.services.crud import EntityOutputBuilder, NameLookup
from rest_api.services.crud.repository import InSpec, Specification, all_of
from rest_api.services.domain.references import require_choice, require_school_refs
from rest_api.services.permissions.context import Scope
from shared.config.constants import CacheNamespace, EntityStatus
from shared.utils.exceptions import DependentRecordsError, NotFoundError, ValidationError


def get_company(db: Session, company_id: str) -> CompanyOutput:
    company = db.get(Company, company_id)
    if company is None:
        raise NotFoundError("Company", company_id)
    return CompanyOutput.model_validate(company)


class SchoolService(BaseCRUDService[School, SchoolOutput]):
    """
    Service for school management.

    Business rules:
    - Code unique within the tenant
    - Schools with branches cannot be deleted
    """

    cache_namespace = CacheNamespace.SCHOOLS
    related_namespaces = (
        CacheNamespace.BRANCHES,
        CacheNamespace.GRADE_LEVELS,
        CacheNamespace.ACADEMIC_YEARS,
        CacheNamespace.DEPARTMENTS,
        CacheNamespace.ORG_CHART,
    )

    def __init__(self, db: Session):
        super().__init__(
            db=db,
            model=School,
            output_schema=SchoolOutput,
            entity_name="School",
        )

    def _scope_spec(self, scope: Scope) -> Specification | None:
        if scope.school_ids is None:
            return None
        return InSpec(School.id, scope.school_ids)

    def _validate_create(self, data: dict[str, Any], company_id: str, scope: Scope) -> None:
        super()._validate_create(data, company_id, scope)
        require_choice(data.get("status", EntityStatus.ACTIVE), EntityStatus.TOGGLEABLE, "status")

    def _validate_update(
        self, entity: School, data: dict[str, Any], company_id: str, scope: Scope
    ) -> None:
        super()._validate_update(entity, data, company_id, scope)
        if "status" in data:
            require_choice(data["status"], EntityStatus.TOGGLEABLE, "status")

    def _validate_delete(self, entities: Sequence[School], company_id: str) -> None:
        branches = self._db.scalar(
            select(func.count())
            .select_from(Branch)
            .where(
                Branch.company_id == company_id,
                Branch.school_id.in_([e.id for e in entities]),
            )
        )
        if branches:
            raise DependentRecordsError("school", "branches", branches)

    def _before_delete(self, entity_ids: list[str], company_id: str) -> None:
        self._db.execute(delete(SchoolAdditional).where(SchoolAdditional.school_id.in_(entity_ids)))
        for junction in (GradeLevelSchool, AcademicYearSchool, DepartmentSchool):
            self._db.execute(delete(junction).where(junction.school_id.in_(entity_ids)))


class BranchService(BaseCRUDService[Branch, BranchOutput]):
    """Service for branch management."""

    cache_namespace = CacheNamespace.BRANCHES
    related_namespaces = (CacheNamespace.DEPARTMENTS, CacheNamespace.ORG_CHART)

    def __init__(self, db: Session):
        super().__init__(
            db=db,
            model=Branch,
            output_schema=BranchOutput,
            entity_name="Branch",
        )
        self._builder = EntityOutputBuilder(BranchOutput)

    def to_outputs(self, entities: Sequence[Branch]) -> list[BranchOutput]:
        schools = NameLookup(self._db, School).load(e.school_id for e in entities)
        return [
            self._builder.build(entity, school_name=schools.get(entity.school_id))
            for entity in entities
        ]

    def _scope_spec(self, scope: Scope) -> Specification | None:
        specs = []
        if scope.school_ids is not None:
            specs.append(InSpec(Branch.school_id, scope.school_ids))
        if scope.branch_ids is not None:
            specs.append(InSpec(Branch.id, scope.branch_ids))
        return all_of(specs)

    def _filter_specs(self, filters: dict[str, Any]) -> list[Specification]:
        specs = super()._filter_specs(filters)
        if filters.get("school_ids"):
            specs.append(InSpec(Branch.school_id, filters["school_ids"]))
        return specs

    def _validate_create(self, data: dict[str, Any], company_id: str, scope: Scope) -> None:
        super()._validate_create(data, company_id, scope)
        require_choice(data.get("status", EntityStatus.ACTIVE), EntityStatus.TOGGLEABLE, "status")
        if not data.get("school_id"):
            raise ValidationError("Branch school is required", field="school_id")
        require_school_refs(self._db, [data["school_id"]], company_id, scope)

    def _validate_update(
        self, entity: Branch, data: dict[str, Any], company_id: str, scope: Scope
    ) -> None:
        super()._validate_update(entity, data, company_id, scope)
        if "status" in data:
            require_choice(data["status"], EntityStatus.TOGGLEABLE, "status")
        if "school_id" in data:
            require_school_refs(self._db, [data["school_id"]], company_id, scope)

    def _before_delete(self, entity_ids: list[str], company_id: str) -> None:
        self._db.execute(delete(BranchAdditional).where(BranchAdditional.branch_id.in_(entity_ids)))
        self._db.execute(delete(DepartmentBranch).where(DepartmentBranch.branch_id.in_(entity_ids)))
