"""
Department Service - Clean Architecture Implementation.

Departments are linked to one or more schools and optionally to branches of
those schools. They form a hierarchy through `parent_department_id`.

Usage:
    from rest_api.services.domain import DepartmentService

    service = DepartmentService(db)
    department = service.create(
        {"name": "Science", "school_ids": ["s1", "s2"]},
        company_id, ctx.scope, ctx.user_email,
    )
    tree = service.tree(company_id, ctx.scope)
"""

from __future__ import annotations

from typing import Any, Sequence

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from rest_api.models import Branch, Department, DepartmentBranch, DepartmentSchool, School
from rest_api.routers.admin_schemas import (
    DepartmentOutput,
    DepartmentTreeNode,
    DepartmentTreeOutput,
)
from rest_api.services.base_service import BaseCRUDService
from rest_api.services.crud import EntityOutputBuilder, JunctionReconciler, NameLookup
from rest_api.services.crud.repository import InSpec, JunctionSpec, Specification
from rest_api.services.domain.references import (
    require_branch_refs,
    require_choice,
    require_email,
    require_school_refs,
)
from rest_api.services.hierarchy import build_forest, count_nodes, map_forest, max_depth
from rest_api.services.permissions.context import Scope
from shared.config.constants import CacheNamespace, DepartmentType, EntityStatus
from shared.config.logging import get_logger
from shared.utils.exceptions import ValidationError

logger = get_logger(__name__)

DEPARTMENT_SCHOOLS = JunctionReconciler(DepartmentSchool, "department_id", "school_id")
DEPARTMENT_BRANCHES = JunctionReconciler(DepartmentBranch, "department_id", "branch_id")


class DepartmentService(BaseCRUDService[Department, DepartmentOutput]):
    """
    Service for department management.

    Business rules:
    - At least one school; branches must belong to the selected schools
    - A department cannot become its own ancestor
    - Deleting a department moves its children to the root
    """

    cache_namespace = CacheNamespace.DEPARTMENTS
    related_namespaces = (CacheNamespace.ORG_CHART,)
    junctions = {"school_ids": DEPARTMENT_SCHOOLS, "branch_ids": DEPARTMENT_BRANCHES}

    def __init__(self, db: Session):
        super().__init__(
            db=db,
            model=Department,
            output_schema=DepartmentOutput,
            entity_name="Department",
        )
        self._builder = EntityOutputBuilder(DepartmentOutput)

    def to_outputs(self, entities: Sequence[Department]) -> list[DepartmentOutput]:
        ids = [e.id for e in entities]
        school_links = DEPARTMENT_SCHOOLS.current_for(self._db, ids)
        branch_links = DEPARTMENT_BRANCHES.current_for(self._db, ids)

        schools = NameLookup(self._db, School)
        schools.load(i for linked in school_links.values() for i in linked)
        branches = NameLookup(self._db, Branch)
        branches.load(i for linked in branch_links.values() for i in linked)
        parents = NameLookup(self._db, Department)
        parents.load(e.parent_department_id for e in entities)

        return [
            self._builder.build(
                entity,
                school_ids=school_links[entity.id],
                school_names=schools.names_for(school_links[entity.id]),
                branch_ids=branch_links[entity.id],
                branch_names=branches.names_for(branch_links[entity.id]),
                parent_department_name=parents.name_of(entity.parent_department_id),
            )
            for entity in entities
        ]

    # =========================================================================
    # Hierarchy
    # =========================================================================

    def tree(self, company_id: str, scope: Scope) -> DepartmentTreeOutput:
        """
        Department forest of the tenant, children sorted by name.

        Departments whose parent is outside the visible set are roots.
        """
        departments = self.find_visible(company_id, scope)
        forest = build_forest(
            departments,
            id_of=lambda d: d.id,
            parent_of=lambda d: d.parent_department_id,
        )
        roots = map_forest(
            forest,
            lambda d, children: DepartmentTreeNode(
                id=d.id,
                name=d.name,
                code=d.code,
                department_type=d.department_type,
                status=d.status,
                parent_department_id=d.parent_department_id,
                children=children,
            ),
        )
        return DepartmentTreeOutput(roots=roots, total=count_nodes(forest), depth=max_depth(forest))

    def _ancestor_ids(self, department_id: str, company_id: str) -> list[str]:
        """Ids above `department_id`, nearest first. Stops if the stored chain loops."""
        parents = dict(
            self._db.execute(
                select(Department.id, Department.parent_department_id).where(
                    Department.company_id == company_id
                )
            ).all()
        )
        chain: list[str] = []
        seen = {department_id}
        current = parents.get(department_id)
        while current is not None and current not in seen:
            chain.append(current)
            seen.add(current)
            current = parents.get(current)
        return chain

    # =========================================================================
    # Query Hooks
    # =========================================================================

    def _scope_spec(self, scope: Scope) -> Specification | None:
        if scope.school_ids is None:
            return None
        return JunctionSpec(
            Department.id, DepartmentSchool.department_id, DepartmentSchool.school_id, scope.school_ids
        )

    def _filter_specs(self, filters: dict[str, Any]) -> list[Specification]:
        specs = super()._filter_specs(filters)
        if filters.get("department_type"):
            specs.append(InSpec(Department.department_type, filters["department_type"]))
        if filters.get("school_ids"):
            specs.append(
                JunctionSpec(
                    Department.id,
                    DepartmentSchool.department_id,
                    DepartmentSchool.school_id,
                    filters["school_ids"],
                )
            )
        if filters.get("branch_ids"):
            specs.append(
                JunctionSpec(
                    Department.id,
                    DepartmentBranch.department_id,
                    DepartmentBranch.branch_id,
                    filters["branch_ids"],
                )
            )
        return specs

    # =========================================================================
    # Validation Hooks
    # =========================================================================

    def _validate_create(self, data: dict[str, Any], company_id: str, scope: Scope) -> None:
        super()._validate_create(data, company_id, scope)
        self._validate_fields(data)
        data["school_ids"] = require_school_refs(
            self._db, data.get("school_ids"), company_id, scope
        )
        data["branch_ids"] = require_branch_refs(
            self._db, data.get("branch_ids"), company_id, scope, data["school_ids"]
        )
        if data.get("parent_department_id"):
            self._require_parent(data["parent_department_id"], company_id)

    def _validate_update(
        self, entity: Department, data: dict[str, Any], company_id: str, scope: Scope
    ) -> None:
        super()._validate_update(entity, data, company_id, scope)
        self._validate_fields(data)

        if "school_ids" in data:
            data["school_ids"] = require_school_refs(
                self._db, data["school_ids"], company_id, scope
            )
        if "branch_ids" in data or "school_ids" in data:
            school_ids = data.get("school_ids")
            if school_ids is None:
                school_ids = DEPARTMENT_SCHOOLS.current(self._db, entity.id)
            branch_ids = data.get("branch_ids")
            if "branch_ids" not in data:
                branch_ids = DEPARTMENT_BRANCHES.current(self._db, entity.id)
            data["branch_ids"] = require_branch_refs(
                self._db, branch_ids, company_id, scope, school_ids
            )

        parent_id = data.get("parent_department_id")
        if parent_id:
            if parent_id == entity.id:
                raise ValidationError(
                    "A department cannot be its own parent", field="parent_department_id"
                )
            self._require_parent(parent_id, company_id)
            if entity.id in self._ancestor_ids(parent_id, company_id):
                raise ValidationError(
                    "A department cannot be moved under one of its own sub-departments",
                    field="parent_department_id",
                )

    def _validate_fields(self, data: dict[str, Any]) -> None:
        if data.get("department_type") is not None:
            require_choice(data["department_type"], DepartmentType.ALL, "department_type")
        if "status" in data:
            require_choice(data["status"], EntityStatus.TOGGLEABLE, "status")
        require_email(data.get("head_email"), "head_email")

    def _require_parent(self, parent_id: str, company_id: str) -> None:
        if not self._repo.exists(parent_id, company_id):
            raise ValidationError(
                f"Unknown parent department: {parent_id}", field="parent_department_id"
            )

    # =========================================================================
    # Lifecycle Hooks
    # =========================================================================

    def _before_delete(self, entity_ids: list[str], company_id: str) -> None:
        result = self._db.execute(
            update(Department)
            .where(
                Department.company_id == company_id,
                Department.parent_department_id.in_(entity_ids),
                Department.id.not_in(entity_ids),
            )
            .values(parent_department_id=None)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            logger.info(
                "Sub-departments moved to root",
                parent_ids=entity_ids,
                company_id=company_id,
                count=result.rowcount,
            )
