"""
Organization chart: company -> schools -> branches, plus the department forest.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import TypeAdapter
from sqlalchemy.orm import Session

from rest_api.models import Company
from rest_api.routers.admin_schemas import OrgChartNode, OrgChartOutput
from rest_api.services.domain.department_service import DepartmentService
from rest_api.services.domain.organization_service import BranchService, SchoolService
from rest_api.services.hierarchy import build_forest, count_nodes, map_forest
from rest_api.services.permissions.context import Scope, UNRESTRICTED
from shared.config.constants import CacheNamespace
from shared.infrastructure.cache.read_cache import get_read_cache, make_key
from shared.utils.exceptions import NotFoundError

_CHART_ADAPTER = TypeAdapter(OrgChartOutput)


@dataclass(frozen=True)
class _ChartItem:
    key: tuple[str, str]
    parent_key: tuple[str, str] | None
    type: str
    entity: Any


class OrgChartService:
    def __init__(self, db: Session):
        self._db = db
        self._schools = SchoolService(db)
        self._branches = BranchService(db)
        self._departments = DepartmentService(db)

    def chart(self, company_id: str, scope: Scope = UNRESTRICTED) -> OrgChartOutput:
        key = make_key(scope=scope.cache_key())
        return get_read_cache().get_or_load(
            CacheNamespace.ORG_CHART,
            company_id,
            key,
            lambda: self._build(company_id, scope),
            _CHART_ADAPTER,
        )

    def _build(self, company_id: str, scope: Scope) -> OrgChartOutput:
        company = self._db.get(Company, company_id)
        if company is None:
            raise NotFoundError("Company", company_id)

        schools = self._schools.find_visible(company_id, scope)
        branches = self._branches.find_visible(company_id, scope)

        company_key = ("company", company.id)
        items = [_ChartItem(company_key, None, "company", company)]
        items.extend(
            _ChartItem(("school", s.id), company_key, "school", s) for s in schools
        )
        items.extend(
            _ChartItem(("branch", b.id), ("school", b.school_id), "branch", b) for b in branches
        )

        forest = build_forest(items, id_of=lambda i: i.key, parent_of=lambda i: i.parent_key)
        roots = map_forest(
            forest,
            lambda item, children: OrgChartNode(
                id=item.entity.id,
                type=item.type,
                name=item.entity.name,
                code=item.entity.code,
                status=item.entity.status,
                children=children,
            ),
        )

        departments = self._departments.tree(company_id, scope)
        return OrgChartOutput(
            roots=roots,
            totals={
                "company": 1,
                "school": len(schools),
                "branch": len(branches),
                "department": departments.total,
                "nodes": count_nodes(forest),
            },
            departments=departments.roots,
        )
