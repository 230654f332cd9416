"""
Repository Pattern for database access.

Provides a thin layer between business logic and data access, with built-in
multi-tenant isolation on `company_id`.

Usage:
    from rest_api.services.crud.repository import TenantRepository, SearchSpec, InSpec

    repo = TenantRepository(GradeLevel, db)
    levels = repo.find_all(company_id)
    level = repo.find_by_id(level_id, company_id)

    # Filtered listing composed from specifications
    levels = repo.find_by_spec(
        SearchSpec(GradeLevel, "grade") & InSpec(GradeLevel.education_level, ["primary"]),
        company_id,
        order_by=[GradeLevel.grade_order, GradeLevel.name],
    )
"""

from __future__ import annotations

from functools import reduce
from typing import Any, Generic, Iterable, Sequence, TypeVar

from sqlalchemy import and_, delete, exists as sql_exists, false, func, not_, or_, select, true
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from rest_api.models import Base
from shared.utils.validators import escape_like_pattern, sanitize_search_term

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """
    Base repository providing common database operations.

    For tenant-owned entities use TenantRepository instead.
    """

    def __init__(self, model: type[ModelT], session: Session):
        self._model = model
        self._session = session

    @property
    def model(self) -> type[ModelT]:
        """The SQLAlchemy model class."""
        return self._model

    @property
    def session(self) -> Session:
        """The database session."""
        return self._session

    def _base_query(self) -> Select:
        return select(self._model)

    @staticmethod
    def _apply_order(query: Select, order_by: Any | None) -> Select:
        if order_by is None:
            return query
        if isinstance(order_by, (list, tuple)):
            return query.order_by(*order_by)
        return query.order_by(order_by)

    def find_by_id(self, entity_id: str) -> ModelT | None:
        query = self._base_query().where(self._model.id == entity_id)
        return self._session.scalar(query)

    def find_all(
        self,
        *,
        limit: int | None = None,
        offset: int | None = None,
        order_by: Any | None = None,
    ) -> Sequence[ModelT]:
        query = self._apply_order(self._base_query(), order_by)
        if offset is not None:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return self._session.scalars(query).all()

    def count(self) -> int:
        query = select(func.count()).select_from(self._model)
        return self._session.scalar(query) or 0

    def exists(self, entity_id: str) -> bool:
        query = select(sql_exists().where(self._model.id == entity_id))
        return self._session.scalar(query) or False

    def add(self, entity: ModelT) -> ModelT:
        """Add entity to session (not committed)."""
        self._session.add(entity)
        return entity

    def delete(self, entity: ModelT) -> None:
        """Delete entity from session (not committed)."""
        self._session.delete(entity)

    def refresh(self, entity: ModelT) -> ModelT:
        self._session.refresh(entity)
        return entity


class TenantRepository(BaseRepository[ModelT]):
    """
    Repository with automatic multi-tenant isolation.

    All queries are filtered by `company_id`. The model must have that column.
    """

    def _tenant_query(self, company_id: str) -> Select:
        if not hasattr(self._model, "company_id"):
            raise AttributeError(
                f"Model {self._model.__name__} does not have company_id column. "
                "Use BaseRepository instead."
            )
        return self._base_query().where(self._model.company_id == company_id)

    def find_by_id(self, entity_id: str, company_id: str) -> ModelT | None:
        """Entity or None if not found or owned by another tenant."""
        query = self._tenant_query(company_id).where(self._model.id == entity_id)
        return self._session.scalar(query)

    def find_all(
        self,
        company_id: str,
        *,
        limit: int | None = None,
        offset: int | None = None,
        order_by: Any | None = None,
    ) -> Sequence[ModelT]:
        query = self._apply_order(self._tenant_query(company_id), order_by)
        if offset is not None:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return self._session.scalars(query).all()

    def find_by_ids(self, entity_ids: Iterable[str], company_id: str) -> Sequence[ModelT]:
        """Found entities (may be fewer than requested)."""
        entity_ids = list(entity_ids)
        if not entity_ids:
            return []
        query = self._tenant_query(company_id).where(self._model.id.in_(entity_ids))
        return self._session.scalars(query).all()

    def find_by_spec(
        self,
        spec: "Specification | None",
        company_id: str,
        *,
        limit: int | None = None,
        offset: int | None = None,
        order_by: Any | None = None,
    ) -> Sequence[ModelT]:
        """Entities of the tenant matching `spec` (all of them when spec is None)."""
        query = self._tenant_query(company_id)
        if spec is not None:
            query = query.where(spec.to_expression())
        query = self._apply_order(query, order_by)
        if offset is not None:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return self._session.scalars(query).all()

    def count(self, company_id: str, spec: "Specification | None" = None) -> int:
        query = (
            select(func.count())
            .select_from(self._model)
            .where(self._model.company_id == company_id)
        )
        if spec is not None:
            query = query.where(spec.to_expression())
        return self._session.scalar(query) or 0

    def exists(self, entity_id: str, company_id: str) -> bool:
        query = select(
            sql_exists().where(
                self._model.id == entity_id,
                self._model.company_id == company_id,
            )
        )
        return self._session.scalar(query) or False

    def code_taken(self, code: str, company_id: str, exclude_id: str | None = None) -> bool:
        """True if another row of the tenant already uses `code`."""
        conditions = [self._model.company_id == company_id, self._model.code == code]
        if exclude_id is not None:
            conditions.append(self._model.id != exclude_id)
        return self._session.scalar(select(sql_exists().where(*conditions))) or False

    def delete_by_ids(self, entity_ids: Iterable[str], company_id: str) -> int:
        """Bulk delete within tenant scope (flushes, not committed)."""
        entity_ids = list(entity_ids)
        if not entity_ids:
            return 0
        result = self._session.execute(
            delete(self._model).where(
                self._model.company_id == company_id,
                self._model.id.in_(entity_ids),
            )
        )
        return result.rowcount or 0


# =============================================================================
# Specifications (composable filter predicates)
# =============================================================================


class Specification:
    """
    Base class for query specifications.

    Specifications encapsulate query conditions that can be combined using
    logical operators (&, |, ~). Subclasses implement to_expression().
    """

    def to_expression(self) -> Any:
        raise NotImplementedError

    def __and__(self, other: "Specification") -> "AndSpecification":
        return AndSpecification(self, other)

    def __or__(self, other: "Specification") -> "OrSpecification":
        return OrSpecification(self, other)

    def __invert__(self) -> "NotSpecification":
        return NotSpecification(self)


class AndSpecification(Specification):
    def __init__(self, left: Specification, right: Specification):
        self._left = left
        self._right = right

    def to_expression(self) -> Any:
        return and_(self._left.to_expression(), self._right.to_expression())


class OrSpecification(Specification):
    def __init__(self, left: Specification, right: Specification):
        self._left = left
        self._right = right

    def to_expression(self) -> Any:
        return or_(self._left.to_expression(), self._right.to_expression())


class NotSpecification(Specification):
    def __init__(self, spec: Specification):
        self._spec = spec

    def to_expression(self) -> Any:
        return not_(self._spec.to_expression())


class SearchSpec(Specification):
    """Case-insensitive substring match over text columns (name and code by default)."""

    def __init__(self, model: type[Base], term: str, columns: Sequence[str] = ("name", "code")):
        self._model = model
        self._term = sanitize_search_term(term)
        self._columns = columns

    def to_expression(self) -> Any:
        pattern = f"%{escape_like_pattern(self._term)}%"
        return or_(
            *(
                getattr(self._model, column).ilike(pattern, escape="\\")
                for column in self._columns
            )
        )


class InSpec(Specification):
    """Column value is one of `values`. An empty list matches nothing."""

    def __init__(self, column: Any, values: Iterable[Any]):
        self._column = column
        self._values = list(values)

    def to_expression(self) -> Any:
        if not self._values:
            return false()
        return self._column.in_(self._values)


class EqualsSpec(Specification):
    def __init__(self, column: Any, value: Any):
        self._column = column
        self._value = value

    def to_expression(self) -> Any:
        return self._column == self._value


class RangeSpec(Specification):
    """Column between `low` and `high`, both inclusive. A None bound is open."""

    def __init__(self, column: Any, low: Any = None, high: Any = None):
        self._column = column
        self._low = low
        self._high = high

    def to_expression(self) -> Any:
        conditions = []
        if self._low is not None:
            conditions.append(self._column >= self._low)
        if self._high is not None:
            conditions.append(self._column <= self._high)
        return and_(true(), *conditions)


class JunctionSpec(Specification):
    """
    Owner has at least one junction row pointing at one of `values`.

        JunctionSpec(Department.id, DepartmentSchool.department_id,
                     DepartmentSchool.school_id, ["s1", "s2"])
    """

    def __init__(self, owner_pk: Any, owner_column: Any, related_column: Any, values: Iterable[str]):
        self._owner_pk = owner_pk
        self._owner_column = owner_column
        self._related_column = related_column
        self._values = list(values)

    def to_expression(self) -> Any:
        if not self._values:
            return false()
        return sql_exists().where(
            self._owner_column == self._owner_pk,
            self._related_column.in_(self._values),
        )


def all_of(specs: Iterable[Specification | None]) -> Specification | None:
    """AND together the non-None specifications; None when there are none."""
    present = [spec for spec in specs if spec is not None]
    if not present:
        return None
    return reduce(lambda left, right: left & right, present)
