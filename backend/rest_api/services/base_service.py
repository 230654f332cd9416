"""
Base Service Classes.

Provides abstract base classes for application services that:
- Use Repository for data access (not direct queries)
- Keep junction rows in the same transaction as the owner write
- Serve list reads through the Redis read cache
- Handle business rule validation through overridable hooks

Architecture:
    Router (thin) -> Service (business logic) -> Repository (data access) -> Model

Usage:
    class GradeLevelService(BaseCRUDService[GradeLevel, GradeLevelOutput]):
        cache_namespace = CacheNamespace.GRADE_LEVELS
        junctions = {"school_ids": GRADE_LEVEL_SCHOOLS}

        def __init__(self, db: Session):
            super().__init__(db, GradeLevel, GradeLevelOutput, "Grade level")

        def _validate_create(self, data, company_id, scope):
            ...
"""

from __future__ import annotations

from abc import ABC
from functools import lru_cache
from typing import Any, Generic, Iterable, Sequence, TypeVar, Type

from pydantic import BaseModel, TypeAdapter
from sqlalchemy.orm import Session

from rest_api.models import Base
from rest_api.services.crud.junction import JunctionReconciler, unique_in_order
from rest_api.services.crud.repository import (
    EqualsSpec,
    InSpec,
    SearchSpec,
    Specification,
    TenantRepository,
    all_of,
)
from rest_api.services.permissions.context import Scope, UNRESTRICTED
from rest_api.services.status_toggle import toggle_status
from shared.config.logging import get_logger, mask_email
from shared.infrastructure.cache.read_cache import get_read_cache, make_key
from shared.infrastructure.db import safe_commit
from shared.utils.exceptions import (
    DatabaseError,
    DuplicateEntityError,
    NotFoundError,
    ValidationError,
)

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=Base)
OutputT = TypeVar("OutputT", bound=BaseModel)

# Columns never assigned from request data
_PROTECTED_FIELDS = frozenset({"id", "company_id", "created_at", "updated_at"})


@lru_cache(maxsize=None)
def _list_adapter(output_schema: type[BaseModel]) -> TypeAdapter:
    return TypeAdapter(list[output_schema])


class BaseService(ABC, Generic[ModelT]):
    """
    Abstract base service for domain operations.

    Provides repository access; subclasses implement business logic.
    """

    def __init__(self, db: Session, model: Type[ModelT]):
        self._db = db
        self._model = model
        self._repo = TenantRepository(model, db)

    @property
    def db(self) -> Session:
        return self._db

    @property
    def repo(self) -> TenantRepository[ModelT]:
        return self._repo


class BaseCRUDService(BaseService[ModelT], Generic[ModelT, OutputT]):
    """
    Base service for tenant-owned entities with CRUD operations.

    Class attributes configured by subclasses:
        cache_namespace: read cache namespace for list results
        related_namespaces: other namespaces whose lists embed this entity
        junctions: request field name -> JunctionReconciler
        search_columns: columns matched by the `search` filter
    """

    cache_namespace: str = ""
    related_namespaces: tuple[str, ...] = ()
    junctions: dict[str, JunctionReconciler] = {}
    search_columns: tuple[str, ...] = ("name", "code")

    def __init__(
        self,
        db: Session,
        model: Type[ModelT],
        output_schema: Type[OutputT],
        entity_name: str,
    ):
        super().__init__(db, model)
        self._output_schema = output_schema
        self._entity_name = entity_name
        self._list_adapter = _list_adapter(output_schema)

    @property
    def entity_name(self) -> str:
        """Human-readable entity name for messages."""
        return self._entity_name

    # =========================================================================
    # Read Operations
    # =========================================================================

    def get_entity(
        self, entity_id: str, company_id: str, scope: Scope = UNRESTRICTED
    ) -> ModelT | None:
        """Raw entity within tenant and scope, or None."""
        spec = all_of([EqualsSpec(self._model.id, entity_id), self._scope_spec(scope)])
        found = self._repo.find_by_spec(spec, company_id, limit=1)
        return found[0] if found else None

    def require_entity(
        self, entity_id: str, company_id: str, scope: Scope = UNRESTRICTED
    ) -> ModelT:
        entity = self.get_entity(entity_id, company_id, scope)
        if entity is None:
            raise NotFoundError(self._entity_name, entity_id, company_id=company_id)
        return entity

    def get_by_id(
        self, entity_id: str, company_id: str, scope: Scope = UNRESTRICTED
    ) -> OutputT:
        """
        Get one entity as output DTO.

        Raises:
            NotFoundError: If entity not found in tenant or outside the scope.
        """
        entity = self.require_entity(entity_id, company_id, scope)
        return self.to_outputs([entity])[0]

    def list_all(
        self,
        company_id: str,
        scope: Scope = UNRESTRICTED,
        filters: dict[str, Any] | None = None,
    ) -> list[OutputT]:
        """
        List entities of the tenant with names resolved.

        Empty filter values mean "no filter". Results are cached per
        (tenant, scope, filters) until the next write to this namespace.
        """
        active_filters = {
            name: value
            for name, value in (filters or {}).items()
            if value is not None and value != "" and value != []
        }

        def load() -> list[OutputT]:
            spec = all_of([self._scope_spec(scope), *self._filter_specs(active_filters)])
            entities = self._repo.find_by_spec(spec, company_id, order_by=self._order_by())
            return self.to_outputs(entities)

        if not self.cache_namespace:
            return load()

        key = make_key(scope=scope.cache_key(), **active_filters)
        return get_read_cache().get_or_load(
            self.cache_namespace, company_id, key, load, self._list_adapter
        )

    def find_visible(self, company_id: str, scope: Scope = UNRESTRICTED) -> list[ModelT]:
        """Raw entities within tenant and scope, in list order."""
        return list(
            self._repo.find_by_spec(self._scope_spec(scope), company_id, order_by=self._order_by())
        )

    def count(self, company_id: str, scope: Scope = UNRESTRICTED) -> int:
        return self._repo.count(company_id, self._scope_spec(scope))

    # =========================================================================
    # Write Operations
    # =========================================================================

    def create(
        self,
        data: dict[str, Any],
        company_id: str,
        scope: Scope = UNRESTRICTED,
        user_email: str | None = None,
    ) -> OutputT:
        """
        Create an entity and its junction rows in one transaction.

        Raises:
            ValidationError / ForbiddenError: before anything is written.
            DatabaseError: if the write fails (rolled back).
        """
        data = dict(data)
        self._validate_create(data, company_id, scope)
        links = self._pop_links(data)

        entity = self._model(**self._assignable(data))
        entity.company_id = company_id
        self._db.add(entity)

        try:
            self._db.flush()
            self._write_links(entity, links)
            self._before_commit(entity, company_id)
            safe_commit(self._db)
            self._db.refresh(entity)
        except Exception as e:
            self._db.rollback()
            logger.error(
                f"Failed to create {self._entity_name}",
                error=str(e),
                company_id=company_id,
            )
            raise DatabaseError(f"{self._entity_name.lower()} creation")

        self.invalidate_cache(company_id)
        logger.info(
            f"{self._entity_name} created",
            entity_id=entity.id,
            company_id=company_id,
            user_email=mask_email(user_email),
        )
        self._after_create(entity)
        return self.to_outputs([entity])[0]

    def update(
        self,
        entity_id: str,
        data: dict[str, Any],
        company_id: str,
        scope: Scope = UNRESTRICTED,
        user_email: str | None = None,
    ) -> OutputT:
        """
        Update an entity; junction fields present in `data` replace the
        whole relation set. Fields absent from `data` are left alone.
        """
        entity = self.require_entity(entity_id, company_id, scope)
        data = dict(data)
        self._validate_update(entity, data, company_id, scope)
        links = self._pop_links(data)

        for field_name, value in self._assignable(data).items():
            setattr(entity, field_name, value)
        entity.touch()

        try:
            self._db.flush()
            self._write_links(entity, links)
            self._before_commit(entity, company_id)
            safe_commit(self._db)
            self._db.refresh(entity)
        except Exception as e:
            self._db.rollback()
            logger.error(
                f"Failed to update {self._entity_name}",
                error=str(e),
                entity_id=entity_id,
                company_id=company_id,
            )
            raise DatabaseError(f"{self._entity_name.lower()} update")

        self.invalidate_cache(company_id)
        logger.info(
            f"{self._entity_name} updated",
            entity_id=entity_id,
            company_id=company_id,
            fields=sorted(data) + sorted(links),
            user_email=mask_email(user_email),
        )
        return self.to_outputs([entity])[0]

    def delete_many(
        self,
        entity_ids: Iterable[str],
        company_id: str,
        scope: Scope = UNRESTRICTED,
        user_email: str | None = None,
    ) -> int:
        """
        Delete entities by id set together with their junction rows.

        Ids outside the tenant or scope are ignored; if none match,
        NotFoundError is raised. Returns the number of deleted rows.
        """
        ids = unique_in_order(entity_ids)
        if not ids:
            raise ValidationError("No ids given for deletion")

        spec = all_of([InSpec(self._model.id, ids), self._scope_spec(scope)])
        entities = self._repo.find_by_spec(spec, company_id)
        if not entities:
            raise NotFoundError(
                self._entity_name, ids[0] if len(ids) == 1 else None, company_id=company_id
            )

        self._validate_delete(entities, company_id)
        found_ids = [entity.id for entity in entities]

        try:
            for reconciler in self.junctions.values():
                reconciler.clear(self._db, found_ids)
            self._before_delete(found_ids, company_id)
            deleted = self._repo.delete_by_ids(found_ids, company_id)
            safe_commit(self._db)
        except Exception as e:
            self._db.rollback()
            logger.error(
                f"Failed to delete {self._entity_name}",
                error=str(e),
                entity_ids=found_ids,
                company_id=company_id,
            )
            raise DatabaseError(f"{self._entity_name.lower()} deletion")

        self.invalidate_cache(company_id)
        logger.info(
            f"{self._entity_name} deleted",
            entity_ids=found_ids,
            company_id=company_id,
            user_email=mask_email(user_email),
        )
        return deleted

    def delete(
        self,
        entity_id: str,
        company_id: str,
        scope: Scope = UNRESTRICTED,
        user_email: str | None = None,
    ) -> None:
        self.delete_many([entity_id], company_id, scope, user_email)

    def toggle_status(
        self,
        entity_id: str,
        company_id: str,
        scope: Scope = UNRESTRICTED,
    ) -> OutputT:
        """Flip active <-> inactive. Only the status column is written."""
        entity = self.require_entity(entity_id, company_id, scope)
        toggle_status(self._db, self._model, entity.id, company_id, self._entity_name)
        self._db.refresh(entity)
        self.invalidate_cache(company_id)
        return self.to_outputs([entity])[0]

    # =========================================================================
    # Transformation
    # =========================================================================

    def to_output(self, entity: ModelT) -> OutputT:
        return self._output_schema.model_validate(entity)

    def to_outputs(self, entities: Sequence[ModelT]) -> list[OutputT]:
        """
        Convert entities to output DTOs.

        Override to resolve foreign keys to names in batch.
        """
        return [self.to_output(entity) for entity in entities]

    # =========================================================================
    # Query Hooks (override in subclasses)
    # =========================================================================

    def _scope_spec(self, scope: Scope) -> Specification | None:
        """Restriction for scoped users. None means no restriction."""
        return None

    def _filter_specs(self, filters: dict[str, Any]) -> list[Specification]:
        specs = []
        if filters.get("search"):
            specs.append(SearchSpec(self._model, filters["search"], self.search_columns))
        if filters.get("status"):
            specs.append(InSpec(self._model.status, filters["status"]))
        return specs

    def _order_by(self) -> Any:
        return self._model.name

    # =========================================================================
    # Validation Hooks (override in subclasses)
    # =========================================================================

    def _validate_create(self, data: dict[str, Any], company_id: str, scope: Scope) -> None:
        """Raise ValidationError/ForbiddenError before anything is written."""
        self._validate_code(data, company_id)

    def _validate_update(
        self, entity: ModelT, data: dict[str, Any], company_id: str, scope: Scope
    ) -> None:
        self._validate_code(data, company_id, exclude_id=entity.id)

    def _validate_delete(self, entities: Sequence[ModelT], company_id: str) -> None:
        """Check for dependent records. Raise to refuse the delete."""
        pass

    # =========================================================================
    # Lifecycle Hooks (override in subclasses)
    # =========================================================================

    def _before_commit(self, entity: ModelT, company_id: str) -> None:
        """Extra writes that must share the owner's transaction."""
        pass

    def _before_delete(self, entity_ids: list[str], company_id: str) -> None:
        """Extra cleanup inside the delete transaction."""
        pass

    def _after_create(self, entity: ModelT) -> None:
        pass

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    def _validate_code(
        self, data: dict[str, Any], company_id: str, exclude_id: str | None = None
    ) -> None:
        code = data.get("code")
        if code and hasattr(self._model, "code"):
            if self._repo.code_taken(code, company_id, exclude_id=exclude_id):
                raise DuplicateEntityError(self._entity_name, code, company_id=company_id)

    def _pop_links(self, data: dict[str, Any]) -> dict[str, list[str]]:
        """Remove junction fields from `data`; only fields present are returned."""
        return {
            field_name: unique_in_order(data.pop(field_name) or [])
            for field_name in list(self.junctions)
            if field_name in data
        }

    def _write_links(self, entity: ModelT, links: dict[str, list[str]]) -> None:
        for field_name, ids in links.items():
            self.junctions[field_name].replace(self._db, entity.id, ids)

    def _assignable(self, data: dict[str, Any]) -> dict[str, Any]:
        return {
            name: value
            for name, value in data.items()
            if name not in _PROTECTED_FIELDS and hasattr(self._model, name)
        }

    def invalidate_cache(self, company_id: str) -> None:
        cache = get_read_cache()
        for namespace in (self.cache_namespace, *self.related_namespaces):
            if namespace:
                cache.invalidate(namespace, company_id)
