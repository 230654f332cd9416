"""
Organization Wizard Service.

Backs the multi-step wizard for companies, schools and branches. A submitted
record is split into core fields (the entity table) and extension fields
(the matching *_additional table). Both are written in one transaction; the
extension row is upserted by the entity id.

Usage:
    service = OrganizationWizardService(db)
    errors = service.validate_step("school", 1, record)
    result = service.submit("school", record, company_id, ctx.scope, parent_id=None)
    record = service.get_record("school", school_id, company_id, ctx.scope)
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Boolean, Float, Integer, JSON, select
from sqlalchemy.orm import Session

from rest_api.models import (
    Branch,
    BranchAdditional,
    Company,
    CompanyAdditional,
    School,
    SchoolAdditional,
)
from rest_api.services.domain.organization_service import BranchService, SchoolService
from rest_api.services.domain.references import require_choice, require_school_refs
from rest_api.services.permissions.context import Scope, UNRESTRICTED
from rest_api.services.wizard import CORE_FIELDS, WIZARD_STEPS, SubmitResult, WizardController
from rest_api.services.wizard.steps import WizardStep
from shared.config.constants import CacheNamespace, EntityStatus
from shared.config.logging import mask_email, wizard_logger as logger
from shared.infrastructure.cache.read_cache import get_read_cache
from shared.infrastructure.db import safe_commit
from shared.utils.exceptions import (
    DatabaseError,
    DuplicateEntityError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from shared.utils.validators import parse_int

MODE_CREATE = "create"
MODE_EDIT = "edit"

# entity type -> (core model, extension model, extension key column)
WIZARD_TARGETS: dict[str, tuple[Any, Any, str]] = {
    "company": (Company, CompanyAdditional, "company_id"),
    "school": (School, SchoolAdditional, "school_id"),
    "branch": (Branch, BranchAdditional, "branch_id"),
}

# Keys a pre-populated record carries back that are never written
_READ_ONLY_KEYS = frozenset({"id", "created_at", "updated_at"})
_TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})


def _coerce(column: Any, value: Any) -> Any:
    """Convert a form value to the column's type. Blank values become None."""
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None

    column_type = column.type
    if isinstance(column_type, Boolean):
        if isinstance(value, str):
            return value.strip().lower() in _TRUE_STRINGS
        return bool(value)
    if isinstance(column_type, Integer):
        number = parse_int(value)
        if number is None:
            raise ValidationError(f"{column.key} must be a whole number", field=column.key)
        return number
    if isinstance(column_type, Float):
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{column.key} must be a number", field=column.key)
    if isinstance(column_type, JSON):
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return list(value)
    return value.strip() if isinstance(value, str) else value


def partition_record(
    entity_type: str, record: dict[str, Any]
) -> tuple[dict[str, Any], dict[str, Any], list[str]]:
    """
    Split a wizard record into (core, extension, dropped).

    Core keys come from the fixed allow-list; extension keys are the
    extension table's columns; anything else is returned as dropped.
    """
    core_model, extension_model, key_column = WIZARD_TARGETS[entity_type]
    core_fields = CORE_FIELDS[entity_type]
    core_columns = core_model.__table__.columns
    extension_columns = {
        column.key: column
        for column in extension_model.__table__.columns
        if column.key != key_column
    }

    core: dict[str, Any] = {}
    extension: dict[str, Any] = {}
    dropped: list[str] = []
    for name, value in record.items():
        if name in core_fields:
            core[name] = _coerce(core_columns[name], value)
        elif name in extension_columns:
            extension[name] = _coerce(extension_columns[name], value)
        elif name not in _READ_ONLY_KEYS:
            dropped.append(name)
    return core, extension, sorted(dropped)


def steps_for(entity_type: str) -> tuple[WizardStep, ...]:
    try:
        return WIZARD_STEPS[entity_type]
    except KeyError:
        raise NotFoundError("Wizard", entity_type)


class OrganizationWizardService:
    """Writes and reads wizard records for companies, schools and branches."""

    def __init__(self, db: Session):
        self._db = db
        self._schools = SchoolService(db)
        self._branches = BranchService(db)

    # =========================================================================
    # Validation / Submit
    # =========================================================================

    def validate_step(self, entity_type: str, step: int, record: dict[str, Any]) -> dict[str, str]:
        steps = steps_for(entity_type)
        if not 0 <= step < len(steps):
            raise ValidationError(f"Step {step} does not exist", field="step")
        return steps[step].run(record)

    def submit(
        self,
        entity_type: str,
        record: dict[str, Any],
        company_id: str,
        scope: Scope = UNRESTRICTED,
        entity_id: str | None = None,
        parent_id: str | None = None,
        user_email: str | None = None,
    ) -> SubmitResult:
        """
        Validate every step and write the record.

        Create mode when `entity_id` is None, edit mode otherwise.
        """
        mode = MODE_CREATE if entity_id is None else MODE_EDIT
        controller = WizardController(steps_for(entity_type), record=record)
        return controller.submit(
            lambda values: self.write(
                entity_type,
                mode,
                values,
                company_id,
                scope,
                entity_id=entity_id,
                parent_id=parent_id,
                user_email=user_email,
            )
        )

    def write(
        self,
        entity_type: str,
        mode: str,
        record: dict[str, Any],
        company_id: str,
        scope: Scope = UNRESTRICTED,
        entity_id: str | None = None,
        parent_id: str | None = None,
        user_email: str | None = None,
    ) -> str:
        """
        Write core and extension rows in one transaction; returns the entity id.

        Raises:
            ValidationError / ForbiddenError / NotFoundError: before any write.
            DatabaseError: if the write fails (rolled back).
        """
        core_model, extension_model, key_column = WIZARD_TARGETS[entity_type]
        core, extension, dropped = partition_record(entity_type, record)
        if dropped:
            logger.warning(
                "Wizard fields without a column were dropped",
                entity_type=entity_type,
                fields=dropped,
            )

        core["status"] = core.get("status") or EntityStatus.ACTIVE
        require_choice(core["status"], EntityStatus.TOGGLEABLE, "status")

        if mode == MODE_CREATE:
            self._prepare_create(entity_type, core, company_id, scope, parent_id)
            entity = core_model(**core)
            self._db.add(entity)
        else:
            entity = self._load_for_edit(entity_type, entity_id, company_id, scope)
            self._prepare_edit(entity_type, entity, core, company_id, scope)
            for name, value in core.items():
                setattr(entity, name, value)
            entity.touch()

        try:
            self._db.flush()
            additional = self._db.get(extension_model, entity.id)
            if additional is None:
                additional = extension_model(**{key_column: entity.id})
                self._db.add(additional)
            for name, value in extension.items():
                setattr(additional, name, value)
            safe_commit(self._db)
        except Exception as e:
            self._db.rollback()
            logger.error(
                "Wizard write failed",
                entity_type=entity_type,
                mode=mode,
                error=str(e),
                company_id=company_id,
            )
            raise DatabaseError(f"{entity_type} {mode}")

        tenant_id = entity.id if entity_type == "company" else company_id
        self._invalidate(entity_type, tenant_id)
        logger.info(
            f"Wizard {mode} saved",
            entity_type=entity_type,
            entity_id=entity.id,
            company_id=tenant_id,
            extension_fields=sorted(extension),
            user_email=mask_email(user_email),
        )
        return entity.id

    # =========================================================================
    # Read
    # =========================================================================

    def get_record(
        self,
        entity_type: str,
        entity_id: str,
        company_id: str,
        scope: Scope = UNRESTRICTED,
    ) -> dict[str, Any]:
        """Core and extension fields merged into one flat record."""
        steps_for(entity_type)
        _, extension_model, key_column = WIZARD_TARGETS[entity_type]
        entity = self._load_for_edit(entity_type, entity_id, company_id, scope)

        record = {
            column.key: getattr(entity, column.key)
            for column in entity.__table__.columns
            if column.key not in ("created_at", "updated_at")
        }
        additional = self._db.get(extension_model, entity.id)
        for column in extension_model.__table__.columns:
            if column.key != key_column:
                record[column.key] = getattr(additional, column.key) if additional else None
        return record

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    def _prepare_create(
        self,
        entity_type: str,
        core: dict[str, Any],
        company_id: str,
        scope: Scope,
        parent_id: str | None,
    ) -> None:
        if entity_type == "company":
            self._require_unique_company_code(core.get("code"))
            return

        if entity_type == "school":
            if not scope.is_unrestricted:
                raise ForbiddenError("create schools", company_id=company_id)
            owner = core.get("company_id") or parent_id or company_id
            if owner != company_id:
                raise ForbiddenError("create schools for another company", company_id=company_id)
            core["company_id"] = company_id
            service = self._schools
        else:
            core["school_id"] = core.get("school_id") or parent_id
            if not core["school_id"]:
                raise ValidationError("Branch school is required", field="school_id")
            require_school_refs(self._db, [core["school_id"]], company_id, scope)
            core["company_id"] = company_id
            service = self._branches

        if core.get("code") and service.repo.code_taken(core["code"], company_id):
            raise DuplicateEntityError(service.entity_name, core["code"], company_id=company_id)

    def _prepare_edit(
        self,
        entity_type: str,
        entity: Any,
        core: dict[str, Any],
        company_id: str,
        scope: Scope,
    ) -> None:
        if entity_type == "company":
            self._require_unique_company_code(core.get("code"), exclude_id=entity.id)
            return

        # The owning tenant never changes
        core.pop("company_id", None)
        if entity_type == "school":
            service = self._schools
        else:
            if core.get("school_id"):
                require_school_refs(self._db, [core["school_id"]], company_id, scope)
            else:
                core.pop("school_id", None)
            service = self._branches

        if core.get("code") and service.repo.code_taken(core["code"], company_id, exclude_id=entity.id):
            raise DuplicateEntityError(service.entity_name, core["code"], company_id=company_id)

    def _load_for_edit(
        self, entity_type: str, entity_id: str | None, company_id: str, scope: Scope
    ) -> Any:
        if entity_type == "company":
            # A tenant can only edit itself
            company = self._db.get(Company, entity_id) if entity_id == company_id else None
            if company is None:
                raise NotFoundError("Company", entity_id)
            return company
        service = self._schools if entity_type == "school" else self._branches
        return service.require_entity(entity_id, company_id, scope)

    def _require_unique_company_code(self, code: str | None, exclude_id: str | None = None) -> None:
        if not code:
            return
        query = select(Company.id).where(Company.code == code)
        if exclude_id is not None:
            query = query.where(Company.id != exclude_id)
        if self._db.scalar(query.limit(1)) is not None:
            raise DuplicateEntityError("Company", code)

    def _invalidate(self, entity_type: str, company_id: str) -> None:
        if entity_type == "school":
            self._schools.invalidate_cache(company_id)
        elif entity_type == "branch":
            self._branches.invalidate_cache(company_id)
        else:
            get_read_cache().invalidate(CacheNamespace.COMPANIES, company_id)
            get_read_cache().invalidate(CacheNamespace.ORG_CHART, company_id)
