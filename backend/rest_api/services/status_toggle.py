"""
Status toggle: flip an entity between active and inactive.

The toggle writes the `status` column and nothing else, not even
`updated_at`. Terminal statuses (archived sections, completed years) are
refused. Two concurrent toggles are last-write-wins.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from rest_api.models import (
    AcademicYear,
    Branch,
    ClassSection,
    Company,
    Department,
    GradeLevel,
    School,
)
from shared.config.constants import EntityStatus
from shared.config.logging import get_logger
from shared.infrastructure.db import safe_commit
from shared.utils.exceptions import DatabaseError, InvalidStateError, NotFoundError, ValidationError

logger = get_logger(__name__)

# entity type tag -> (model, display name)
TOGGLE_TARGETS: dict[str, tuple[Any, str]] = {
    "company": (Company, "Company"),
    "school": (School, "School"),
    "branch": (Branch, "Branch"),
    "grade_level": (GradeLevel, "Grade level"),
    "academic_year": (AcademicYear, "Academic year"),
    "class_section": (ClassSection, "Class section"),
    "department": (Department, "Department"),
}


def next_status(current: str, entity_name: str = "Entity") -> str:
    """The opposite status of `current`; terminal statuses raise InvalidStateError."""
    if current == EntityStatus.ACTIVE:
        return EntityStatus.INACTIVE
    if current == EntityStatus.INACTIVE:
        return EntityStatus.ACTIVE
    raise InvalidStateError(entity_name, current, EntityStatus.TOGGLEABLE)


def toggle_status(
    db: Session,
    model: Any,
    entity_id: str,
    company_id: str,
    entity_name: str = "Entity",
) -> str:
    """
    Flip the status of one row and commit. Returns the new status.

    Companies are the tenant themselves, so they match on id == company_id.
    """
    tenant_column = model.id if model is Company else model.company_id
    where = (model.id == entity_id, tenant_column == company_id)

    current = db.scalar(select(model.status).where(*where))
    if current is None:
        raise NotFoundError(entity_name, entity_id, company_id=company_id)

    new_status = next_status(current, entity_name)
    try:
        db.execute(update(model).where(*where).values(status=new_status))
        safe_commit(db)
    except Exception as e:
        logger.error(
            f"Failed to toggle {entity_name} status",
            error=str(e),
            entity_id=entity_id,
            company_id=company_id,
        )
        raise DatabaseError(f"{entity_name.lower()} status change")

    logger.info(
        f"{entity_name} status toggled",
        entity_id=entity_id,
        company_id=company_id,
        old_status=current,
        new_status=new_status,
    )
    return new_status


def toggle_entity_status(db: Session, entity_type: str, entity_id: str, company_id: str) -> str:
    """Toggle by entity type tag (see TOGGLE_TARGETS)."""
    target = TOGGLE_TARGETS.get(entity_type)
    if target is None:
        raise ValidationError(f"Unknown entity type '{entity_type}'", entity_type=entity_type)
    model, entity_name = target
    return toggle_status(db, model, entity_id, company_id, entity_name)
