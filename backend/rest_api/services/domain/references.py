"""
Checks for ids and enumerated values referenced by write requests.

All helpers raise before anything is written:
- ValidationError for unknown ids and values outside the allowed set
- ForbiddenError when a scoped user references a school/branch outside its scope
"""

from __future__ import annotations

from typing import Any, Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from rest_api.models import Branch, School
from rest_api.services.crud.junction import unique_in_order
from rest_api.services.permissions.context import (
    Scope,
    require_branches_in_scope,
    require_schools_in_scope,
)
from shared.utils.exceptions import ValidationError
from shared.utils.validators import is_blank, is_valid_email


def require_choice(value: Any, allowed: Iterable[str], field: str) -> None:
    allowed = tuple(allowed)
    if value not in allowed:
        raise ValidationError(
            f"Invalid {field} '{value}'. Allowed: {', '.join(allowed)}",
            field=field,
        )


def require_email(value: Any, field: str) -> None:
    if not is_blank(value) and not is_valid_email(str(value)):
        raise ValidationError("Invalid email address", field=field)


def require_school_refs(
    db: Session,
    school_ids: Iterable[str] | None,
    company_id: str,
    scope: Scope,
    required: bool = True,
) -> list[str]:
    """Distinct school ids, all in the tenant and in scope."""
    ids = unique_in_order(school_ids)
    if required and not ids:
        raise ValidationError("At least one school is required", field="school_ids")

    require_schools_in_scope(scope, ids)
    if ids:
        found = set(
            db.scalars(
                select(School.id).where(School.company_id == company_id, School.id.in_(ids))
            )
        )
        missing = [school_id for school_id in ids if school_id not in found]
        if missing:
            raise ValidationError(
                f"Unknown school ids: {', '.join(missing)}", school_ids=missing
            )
    return ids


def require_branch_refs(
    db: Session,
    branch_ids: Iterable[str] | None,
    company_id: str,
    scope: Scope,
    school_ids: Iterable[str] | None = None,
) -> list[str]:
    """
    Distinct branch ids, all in the tenant and in scope.

    When `school_ids` is given every branch must belong to one of them.
    """
    ids = unique_in_order(branch_ids)
    if not ids:
        return ids

    require_branches_in_scope(scope, ids)
    owners = dict(
        db.execute(
            select(Branch.id, Branch.school_id).where(
                Branch.company_id == company_id, Branch.id.in_(ids)
            )
        ).all()
    )
    missing = [branch_id for branch_id in ids if branch_id not in owners]
    if missing:
        raise ValidationError(f"Unknown branch ids: {', '.join(missing)}", branch_ids=missing)

    for branch_id in ids:
        require_schools_in_scope(scope, [owners[branch_id]])

    if school_ids is not None:
        allowed = set(school_ids)
        foreign = [branch_id for branch_id in ids if owners[branch_id] not in allowed]
        if foreign:
            raise ValidationError(
                "Branches must belong to one of the selected schools",
                branch_ids=foreign,
            )
    return ids
