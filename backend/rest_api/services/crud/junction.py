"""
Many-to-many reconciliation for junction tables.

Junction rows are pure (owner_id, related_id) pairs with no state of their
own, so an update replaces the owner's whole relation set: delete every row
of the owner, then insert the desired set. The reconciler only flushes; the
calling service commits it together with the owner write.

Usage:
    schools = JunctionReconciler(DepartmentSchool, "department_id", "school_id")
    schools.replace(db, department.id, ["s1", "s2"])
    safe_commit(db)
"""

from __future__ import annotations

from typing import Iterable, Sequence

from sqlalchemy import delete, insert, select
from sqlalchemy.orm import Session

from rest_api.models import Base
from shared.config.logging import get_logger

logger = get_logger(__name__)


def unique_in_order(ids: Iterable[str] | None) -> list[str]:
    """Drop duplicates and blanks, keep first-seen order."""
    seen: set[str] = set()
    result = []
    for value in ids or ():
        if not value or value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


class JunctionReconciler:
    """Keeps one owner's rows in a junction table equal to a desired id set."""

    def __init__(self, model: type[Base], owner_column: str, related_column: str):
        self.model = model
        self.owner_column = owner_column
        self.related_column = related_column
        self._owner = getattr(model, owner_column)
        self._related = getattr(model, related_column)

    def current(self, db: Session, owner_id: str) -> list[str]:
        """Related ids currently linked to the owner."""
        rows = db.scalars(
            select(self._related).where(self._owner == owner_id).order_by(self._related)
        )
        return list(rows)

    def current_for(self, db: Session, owner_ids: Sequence[str]) -> dict[str, list[str]]:
        """Related ids for several owners in one query, keyed by owner id."""
        result: dict[str, list[str]] = {owner_id: [] for owner_id in owner_ids}
        if not owner_ids:
            return result
        rows = db.execute(
            select(self._owner, self._related)
            .where(self._owner.in_(list(owner_ids)))
            .order_by(self._owner, self._related)
        )
        for owner_id, related_id in rows:
            result.setdefault(owner_id, []).append(related_id)
        return result

    def replace(self, db: Session, owner_id: str, desired_ids: Iterable[str] | None) -> list[str]:
        """
        Replace the owner's rows with `desired_ids`.

        Delete-all then insert-distinct, so calling it twice with the same set
        leaves the same rows. Returns the ids that were written.
        """
        ids = unique_in_order(desired_ids)

        db.execute(delete(self.model).where(self._owner == owner_id))
        if ids:
            db.execute(
                insert(self.model),
                [{self.owner_column: owner_id, self.related_column: related_id} for related_id in ids],
            )
        db.flush()

        logger.debug(
            "Junction rows replaced",
            table=self.model.__tablename__,
            owner_id=owner_id,
            count=len(ids),
        )
        return ids

    def clear(self, db: Session, owner_ids: Iterable[str]) -> int:
        """Delete every row belonging to the given owners."""
        owner_ids = list(owner_ids)
        if not owner_ids:
            return 0
        result = db.execute(delete(self.model).where(self._owner.in_(owner_ids)))
        return result.rowcount or 0
