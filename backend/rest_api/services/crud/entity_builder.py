"""
Entity output building and foreign-key name resolution.

Converts SQLAlchemy models to Pydantic output schemas, filling fields that
are not columns (resolved names, percentages) from overrides.

Usage:
    from rest_api.services.crud.entity_builder import EntityOutputBuilder, NameLookup

    schools = NameLookup(db, School)
    names = schools.load(["s1", "s2"])          # {"s1": "North Campus", ...}
    output = EntityOutputBuilder(DepartmentOutput).build(department, school_names=[names["s1"]])
"""

from __future__ import annotations

from typing import Any, Iterable, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

T = TypeVar("T", bound=BaseModel)


class EntityOutputBuilder:
    """
    Builder for converting SQLAlchemy models to Pydantic schemas.

    Fields with matching names are copied from the entity; overrides
    win over entity attributes and supply computed fields.
    """

    def __init__(self, output_class: Type[T]):
        self.output_class = output_class
        self._field_names = set(output_class.model_fields.keys())

    def build(self, entity: Any, **overrides: Any) -> T:
        data = {}
        for field_name in self._field_names:
            if field_name in overrides:
                data[field_name] = overrides[field_name]
            elif hasattr(entity, field_name):
                data[field_name] = getattr(entity, field_name)
        return self.output_class(**data)


class NameLookup:
    """
    Batched id -> name resolution for one model, memoized per instance.

    One query per `load` call for the ids not seen yet, so resolving the
    school names of a whole department list costs a single round trip.
    """

    def __init__(self, db: Session, model: Any, label_column: str = "name"):
        self._db = db
        self._model = model
        self._label = getattr(model, label_column)
        self._names: dict[str, str] = {}

    def load(self, ids: Iterable[str | None]) -> dict[str, str]:
        wanted = {i for i in ids if i}
        missing = [i for i in wanted if i not in self._names]
        if missing:
            rows = self._db.execute(
                select(self._model.id, self._label).where(self._model.id.in_(missing))
            )
            for entity_id, label in rows:
                self._names[entity_id] = label
        return {i: self._names[i] for i in wanted if i in self._names}

    def names_for(self, ids: Iterable[str]) -> list[str]:
        """Names in the order of `ids`, skipping ids that no longer resolve."""
        ids = list(ids)
        names = self.load(ids)
        return [names[i] for i in ids if i in names]

    def name_of(self, entity_id: str | None) -> str | None:
        if not entity_id:
            return None
        return self.load([entity_id]).get(entity_id)
