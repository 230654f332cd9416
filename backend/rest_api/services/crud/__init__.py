"""
CRUD building blocks shared by the domain services.

Provides:
- Repository Pattern: tenant-isolated data access plus composable filter specs
- JunctionReconciler: replace-all maintenance of many-to-many rows
- EntityOutputBuilder / NameLookup: model -> schema conversion, id -> name resolution
"""

from .entity_builder import EntityOutputBuilder, NameLookup
from .junction import JunctionReconciler, unique_in_order
from .repository import (
    BaseRepository,
    TenantRepository,
    Specification,
    AndSpecification,
    OrSpecification,
    NotSpecification,
    SearchSpec,
    InSpec,
    EqualsSpec,
    RangeSpec,
    JunctionSpec,
    all_of,
)

__all__ = [
    # Entity builder
    "EntityOutputBuilder",
    "NameLookup",
    # Junctions
    "JunctionReconciler",
    "unique_in_order",
    # Repository Pattern
    "BaseRepository",
    "TenantRepository",
    "Specification",
    "AndSpecification",
    "OrSpecification",
    "NotSpecification",
    "SearchSpec",
    "InSpec",
    "EqualsSpec",
    "RangeSpec",
    "JunctionSpec",
    "all_of",
]
