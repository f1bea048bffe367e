"""
seedplan - Deterministic Relational Seed Data Generation

Resolves declarative generation requests over a foreign-key graph into
referentially valid rows and ordered INSERT statements.
"""

from seedplan.client import SeedClient
from seedplan.config import Config
from seedplan.exceptions import (
    CircularDependencyError,
    DuplicateRowError,
    InvalidCardinalityError,
    OrderingError,
    PersistenceError,
    ResolutionError,
    RowNotFoundError,
    SchemaError,
    SeedPlanError,
    SelfReferenceError,
    SpecificationError,
    StoreError,
    TableNotFoundError,
    UnknownFieldError,
    UnresolvableRelationshipError,
)
from seedplan.generators.base import BaseGenerator
from seedplan.generators.registry import (
    clear_generators,
    list_generators,
    register_generator,
)
from seedplan.models import (
    ChildRelationship,
    ColumnInfo,
    ParentRelationship,
    Schema,
    SeedRow,
    TableInfo,
)
from seedplan.plan import Plan
from seedplan.resolver import ColumnValueContext, ConnectContext, StoreContext
from seedplan.seed import SeedGenerator, Substream
from seedplan.store import RowRef, Store

__version__ = "0.1.0"

__all__ = [
    "SeedClient",
    "Plan",
    "Schema",
    "TableInfo",
    "ColumnInfo",
    "ParentRelationship",
    "ChildRelationship",
    "SeedGenerator",
    "Substream",
    "Store",
    "SeedRow",
    "RowRef",
    "ColumnValueContext",
    "ConnectContext",
    "StoreContext",
    "BaseGenerator",
    "register_generator",
    "list_generators",
    "clear_generators",
    "Config",
    "SeedPlanError",
    "SchemaError",
    "SpecificationError",
    "TableNotFoundError",
    "InvalidCardinalityError",
    "UnknownFieldError",
    "ResolutionError",
    "UnresolvableRelationshipError",
    "SelfReferenceError",
    "OrderingError",
    "CircularDependencyError",
    "PersistenceError",
    "StoreError",
    "RowNotFoundError",
    "DuplicateRowError",
]
