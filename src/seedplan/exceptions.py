"""Custom exceptions with helpful error messages."""

from typing import Any


class SeedPlanError(Exception):
    """Base exception for seedplan errors."""

    pass


# ============================================================================
# Schema errors (malformed relationship metadata, raised before execution)
# ============================================================================


class SchemaError(SeedPlanError):
    """Schema metadata is malformed or inconsistent."""

    def __init__(self, message: str, table: str | None = None):
        self.table = table
        super().__init__(
            f"{message}\n\n"
            f"Suggestions:\n"
            f"1. Give every relationship between the same two tables a unique name\n"
            f"2. Check that each child relationship names an existing parent "
            f"relationship on its target table\n"
            f"3. Check foreign key and referenced column names"
        )


# ============================================================================
# Specification errors (invalid generation requests, raised before execution)
# ============================================================================


class SpecificationError(SeedPlanError):
    """Generation request is invalid."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        if path:
            message = f"{message}\n(at request path '{path}')"
        super().__init__(message)


class TableNotFoundError(SpecificationError):
    """Table does not exist in schema."""

    def __init__(self, table: str, available: list[str] | None = None):
        self.table = table
        known = ", ".join(available or []) or "(none)"
        super().__init__(
            f"Table '{table}' not found in schema.\n\n"
            f"Suggestions:\n"
            f"1. Check table name spelling\n"
            f"2. Known tables: {known}"
        )


class InvalidCardinalityError(SpecificationError):
    """Row count specification is invalid."""

    def __init__(self, spec: Any, path: str | None = None):
        self.spec = spec
        super().__init__(
            f"Invalid row count {spec!r}.\n\n"
            f"Suggestions:\n"
            f"1. Use a non-negative integer: x(3)\n"
            f"2. Use an inclusive range with 0 <= min <= max: "
            f"x({{'min': 1, 'max': 5}})",
            path=path,
        )


class UnknownFieldError(SpecificationError):
    """Override names a column or relationship absent from the schema."""

    def __init__(self, table: str, key: str, path: str | None = None, reason: str | None = None):
        self.table = table
        self.key = key
        detail = reason or f"'{key}' is not a column or relationship of table '{table}'"
        super().__init__(
            f"Unknown override key '{key}' for table '{table}': {detail}.\n\n"
            f"Suggestions:\n"
            f"1. Check the column or relationship name spelling\n"
            f"2. Use `seedplan describe <schema>` to list the available names",
            path=path,
        )


# ============================================================================
# Resolution errors (raised while a plan executes)
# ============================================================================


class ResolutionError(SeedPlanError):
    """A relationship could not be resolved during plan execution."""

    pass


class UnresolvableRelationshipError(ResolutionError):
    """Required relationship has no data, no connect candidate and cannot be created."""

    def __init__(self, table: str, index: int, relationship: str, reason: str):
        self.table = table
        self.index = index
        self.relationship = relationship
        super().__init__(
            f"Could not resolve required relationship '{relationship}' "
            f"of table '{table}' (row {index}): {reason}.\n\n"
            f"Suggestions:\n"
            f"1. Connect it explicitly:\n"
            f"   client.{table}([{{'{relationship}': lambda ctx: ctx.store.<table>[0]}}])\n"
            f"2. Seed the target table first and enable auto_connect\n"
            f"3. Provide a models override with a `connect` function"
        )


class SelfReferenceError(ResolutionError):
    """Required self-reference cannot be satisfied."""

    def __init__(self, table: str, index: int, relationship: str):
        self.table = table
        self.index = index
        self.relationship = relationship
        super().__init__(
            f"Row {index} of table '{table}' requires relationship "
            f"'{relationship}' to a row of the same table, but no row exists to "
            f"connect to.\n\n"
            f"Suggestions:\n"
            f"1. Pre-seed the store with an existing '{table}' row and enable auto_connect\n"
            f"2. Pass a connect callback returning an existing row\n"
            f"3. Make the self-reference nullable"
        )


# ============================================================================
# Ordering and persistence errors
# ============================================================================


class OrderingError(SeedPlanError):
    """Tables cannot be ordered for persistence."""

    pass


class CircularDependencyError(OrderingError):
    """Circular dependency detected in table relationships."""

    def __init__(self, tables: set[str]):
        self.tables = tables
        tables_str = ", ".join(sorted(tables))
        super().__init__(
            f"Circular dependency detected involving tables: {tables_str}\n\n"
            f"Suggestions:\n"
            f"1. Check foreign key relationships for cycles\n"
            f"2. Make one foreign key of the cycle nullable and leave it unset\n"
            f"3. Temporarily remove FK constraint, seed data, then re-add constraint"
        )


class PersistenceError(SeedPlanError):
    """The database client failed to execute a statement."""

    def __init__(self, index: int, statement: str, cause: BaseException):
        self.index = index
        self.statement = statement
        self.cause = cause
        super().__init__(
            f"Statement {index} failed: {cause}\n"
            f"  {statement}\n\n"
            f"The generated store is unchanged; fix the cause and persist it again."
        )


# ============================================================================
# Store errors
# ============================================================================


class StoreError(SeedPlanError):
    """Invalid store operation."""

    pass


class RowNotFoundError(StoreError, LookupError):
    """Row index is out of range for a table."""

    def __init__(self, table: str, index: int, size: int):
        self.table = table
        self.index = index
        super().__init__(
            f"No row {index} in table '{table}' (store holds {size} rows)."
        )


class DuplicateRowError(StoreError):
    """The same row object was appended twice to one table."""

    def __init__(self, table: str):
        self.table = table
        super().__init__(
            f"Row is already stored in table '{table}'. "
            f"Append a copy to store duplicate values."
        )
