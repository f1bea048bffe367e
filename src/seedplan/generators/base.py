"""Base generator interface."""

from abc import ABC, abstractmethod
from typing import Any


class BaseGenerator(ABC):
    """
    Base class for fake value providers.

    Subclass this to plug a custom scalar value source into the seed
    generator. Providers must be deterministic for a given `seed`.

    Example:
        >>> class SKUGenerator(BaseGenerator):
        ...     def generate(self, column_name, data_type, **context):
        ...         seed = context.get("seed", 0)
        ...         return f"SKU-{seed % 1_000_000:06d}"
        >>>
        >>> register_generator("sku", SKUGenerator)
        >>> client = SeedClient(schema, strategy="sku")
    """

    @abstractmethod
    def generate(self, column_name: str, data_type: str, **context: Any) -> Any:
        """
        Generate a value for a column.

        Args:
            column_name: Column name being generated
            data_type: PostgreSQL type of the column
            **context: Additional context:
                - seed: Integer seed derived from the field's seed path
                - path: The field's seed path
                - column: ColumnInfo for the column

        Returns:
            Generated value appropriate for the column
        """
        pass
