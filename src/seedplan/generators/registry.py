"""Generator registry for fake value provider plugins."""

from seedplan.generators.faker_generator import FakerGenerator

# Always available, not affected by clear_generators()
BUILTIN_GENERATORS: dict[str, type] = {"faker": FakerGenerator}


class GeneratorRegistry:
    """Registry for custom generator plugins."""

    def __init__(self):
        self._generators: dict[str, type] = {}

    def register(self, name: str, generator_class: type) -> None:
        """
        Register a custom generator.

        Args:
            name: Generator name (used as the client `strategy`)
            generator_class: Generator class (must have generate method)

        Raises:
            ValueError: If generator class doesn't have generate method
        """
        if not hasattr(generator_class, "generate"):
            raise ValueError(
                f"Generator class must have 'generate' method. "
                f"Class {generator_class.__name__} is missing it."
            )
        self._generators[name] = generator_class

    def get(self, name: str) -> type | None:
        """
        Get generator by name.

        Returns:
            Generator class or None if not found
        """
        return self._generators.get(name) or BUILTIN_GENERATORS.get(name)

    def list_generators(self) -> list[str]:
        """List all available generator names (built-in first)."""
        return [*BUILTIN_GENERATORS, *(n for n in self._generators if n not in BUILTIN_GENERATORS)]

    def clear(self) -> None:
        """Clear all registered generators (for testing)."""
        self._generators.clear()


# Global registry instance
_registry = GeneratorRegistry()


def register_generator(name: str, generator_class: type) -> None:
    """
    Register a custom generator (user-facing API).

    Example:
        >>> from seedplan import BaseGenerator, register_generator
        >>>
        >>> class SKUGenerator(BaseGenerator):
        ...     def generate(self, column_name, data_type, **context):
        ...         return f"SKU-{context['seed'] % 1_000_000:06d}"
        >>>
        >>> register_generator("sku", SKUGenerator)
    """
    _registry.register(name, generator_class)


def get_generator(name: str) -> type | None:
    """Get a registered generator class, or None if not found."""
    return _registry.get(name)


def list_generators() -> list[str]:
    """List all available generator names."""
    return _registry.list_generators()


def clear_generators() -> None:
    """Clear all custom registered generators (for testing)."""
    _registry.clear()
