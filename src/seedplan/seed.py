"""Deterministic pseudo-random values keyed by hierarchical seed paths.

Every random decision of a plan execution (scalar values, row counts,
connection targets) draws from a substream derived from a seed path such
as ``"<seed>/0/users/2/email"``. Identical paths always produce identical
values, so a fixed root seed reproduces the whole dataset.
"""

import hashlib
import logging
import random
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from seedplan.exceptions import InvalidCardinalityError
from seedplan.generators.base import BaseGenerator
from seedplan.generators.registry import get_generator, list_generators
from seedplan.models import ColumnInfo

logger = logging.getLogger(__name__)

DEFAULT_SEED = "seedplan"


@dataclass
class Substream:
    """
    Random stream bound to one seed path.

    Attributes:
        path: Seed path the stream was derived from
        seed: Integer seed (stable hash of the path)
        rng: Private random generator seeded with `seed`
    """

    path: str
    seed: int
    rng: random.Random = field(repr=False, compare=False)


def hash_path(path: str) -> int:
    """Stable 64-bit integer for a seed path."""
    return int.from_bytes(hashlib.sha256(path.encode("utf-8")).digest()[:8], "big")


def parse_count(spec: Any, path: str | None = None) -> tuple[int, int]:
    """
    Validate a count specification and return its inclusive bounds.

    Args:
        spec: Exact count (int) or {"min": a, "max": b}
        path: Request path for error context

    Raises:
        InvalidCardinalityError: If the count is negative or min > max
    """
    if isinstance(spec, bool):
        raise InvalidCardinalityError(spec, path)
    if isinstance(spec, int):
        if spec < 0:
            raise InvalidCardinalityError(spec, path)
        return spec, spec
    if isinstance(spec, Mapping) and set(spec) == {"min", "max"}:
        low, high = spec["min"], spec["max"]
        valid = all(isinstance(v, int) and not isinstance(v, bool) for v in (low, high))
        if not valid or low < 0 or low > high:
            raise InvalidCardinalityError(spec, path)
        return low, high
    raise InvalidCardinalityError(spec, path)


def resolve_provider(strategy: str) -> BaseGenerator:
    """
    Instantiate the fake value provider registered under `strategy`.

    Raises:
        ValueError: If no generator is registered with that name
    """
    generator_class = get_generator(strategy)
    if generator_class is None:
        raise ValueError(
            f"Unknown strategy '{strategy}'. "
            f"Available: {', '.join(list_generators())}. "
            f"Register custom generator with register_generator()."
        )
    return generator_class()


class SeedGenerator:
    """
    Deterministic value source for one root seed.

    Example:
        >>> seeds = SeedGenerator("my-seed")
        >>> stream = seeds.derive("my-seed/0/users/0/email")
        >>> seeds.random_scalar(stream, ColumnInfo("email", "text"))
        'kimberly35@example.org'
    """

    def __init__(self, root: str = DEFAULT_SEED, provider: BaseGenerator | None = None):
        """
        Initialize seed generator.

        Args:
            root: Root seed every path starts from
            provider: Fake value provider (default: Faker)
        """
        self.root = root
        self.provider = provider or resolve_provider("faker")

    def derive(self, path: str, salt: str | None = None) -> Substream:
        """Derive the substream for a seed path (optionally salted)."""
        key = f"{path}:{salt}" if salt else path
        seed = hash_path(key)
        return Substream(path=key, seed=seed, rng=random.Random(seed))

    def random_scalar(self, stream: Substream, column: ColumnInfo) -> Any:
        """Generate a scalar value for `column` from the provider."""
        return self.provider.generate(
            column.name,
            column.data_type,
            seed=stream.seed,
            path=stream.path,
            column=column,
        )

    def random_count(self, stream: Substream, spec: Any) -> int:
        """
        Draw a row count from an exact count or an inclusive min/max range.

        Raises:
            InvalidCardinalityError: If the count specification is invalid
        """
        low, high = parse_count(spec, stream.path)
        if low == high:
            return low
        return stream.rng.randint(low, high)

    def choose(self, stream: Substream, candidates: Sequence[Any]) -> int:
        """
        Pick the index of one candidate.

        Raises:
            ValueError: If there are no candidates
        """
        if not candidates:
            raise ValueError(f"No candidates to choose from (seed path '{stream.path}')")
        return stream.rng.randrange(len(candidates))
