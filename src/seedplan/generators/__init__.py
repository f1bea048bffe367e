"""Fake value providers for scalar columns."""

from seedplan.generators.base import BaseGenerator
from seedplan.generators.faker_generator import FakerGenerator

__all__ = ["BaseGenerator", "FakerGenerator"]
