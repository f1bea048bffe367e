"""Query clients for persisting generated statements."""

from seedplan.backends.direct import DirectBackend
from seedplan.backends.staging import StagingBackend

__all__ = ["DirectBackend", "StagingBackend"]
