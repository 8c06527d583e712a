"""Backend access - the hosted database service's REST interface."""

from .base import BaseBackend, BackendError, Filter
from .rest import RestBackend, build_query_params

__all__ = [
    "BaseBackend",
    "BackendError",
    "Filter",
    "RestBackend",
    "build_query_params",
]
