"""Base backend interface for the hosted data service."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence


FILTER_OPERATORS = ("eq", "neq", "gt", "gte", "lt", "lte", "like", "ilike", "is", "in")


@dataclass(frozen=True)
class Filter:
    """A single column filter (e.g. ``Filter("is_active", "eq", True)``)."""

    column: str
    op: str
    value: Any

    def __post_init__(self):
        if self.op not in FILTER_OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.op!r}")


class BaseBackend(ABC):
    """Abstract base class for remote data backends.

    The rest of the package only ever talks to the hosted service through
    this interface: named table/view -> rows, named remote procedure -> rows.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier for this backend (e.g., 'rest')."""
        pass

    @abstractmethod
    def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Sequence[Filter]] = None,
        order: Optional[str] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Read rows from a table or view.

        Returns:
            List of row dictionaries. An empty list is a valid result.

        Raises:
            BackendError: If the remote call fails.
        """
        pass

    @abstractmethod
    def rpc(self, function: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Call a remote procedure and return its decoded result.

        Raises:
            BackendError: If the remote call fails.
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check whether the backend is configured well enough to be called."""
        pass

    def get_status(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "available": self.is_available(),
        }


# Error codes the service uses for missing relations/functions
NOT_FOUND_CODES = ("42P01", "42883", "PGRST202", "PGRST205")


class BackendError(Exception):
    """Exception raised when a call to the hosted backend fails."""

    def __init__(
        self,
        resource: str,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        self.resource = resource
        self.status_code = status_code
        self.code = code
        self.cause = cause
        super().__init__(f"[{resource}] {message}")

    @property
    def not_found(self) -> bool:
        """True when the backend reported a missing table, view or function."""
        if self.status_code == 404:
            return True
        return bool(self.code) and self.code in NOT_FOUND_CODES
