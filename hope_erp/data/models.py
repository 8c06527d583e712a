"""Data models for the ERP data access layer.

Two groups of types live here:

1. FETCH PLUMBING
   - FetchAttempt: one way of reading a dataset (RPC, view, raw table)
   - FetchResult: what the tiered fetcher hands back, rows or an error
   - ScreenState: what a screen renders, owned by one controller

2. CANONICAL ROWS
   - One dataclass per dataset, whatever tier produced it
   - Joined tiers fill the display names; raw tiers leave them None
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional


# =============================================================================
# Fetch plumbing
# =============================================================================


@dataclass
class FetchAttempt:
    """One ordered access strategy for a dataset.

    ``execute`` is a zero-argument coroutine function returning the raw
    payload. ``shape`` turns that payload into canonical rows; without one
    the payload is used as a list of rows as-is.
    """

    strategy_name: str
    execute: Callable[[], Awaitable[Any]]
    shape: Optional[Callable[[Any], List[Any]]] = None

    def shape_rows(self, payload: Any) -> List[Any]:
        if self.shape is not None:
            return self.shape(payload)
        if payload is None:
            return []
        return list(payload)


@dataclass
class FetchResult:
    """Outcome of a tiered fetch. Either rows (possibly empty) or an error."""

    resource: str
    rows: List[Any] = field(default_factory=list)
    error: Optional[str] = None
    strategy: Optional[str] = None  # Name of the tier that served the rows

    @property
    def ok(self) -> bool:
        return self.error is None


class Phase(str, Enum):
    """Lifecycle phase of a screen."""

    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class ScreenState:
    """Renderable state of one screen."""

    phase: Phase = Phase.LOADING
    rows: List[Any] = field(default_factory=list)
    error_message: Optional[str] = None
    strategy: Optional[str] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "phase": self.phase.value,
            "row_count": len(self.rows),
            "error_message": self.error_message,
            "strategy": self.strategy,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


# =============================================================================
# Canonical rows
# =============================================================================


class CaseStatus(str, Enum):
    """Status of a scheduled surgery case."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class SurgeryCase:
    """A surgery case on the schedule."""

    id: Any
    case_number: Optional[str]
    scheduled_at: Optional[str]  # ISO-8601 timestamp as returned by the backend
    status: str
    surgeon_id: Any = None
    hospital_id: Any = None
    procedure_id: Any = None
    region_id: Any = None
    operating_room: Optional[str] = None
    estimated_cost: Optional[float] = None
    notes: Optional[str] = None
    # Display names, only present when a joined tier served the row
    surgeon_name: Optional[str] = None
    hospital_name: Optional[str] = None
    procedure_name: Optional[str] = None


@dataclass
class Opportunity:
    """A sales pipeline opportunity."""

    id: Any
    title: str
    stage: str
    estimated_value: float = 0.0
    probability: float = 0.0  # Percent, 0-100
    expected_close_date: Optional[str] = None
    hospital_id: Any = None
    surgeon_id: Any = None
    rep_id: Any = None
    created_at: Optional[str] = None
    hospital_name: Optional[str] = None
    surgeon_name: Optional[str] = None
    rep_name: Optional[str] = None


@dataclass
class Manufacturer:
    """A device manufacturer."""

    id: Any
    name: str
    is_active: bool = True


@dataclass
class InventoryItem:
    """A stocked inventory item."""

    id: Any
    name: str
    sku: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = None
    stock_quantity: Optional[int] = None
    manufacturer_id: Any = None
    manufacturer_name: Optional[str] = None
    is_active: bool = True


class KPIKind(str, Enum):
    """How a KPI value should be displayed."""

    NUMBER = "number"
    CURRENCY = "currency"


@dataclass
class KPI:
    """One dashboard key performance indicator."""

    name: str
    label: str
    value: float
    kind: KPIKind = KPIKind.NUMBER
    last_updated: Optional[str] = None


@dataclass
class SalesSummary:
    """Headline figures for the sales dashboard."""

    total_sales: float = 0.0
    active_opportunities: int = 0
    win_rate: float = 0.0  # Percent, 0-100
    region_count: int = 0
    surgeon_count: int = 0
    rep_count: int = 0
    missing_tables: List[str] = field(default_factory=list)
