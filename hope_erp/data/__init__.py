"""Data layer - availability cache, probing, tiered fetching and row models."""

from .availability import AvailabilityCache, ProbeState
from .fetcher import TieredFetcher, check_tables
from .persistence import KeyValueStore, MemoryStore, get_data_dir
from .probe import TableProbe
from .tiers import rpc_attempt, select_attempt
from .models import (
    FetchAttempt,
    FetchResult,
    Phase,
    ScreenState,
    SurgeryCase,
    Opportunity,
    Manufacturer,
    InventoryItem,
    KPI,
    KPIKind,
    SalesSummary,
)

__all__ = [
    "AvailabilityCache",
    "ProbeState",
    "TieredFetcher",
    "check_tables",
    "KeyValueStore",
    "MemoryStore",
    "get_data_dir",
    "TableProbe",
    "rpc_attempt",
    "select_attempt",
    "FetchAttempt",
    "FetchResult",
    "Phase",
    "ScreenState",
    "SurgeryCase",
    "Opportunity",
    "Manufacturer",
    "InventoryItem",
    "KPI",
    "KPIKind",
    "SalesSummary",
]
