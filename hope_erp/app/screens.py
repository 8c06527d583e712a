"""Screen definitions.

Each screen names the dataset it shows and builds its own ordered list of
fetch attempts, richest first. Tier order is a per-screen decision, not a
global rule.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..backend.base import BackendError, BaseBackend, Filter
from ..data.availability import AvailabilityCache
from ..data.fetcher import check_tables
from ..data.models import FetchAttempt, KPIKind
from ..data.probe import TableProbe
from ..data.tiers import rpc_attempt, select_attempt
from ..data import normalization as norm
from ..insights.sales import (
    format_currency,
    opportunities_by_stage,
    pipeline_metrics,
    sales_summary,
)

logger = logging.getLogger(__name__)

PERIODS = ("day", "week", "month")

KPI_REFRESH_SECONDS = 5 * 60

OPPORTUNITY_JOINED_COLUMNS = (
    "*,"
    "hospital:hospitals!sales_opportunities_hospital_id_fkey(name),"
    "surgeon:surgeons!sales_opportunities_surgeon_id_fkey(first_name,last_name),"
    "rep:sales_reps!sales_opportunities_rep_id_fkey(first_name,last_name)"
)

INVENTORY_JOINED_COLUMNS = "*,manufacturer:manufacturers(name)"

# Table -> (order column, only active rows)
SALES_TABLES: Dict[str, Tuple[Optional[str], bool]] = {
    "sales_opportunities": ("created_at", False),
    "sales_transactions": ("transaction_date", False),
    "regions": (None, True),
    "surgeons": (None, False),
    "sales_reps": (None, False),
}


@dataclass
class ScreenContext:
    """Everything a screen needs to build its fetch attempts."""

    backend: BaseBackend
    cache: AvailabilityCache
    probe: TableProbe
    period: str = "week"
    region: str = "all"
    today: Optional[date] = None

    def current_date(self) -> date:
        return self.today or date.today()


@dataclass
class Column:
    """A rendered column: header, row attribute, optional formatter."""

    header: str
    attr: str
    fmt: Optional[Callable[[Any], str]] = None  # Receives the whole row


@dataclass
class ScreenDefinition:
    """Static description of one screen."""

    name: str
    title: str
    resource: str
    build_attempts: Callable[[ScreenContext], List[FetchAttempt]]
    columns: List[Column] = field(default_factory=list)
    probe_table: Optional[str] = None
    refresh_interval: Optional[int] = None  # seconds; None = manual only
    summary: Optional[Callable[[List[Any]], str]] = None  # Text shown under the table


# =============================================================================
# Helpers
# =============================================================================


def period_bounds(period: str, today: date) -> Tuple[datetime, datetime]:
    """Start and end of the calendar period containing ``today``.

    Weeks run Sunday to Saturday. Bounds cover whole days.
    """
    if period == "day":
        start_day = end_day = today
    elif period == "week":
        start_day = today - timedelta(days=(today.weekday() + 1) % 7)
        end_day = start_day + timedelta(days=6)
    elif period == "month":
        start_day = today.replace(day=1)
        next_month = (start_day + timedelta(days=32)).replace(day=1)
        end_day = next_month - timedelta(days=1)
    else:
        raise ValueError(f"Unknown period {period!r}; expected one of {', '.join(PERIODS)}")
    return datetime.combine(start_day, time.min), datetime.combine(end_day, time.max)


def region_filter_value(region: str) -> Any:
    """'all' -> None, numeric ids -> int, anything else unchanged."""
    if not region or region == "all":
        return None
    return int(region) if region.isdigit() else region


# =============================================================================
# Attempt builders
# =============================================================================


def scheduler_attempts(ctx: ScreenContext) -> List[FetchAttempt]:
    start, end = period_bounds(ctx.period, ctx.current_date())
    region = region_filter_value(ctx.region)

    filters = [
        Filter("scheduled_at", "gte", start.isoformat()),
        Filter("scheduled_at", "lte", end.isoformat()),
    ]
    if region is not None:
        filters.append(Filter("region_id", "eq", region))

    return [
        rpc_attempt(
            ctx.backend,
            "get_surgery_cases_with_details",
            {
                "start_date": start.isoformat(),
                "end_date": end.isoformat(),
                "region_filter": region,
            },
            shape=norm.shape_surgery_case_details,
        ),
        select_attempt(
            ctx.backend,
            "surgery_cases_with_details",
            filters=filters,
            order="scheduled_at",
            shape=norm.shape_surgery_case_details,
        ),
        select_attempt(
            ctx.backend,
            "surgery_cases",
            filters=filters,
            order="scheduled_at",
            shape=norm.shape_surgery_cases_raw,
        ),
    ]


def pipeline_attempts(ctx: ScreenContext) -> List[FetchAttempt]:
    return [
        select_attempt(
            ctx.backend,
            "sales_opportunities",
            columns=OPPORTUNITY_JOINED_COLUMNS,
            order="created_at",
            ascending=False,
            shape=norm.shape_opportunities_joined,
            strategy_name="select:sales_opportunities+relations",
        ),
        select_attempt(
            ctx.backend,
            "sales_opportunities",
            order="created_at",
            ascending=False,
            shape=norm.shape_opportunities_raw,
        ),
    ]


def inventory_attempts(ctx: ScreenContext) -> List[FetchAttempt]:
    active = [Filter("is_active", "eq", True)]
    return [
        select_attempt(
            ctx.backend,
            "inventory_items",
            columns=INVENTORY_JOINED_COLUMNS,
            filters=active,
            order="name",
            shape=norm.shape_inventory_joined,
            strategy_name="select:inventory_items+manufacturer",
        ),
        select_attempt(
            ctx.backend,
            "inventory_items",
            filters=active,
            order="name",
            shape=norm.shape_inventory_raw,
        ),
    ]


def manufacturer_attempts(ctx: ScreenContext) -> List[FetchAttempt]:
    return [
        select_attempt(
            ctx.backend,
            "manufacturers",
            filters=[Filter("is_active", "eq", True)],
            order="name",
            shape=norm.shape_manufacturers,
        ),
    ]


def kpi_attempts(ctx: ScreenContext) -> List[FetchAttempt]:
    return [rpc_attempt(ctx.backend, "get_dashboard_kpis", shape=norm.shape_dashboard_kpis)]


async def load_sales_tables(ctx: ScreenContext) -> Dict[str, Any]:
    """Read whichever sales tables are reachable.

    Unknown tables are probed once and the answer cached; tables known to be
    missing are not requested at all. A read that fails after a good probe
    leaves that table empty for this load.
    """
    availability = await check_tables(ctx.cache, ctx.probe, SALES_TABLES)
    tables: Dict[str, List[Dict[str, Any]]] = {}
    for table, (order, active_only) in SALES_TABLES.items():
        if not availability.get(table):
            continue
        read = functools.partial(
            ctx.backend.select,
            table,
            filters=[Filter("is_active", "eq", True)] if active_only else None,
            order=order,
            ascending=False,  # newest first for dated tables
        )
        try:
            tables[table] = await asyncio.to_thread(read)
        except BackendError as exc:
            logger.debug("[screen:sales-dashboard] Reading %s failed: %s", table, exc)
            tables[table] = []

    missing = [t for t, ok in availability.items() if not ok]
    if missing:
        logger.warning(
            "[screen:sales-dashboard] Running with limited data. Missing tables: %s",
            ", ".join(missing),
        )
    return {"tables": tables, "availability": availability}


def sales_dashboard_attempts(ctx: ScreenContext) -> List[FetchAttempt]:
    async def execute():
        return await load_sales_tables(ctx)

    def shape(payload):
        return [sales_summary(payload["tables"], payload["availability"])]

    return [FetchAttempt("composite:sales_tables", execute, shape)]


# =============================================================================
# Formatters
# =============================================================================


def pipeline_summary(opportunities: List[Any]) -> str:
    """Pipeline totals plus the count and value of each stage."""
    metrics = pipeline_metrics(opportunities)
    lines = [
        f"Total pipeline: {format_currency(metrics.total_pipeline)}   "
        f"Weighted: {format_currency(metrics.weighted_pipeline)}   "
        f"Avg deal: {format_currency(metrics.avg_deal_size)}   "
        f"Win rate: {metrics.win_rate:.1f}%",
        "By stage:",
    ]
    for stage, opps in opportunities_by_stage(opportunities).items():
        value = sum(o.estimated_value for o in opps)
        lines.append(f"  {stage.ljust(12)} {len(opps):>3}  {format_currency(value)}")
    return "\n".join(lines)


def _money(attr: str) -> Callable[[Any], str]:
    def fmt(row):
        value = getattr(row, attr)
        return "-" if value is None else format_currency(value)
    return fmt


def _kpi_value(row) -> str:
    if row.kind == KPIKind.CURRENCY:
        return format_currency(row.value)
    return f"{row.value:,.0f}"


def _percent(attr: str) -> Callable[[Any], str]:
    return lambda row: f"{getattr(row, attr):.1f}%"


# =============================================================================
# Registry
# =============================================================================


SCREENS: Dict[str, ScreenDefinition] = {
    "scheduler": ScreenDefinition(
        name="scheduler",
        title="Surgery cases",
        resource="surgery_cases",
        build_attempts=scheduler_attempts,
        columns=[
            Column("Case", "case_number"),
            Column("Scheduled", "scheduled_at"),
            Column("Status", "status"),
            Column("Surgeon", "surgeon_name"),
            Column("Hospital", "hospital_name"),
            Column("Procedure", "procedure_name"),
            Column("OR", "operating_room"),
        ],
    ),
    "pipeline": ScreenDefinition(
        name="pipeline",
        title="Sales opportunities",
        resource="sales_opportunities",
        build_attempts=pipeline_attempts,
        probe_table="sales_opportunities",
        summary=pipeline_summary,
        columns=[
            Column("Title", "title"),
            Column("Stage", "stage"),
            Column("Value", "estimated_value", _money("estimated_value")),
            Column("Prob.", "probability", _percent("probability")),
            Column("Close", "expected_close_date"),
            Column("Hospital", "hospital_name"),
            Column("Surgeon", "surgeon_name"),
            Column("Rep", "rep_name"),
        ],
    ),
    "inventory": ScreenDefinition(
        name="inventory",
        title="Inventory items",
        resource="inventory_items",
        build_attempts=inventory_attempts,
        columns=[
            Column("Name", "name"),
            Column("SKU", "sku"),
            Column("Manufacturer", "manufacturer_name"),
            Column("Price", "price", _money("price")),
            Column("Stock", "stock_quantity"),
        ],
    ),
    "manufacturers": ScreenDefinition(
        name="manufacturers",
        title="Manufacturers",
        resource="manufacturers",
        build_attempts=manufacturer_attempts,
        columns=[Column("ID", "id"), Column("Name", "name")],
    ),
    "kpis": ScreenDefinition(
        name="kpis",
        title="Dashboard KPIs",
        resource="dashboard_kpis",
        build_attempts=kpi_attempts,
        refresh_interval=KPI_REFRESH_SECONDS,
        columns=[
            Column("KPI", "label"),
            Column("Value", "value", _kpi_value),
            Column("Updated", "last_updated"),
        ],
    ),
    "sales-dashboard": ScreenDefinition(
        name="sales-dashboard",
        title="Sales dashboard",
        resource="sales_dashboard",
        build_attempts=sales_dashboard_attempts,
        columns=[
            Column("Total sales", "total_sales", _money("total_sales")),
            Column("Active opps", "active_opportunities"),
            Column("Win rate", "win_rate", _percent("win_rate")),
            Column("Regions", "region_count"),
            Column("Surgeons", "surgeon_count"),
            Column("Reps", "rep_count"),
            Column("Missing tables", "missing_tables", lambda row: ", ".join(row.missing_tables) or "-"),
        ],
    ),
}


def get_screen(name: str) -> ScreenDefinition:
    try:
        return SCREENS[name]
    except KeyError:
        raise KeyError(f"Unknown screen {name!r}; choose from {', '.join(SCREENS)}") from None
