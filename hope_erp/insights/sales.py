"""Sales pipeline summaries.

Client-side figures shown on the pipeline and sales dashboard screens:
- Pipeline value, probability-weighted value, average deal size, win rate
- Opportunities grouped by stage
- Dashboard headline numbers from whatever sales tables are reachable
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from ..data.models import Opportunity, SalesSummary
from ..data.normalization import to_float

PIPELINE_STAGES = (
    "lead",
    "qualified",
    "proposal",
    "negotiation",
    "closed-won",
    "closed-lost",
)

CLOSED_STAGES = ("closed-won", "closed-lost")


@dataclass
class PipelineMetrics:
    """Aggregate figures for a set of opportunities."""

    total_pipeline: float
    weighted_pipeline: float
    avg_deal_size: float
    win_rate: float  # Percent, 0-100


def _stage(opp: Any) -> Optional[str]:
    return opp.stage if isinstance(opp, Opportunity) else opp.get("stage")


def win_rate(opportunities: Iterable[Any]) -> float:
    """Closed-won as a percentage of all closed opportunities."""
    stages = [_stage(o) for o in opportunities]
    closed = [s for s in stages if s in CLOSED_STAGES]
    if not closed:
        return 0.0
    return closed.count("closed-won") / len(closed) * 100


def pipeline_metrics(opportunities: Sequence[Opportunity]) -> PipelineMetrics:
    total = sum(o.estimated_value for o in opportunities)
    weighted = sum(o.estimated_value * o.probability / 100 for o in opportunities)
    avg = total / len(opportunities) if opportunities else 0.0
    return PipelineMetrics(
        total_pipeline=total,
        weighted_pipeline=weighted,
        avg_deal_size=avg,
        win_rate=win_rate(opportunities),
    )


def opportunities_by_stage(opportunities: Iterable[Opportunity]) -> Dict[str, List[Opportunity]]:
    """Group opportunities by stage, in pipeline order.

    Every known stage is present (possibly empty). Unknown stages are kept
    after the known ones.
    """
    grouped: Dict[str, List[Opportunity]] = {stage: [] for stage in PIPELINE_STAGES}
    for opp in opportunities:
        grouped.setdefault(opp.stage, []).append(opp)
    return grouped


def sales_summary(
    tables: Mapping[str, List[Dict[str, Any]]],
    availability: Mapping[str, bool],
) -> SalesSummary:
    """Headline numbers from the raw rows of the reachable sales tables.

    Args:
        tables: Table name -> rows, for the tables that were read
        availability: Table name -> reachable, for every table that was checked
    """
    opportunities = tables.get("sales_opportunities", [])
    transactions = tables.get("sales_transactions", [])

    active = sum(1 for o in opportunities if o.get("stage") not in CLOSED_STAGES)
    return SalesSummary(
        total_sales=sum(to_float(t.get("amount"), 0.0) for t in transactions),
        active_opportunities=active,
        win_rate=win_rate(opportunities),
        region_count=len(tables.get("regions", [])),
        surgeon_count=len(tables.get("surgeons", [])),
        rep_count=len(tables.get("sales_reps", [])),
        missing_tables=sorted(name for name, ok in availability.items() if not ok),
    )


def format_currency(amount: Optional[float]) -> str:
    """$1,234 style, no decimals."""
    value = amount or 0.0
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.0f}"
