"""Insights module - sales pipeline and dashboard summaries."""

from .sales import (
    PIPELINE_STAGES,
    PipelineMetrics,
    format_currency,
    opportunities_by_stage,
    pipeline_metrics,
    sales_summary,
    win_rate,
)

__all__ = [
    "PIPELINE_STAGES",
    "PipelineMetrics",
    "format_currency",
    "opportunities_by_stage",
    "pipeline_metrics",
    "sales_summary",
    "win_rate",
]
