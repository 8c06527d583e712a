"""Tiered fetcher.

Reads a logical dataset by trying an ordered list of access strategies,
richest first (e.g. enriched RPC, then enriched view, then raw table), and
returns the first one that works. Tiers run strictly one after another.

The fetcher never raises: every outcome is a ``FetchResult`` carrying either
rows (possibly none) or a human-readable error.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional, Sequence

from .availability import AvailabilityCache
from .models import FetchAttempt, FetchResult
from .probe import TableProbe

logger = logging.getLogger(__name__)


def resource_label(resource: str) -> str:
    """'sales_opportunities' -> 'Sales opportunities'."""
    text = resource.replace("_", " ").strip()
    return text[:1].upper() + text[1:]


def not_configured_message(label: str) -> str:
    return f"{label} is not configured yet."


def unreachable_message(label: str) -> str:
    return f"{label} is not currently reachable."


class TieredFetcher:
    """Ordered-fallback reader backed by the shared availability cache."""

    def __init__(self, cache: AvailabilityCache, probe: Optional[TableProbe] = None):
        self.cache = cache
        self.probe = probe

    async def fetch(
        self,
        resource: str,
        attempts: Sequence[FetchAttempt],
        probe_table: Optional[str] = None,
        label: Optional[str] = None,
    ) -> FetchResult:
        """Fetch ``resource`` using the first tier that succeeds.

        Args:
            resource: Logical dataset name; also the availability cache key
            attempts: Access strategies, richest first
            probe_table: If set, probe this table before the first tier when
                availability is still unknown
            label: Display name for error messages

        Returns:
            FetchResult with rows from the winning tier, or a terminal error
        """
        label = label or resource_label(resource)

        if self.cache.get(resource) is False:
            logger.debug("[fetcher] %s cached as unavailable; skipping all tiers", resource)
            return FetchResult(resource, error=not_configured_message(label))

        first_probe = self.cache.get(resource) is None
        if first_probe:
            self.cache.begin_probe(resource)

        if first_probe and probe_table and self.probe is not None:
            reachable = await self.probe.probe(resource, table=probe_table)
            self.cache.set(resource, reachable)
            first_probe = False
            if not reachable:
                logger.warning("[fetcher] %s not available; will not retry until reset", resource)
                return FetchResult(resource, error=not_configured_message(label))

        for index, attempt in enumerate(attempts, start=1):
            try:
                payload = await attempt.execute()
                rows = attempt.shape_rows(payload)
            except Exception as exc:
                logger.debug(
                    "[fetcher] %s tier %d/%d (%s) failed: %s",
                    resource, index, len(attempts), attempt.strategy_name, exc,
                )
                continue

            if first_probe:
                self.cache.set(resource, True)
            logger.debug(
                "[fetcher] %s served by %s (%d rows)", resource, attempt.strategy_name, len(rows)
            )
            return FetchResult(resource, rows=rows, strategy=attempt.strategy_name)

        self.cache.set(resource, False)
        logger.warning("[fetcher] All %d tiers failed for %s", len(attempts), resource)
        return FetchResult(resource, error=unreachable_message(label))


async def check_tables(
    cache: AvailabilityCache, probe: TableProbe, tables: Iterable[str]
) -> Dict[str, bool]:
    """Availability of several tables, probing only the ones not yet known.

    Each probe result is recorded in the cache.
    """
    availability: Dict[str, bool] = {}
    to_probe = []
    for table in tables:
        known = cache.get(table)
        if known is None:
            to_probe.append(table)
        else:
            availability[table] = known

    if not to_probe:
        return availability

    logger.debug("[fetcher] Checking availability of %s", ", ".join(to_probe))
    for table in to_probe:
        cache.begin_probe(table)
    for table, reachable in (await probe.probe_many(to_probe)).items():
        cache.set(table, reachable)
        availability[table] = reachable
    return availability
