"""Table reachability probe.

A probe issues the cheapest possible read against a table (one row, no
embedded relations) and reports whether it succeeded. It never raises and
never writes the availability cache; recording the answer is the caller's job.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable, Optional

from ..backend.base import BaseBackend

logger = logging.getLogger(__name__)


class TableProbe:
    """One-shot existence check for remote tables."""

    def __init__(self, backend: BaseBackend, columns: str = "*"):
        self.backend = backend
        self.columns = columns

    async def probe(self, resource: str, table: Optional[str] = None) -> bool:
        """Return True if a one-row read of ``table`` (default: ``resource``) succeeds.

        Missing tables, permission errors and network failures all count as
        unavailable.
        """
        target = table or resource
        try:
            await asyncio.to_thread(
                self.backend.select, target, self.columns, None, None, True, 1
            )
        except Exception as exc:
            logger.debug("[probe] %s unavailable: %s", target, exc)
            return False
        logger.debug("[probe] %s available", target)
        return True

    async def probe_many(self, tables: Iterable[str]) -> Dict[str, bool]:
        """Probe several tables one after another."""
        results: Dict[str, bool] = {}
        for table in tables:
            results[table] = await self.probe(table)
        return results
