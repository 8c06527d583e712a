"""Table availability cache.

Remembers whether a named remote table (or logical dataset) has been found
reachable, so screens stop issuing requests that are known to fail. The
mapping is held in memory and mirrored to the key-value store as one JSON
object under a namespaced key, so it survives restarts.

Probe lifecycle per resource:

    IDLE  --begin_probe-->  PROBING  --set-->  KNOWN
      ^                                          |
      +------------------- reset ----------------+
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Dict, Optional, Set

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "hope_erp.table_availability"


class ProbeState(str, Enum):
    """Whether a resource has been checked in this cache generation."""

    IDLE = "IDLE"  # Never probed (or reset since)
    PROBING = "PROBING"  # A probe or first fetch is in flight
    KNOWN = "KNOWN"  # Availability recorded


class AvailabilityCache:
    """Resource name -> reachable flag, persisted best-effort.

    One instance is created at startup and handed to every screen. The
    store only needs ``get_item``, ``set_item`` and ``remove_item``.
    """

    def __init__(self, store, namespace: str = DEFAULT_NAMESPACE):
        self.store = store
        self.namespace = namespace
        self._available: Dict[str, bool] = {}
        self._probing: Set[str] = set()
        self._loaded = False

    def _ensure_loaded(self) -> None:
        """Hydrate the in-memory mapping from the store on first access."""
        if self._loaded:
            return
        self._loaded = True
        try:
            raw = self.store.get_item(self.namespace)
        except Exception as exc:
            logger.warning("[availability] Could not read cache: %s", exc)
            return
        if raw is None:
            return
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("[availability] Ignoring corrupt cache under %r", self.namespace)
            return
        if not isinstance(data, dict):
            logger.warning("[availability] Ignoring corrupt cache under %r", self.namespace)
            return
        for name, value in data.items():
            if isinstance(value, bool):
                self._available.setdefault(name, value)

    def _persist(self) -> None:
        try:
            if self._available:
                self.store.set_item(self.namespace, json.dumps(self._available, sort_keys=True))
            else:
                self.store.remove_item(self.namespace)
        except Exception as exc:
            logger.warning("[availability] Could not persist cache: %s", exc)

    def get(self, resource: str) -> Optional[bool]:
        """Cached availability, or None if the resource was never probed."""
        self._ensure_loaded()
        return self._available.get(resource)

    def set(self, resource: str, available: bool) -> None:
        self._ensure_loaded()
        self._available[resource] = bool(available)
        self._probing.discard(resource)
        self._persist()

    def reset(self, resource: Optional[str] = None) -> None:
        """Forget one resource, or everything when ``resource`` is None."""
        self._ensure_loaded()
        if resource is None:
            self._available.clear()
            self._probing.clear()
        else:
            self._available.pop(resource, None)
            self._probing.discard(resource)
        self._persist()
        logger.info("[availability] Reset %s", resource or "all resources")

    def state(self, resource: str) -> ProbeState:
        self._ensure_loaded()
        if resource in self._available:
            return ProbeState.KNOWN
        if resource in self._probing:
            return ProbeState.PROBING
        return ProbeState.IDLE

    def begin_probe(self, resource: str) -> None:
        """Mark a resource as being probed. No-op once its availability is known."""
        if self.state(resource) == ProbeState.IDLE:
            self._probing.add(resource)

    def snapshot(self) -> Dict[str, bool]:
        self._ensure_loaded()
        return dict(self._available)
