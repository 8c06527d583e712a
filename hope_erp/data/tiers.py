"""Builders for common fetch attempts.

The backend client is blocking (``requests``), so each attempt runs its call
in a worker thread and only the awaiting coroutine is suspended.
"""

from __future__ import annotations

import asyncio
import functools
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..backend.base import BaseBackend, Filter
from .models import FetchAttempt


def rpc_attempt(
    backend: BaseBackend,
    function: str,
    params: Optional[Dict[str, Any]] = None,
    shape: Optional[Callable[[Any], List[Any]]] = None,
    strategy_name: Optional[str] = None,
) -> FetchAttempt:
    """Attempt that calls a remote procedure."""

    async def execute():
        return await asyncio.to_thread(backend.rpc, function, dict(params or {}))

    return FetchAttempt(strategy_name or f"rpc:{function}", execute, shape)


def select_attempt(
    backend: BaseBackend,
    table: str,
    columns: str = "*",
    filters: Optional[Sequence[Filter]] = None,
    order: Optional[str] = None,
    ascending: bool = True,
    limit: Optional[int] = None,
    shape: Optional[Callable[[Any], List[Any]]] = None,
    strategy_name: Optional[str] = None,
) -> FetchAttempt:
    """Attempt that reads a table or view."""
    call = functools.partial(
        backend.select,
        table,
        columns=columns,
        filters=list(filters or ()),
        order=order,
        ascending=ascending,
        limit=limit,
    )

    async def execute():
        return await asyncio.to_thread(call)

    return FetchAttempt(strategy_name or f"select:{table}", execute, shape)
