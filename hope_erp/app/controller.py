"""Screen controllers and pollers.

A controller owns one screen's state and drives it through
``loading -> success | error`` each time it is refreshed. Pollers repeat
that cycle on an interval for panels that need it (dashboard KPIs).

Everything runs on one asyncio event loop. Controllers share only the
availability cache, through the fetcher.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple

from ..data.fetcher import TieredFetcher
from ..data.models import Phase, ScreenState

if TYPE_CHECKING:
    from .screens import ScreenContext, ScreenDefinition

logger = logging.getLogger(__name__)

MIN_POLL_SECONDS = 5


class ScreenController:
    """Binds a screen definition to the fetcher and tracks its state.

    Rows from the previous load stay visible while a refresh is loading; an
    error state never carries rows.
    """

    def __init__(
        self,
        definition: "ScreenDefinition",
        fetcher: TieredFetcher,
        context: "ScreenContext",
        on_change: Optional[Callable[[ScreenState], Any]] = None,
    ):
        self.definition = definition
        self.fetcher = fetcher
        self.context = context
        self.on_change = on_change
        self._state = ScreenState(phase=Phase.LOADING)
        self._in_flight = False
        self._mounted = True

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def snapshot(self) -> ScreenState:
        return self._state

    def unmount(self) -> None:
        """Detach the screen; a fetch still in flight will be discarded."""
        self._mounted = False
        self.on_change = None

    def _set_state(self, state: ScreenState) -> None:
        self._state = state
        if self.on_change is None:
            return
        try:
            self.on_change(state)
        except Exception:
            logger.exception("[screen:%s] State listener failed", self.definition.name)

    async def refresh(self) -> Tuple[bool, str]:
        """Load the screen's data.

        Returns:
            Tuple of (success, message). A refresh requested while another is
            in flight is rejected rather than started.
        """
        if not self._mounted:
            return False, "Screen is not mounted."
        if self._in_flight:
            return False, "Refresh already in progress."

        self._in_flight = True
        try:
            return await self._load()
        except Exception:
            logger.exception("[screen:%s] Unexpected failure while loading", self.definition.name)
            if not self._mounted:
                return False, "Screen was unmounted."
            message = f"Something went wrong loading {self.definition.title}."
            self._set_state(ScreenState(
                phase=Phase.ERROR, error_message=message, updated_at=datetime.now()
            ))
            return False, message
        finally:
            self._in_flight = False

    async def _load(self) -> Tuple[bool, str]:
        definition = self.definition
        self._set_state(ScreenState(phase=Phase.LOADING, rows=list(self._state.rows)))
        attempts = definition.build_attempts(self.context)
        result = await self.fetcher.fetch(
            definition.resource,
            attempts,
            probe_table=definition.probe_table,
            label=definition.title,
        )

        if not self._mounted:
            logger.debug("[screen:%s] Discarding result after unmount", definition.name)
            return False, "Screen was unmounted."

        if not result.ok:
            self._set_state(ScreenState(
                phase=Phase.ERROR, error_message=result.error, updated_at=datetime.now()
            ))
            return False, result.error

        self._set_state(ScreenState(
            phase=Phase.SUCCESS,
            rows=result.rows,
            strategy=result.strategy,
            updated_at=datetime.now(),
        ))
        return True, f"Loaded {len(result.rows)} rows."


class ScreenPoller:
    """Refreshes a controller on a fixed interval until stopped.

    Each cycle waits for the previous refresh to settle, so a poller never
    overlaps its own fetches.
    """

    def __init__(
        self,
        controller: ScreenController,
        interval_seconds: float,
        run_immediately: bool = True,
        max_runs: Optional[int] = None,
        min_interval: float = MIN_POLL_SECONDS,
    ):
        self.controller = controller
        self.interval = max(min_interval, interval_seconds)
        self.max_runs = max_runs
        self.runs = 0
        self._run_immediately = run_immediately
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name=f"poller-{self.controller.name}")
        return self._task

    async def run(self) -> None:
        logger.info("[poller:%s] Starting (interval=%ss)", self.controller.name, self.interval)
        if not self._run_immediately and await self._wait():
            return

        while not self._stop_event.is_set() and self.controller.mounted:
            ok, detail = await self.controller.refresh()
            self.runs += 1
            if not ok:
                logger.info("[poller:%s] %s", self.controller.name, detail)
            if self.max_runs is not None and self.runs >= self.max_runs:
                break
            if await self._wait():
                break

        logger.info("[poller:%s] Stopped", self.controller.name)

    async def _wait(self) -> bool:
        """Sleep one interval. Returns True if stopped meanwhile."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
            return True
        except asyncio.TimeoutError:
            return False

    def stop(self) -> None:
        self._stop_event.set()

    async def join(self) -> None:
        if self._task is not None:
            await self._task


class ScreenManager:
    """Mounts screens against one shared fetcher and context."""

    def __init__(self, fetcher: TieredFetcher, context: "ScreenContext"):
        self.fetcher = fetcher
        self.context = context
        self._controllers: Dict[str, ScreenController] = {}
        self._pollers: Dict[str, ScreenPoller] = {}
        self._stopping: List[ScreenPoller] = []

    def mount(
        self,
        definition: "ScreenDefinition",
        on_change: Optional[Callable[[ScreenState], Any]] = None,
    ) -> ScreenController:
        """Create (or replace) the controller for a screen."""
        self.unmount(definition.name)
        controller = ScreenController(definition, self.fetcher, self.context, on_change=on_change)
        self._controllers[definition.name] = controller
        return controller

    def unmount(self, name: str) -> None:
        poller = self._pollers.pop(name, None)
        if poller is not None:
            poller.stop()
            self._stopping.append(poller)
        controller = self._controllers.pop(name, None)
        if controller is not None:
            controller.unmount()

    def get(self, name: str) -> Optional[ScreenController]:
        return self._controllers.get(name)

    def start_polling(
        self, name: str, interval: float, max_runs: Optional[int] = None, **kwargs
    ) -> ScreenPoller:
        controller = self._controllers[name]
        previous = self._pollers.pop(name, None)
        if previous is not None:
            previous.stop()
            self._stopping.append(previous)
        poller = ScreenPoller(controller, interval, max_runs=max_runs, **kwargs)
        self._pollers[name] = poller
        poller.start()
        return poller

    async def stop_all(self) -> None:
        pollers = list(self._pollers.values()) + self._stopping
        for poller in pollers:
            poller.stop()
        for poller in pollers:
            await poller.join()
        self._pollers.clear()
        self._stopping.clear()

    def get_all_status(self) -> Dict[str, Any]:
        return {name: c.snapshot().to_dict() for name, c in self._controllers.items()}
