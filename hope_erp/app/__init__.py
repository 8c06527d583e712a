"""Application layer - screens, controllers, configuration and CLI."""

from .config import BackendConfig, Config, ScreenConfig
from .controller import ScreenController, ScreenManager, ScreenPoller
from .screens import SCREENS, ScreenContext, ScreenDefinition, get_screen, period_bounds

__all__ = [
    "BackendConfig",
    "Config",
    "ScreenConfig",
    "ScreenController",
    "ScreenManager",
    "ScreenPoller",
    "SCREENS",
    "ScreenContext",
    "ScreenDefinition",
    "get_screen",
    "period_bounds",
]
