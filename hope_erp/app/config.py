"""Configuration management for the ERP client.

Supports YAML-based configuration with environment overrides for the
backend connection.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


@dataclass
class BackendConfig:
    """Connection settings for the hosted database service."""

    url: str = ""
    api_key: str = ""
    timeout: int = 20  # seconds
    retries: int = 3
    verify: bool = True
    ca_bundle: Optional[str] = None
    email: Optional[str] = None  # Password comes from HOPE_ERP_PASSWORD


@dataclass
class ScreenConfig:
    """Per-screen settings."""

    enabled: bool = True
    refresh_interval: Optional[int] = None  # seconds; None = manual refresh only


@dataclass
class Config:
    """Main configuration container."""

    deployment_name: str = "HOPE ERP"
    backend: BackendConfig = field(default_factory=BackendConfig)
    screens: Dict[str, ScreenConfig] = field(default_factory=dict)
    log_level: str = "WARNING"

    # Data directory override
    data_dir: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create config from dictionary."""
        deployment = data.get("deployment", {})

        backend_data = data.get("backend", {})
        backend = BackendConfig(
            url=backend_data.get("url", ""),
            api_key=backend_data.get("api_key", ""),
            timeout=backend_data.get("timeout", 20),
            retries=backend_data.get("retries", 3),
            verify=backend_data.get("verify", True),
            ca_bundle=backend_data.get("ca_bundle"),
            email=backend_data.get("email"),
        )

        screens_data = data.get("screens", {})
        screens = {}
        for name, screen_data in screens_data.items():
            if isinstance(screen_data, dict):
                screens[name] = ScreenConfig(
                    enabled=screen_data.get("enabled", True),
                    refresh_interval=screen_data.get("refresh_interval"),
                )

        return cls(
            deployment_name=deployment.get("name", "HOPE ERP"),
            backend=backend,
            screens=screens,
            log_level=str(data.get("log_level", "WARNING")).upper(),
            data_dir=data.get("data_dir"),
        )

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """Load config from YAML file."""
        if not path.exists():
            return cls()
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Config":
        """Load config from path or defaults, then apply env overrides.

        Checks in order:
        1. Provided path
        2. HOPE_ERP_CONFIG env var
        3. ./configs/config.yaml
        4. ./config.yaml
        5. ~/.hope_erp/config.yaml
        6. Default config
        """
        paths_to_try = []

        if config_path:
            paths_to_try.append(Path(config_path))

        if env_path := os.environ.get("HOPE_ERP_CONFIG"):
            paths_to_try.append(Path(env_path))

        paths_to_try.extend([
            Path("./configs/config.yaml"),
            Path("./config.yaml"),
            Path.home() / ".hope_erp" / "config.yaml",
        ])

        config = cls()
        for path in paths_to_try:
            if path.exists():
                config = cls.from_yaml(path)
                break

        config.apply_env()
        return config

    def apply_env(self) -> None:
        """Let the environment override connection settings."""
        if url := os.environ.get("SUPABASE_URL"):
            self.backend.url = url
        if key := os.environ.get("SUPABASE_ANON_KEY"):
            self.backend.api_key = key
        if data_dir := os.environ.get("HOPE_ERP_DATA_DIR"):
            self.data_dir = data_dir

    def get_screen_config(self, name: str) -> ScreenConfig:
        """Get config for a specific screen."""
        return self.screens.get(name, ScreenConfig())

    def is_screen_enabled(self, name: str) -> bool:
        return self.get_screen_config(name).enabled

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary. The API key is never included."""
        return {
            "deployment": {
                "name": self.deployment_name,
            },
            "backend": {
                "url": self.backend.url,
                "timeout": self.backend.timeout,
                "retries": self.backend.retries,
                "verify": self.backend.verify,
                "email": self.backend.email,
            },
            "screens": {
                name: {"enabled": screen.enabled, "refresh_interval": screen.refresh_interval}
                for name, screen in self.screens.items()
            },
            "log_level": self.log_level,
            "data_dir": self.data_dir,
        }
