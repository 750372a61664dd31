from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Any, Optional

from pydantic import ValidationError

from models.config import DashboardConfig
from settings import get_settings

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when the dashboard configuration cannot be read or validated."""

    def __init__(self, message: str, errors: Optional[list[dict[str, Any]]] = None) -> None:
        super().__init__(message)
        self.errors = errors or []


def parse_dashboard_config(raw: str | bytes) -> DashboardConfig:
    """Validate raw JSON text into an immutable :class:`DashboardConfig`."""
    try:
        return DashboardConfig.model_validate_json(raw)
    except ValidationError as exc:
        raise ConfigError(
            f"Invalid dashboard config: {exc.error_count()} error(s)",
            errors=exc.errors(include_url=False),
        ) from exc


def load_dashboard_config(path: Path) -> DashboardConfig:
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise ConfigError(f"Unable to read dashboard config at {path}: {exc}") from exc
    return parse_dashboard_config(raw)


class ConfigResolver:
    """Lazily loads the dashboard config once and hands out the cached value.

    Failed loads are never cached; callers get an empty config and the next
    call retries. Two threads racing the first load may both parse the file,
    which is harmless since the result is immutable.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._config: Optional[DashboardConfig] = None
        self._lock = Lock()

    def resolve(self) -> DashboardConfig:
        """Return the cached config or load it, raising :class:`ConfigError`."""
        cached = self._config
        if cached is not None:
            return cached

        config = load_dashboard_config(self.path)
        with self._lock:
            if self._config is None:
                self._config = config
            return self._config

    def get(self) -> DashboardConfig:
        try:
            return self.resolve()
        except ConfigError as exc:
            logger.error(
                "Error loading device config, using empty config",
                extra={"config_path": str(self.path), "reason": str(exc)},
            )
            return DashboardConfig.empty()

    def clear(self) -> None:
        with self._lock:
            self._config = None


@lru_cache
def build_default_config_resolver(path: Optional[str] = None) -> ConfigResolver:
    settings = get_settings()
    config_path = settings.config_path if path is None else path
    return ConfigResolver(Path(config_path))
