from __future__ import annotations

import math
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple


_CONFIG_PATH_ENV = "DASHBOARD_CONFIG_PATH"
_READINGS_PATH_ENV = "READINGS_PATH"
_WASTE_DETAIL_PATH_ENV = "WASTE_DETAIL_PATH"
_PRODUCT_DETAIL_PATH_ENV = "PRODUCT_DETAIL_PATH"
_ACTIVE_THRESHOLD_ENV = "ACTIVE_THRESHOLD_HOURS"
_DISTANCE_FULL_ENV = "DISTANCE_FULL_MM"
_CORS_ORIGINS_ENV = "CORS_ORIGINS"
_APP_ENV = "APP_ENV"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    config_path: str
    readings_path: Optional[str]
    waste_detail_path: str
    product_detail_path: str
    active_threshold_hours: float
    distance_full_mm: float
    cors_origins: Tuple[str, ...]
    environment: str
    log_level: str

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    if not math.isfinite(parsed):
        return default
    return parsed if parsed > 0 else default


def _read_list_env(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    value = os.getenv(name)
    if value is None:
        return default
    items = tuple(item.strip() for item in value.split(",") if item.strip())
    return items or default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        config_path=_read_str_env(_CONFIG_PATH_ENV, "./data/dashboard_config.json"),
        readings_path=_read_optional_env(_READINGS_PATH_ENV, "./data/readings.json"),
        waste_detail_path=_read_str_env(_WASTE_DETAIL_PATH_ENV, "./data/waste_detail.json"),
        product_detail_path=_read_str_env(
            _PRODUCT_DETAIL_PATH_ENV, "./data/product_detail.json"
        ),
        active_threshold_hours=_read_positive_float(_ACTIVE_THRESHOLD_ENV, 24.0),
        distance_full_mm=_read_positive_float(_DISTANCE_FULL_ENV, 36.5),
        cors_origins=_read_list_env(_CORS_ORIGINS_ENV, ("http://localhost:5173",)),
        environment=_read_str_env(_APP_ENV, "development").lower(),
        log_level=_read_log_level("INFO"),
    )
