from __future__ import annotations

import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .paths import config_path

CONFIG_VERSION = 1

DEFAULT_SKIP_SECONDS = 10.0
DEFAULT_LONG_SKIP_SECONDS = 3600.0
DEFAULT_READINESS_THRESHOLD = 2
DEFAULT_CONTROLS_HIDE_DELAY = 3.0
DEFAULT_RESYNC_TOLERANCE = 0.5
DEFAULT_VOLUME = 0.5
DEFAULT_LOG_LEVEL = "INFO"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class AppConfig:
    version: int = CONFIG_VERSION
    skip_seconds: float = DEFAULT_SKIP_SECONDS
    long_skip_seconds: float = DEFAULT_LONG_SKIP_SECONDS
    readiness_threshold: int = DEFAULT_READINESS_THRESHOLD
    controls_hide_delay: float = DEFAULT_CONTROLS_HIDE_DELAY
    resync_tolerance: float = DEFAULT_RESYNC_TOLERANCE
    default_volume: float = DEFAULT_VOLUME
    export_endpoint: str | None = None
    log_level: str = DEFAULT_LOG_LEVEL


def load_config(path: Path | None = None) -> tuple[AppConfig, str | None]:
    path = path or config_path()
    if not path.exists():
        return AppConfig(), None
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        return AppConfig(), f"Failed to read config: {path} ({exc})"
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return AppConfig(), f"Config file is not valid JSON: {path}"
    if not isinstance(data, dict):
        return AppConfig(), f"Config file must be a JSON object: {path}"
    return _parse_config_data(data), None


def save_config(config: AppConfig, path: Path | None = None) -> str | None:
    path = path or config_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        return f"Failed to create config directory: {path.parent} ({exc})"
    payload = _config_to_dict(config)
    try:
        path.write_text(
            json.dumps(payload, ensure_ascii=True, indent=2),
            encoding="utf-8",
        )
    except OSError as exc:
        return f"Failed to write config: {path} ({exc})"
    return None


def _parse_config_data(data: dict[str, Any]) -> AppConfig:
    defaults = AppConfig()
    return AppConfig(
        version=_as_int(data.get("version")) or CONFIG_VERSION,
        skip_seconds=_or(_as_positive_float(data.get("skip_seconds")), defaults.skip_seconds),
        long_skip_seconds=_or(
            _as_positive_float(data.get("long_skip_seconds")), defaults.long_skip_seconds
        ),
        readiness_threshold=_or(
            _as_ready_state(data.get("readiness_threshold")), defaults.readiness_threshold
        ),
        controls_hide_delay=_or(
            _as_positive_float(data.get("controls_hide_delay")), defaults.controls_hide_delay
        ),
        resync_tolerance=_or(
            _as_nonneg_float(data.get("resync_tolerance")), defaults.resync_tolerance
        ),
        default_volume=_or(_as_volume(data.get("default_volume")), defaults.default_volume),
        export_endpoint=_as_str(data.get("export_endpoint")),
        log_level=_or(_as_log_level(data.get("log_level")), defaults.log_level),
    )


def _config_to_dict(config: AppConfig) -> dict[str, Any]:
    data: dict[str, Any] = {
        "version": config.version,
        "skip_seconds": config.skip_seconds,
        "long_skip_seconds": config.long_skip_seconds,
        "readiness_threshold": config.readiness_threshold,
        "controls_hide_delay": config.controls_hide_delay,
        "resync_tolerance": config.resync_tolerance,
        "default_volume": config.default_volume,
        "log_level": config.log_level,
    }
    _set_if(data, "export_endpoint", config.export_endpoint)
    return data


def _set_if(data: dict[str, Any], key: str, value: Any) -> None:
    if value is not None:
        data[key] = value


def _or(value: Any, default: Any) -> Any:
    return default if value is None else value


def _as_str(value: Any) -> str | None:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return None


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)) and math.isfinite(value):
        return float(value)
    return None


def _as_nonneg_float(value: Any) -> float | None:
    number = _as_float(value)
    if number is None or number < 0:
        return None
    return number


def _as_positive_float(value: Any) -> float | None:
    number = _as_float(value)
    if number is None or number <= 0:
        return None
    return number


def _as_volume(value: Any) -> float | None:
    number = _as_nonneg_float(value)
    if number is None or number > 1:
        return None
    return number


def _as_ready_state(value: Any) -> int | None:
    number = _as_int(value)
    if number is None or not 0 <= number <= 4:
        return None
    return number


def _as_log_level(value: Any) -> str | None:
    text = _as_str(value)
    if text is None:
        return None
    text = text.upper()
    return text if text in _LOG_LEVELS else None
