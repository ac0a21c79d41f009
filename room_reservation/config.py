"""Configuration for the reservation application."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from .store_client import DEFAULT_STORE_URL, HttpRecordStore, RecordStore
from .yaml_store import YamlRecordStore

BACKENDS = ("http", "yaml")
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_ENV_KEYS = {
    "store_backend": "ROOM_RESERVATION_BACKEND",
    "store_url": "ROOM_RESERVATION_STORE_URL",
    "data_dir": "ROOM_RESERVATION_DATA_DIR",
    "request_timeout": "ROOM_RESERVATION_TIMEOUT",
    "holiday_country": "ROOM_RESERVATION_HOLIDAYS",
    "log_level": "ROOM_RESERVATION_LOG_LEVEL",
}
CONFIG_PATH_ENV = "ROOM_RESERVATION_CONFIG"


@dataclass(frozen=True)
class Settings:
    """Runtime settings.

    ``store_backend`` selects between the REST records service (``http``)
    and the local YAML files (``yaml``). An empty ``holiday_country``
    disables holiday labels in calendar views.
    """

    store_backend: str = "yaml"
    store_url: str = DEFAULT_STORE_URL
    data_dir: Path = Path("data")
    request_timeout: float = 10.0
    holiday_country: Optional[str] = "JP"
    log_level: str = "INFO"

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "Settings":
        """Create :class:`Settings` from raw mapping data, validating each field."""
        defaults = Settings()

        backend = str(data.get("store_backend", defaults.store_backend)).strip().lower()
        if backend not in BACKENDS:
            raise ValueError(f"Unknown store backend '{backend}'. Expected one of: {', '.join(BACKENDS)}")

        raw_timeout = data.get("request_timeout", defaults.request_timeout)
        try:
            timeout = float(raw_timeout)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"request_timeout must be a number, got {raw_timeout!r}") from exc
        if timeout <= 0:
            raise ValueError("request_timeout must be greater than zero")

        data_dir = Path(str(data.get("data_dir", defaults.data_dir))).expanduser()

        country = data.get("holiday_country", defaults.holiday_country)
        country = str(country).strip().upper() if country else None

        return Settings(
            store_backend=backend,
            store_url=str(data.get("store_url", defaults.store_url)),
            data_dir=data_dir,
            request_timeout=timeout,
            holiday_country=country or None,
            log_level=str(data.get("log_level", defaults.log_level)).upper(),
        )


def load_settings(path: Path | str | None = None, environ: Mapping[str, str] | None = None) -> Settings:
    """Load settings from an optional YAML file, then apply environment overrides."""
    env = os.environ if environ is None else environ
    raw: dict[str, Any] = {}

    config_path = path or env.get(CONFIG_PATH_ENV)
    if config_path:
        resolved = Path(config_path).expanduser().resolve(strict=False)
        with resolved.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Configuration file {resolved} must contain a mapping")
        raw.update(loaded)
        if "data_dir" in loaded:
            file_data_dir = Path(str(loaded["data_dir"])).expanduser()
            if not file_data_dir.is_absolute():
                file_data_dir = resolved.parent / file_data_dir
            raw["data_dir"] = file_data_dir

    for key, env_name in _ENV_KEYS.items():
        if env_name in env:
            raw[key] = env[env_name]

    return Settings.from_dict(raw)


def build_store(settings: Settings) -> RecordStore:
    if settings.store_backend == "http":
        return HttpRecordStore(settings.store_url, timeout=settings.request_timeout)
    return YamlRecordStore(settings.data_dir)


def configure_logging(level: str | int = "INFO") -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)


__all__ = ["Settings", "build_store", "configure_logging", "load_settings"]
