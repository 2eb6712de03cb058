"""Settings, persistent config store and the composition root.

Settings are a read-only snapshot taken at startup: changing a value on disk
requires rebuilding the manager.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .core.codec import KeyRing
from .core.manager import DEFAULT_CACHE_SIZE, LogManager
from .core.models import Frequency, LogLevel, RotationConfig
from .core.rotator import LogRotator

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "CLARITY_CONFIG_DIR"
LOG_DIR_ENV = "CLARITY_LOG_DIR"
LOG_LEVEL_ENV = "CLARITY_LOG_LEVEL"
KEYS_ENV = "CLARITY_ENCRYPTION_KEYS"


def default_home() -> Path:
    return Path.home() / ".clarity"


class Settings(BaseModel):
    """User-facing configuration (stored as JSON)."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    level: LogLevel = LogLevel.INFO
    default_name: str = "app"
    format: Literal["text", "json"] = "text"
    log_directory: str = Field(default_factory=lambda: str(default_home() / "logs"))
    base_name: str = "clarity"
    max_log_size: int = Field(default=10 * 1024 * 1024, ge=1)
    max_log_files: int = Field(default=5, ge=1)
    compress_logs: bool = True
    encrypt_logs: bool = False
    rotation_frequency: Frequency = Frequency.NONE
    rotate_hour: int = Field(default=0, ge=0, le=23)
    rotate_minute: int = Field(default=0, ge=0, le=59)
    rotate_day_of_week: int = Field(default=6, ge=0, le=6)
    rotate_day_of_month: int = Field(default=1, ge=1, le=31)
    cache_size: int = Field(default=DEFAULT_CACHE_SIZE, ge=1)

    def rotation_config(self) -> RotationConfig:
        return RotationConfig(
            max_size=self.max_log_size,
            max_files=self.max_log_files,
            compress=self.compress_logs,
            frequency=self.rotation_frequency,
            rotate_hour=self.rotate_hour,
            rotate_minute=self.rotate_minute,
            rotate_day_of_week=self.rotate_day_of_week,
            rotate_day_of_month=self.rotate_day_of_month,
            encrypt=self.encrypt_logs,
        )


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


class ConfigStore:
    """JSON-file backed key/value view over ``Settings``."""

    def __init__(self, path: str | Path | None = None) -> None:
        if path is None:
            base = os.getenv(CONFIG_DIR_ENV)
            path = (Path(base) if base else default_home()) / "config.json"
        self.path = Path(path)

    def load(self) -> Settings:
        """Read settings from disk; defaults when missing or unreadable."""
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return Settings()
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable config %s: %s", self.path, exc)
            return Settings()

        if not isinstance(raw, dict):
            logger.warning("Ignoring config %s: expected a JSON object", self.path)
            return Settings()
        try:
            return Settings.model_validate(raw)
        except ValidationError as exc:
            logger.warning(
                "Ignoring invalid config %s: %s", self.path, _format_validation_error(exc)
            )
            return Settings()

    def save(self, settings: Settings) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(settings.model_dump_json(indent=2) + "\n", encoding="utf-8")
        os.replace(tmp, self.path)

    def list(self) -> dict[str, Any]:
        return self.load().model_dump(mode="json")

    def get(self, key: str) -> Any:
        values = self.list()
        if key not in values:
            raise ValueError(f"Unknown config key '{key}'. Valid keys: {', '.join(values)}")
        return values[key]

    def set(self, key: str, value: Any) -> Settings:
        """Validate and persist one value (strings are coerced, e.g. "10" -> 10)."""
        settings = self.load()
        if key not in Settings.model_fields:
            valid = ", ".join(Settings.model_fields)
            raise ValueError(f"Unknown config key '{key}'. Valid keys: {valid}")
        try:
            setattr(settings, key, value)
        except ValidationError as exc:
            raise ValueError(_format_validation_error(exc)) from exc
        self.save(settings)
        return settings

    def reset(self) -> Settings:
        settings = Settings()
        self.save(settings)
        return settings


def load_settings(store: ConfigStore | None = None) -> Settings:
    """Load stored settings and apply environment overrides."""
    settings = (store or ConfigStore()).load()
    log_dir = os.getenv(LOG_DIR_ENV)
    if log_dir:
        settings = settings.model_copy(update={"log_directory": log_dir})
    return settings


def load_key_ring(env: str = KEYS_ENV) -> KeyRing | None:
    """Build a key ring from comma-separated hex keys (first is current)."""
    raw = os.getenv(env)
    if not raw:
        return None
    try:
        keys = [bytes.fromhex(part.strip()) for part in raw.split(",") if part.strip()]
    except ValueError as exc:
        raise ValueError(f"{env} must contain hex-encoded keys") from exc
    return KeyRing.from_keys(keys)


def build_manager(settings: Settings, *, key_ring: KeyRing | None = None) -> LogManager:
    """Construct the rotator/manager pair for the configured stream."""
    if key_ring is None:
        key_ring = load_key_ring()
    if settings.encrypt_logs and key_ring is None:
        raise ValueError(f"encrypt_logs is enabled but {KEYS_ENV} is not set")

    rotator = LogRotator(
        settings.log_directory,
        settings.base_name,
        settings.rotation_config(),
        key_ring=key_ring,
    )
    return LogManager(rotator, cache_size=settings.cache_size)


def configure_logging() -> None:
    """Configure library diagnostics on stderr (level from CLARITY_LOG_LEVEL)."""
    level_name = os.getenv(LOG_LEVEL_ENV, "WARNING").upper()
    level = getattr(logging, level_name, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
