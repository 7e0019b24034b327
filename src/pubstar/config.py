"""Settings loading for pubstar diagnostics."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

try:  # pragma: no cover - exercised on Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for Python 3.9/3.10
    import tomli as tomllib  # type: ignore[no-redef]

from pubstar.debug_log import REDACTION_MODES, DebugLogWriter
from pubstar.errors import SettingsError
from pubstar.pubsub import set_debug_log

SETTINGS_FILE_NAME = "pubstar.toml"

DEFAULT_LOGS_ENABLED = False
DEFAULT_LOGS_DIR = ".pubstar/logs"
DEFAULT_LOGS_MAX_FILE_BYTES = 10 * 1024 * 1024
DEFAULT_LOGS_MAX_FILES = 5
DEFAULT_LOGS_REDACTION = "default"


@dataclass
class Settings:
    """Resolved diagnostics settings."""

    source: Optional[Path] = None
    logs_enabled: bool = DEFAULT_LOGS_ENABLED
    logs_dir: Path = field(default_factory=lambda: Path(DEFAULT_LOGS_DIR))
    logs_max_file_bytes: int = DEFAULT_LOGS_MAX_FILE_BYTES
    logs_max_files: int = DEFAULT_LOGS_MAX_FILES
    logs_redaction: str = DEFAULT_LOGS_REDACTION


def _safe_positive_int_or_default(value: object, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        converted = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    if converted <= 0:
        return default
    return converted


def _safe_bool(value: object, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    return default


def _safe_choice(value: object, allowed: tuple, default: str) -> str:
    normalized = str(value or default).strip().lower()
    if normalized not in allowed:
        return default
    return normalized


def _parse_settings_data(data: Dict[str, object], base_dir: Path) -> Settings:
    section = data.get("pubstar") if isinstance(data.get("pubstar"), dict) else {}
    logs = section.get("logs") if isinstance(section.get("logs"), dict) else {}  # type: ignore[union-attr]

    raw_dir = logs.get("dir")  # type: ignore[union-attr]
    logs_dir = Path(str(raw_dir)).expanduser() if isinstance(raw_dir, str) and raw_dir.strip() else Path(DEFAULT_LOGS_DIR)
    if not logs_dir.is_absolute():
        logs_dir = base_dir / logs_dir

    return Settings(
        logs_enabled=_safe_bool(logs.get("enabled"), DEFAULT_LOGS_ENABLED),  # type: ignore[union-attr]
        logs_dir=logs_dir,
        logs_max_file_bytes=_safe_positive_int_or_default(
            logs.get("max_file_bytes"),  # type: ignore[union-attr]
            DEFAULT_LOGS_MAX_FILE_BYTES,
        ),
        logs_max_files=_safe_positive_int_or_default(
            logs.get("max_files"),  # type: ignore[union-attr]
            DEFAULT_LOGS_MAX_FILES,
        ),
        logs_redaction=_safe_choice(logs.get("redaction"), REDACTION_MODES, DEFAULT_LOGS_REDACTION),  # type: ignore[union-attr]
    )


def load_settings(path: Optional[Path] = None) -> Settings:
    """Read ``[pubstar.logs]`` from ``path`` (default ``./pubstar.toml``).

    A missing file yields defaults; invalid values fall back one by one.
    """
    settings_file = Path(path) if path is not None else Path.cwd() / SETTINGS_FILE_NAME
    base_dir = settings_file.resolve().parent
    if not settings_file.is_file():
        return Settings(logs_dir=base_dir / DEFAULT_LOGS_DIR)

    try:
        data = tomllib.loads(settings_file.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        raise SettingsError(
            "Failed to read settings file: {0}".format(exc),
            path=str(settings_file),
        ) from exc

    settings = _parse_settings_data(data, base_dir)
    settings.source = settings_file
    return settings


def build_debug_log(settings: Settings) -> DebugLogWriter:
    return DebugLogWriter(
        logs_dir=settings.logs_dir,
        enabled=settings.logs_enabled,
        max_file_bytes=settings.logs_max_file_bytes,
        max_files=settings.logs_max_files,
        redaction=settings.logs_redaction,
    )


def configure(settings: Optional[Settings] = None) -> Optional[DebugLogWriter]:
    """Install the debug log described by ``settings`` (loaded if omitted).

    Returns the installed writer, or None when logging is disabled.
    """
    resolved = settings if settings is not None else load_settings()
    if not resolved.logs_enabled:
        set_debug_log(None)
        return None
    writer = build_debug_log(resolved)
    set_debug_log(writer)
    return writer
