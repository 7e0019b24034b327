"""Best-effort JSONL debug log for subscription and dispatch activity."""

from __future__ import annotations

import json
import re
import threading
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

ACTIVE_LOG_NAME = "debug.log.jsonl"
REDACTION_MODES = ("none", "default", "strict")

_REDACTED = "***REDACTED***"
_SENSITIVE_KEY_RE = re.compile(
    r"(password|secret|token|authorization|cookie|api[_-]?key|access[_-]?key|private[_-]?key)",
    re.IGNORECASE,
)
_BEARER_RE = re.compile(r"(?i)\bbearer\s+([^\s,;]+)")
_KEY_VALUE_RE = re.compile(
    r"(?i)\b(api[_-]?key|access[_-]?key|token|secret|authorization|cookie|private[_-]?key)\b\s*[:=]\s*([^\s,;]+)"
)
_SK_KEY_RE = re.compile(r"\bsk-[A-Za-z0-9]{8,}\b")


def now_ms() -> int:
    return int(time.time() * 1000)


def describe_context(context: object) -> str:
    return "{0}@{1:x}".format(type(context).__name__, id(context))


def describe_callable(func: object) -> str:
    name = getattr(func, "__qualname__", None) or getattr(func, "__name__", None)
    if name:
        return str(name)
    return type(func).__name__


class DebugLogWriter:
    """Appends one JSON record per line and rotates by size.

    Write failures are counted, never raised.
    """

    def __init__(
        self,
        *,
        logs_dir: Path,
        enabled: bool = True,
        max_file_bytes: int = 10 * 1024 * 1024,
        max_files: int = 5,
        redaction: str = "default",
    ) -> None:
        self._logs_dir = Path(logs_dir)
        self._enabled = bool(enabled)
        self._max_file_bytes = max(1, int(max_file_bytes or 0))
        self._max_files = max(1, int(max_files or 0))
        self._redaction = str(redaction or "default").strip().lower()
        if self._redaction not in REDACTION_MODES:
            self._redaction = "default"
        self._write_errors = 0
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def active_log_file(self) -> Path:
        return self._logs_dir / ACTIVE_LOG_NAME

    def write_entry(
        self,
        *,
        component: str,
        kind: str,
        context_id: str,
        message: str,
        level: str = "debug",
        topic: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
        ts_ms: Optional[int] = None,
    ) -> None:
        if not self._enabled:
            return

        record = {
            "ts_ms": int(ts_ms if ts_ms is not None else now_ms()),
            "level": str(level or "debug"),
            "component": str(component or "pubsub"),
            "kind": str(kind or "diagnostic"),
            "context_id": str(context_id or ""),
            "topic": str(topic or ""),
            "message": str(message or ""),
            "data": dict(data or {}),
        }

        if self._redaction == "strict":
            record["message"] = _redact_text(record["message"])
            record["data"] = _strict_redact(record["data"])
        elif self._redaction == "default":
            record["message"] = _redact_text(record["message"])
            record["data"] = _redact_payload(record["data"])

        with self._lock:
            try:
                line = json.dumps(record, ensure_ascii=True, separators=(",", ":"), default=repr)
                payload = (line + "\n").encode("utf-8")
                self._logs_dir.mkdir(parents=True, exist_ok=True)
                self._rotate_if_needed_locked(len(payload))
                with self.active_log_file.open("ab") as fp:
                    fp.write(payload)
            except (OSError, TypeError, ValueError):
                self._write_errors += 1

    def status(self) -> Dict[str, Any]:
        with self._lock:
            active = self.active_log_file
            rotated: List[str] = []
            active_size = 0
            if self._enabled:
                active_size = active.stat().st_size if active.is_file() else 0
                for index in range(1, self._max_files + 1):
                    path = self._rotated_file(index)
                    if path.is_file():
                        rotated.append(str(path))
            return {
                "logs_enabled": self._enabled,
                "logs_dir": str(self._logs_dir),
                "logs_active_file": str(active),
                "logs_active_size_bytes": int(active_size),
                "logs_max_file_bytes": self._max_file_bytes,
                "logs_max_files": self._max_files,
                "logs_redaction": self._redaction,
                "logs_rotated_files": rotated,
                "logs_write_errors": int(self._write_errors),
            }

    def _rotate_if_needed_locked(self, incoming_size: int) -> None:
        current_size = 0
        if self.active_log_file.is_file():
            current_size = int(self.active_log_file.stat().st_size)
        if current_size == 0 or current_size + int(incoming_size) <= self._max_file_bytes:
            return

        self._rotated_file(self._max_files).unlink(missing_ok=True)
        for index in range(self._max_files - 1, 0, -1):
            src = self._rotated_file(index)
            if src.exists():
                src.replace(self._rotated_file(index + 1))
        self.active_log_file.replace(self._rotated_file(1))

    def _rotated_file(self, index: int) -> Path:
        return Path("{0}.{1}".format(self.active_log_file, index))


def _redact_payload(value: Any) -> Any:
    if isinstance(value, dict):
        out: Dict[str, Any] = {}
        for key, item in value.items():
            if _SENSITIVE_KEY_RE.search(str(key)):
                out[key] = _REDACTED
            else:
                out[key] = _redact_payload(item)
        return out
    if isinstance(value, (list, tuple)):
        return [_redact_payload(item) for item in value]
    if isinstance(value, str):
        return _redact_text(value)
    return value


def _strict_redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _strict_redact(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_strict_redact(item) for item in value]
    return _REDACTED


def _redact_text(text: str) -> str:
    if not text:
        return text
    masked = _BEARER_RE.sub("Bearer {0}".format(_REDACTED), text)
    masked = _KEY_VALUE_RE.sub(lambda m: "{0}={1}".format(m.group(1), _REDACTED), masked)
    return _SK_KEY_RE.sub(_REDACTED, masked)
