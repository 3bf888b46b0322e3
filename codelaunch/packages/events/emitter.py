"""Event emitter — appends structured events to a JSONL log."""
from __future__ import annotations
import json
import os
import sys
from pathlib import Path
from typing import Any, Callable, Optional

from .models import Event, new_run_id

DEFAULT_LOG_PATH = Path.home() / ".local" / "share" / "codelaunch" / "events.jsonl"


def _truthy(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


class EventEmitter:
    """Writes events to a JSONL file and notifies listeners."""

    def __init__(self, log_path: Optional[str | Path] = None, echo_debug: bool = False):
        self.log_path = Path(log_path or os.environ.get("CODELAUNCH_EVENT_LOG") or DEFAULT_LOG_PATH)
        self.echo_debug = echo_debug
        self.run_id = new_run_id()
        self._listeners: list[Callable[[Event], None]] = []

    def add_listener(self, fn: Callable[[Event], None]) -> None:
        self._listeners.append(fn)

    def emit(
        self,
        event_type: str,
        component: str,
        payload: Optional[dict[str, Any]] = None,
        severity: str = "info",
        duration_ms: Optional[int] = None,
        error: Optional[str] = None,
    ) -> Event:
        event = Event(
            event_type=event_type,
            component=component,
            run_id=self.run_id,
            payload=payload or {},
            severity=severity,
            duration_ms=duration_ms,
            error=error,
        )
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(event.to_dict(), ensure_ascii=False, default=str) + "\n")
        except OSError as e:
            # log failures are reported, never raised
            print(f"[Events] could not write {self.log_path}: {e}", file=sys.stderr)

        if severity == "debug" and self.echo_debug:
            detail = f" ({error})" if error else ""
            print(f"[{component}] {event_type}{detail}", file=sys.stderr)

        for fn in self._listeners:
            try:
                fn(event)
            except Exception:
                pass  # listeners must not break the emitter

        return event


_default_emitter: Optional[EventEmitter] = None


def get_emitter() -> EventEmitter:
    global _default_emitter
    if _default_emitter is None:
        _default_emitter = EventEmitter(echo_debug=_truthy(os.environ.get("CODELAUNCH_DEBUG")))
    return _default_emitter


def set_emitter(emitter: Optional[EventEmitter]) -> None:
    """Replace the module-level emitter (``None`` resets to lazy default)."""
    global _default_emitter
    _default_emitter = emitter


def emit_event(event_type: str, component: str, **kwargs) -> Event:
    """Convenience function using the default emitter."""
    return get_emitter().emit(event_type, component, **kwargs)
