"""Event data models."""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
import uuid

SEVERITIES = ("debug", "info", "warning", "error")


def new_run_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass
class Event:
    """One line of the event log."""
    event_type: str
    component: str
    run_id: str
    payload: dict[str, Any] = field(default_factory=dict)
    severity: str = "info"
    duration_ms: Optional[int] = None
    error: Optional[str] = None
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    def __post_init__(self):
        if self.severity not in SEVERITIES:
            raise ValueError(f"unknown severity: {self.severity}")

    def to_dict(self) -> dict:
        d = {
            "event_type": self.event_type,
            "timestamp": self.timestamp,
            "run_id": self.run_id,
            "component": self.component,
            "severity": self.severity,
            "payload": self.payload,
        }
        if self.duration_ms is not None:
            d["duration_ms"] = self.duration_ms
        if self.error:
            d["error"] = self.error
        return d
