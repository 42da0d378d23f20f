"""Alert log and per-session counters fed by the trackers."""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Set

# Tags collected in `SessionStats.object_alert_types`.
ABSENCE = "absence"
MULTIPLE_FACES = "multiple faces"
NOTES = "notes"
# Reserved for an audio-anomaly producer; only the scorer and report read it.
EXTRA_VOICE = "extra voice"


def format_display_time(ts_ms: float) -> str:
    """Local wall-clock time of an epoch-millisecond instant, HH:MM:SS."""
    return time.strftime("%H:%M:%S", time.localtime(float(ts_ms) / 1000.0))


@dataclass(frozen=True)
class Alert:
    message: str
    timestamp: str
    emitted_at: float = 0.0

    def to_dict(self) -> Dict[str, str]:
        return {"message": self.message, "timestamp": self.timestamp}


@dataclass
class SessionStats:
    focus_lost_count: int = 0
    multiple_faces_count: int = 0
    object_alert_types: Set[str] = field(default_factory=set)
    alerts: List[Alert] = field(default_factory=list)

    def add_alert(self, message: str, now_ms: float) -> Alert:
        alert = Alert(message=message, timestamp=format_display_time(now_ms), emitted_at=float(now_ms))
        self.alerts.append(alert)
        return alert

    def recent_alerts(self) -> List[Alert]:
        """Alerts newest-first, the order they are shown and persisted in."""
        return list(reversed(self.alerts))

    def copy(self) -> "SessionStats":
        return SessionStats(
            focus_lost_count=self.focus_lost_count,
            multiple_faces_count=self.multiple_faces_count,
            object_alert_types=set(self.object_alert_types),
            alerts=list(self.alerts),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "focusLostCount": int(self.focus_lost_count),
            "multipleFacesCount": int(self.multiple_faces_count),
            "objectAlertTypes": sorted(self.object_alert_types),
            "alerts": [a.to_dict() for a in self.recent_alerts()],
        }
