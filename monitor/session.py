"""Session lifecycle: IDLE -> RUNNING -> STOPPED, owning the stats and trackers."""
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from analysis.integrity import compute_integrity_score
from config import EngineConfig
from monitor.observation import FrameObservation
from monitor.stats import Alert, SessionStats
from monitor.throttle import AlertThrottle
from monitor.trackers import FacePresenceTracker, ObjectAlertClassifier

logger = logging.getLogger(__name__)

MEDIA_FAILURE_MESSAGE = "Webcam or microphone access denied or error."


class ValidationError(ValueError):
    pass


class SessionStateError(RuntimeError):
    pass


class SessionState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


def now_ms() -> float:
    return time.time() * 1000.0


def to_iso(ts_ms: Optional[float]) -> Optional[str]:
    if ts_ms is None:
        return None
    return datetime.fromtimestamp(float(ts_ms) / 1000.0, tz=timezone.utc).isoformat()


class ProctoringSession:
    """One candidate session.

    A STOPPED session is never restarted; create a new instance instead.
    Stats are only mutated through `process_observation` (and `fail`) while
    RUNNING.
    """

    def __init__(self, cfg: Optional[EngineConfig] = None, clock: Callable[[], float] = now_ms):
        self.cfg = cfg or EngineConfig()
        self.clock = clock
        self.candidate_name = ""
        self.state = SessionState.IDLE
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None
        self.throttle = AlertThrottle()
        self._stats = SessionStats()
        self.face_tracker: Optional[FacePresenceTracker] = None
        self.object_classifier: Optional[ObjectAlertClassifier] = None
        self._sampler = None

    @property
    def running(self) -> bool:
        return self.state == SessionState.RUNNING

    @property
    def stats(self) -> SessionStats:
        return self._stats

    def snapshot(self) -> SessionStats:
        return self._stats.copy()

    def bind_sampler(self, sampler) -> None:
        """Attach the sampling loop that `stop()` must cancel."""
        self._sampler = sampler

    def start(self, candidate_name: str, acquire: Optional[Callable[[], Any]] = None) -> bool:
        name = str(candidate_name or "").strip()
        if not name:
            raise ValidationError("candidate name is required")
        if self.state != SessionState.IDLE:
            raise SessionStateError(f"cannot start a session in state {self.state.value}")

        t0 = self.clock()
        self.candidate_name = name
        self.throttle.reset()
        self._stats = SessionStats()
        self.face_tracker = FacePresenceTracker(
            self._stats,
            self.throttle,
            started_at=t0,
            absence_ms=self.cfg.absence_ms,
            cooldown_ms=self.cfg.alert_cooldown_ms,
        )
        self.object_classifier = ObjectAlertClassifier(
            self._stats,
            self.throttle,
            min_score=self.cfg.min_object_score,
            cooldown_ms=self.cfg.alert_cooldown_ms,
        )

        if acquire is not None:
            try:
                acquire()
            except Exception as exc:
                logger.error("Media/detector acquisition failed: %s", exc)
                self._stats.add_alert(MEDIA_FAILURE_MESSAGE, self.clock())
                return False

        # Absence timer counts from the moment capture is live.
        self.start_time = self.clock()
        self.face_tracker.last_face_seen_at = self.start_time
        self.state = SessionState.RUNNING
        logger.info("Session started for %s", self.candidate_name)
        return True

    def stop(self) -> bool:
        if self.state != SessionState.RUNNING:
            return False
        self.end_time = max(self.clock(), self.start_time or 0.0)
        self.state = SessionState.STOPPED
        if self._sampler is not None:
            self._sampler.cancel()
        logger.info(
            "Session stopped for %s after %ds with %d alerts",
            self.candidate_name,
            self.elapsed_seconds(),
            len(self._stats.alerts),
        )
        return True

    def fail(self, message: str) -> bool:
        """Record a fatal loop fault as an alert and stop the session."""
        if self.state != SessionState.RUNNING:
            return False
        self._stats.add_alert(message, self.clock())
        logger.error("Session aborted: %s", message)
        return self.stop()

    def process_observation(self, obs: FrameObservation) -> List[Alert]:
        if self.state != SessionState.RUNNING:
            return []
        now = float(obs.timestamp)
        emitted = self.face_tracker.update(obs.faces, now)
        emitted += self.object_classifier.update(obs.objects, now)
        for alert in emitted:
            logger.info("[%s] %s", alert.timestamp, alert.message)
        return emitted

    def elapsed_seconds(self, now: Optional[float] = None) -> int:
        if self.start_time is None:
            return 0
        if self.end_time is not None:
            end = self.end_time
        else:
            end = self.clock() if now is None else float(now)
        return max(0, int((end - self.start_time) // 1000))

    def integrity_score(self) -> int:
        return compute_integrity_score(self._stats)

    def to_log_record(self) -> Dict[str, Any]:
        """Persisted shape: stats plus candidate, start/end and score."""
        if self.state != SessionState.STOPPED:
            raise SessionStateError("session must be stopped before it can be persisted")
        record: Dict[str, Any] = {
            "candidateName": self.candidate_name,
            "startTime": to_iso(self.start_time),
            "endTime": to_iso(self.end_time),
        }
        record.update(self._stats.to_dict())
        record["integrityScore"] = self.integrity_score()
        return record
