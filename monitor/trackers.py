"""Face presence and object-class alerting on top of raw detector output.

Both trackers trust detections at face value and only apply the temporal
rules: an edge-triggered absence timer, and per-key cooldowns through the
session's `AlertThrottle`.
"""
from __future__ import annotations

from typing import Iterable, List, Sequence

from monitor.observation import ObjectDetection
from monitor.stats import ABSENCE, MULTIPLE_FACES, NOTES, Alert, SessionStats
from monitor.throttle import AlertKey, AlertThrottle

ABSENCE_MESSAGE = "No face detected for >10 seconds"
ELECTRONIC_CLASSES = frozenset({"cell phone", "laptop", "computer"})
READING_CLASSES = frozenset({"book", "paper"})


class FacePresenceTracker:
    def __init__(
        self,
        stats: SessionStats,
        throttle: AlertThrottle,
        started_at: float,
        absence_ms: float = 10_000,
        cooldown_ms: float = 500,
    ):
        self.stats = stats
        self.throttle = throttle
        self.absence_ms = float(absence_ms)
        self.cooldown_ms = float(cooldown_ms)
        self.last_face_seen_at = float(started_at)

    def update(self, faces: Sequence, now: float) -> List[Alert]:
        emitted: List[Alert] = []
        n = len(faces)
        if n == 0:
            # Fires once per qualifying silence, then the timer restarts.
            if (now - self.last_face_seen_at) >= self.absence_ms:
                emitted.append(self.stats.add_alert(ABSENCE_MESSAGE, now))
                self.last_face_seen_at = now
                self.stats.focus_lost_count += 1
                self.stats.object_alert_types.add(ABSENCE)
            return emitted

        self.last_face_seen_at = now
        if n > 1 and self.throttle.try_fire(AlertKey.MULTIPLE_FACES, now, self.cooldown_ms):
            emitted.append(self.stats.add_alert(f"Multiple faces ({n}) detected", now))
            self.stats.multiple_faces_count += 1
            self.stats.object_alert_types.add(MULTIPLE_FACES)
        return emitted


class ObjectAlertClassifier:
    def __init__(
        self,
        stats: SessionStats,
        throttle: AlertThrottle,
        min_score: float = 0.5,
        cooldown_ms: float = 500,
    ):
        self.stats = stats
        self.throttle = throttle
        self.min_score = float(min_score)
        self.cooldown_ms = float(cooldown_ms)

    def update(self, objects: Iterable[ObjectDetection], now: float) -> List[Alert]:
        emitted: List[Alert] = []
        for obj in objects:
            if obj.score < self.min_score:
                continue
            cls = obj.label.strip().lower()
            if cls in ELECTRONIC_CLASSES:
                if self.throttle.try_fire(cls, now, self.cooldown_ms):
                    emitted.append(self.stats.add_alert(f"Electronic device ({cls}) detected", now))
                    self.stats.object_alert_types.add(cls)
            elif cls in READING_CLASSES:
                if self.throttle.try_fire(cls, now, self.cooldown_ms):
                    emitted.append(self.stats.add_alert("Book/paper detected", now))
                    self.stats.object_alert_types.add(NOTES)
        return emitted
