import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from monitor.observation import FrameObservation
from monitor.stats import Alert

logger = logging.getLogger(__name__)


class SessionRecorder:
    """
    Lightweight recorder for per-tick observations and emitted alerts (JSONL).

    Example:
        rec = SessionRecorder(observation_path="out/s1/observations.jsonl",
                              alert_path="out/s1/alerts.jsonl")
        rec.open()
        loop = FrameSamplingLoop(..., on_observation=rec.on_observation)
        ...
        rec.close()
    """

    def __init__(self, observation_path: Optional[str] = None, alert_path: Optional[str] = None):
        self.observation_path = Path(observation_path) if observation_path else None
        self.alert_path = Path(alert_path) if alert_path else None
        self._obs_fh = None
        self._alert_fh = None

    def open(self) -> None:
        """Open file handles; call once before logging."""
        if self.observation_path:
            self._ensure_parent(self.observation_path)
            self._obs_fh = self.observation_path.open("a", encoding="utf-8")
        if self.alert_path:
            self._ensure_parent(self.alert_path)
            self._alert_fh = self.alert_path.open("a", encoding="utf-8")

    def log_observation(self, obs: FrameObservation) -> None:
        if self._obs_fh is not None:
            self._write_json_line(self._obs_fh, obs.to_dict())

    def log_alert(self, alert: Alert) -> None:
        if self._alert_fh is not None:
            ev = alert.to_dict()
            ev["ts"] = alert.emitted_at
            self._write_json_line(self._alert_fh, ev)

    def on_observation(self, obs: FrameObservation, alerts: Iterable[Alert]) -> None:
        self.log_observation(obs)
        for a in alerts:
            self.log_alert(a)

    def close(self) -> None:
        """Release all resources."""
        for fh in (self._obs_fh, self._alert_fh):
            if fh is not None:
                fh.flush()
                fh.close()
        self._obs_fh = None
        self._alert_fh = None

    # ---- helpers ----
    @staticmethod
    def _write_json_line(fh, obj: Dict) -> None:
        fh.write(json.dumps(obj, ensure_ascii=False) + "\n")

    @staticmethod
    def _ensure_parent(path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)


def load_observations_jsonl(path: str) -> List[FrameObservation]:
    """Read observations back in file order; malformed lines are skipped."""
    out: List[FrameObservation] = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                obj = json.loads(line)
                out.append(FrameObservation.from_dict(obj))
            except (json.JSONDecodeError, ValueError, AttributeError) as e:
                logger.warning("Skipping invalid observation line: %s", e)
    return out
