"""
File-backed store for finished session records (one JSON object per line).
"""
import json
import logging
import threading
import uuid
from pathlib import Path
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "candidateName",
    "startTime",
    "endTime",
    "focusLostCount",
    "multipleFacesCount",
    "objectAlertTypes",
    "alerts",
    "integrityScore",
)


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool) and v == v


def validate_log_record(data: Any) -> Dict[str, Any]:
    """Check a session record and return a clean copy; raises ValueError."""
    if not isinstance(data, dict):
        raise ValueError("record must be a JSON object")
    missing = [k for k in REQUIRED_FIELDS if data.get(k) is None]
    if missing:
        raise ValueError(f"missing required fields: {', '.join(missing)}")

    name = data["candidateName"]
    if not isinstance(name, str) or not name.strip():
        raise ValueError("candidateName must be a non-empty string")
    for key in ("startTime", "endTime"):
        if not isinstance(data[key], str) and not _is_number(data[key]):
            raise ValueError(f"{key} must be a timestamp")
    for key in ("focusLostCount", "multipleFacesCount"):
        v = data[key]
        if not _is_number(v) or v < 0 or int(v) != v:
            raise ValueError(f"{key} must be a non-negative integer")
    types = data["objectAlertTypes"]
    if not isinstance(types, list) or not all(isinstance(t, str) for t in types):
        raise ValueError("objectAlertTypes must be a list of strings")
    alerts = data["alerts"]
    if not isinstance(alerts, list):
        raise ValueError("alerts must be a list")
    clean_alerts = []
    for a in alerts:
        if not isinstance(a, dict) or not isinstance(a.get("message"), str) or not isinstance(a.get("timestamp"), str):
            raise ValueError("each alert needs string message and timestamp")
        clean_alerts.append({"message": a["message"], "timestamp": a["timestamp"]})
    score = data["integrityScore"]
    if not _is_number(score) or not (0 <= score <= 100):
        raise ValueError("integrityScore must be a number in [0, 100]")

    return {
        "candidateName": name.strip(),
        "startTime": data["startTime"],
        "endTime": data["endTime"],
        "focusLostCount": int(data["focusLostCount"]),
        "multipleFacesCount": int(data["multipleFacesCount"]),
        "objectAlertTypes": list(types),
        "alerts": clean_alerts,
        "integrityScore": score,
    }


class LogStore:
    def __init__(self, path: str):
        self.path = Path(path)
        self._lock = threading.Lock()

    def save(self, record: Dict[str, Any]) -> Dict[str, Any]:
        doc = validate_log_record(record)
        doc = {"_id": uuid.uuid4().hex, **doc}
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as fh:
                fh.write(json.dumps(doc, ensure_ascii=False) + "\n")
        logger.info("Stored log %s for %s (score=%s)", doc["_id"], doc["candidateName"], doc["integrityScore"])
        return doc

    def list_logs(self) -> List[Dict[str, Any]]:
        """All stored records, highest integrity score first."""
        with self._lock:
            if not self.path.exists():
                return []
            with open(self.path, "r", encoding="utf-8") as fh:
                lines = fh.readlines()
        out: List[Dict[str, Any]] = []
        for line in lines:
            line = line.strip()
            if not line:
                continue
            try:
                obj = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning("Skipping invalid log line: %s", e)
                continue
            if isinstance(obj, dict):
                out.append(obj)
        out.sort(key=lambda r: float(r.get("integrityScore") or 0), reverse=True)
        return out
