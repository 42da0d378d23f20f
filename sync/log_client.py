"""
HTTP client for the `/logs` endpoints plus a fire-and-forget uploader.
"""
import logging
import queue
import threading
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)


class LogClientError(RuntimeError):
    pass


def _error_message(resp) -> str:
    try:
        data = resp.json()
    except Exception:
        return (getattr(resp, "text", "") or "")[:200] or f"HTTP {resp.status_code}"
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return f"HTTP {resp.status_code}"


class LogClient:
    def __init__(self, base_url: str, timeout_sec: float = 5.0):
        self.base_url = (base_url or "").strip().rstrip("/")
        self.timeout_sec = float(timeout_sec)

    @property
    def logs_url(self) -> str:
        return f"{self.base_url}/logs"

    def save_log(self, record: Dict[str, Any]) -> Dict[str, Any]:
        try:
            resp = requests.post(self.logs_url, json=record, timeout=self.timeout_sec)
        except requests.RequestException as e:
            raise LogClientError(f"could not reach {self.logs_url}: {e}") from e
        if resp.status_code >= 400:
            raise LogClientError(_error_message(resp))
        data = resp.json()
        if not isinstance(data, dict) or not data.get("success"):
            raise LogClientError(_error_message(resp))
        return data.get("log") or {}

    def list_logs(self) -> List[Dict[str, Any]]:
        try:
            resp = requests.get(self.logs_url, timeout=self.timeout_sec)
        except requests.RequestException as e:
            raise LogClientError(f"could not reach {self.logs_url}: {e}") from e
        if resp.status_code >= 400:
            raise LogClientError(_error_message(resp))
        data = resp.json()
        if not isinstance(data, dict) or not data.get("success"):
            raise LogClientError(_error_message(resp))
        return list(data.get("logs") or [])


class LogUploader:
    """Background poster: `submit()` never blocks and failures are only logged."""

    def __init__(self, client: LogClient):
        self.client = client
        self._q: "queue.Queue[Optional[Dict[str, Any]]]" = queue.Queue()
        self._thr: Optional[threading.Thread] = None
        self.sent = 0
        self.failed = 0

    def start(self) -> None:
        if self._thr and self._thr.is_alive():
            return
        self._thr = threading.Thread(target=self._run, daemon=True)
        self._thr.start()

    def submit(self, record: Dict[str, Any]) -> None:
        self.start()
        self._q.put_nowait(record)

    def _run(self) -> None:
        while True:
            record = self._q.get()
            if record is None:
                break
            try:
                saved = self.client.save_log(record)
                self.sent += 1
                logger.info("Report stored successfully (id=%s)", saved.get("_id"))
            except Exception as e:
                self.failed += 1
                logger.warning("Failed to store report: %s", e)

    def close(self, timeout: float = 5.0) -> None:
        """Flush pending uploads, waiting at most `timeout` seconds."""
        if self._thr is None:
            return
        self._q.put_nowait(None)
        self._thr.join(timeout=timeout)
        if self._thr.is_alive():
            logger.warning("Log upload still pending after %.1fs", timeout)
        self._thr = None
