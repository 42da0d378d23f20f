"""Per-key cooldown table used to de-duplicate repeated alerts within a session."""
from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Union


class AlertKey(str, Enum):
    MULTIPLE_FACES = "multiple_faces"
    CELL_PHONE = "cell phone"
    LAPTOP = "laptop"
    COMPUTER = "computer"
    BOOK = "book"
    PAPER = "paper"


def to_alert_key(key: Union[AlertKey, str]) -> AlertKey:
    """Map a raw key onto the known key set; unknown keys raise ValueError."""
    if isinstance(key, AlertKey):
        return key
    try:
        return AlertKey(str(key).strip().lower())
    except ValueError:
        raise ValueError(f"unknown alert key: {key!r}") from None


class AlertThrottle:
    """Remembers when each alert key last fired.

    Lives for one session; the key universe is bounded by `AlertKey`, so no
    eviction is needed.
    """

    def __init__(self):
        self._last: Dict[AlertKey, float] = {}

    def try_fire(self, key: Union[AlertKey, str], now: float, cooldown_ms: float) -> bool:
        k = to_alert_key(key)
        last = self._last.get(k)
        if last is not None and (now - last) < cooldown_ms:
            return False
        self._last[k] = now
        return True

    def last_fired(self, key: Union[AlertKey, str]) -> Optional[float]:
        return self._last.get(to_alert_key(key))

    def reset(self) -> None:
        self._last = {}

    def __len__(self) -> int:
        return len(self._last)
