from __future__ import annotations

from typing import Iterable, Tuple

from monitor.stats import ABSENCE, EXTRA_VOICE, SessionStats

# (keywords, penalty): one penalty per alert if any keyword appears in it.
KEYWORD_PENALTIES: Tuple[Tuple[Tuple[str, ...], int], ...] = (
    (("cell phone",), 10),
    (("laptop",), 10),
    (("monitor",), 10),
    (("book", "notes"), 10),
)

SCORE_BANDS: Tuple[Tuple[int, str], ...] = (
    (90, "Excellent integrity maintained."),
    (70, "Good, minor issues noticed."),
    (50, "Fair, several concerns present."),
)
POOR_FEEDBACK = "Poor, high risk detected."


def _keyword_penalty(messages: Iterable[str]) -> int:
    total = 0
    for msg in messages:
        text = str(msg or "").lower()
        for keywords, penalty in KEYWORD_PENALTIES:
            if any(k in text for k in keywords):
                total += penalty
    return total


def compute_integrity_score(stats: SessionStats) -> int:
    """Score a finished session in [0, 100].

    Counter-based penalties are applied first, then every alert message is
    scanned for device/book keywords. The two passes are independent; an
    alert can be penalised by both.
    """
    score = 100
    if ABSENCE in stats.object_alert_types:
        score -= 15
    score -= 20 * max(0, int(stats.multiple_faces_count))
    if EXTRA_VOICE in stats.object_alert_types:
        score -= 15
    score -= 5 * max(0, int(stats.focus_lost_count))
    score -= _keyword_penalty(a.message for a in stats.alerts)
    return max(0, min(100, score))


def score_feedback(score: int) -> str:
    for threshold, text in SCORE_BANDS:
        if score > threshold:
            return text
    return POOR_FEEDBACK
