"""Structured end-of-session report data.

Layout/pagination is left to whatever renders the report; this module only
assembles the fields (duration, suspicious events, alert log, score band)
and a plain-text summary for terminals.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from analysis.integrity import compute_integrity_score, score_feedback
from monitor.stats import ABSENCE, EXTRA_VOICE, MULTIPLE_FACES, NOTES, Alert, SessionStats

# Ordered: the report lists events in this order, each at most once.
SUSPICIOUS_EVENT_LABELS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    ((MULTIPLE_FACES,), "Multiple faces detected"),
    ((ABSENCE,), "Candidate absent"),
    (("cell phone",), "Mobile phone detected"),
    (("laptop",), "Laptop detected"),
    (("computer",), "Extra computer detected"),
    (("monitor",), "Extra monitor detected"),
    (("book", NOTES), "Notes/book detected"),
    ((EXTRA_VOICE,), "Extra voice detected"),
)


@dataclass
class SessionReport:
    candidate_name: str
    start_time: Optional[float]
    end_time: Optional[float]
    duration: str
    focus_lost_count: int
    multiple_faces_count: int
    suspicious_events: List[str] = field(default_factory=list)
    # newest first
    alerts: List[Alert] = field(default_factory=list)
    integrity_score: int = 100
    feedback: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "candidate_name": self.candidate_name,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration": self.duration,
            "focus_lost_count": self.focus_lost_count,
            "multiple_faces_count": self.multiple_faces_count,
            "suspicious_events": list(self.suspicious_events),
            "alerts": [a.to_dict() for a in self.alerts],
            "integrity_score": self.integrity_score,
            "feedback": self.feedback,
        }


def format_duration(start_ms: Optional[float], end_ms: Optional[float]) -> str:
    if start_ms is None or end_ms is None:
        return "0s"
    diff = max(0, int(end_ms - start_ms))
    seconds = (diff // 1000) % 60
    minutes = (diff // 60_000) % 60
    hours = diff // 3_600_000
    return f"{hours}h {minutes}m {seconds}s"


def format_elapsed(seconds: int) -> str:
    """Live timer text, HH:MM:SS."""
    s = max(0, int(seconds))
    return f"{s // 3600:02d}:{(s % 3600) // 60:02d}:{s % 60:02d}"


def suspicious_events(alert_types) -> List[str]:
    types = set(alert_types or ())
    return [label for tags, label in SUSPICIOUS_EVENT_LABELS if any(t in types for t in tags)]


def compile_report(
    stats: SessionStats,
    candidate_name: str,
    start_time: Optional[float],
    end_time: Optional[float],
    score: Optional[int] = None,
) -> SessionReport:
    if score is None:
        score = compute_integrity_score(stats)
    return SessionReport(
        candidate_name=candidate_name,
        start_time=start_time,
        end_time=end_time,
        duration=format_duration(start_time, end_time),
        focus_lost_count=int(stats.focus_lost_count),
        multiple_faces_count=int(stats.multiple_faces_count),
        suspicious_events=suspicious_events(stats.object_alert_types),
        alerts=stats.recent_alerts(),
        integrity_score=int(score),
        feedback=score_feedback(int(score)),
    )


def report_for_session(session) -> SessionReport:
    """Report from a stopped `ProctoringSession`."""
    stats = session.snapshot()
    return compile_report(
        stats,
        candidate_name=session.candidate_name,
        start_time=session.start_time,
        end_time=session.end_time,
        score=compute_integrity_score(stats),
    )


def format_report_text(report: SessionReport) -> str:
    lines = [
        "Proctoring Report",
        "",
        f"Candidate Name:     {report.candidate_name or 'N/A'}",
        f"Interview Duration: {report.duration}",
        f"Focus Lost:         {report.focus_lost_count} times",
        "",
        "Suspicious Events:",
    ]
    if report.suspicious_events:
        lines.extend(f"  - {ev}" for ev in report.suspicious_events)
    else:
        lines.append("  None detected")
    lines.append("")
    lines.append("Suspicious Activities Log:")
    if report.alerts:
        lines.extend(f"  {a.timestamp}  {a.message}" for a in report.alerts)
    else:
        lines.append("  No suspicious activities detected.")
    lines.append("")
    lines.append(f"Final Integrity Score: {report.integrity_score} / 100 - {report.feedback}")
    return "\n".join(lines)
