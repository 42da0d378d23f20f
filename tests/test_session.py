import pytest

from config import EngineConfig
from monitor.observation import FaceBox, FrameObservation, ObjectDetection
from monitor.session import (
    MEDIA_FAILURE_MESSAGE,
    ProctoringSession,
    SessionState,
    SessionStateError,
    ValidationError,
)


class Clock:
    def __init__(self, now=1_700_000_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


FACE = FaceBox(bbox=(0.3, 0.3, 0.2, 0.2))


def make_session():
    clock = Clock()
    return clock, ProctoringSession(EngineConfig(), clock=clock)


@pytest.mark.parametrize("name", ["", "   ", None])
def test_blank_candidate_name_rejected_without_mutation(name):
    _, s = make_session()
    with pytest.raises(ValidationError):
        s.start(name)
    assert s.state == SessionState.IDLE
    assert s.start_time is None
    assert s.stats.alerts == []


def test_lifecycle_is_monotonic():
    clock, s = make_session()
    assert s.start("  Ada  ") is True
    assert s.candidate_name == "Ada"
    assert s.state == SessionState.RUNNING
    assert s.start_time == clock.now

    clock.now += 65_000
    assert s.stop() is True
    assert s.state == SessionState.STOPPED
    assert s.end_time - s.start_time == 65_000
    assert s.elapsed_seconds() == 65

    # stop again is a no-op; restart needs a new instance
    assert s.stop() is False
    with pytest.raises(SessionStateError):
        s.start("Ada")


def test_stop_before_start_is_noop():
    _, s = make_session()
    assert s.stop() is False
    assert s.end_time is None


def test_end_time_never_before_start_time():
    clock, s = make_session()
    s.start("Ada")
    clock.now -= 5_000  # wall clock stepped back
    s.stop()
    assert s.end_time >= s.start_time


def test_acquisition_failure_emits_one_alert_and_stays_idle():
    _, s = make_session()

    def acquire():
        raise RuntimeError("Permission denied")

    assert s.start("Ada", acquire=acquire) is False
    assert s.state == SessionState.IDLE
    assert [a.message for a in s.stats.alerts] == [MEDIA_FAILURE_MESSAGE]


def test_observations_ignored_unless_running():
    clock, s = make_session()
    obs = FrameObservation(timestamp=clock.now, faces=[FACE, FACE])
    assert s.process_observation(obs) == []
    s.start("Ada")
    assert len(s.process_observation(obs)) == 1
    s.stop()
    obs2 = FrameObservation(timestamp=clock.now + 5_000, faces=[FACE, FACE])
    assert s.process_observation(obs2) == []
    assert s.stats.multiple_faces_count == 1


def test_absence_timer_starts_at_session_start():
    clock, s = make_session()
    s.start("Ada")
    t0 = clock.now
    s.process_observation(FrameObservation(timestamp=t0 + 9_999))
    assert s.stats.focus_lost_count == 0
    s.process_observation(FrameObservation(timestamp=t0 + 10_000))
    assert s.stats.focus_lost_count == 1


def test_start_resets_state_after_failed_acquire():
    _, s = make_session()
    s.start("Ada", acquire=lambda: (_ for _ in ()).throw(OSError("no camera")))
    assert len(s.stats.alerts) == 1
    assert s.start("Ada") is True
    assert s.stats.alerts == []
    assert len(s.throttle) == 0


def test_fail_records_alert_and_stops():
    _, s = make_session()
    s.start("Ada")
    assert s.fail("Detection stopped") is True
    assert s.state == SessionState.STOPPED
    assert s.stats.alerts[-1].message == "Detection stopped"


def test_log_record_shape():
    clock, s = make_session()
    s.start("Ada")
    t0 = clock.now
    s.process_observation(FrameObservation(
        timestamp=t0 + 100,
        faces=[FACE],
        objects=[ObjectDetection(label="cell phone", score=0.9)],
    ))
    s.process_observation(FrameObservation(timestamp=t0 + 200, faces=[FACE, FACE]))
    with pytest.raises(SessionStateError):
        s.to_log_record()
    clock.now = t0 + 1_000
    s.stop()
    rec = s.to_log_record()
    assert rec["candidateName"] == "Ada"
    assert rec["startTime"].endswith("+00:00")
    assert rec["focusLostCount"] == 0
    assert rec["multipleFacesCount"] == 1
    assert rec["objectAlertTypes"] == ["cell phone", "multiple faces"]
    # newest first
    assert [a["message"] for a in rec["alerts"]] == [
        "Multiple faces (2) detected",
        "Electronic device (cell phone) detected",
    ]
    assert set(rec["alerts"][0]) == {"message", "timestamp"}
    assert rec["integrityScore"] == 100 - 20 - 10
