import json

from monitor.observation import FrameObservation
from monitor.stats import Alert
from replay.recorder import SessionRecorder, load_observations_jsonl
from tools.replay_session import replay_observations
from tools.simulate_session import gen_observations


def test_simulated_session_report():
    observations = [FrameObservation.from_dict(r) for r in gen_observations(start_ms=0)]
    report = replay_observations(observations, "Ada")

    assert report.duration == "0h 0m 27s"
    assert report.focus_lost_count == 1
    assert report.multiple_faces_count == 4
    assert report.suspicious_events == [
        "Multiple faces detected",
        "Candidate absent",
        "Mobile phone detected",
        "Notes/book detected",
    ]
    messages = [a.message for a in report.alerts]
    assert messages.count("Electronic device (cell phone) detected") == 5
    assert messages.count("Book/paper detected") == 5
    # newest first
    assert messages[0] == "Book/paper detected"
    assert messages[-1] == "No face detected for >10 seconds"
    assert report.integrity_score == 0
    assert report.feedback == "Poor, high risk detected."


def test_recorder_writes_jsonl_that_replays(tmp_path):
    obs_path = tmp_path / "s1" / "observations.jsonl"
    alert_path = tmp_path / "s1" / "alerts.jsonl"
    rec = SessionRecorder(observation_path=str(obs_path), alert_path=str(alert_path))
    rec.open()
    for raw in gen_observations(duration=1.0, step=0.5, start_ms=1_000):
        rec.on_observation(FrameObservation.from_dict(raw), [])
    rec.log_alert(Alert(message="Book/paper detected", timestamp="10:00:00", emitted_at=1_500.0))
    rec.close()

    with open(obs_path, "a", encoding="utf-8") as fh:
        fh.write("garbage\n")
        fh.write(json.dumps({"faces": []}) + "\n")

    loaded = load_observations_jsonl(str(obs_path))
    assert [o.timestamp for o in loaded] == [1_000.0, 1_500.0, 2_000.0]
    assert loaded[0].objects[0].label == "cup"

    lines = alert_path.read_text(encoding="utf-8").splitlines()
    assert json.loads(lines[0]) == {"message": "Book/paper detected", "timestamp": "10:00:00", "ts": 1_500.0}
