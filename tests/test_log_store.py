import pytest

from sync.log_store import LogStore, validate_log_record


def record(name="Ada", score=80, **overrides):
    rec = {
        "candidateName": name,
        "startTime": "2024-05-01T10:00:00+00:00",
        "endTime": "2024-05-01T10:30:00+00:00",
        "focusLostCount": 1,
        "multipleFacesCount": 0,
        "objectAlertTypes": ["absence"],
        "alerts": [{"message": "No face detected for >10 seconds", "timestamp": "10:12:01"}],
        "integrityScore": score,
    }
    rec.update(overrides)
    return rec


def test_validate_accepts_complete_record():
    clean = validate_log_record(record(name="  Ada "))
    assert clean["candidateName"] == "Ada"
    assert clean["alerts"][0] == {"message": "No face detected for >10 seconds", "timestamp": "10:12:01"}


@pytest.mark.parametrize(
    "bad",
    [
        [],
        {"candidateName": "Ada"},
        record(candidateName=""),
        record(focusLostCount=-1),
        record(multipleFacesCount=1.5),
        record(objectAlertTypes="absence"),
        record(alerts=[{"message": "x"}]),
        record(integrityScore=101),
        record(integrityScore=True),
    ],
)
def test_validate_rejects_bad_records(bad):
    with pytest.raises(ValueError):
        validate_log_record(bad)


def test_save_assigns_id_and_list_orders_by_score(tmp_path):
    store = LogStore(str(tmp_path / "db" / "logs.jsonl"))
    assert store.list_logs() == []

    a = store.save(record(name="Low", score=35))
    b = store.save(record(name="High", score=95))
    store.save(record(name="Mid", score=70))
    assert a["_id"] and a["_id"] != b["_id"]

    logs = store.list_logs()
    assert [r["candidateName"] for r in logs] == ["High", "Mid", "Low"]


def test_save_rejects_without_writing(tmp_path):
    path = tmp_path / "logs.jsonl"
    store = LogStore(str(path))
    with pytest.raises(ValueError):
        store.save(record(integrityScore=None))
    assert not path.exists()


def test_list_skips_corrupt_lines(tmp_path):
    path = tmp_path / "logs.jsonl"
    store = LogStore(str(path))
    store.save(record())
    with open(path, "a", encoding="utf-8") as fh:
        fh.write("{not json\n\n")
    assert len(store.list_logs()) == 1
