import pytest

from monitor.observation import (
    FaceBox,
    FrameObservation,
    ObjectDetection,
    normalize_faces,
    normalize_objects,
)


def test_normalize_faces_counts_every_entry():
    faces = normalize_faces([FaceBox(bbox=(0, 0, 1, 1)), {"bbox": [0.1, 0.1, 0.2, 0.2]}, object()])
    assert len(faces) == 3
    assert faces[1].bbox == (0.1, 0.1, 0.2, 0.2)
    assert faces[2].bbox == (0.0, 0.0, 0.0, 0.0)


def test_normalize_objects_drops_malformed_entries():
    objs = normalize_objects([
        {"class": "cell phone", "score": "0.8"},
        {"label": "book", "confidence": 0.6, "bbox": [1, 2, 3, 4]},
        {"class": "", "score": 0.9},
        {"class": "laptop", "score": "high"},
        {"class": "laptop", "score": float("nan")},
        "laptop",
        ObjectDetection(label="paper", score=0.7),
    ])
    assert [(o.label, o.score) for o in objs] == [("cell phone", 0.8), ("book", 0.6), ("paper", 0.7)]
    assert objs[1].bbox == (1.0, 2.0, 3.0, 4.0)


def test_from_dict_requires_timestamp():
    with pytest.raises(ValueError):
        FrameObservation.from_dict({"faces": []})


def test_to_dict_keys():
    obs = FrameObservation(timestamp=5.0, objects=[ObjectDetection(label="book", score=0.5)], audio_level=0.2)
    d = obs.to_dict()
    assert d["ts"] == 5.0
    assert d["objects"][0]["class"] == "book"
    assert d["audio_level"] == 0.2
    assert "audio_level" not in FrameObservation(timestamp=1.0).to_dict()
