from monitor.observation import FaceBox, ObjectDetection
from monitor.stats import SessionStats
from monitor.throttle import AlertThrottle
from monitor.trackers import ABSENCE_MESSAGE, FacePresenceTracker, ObjectAlertClassifier

ONE = [FaceBox(bbox=(0.3, 0.3, 0.2, 0.2))]
TWO = ONE + [FaceBox(bbox=(0.7, 0.3, 0.1, 0.1))]


def make_face_tracker(started_at=0.0):
    stats = SessionStats()
    return stats, FacePresenceTracker(stats, AlertThrottle(), started_at=started_at)


def messages(stats):
    return [a.message for a in stats.alerts]


def test_absence_fires_once_for_twelve_second_gap():
    stats, tr = make_face_tracker()
    t = 0.0
    while t <= 12_000:
        tr.update([], t)
        t += 100
    tr.update(ONE, 12_100)
    assert messages(stats) == [ABSENCE_MESSAGE]
    assert stats.focus_lost_count == 1
    assert "absence" in stats.object_alert_types


def test_absence_refires_after_another_full_window():
    stats, tr = make_face_tracker()
    for t in range(0, 20_001, 250):
        tr.update([], float(t))
    assert stats.focus_lost_count == 2
    assert len(stats.alerts) == 2


def test_face_reappearing_resets_absence_timer():
    stats, tr = make_face_tracker()
    tr.update([], 9_000)
    tr.update(ONE, 9_500)
    tr.update([], 19_000)
    assert stats.alerts == []
    tr.update([], 19_500)
    assert stats.focus_lost_count == 1


def test_multiple_faces_throttled_to_once_per_half_second():
    stats, tr = make_face_tracker()
    tr.update(TWO, 0.0)
    tr.update(TWO, 100.0)
    assert messages(stats) == ["Multiple faces (2) detected"]
    assert stats.multiple_faces_count == 1
    assert "multiple faces" in stats.object_alert_types

    tr.update(TWO + [FaceBox(bbox=(0.1, 0.1, 0.1, 0.1))], 600.0)
    assert messages(stats)[-1] == "Multiple faces (3) detected"
    assert stats.multiple_faces_count == 2


def test_single_face_never_alerts():
    stats, tr = make_face_tracker()
    for t in range(0, 30_000, 500):
        tr.update(ONE, float(t))
    assert stats.alerts == []


def make_classifier():
    stats = SessionStats()
    return stats, ObjectAlertClassifier(stats, AlertThrottle())


def test_phone_throttled_then_refires():
    stats, clf = make_classifier()
    phone = ObjectDetection(label="cell phone", score=0.9)
    clf.update([phone], 0.0)
    clf.update([phone], 100.0)
    assert messages(stats) == ["Electronic device (cell phone) detected"]
    clf.update([phone], 600.0)
    assert len(stats.alerts) == 2
    assert stats.object_alert_types == {"cell phone"}


def test_low_confidence_detections_ignored():
    stats, clf = make_classifier()
    clf.update([ObjectDetection(label="laptop", score=0.49)], 0.0)
    assert stats.alerts == []
    clf.update([ObjectDetection(label="Laptop", score=0.5)], 10.0)
    assert messages(stats) == ["Electronic device (laptop) detected"]


def test_phone_and_book_in_one_frame_both_alert():
    stats, clf = make_classifier()
    clf.update([
        ObjectDetection(label="cell phone", score=0.8),
        ObjectDetection(label="book", score=0.7),
        ObjectDetection(label="cup", score=0.99),
    ], 0.0)
    assert messages(stats) == ["Electronic device (cell phone) detected", "Book/paper detected"]
    assert stats.object_alert_types == {"cell phone", "notes"}


def test_book_and_paper_have_separate_throttles():
    stats, clf = make_classifier()
    clf.update([ObjectDetection(label="book", score=0.9)], 0.0)
    clf.update([ObjectDetection(label="paper", score=0.9)], 100.0)
    clf.update([ObjectDetection(label="book", score=0.9)], 200.0)
    assert messages(stats) == ["Book/paper detected", "Book/paper detected"]
