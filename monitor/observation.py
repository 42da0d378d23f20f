"""Detector output types and lenient normalisation of raw detector results."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class FaceBox:
    # normalized (x, y, w, h)
    bbox: Tuple[float, float, float, float]
    score: float = 1.0
    landmarks: Optional[List[Tuple[float, float]]] = None


@dataclass(frozen=True)
class ObjectDetection:
    label: str
    score: float
    bbox: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)

    def to_dict(self) -> Dict[str, Any]:
        return {"class": self.label, "score": float(self.score), "bbox": list(self.bbox)}


@dataclass
class FrameObservation:
    timestamp: float
    faces: Sequence[Any] = field(default_factory=list)
    objects: Sequence[ObjectDetection] = field(default_factory=list)
    audio_level: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "ts": float(self.timestamp),
            "faces": [_face_to_dict(f) for f in self.faces],
            "objects": [o.to_dict() for o in self.objects],
        }
        if self.audio_level is not None:
            out["audio_level"] = float(self.audio_level)
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FrameObservation":
        ts = _to_float(data.get("ts", data.get("timestamp")))
        if ts is None:
            raise ValueError("observation has no timestamp")
        return cls(
            timestamp=ts,
            faces=normalize_faces(data.get("faces") or []),
            objects=normalize_objects(data.get("objects") or []),
            audio_level=_to_float(data.get("audio_level")),
        )


def _to_float(v: Any) -> Optional[float]:
    if v is None:
        return None
    try:
        x = float(v)
    except Exception:
        return None
    if x != x:  # NaN
        return None
    return x


def _to_bbox(raw: Any) -> Tuple[float, float, float, float]:
    if isinstance(raw, (list, tuple)) and len(raw) >= 4:
        vals = [_to_float(b) for b in raw[:4]]
        if all(v is not None for v in vals):
            return (vals[0], vals[1], vals[2], vals[3])
    return (0.0, 0.0, 0.0, 0.0)


def _face_to_dict(face: Any) -> Dict[str, Any]:
    if isinstance(face, FaceBox):
        return {"bbox": list(face.bbox), "score": float(face.score)}
    if isinstance(face, dict):
        return dict(face)
    return {}


def normalize_faces(raw: Iterable[Any]) -> List[FaceBox]:
    """Accept FaceBox instances or dicts with a `bbox`; only the count matters downstream."""
    out: List[FaceBox] = []
    for it in raw:
        if isinstance(it, FaceBox):
            out.append(it)
            continue
        if isinstance(it, dict):
            score = _to_float(it.get("score"))
            out.append(FaceBox(bbox=_to_bbox(it.get("bbox")), score=1.0 if score is None else score))
            continue
        # Opaque detector objects still count as a face.
        out.append(FaceBox(bbox=(0.0, 0.0, 0.0, 0.0)))
    return out


def normalize_objects(raw: Iterable[Any]) -> List[ObjectDetection]:
    """Accept ObjectDetection instances or `{"class", "score", "bbox"}` dicts.

    Entries without a label or a numeric score are dropped.
    """
    out: List[ObjectDetection] = []
    for it in raw:
        if isinstance(it, ObjectDetection):
            out.append(it)
            continue
        if not isinstance(it, dict):
            continue
        label = str(it.get("class") or it.get("label") or "").strip()
        score = _to_float(it.get("score", it.get("confidence")))
        if not label or score is None:
            continue
        out.append(ObjectDetection(label=label, score=score, bbox=_to_bbox(it.get("bbox"))))
    return out
