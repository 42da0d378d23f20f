# cv/detectors.py
# -*- coding: utf-8 -*-
"""Face and object detectors consumed by the sampling loop.

Both expose `load()` (called during session acquisition) and a blocking
`detect(frame)`; the loop runs `detect` in an executor.
"""
from __future__ import annotations

import logging
from typing import List, Optional

try:
    import cv2  # type: ignore
except Exception:  # pragma: no cover
    cv2 = None
try:
    import mediapipe as mp  # type: ignore
except Exception:  # pragma: no cover
    mp = None
import numpy as np

from monitor.observation import FaceBox, ObjectDetection

logger = logging.getLogger(__name__)


class MediaPipeFaceDetector:
    """BlazeFace via mediapipe's FaceDetection solution; boxes are normalized."""

    def __init__(self, min_confidence: float = 0.5, model_selection: int = 0):
        self.min_confidence = float(min_confidence)
        self.model_selection = int(model_selection)
        self._det = None

    def load(self) -> None:
        if self._det is not None:
            return
        if mp is None or cv2 is None:
            raise RuntimeError("mediapipe/OpenCV are not available.")
        self._det = mp.solutions.face_detection.FaceDetection(
            model_selection=self.model_selection,
            min_detection_confidence=self.min_confidence,
        )
        logger.info("Face detection model loaded")

    def detect(self, frame_bgr: np.ndarray) -> List[FaceBox]:
        if self._det is None:
            raise RuntimeError("face detector is not loaded")
        rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        res = self._det.process(rgb)
        faces: List[FaceBox] = []
        for d in res.detections or []:
            box = d.location_data.relative_bounding_box
            kps = [(float(k.x), float(k.y)) for k in d.location_data.relative_keypoints]
            score = float(d.score[0]) if d.score else 0.0
            faces.append(FaceBox(
                bbox=(float(box.xmin), float(box.ymin), float(box.width), float(box.height)),
                score=score,
                landmarks=kps or None,
            ))
        return faces

    def close(self) -> None:
        if self._det is not None:
            self._det.close()
            self._det = None


class YoloObjectDetector:
    """Ultralytics YOLO detector reporting COCO class names (e.g. "cell phone", "book")."""

    def __init__(self, model_path: str = "yolov8n.pt", min_confidence: float = 0.25):
        self.model_path = model_path
        self.min_confidence = float(min_confidence)
        self._model = None

    def load(self) -> None:
        if self._model is not None:
            return
        from ultralytics import YOLO

        self._model = YOLO(self.model_path)
        logger.info("Object detection model loaded: %s", self.model_path)

    def detect(self, frame_bgr: np.ndarray) -> List[ObjectDetection]:
        if self._model is None:
            raise RuntimeError("object detector is not loaded")
        result = self._model(frame_bgr, conf=self.min_confidence, verbose=False)[0]
        names = result.names
        out: List[ObjectDetection] = []
        for box in result.boxes:
            cls_id = int(box.cls[0])
            x1, y1, x2, y2 = [float(v) for v in box.xyxy[0]]
            out.append(ObjectDetection(
                label=str(names.get(cls_id, cls_id) if isinstance(names, dict) else names[cls_id]),
                score=float(box.conf[0]),
                bbox=(x1, y1, x2 - x1, y2 - y1),
            ))
        return out


def build_detectors(cfg, model_path: Optional[str] = None):
    """Detectors from a `DetectorConfig`; nothing is loaded yet."""
    face = MediaPipeFaceDetector(
        min_confidence=cfg.face_min_confidence,
        model_selection=cfg.face_model_selection,
    )
    objects = YoloObjectDetector(model_path=model_path or cfg.yolo_model)
    return face, objects
