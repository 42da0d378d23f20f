# cv/capture.py
# -*- coding: utf-8 -*-
"""Camera frame source and the fixed-size working buffer handed to detectors."""
from __future__ import annotations

import logging
import time
from typing import Dict, List, Optional

try:
    import cv2  # type: ignore
except Exception:  # pragma: no cover
    cv2 = None
import numpy as np

logger = logging.getLogger(__name__)


def open_camera(index: int = 0, width: int = 640, height: int = 480, backend: Optional[int] = None):
    """Open and configure a camera, returning the cv2.VideoCapture instance."""
    if cv2 is None:
        raise RuntimeError("OpenCV (cv2) is not available.")
    cap = cv2.VideoCapture(index) if backend is None else cv2.VideoCapture(index, backend)
    if not cap.isOpened():
        return cap
    cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
    cap.set(cv2.CAP_PROP_FPS, 30)
    return cap


def list_cameras(max_index: int = 8, backend: Optional[int] = None, timeout: float = 1.0) -> List[Dict]:
    """Probe camera indices and return those that produce frames."""
    if cv2 is None:
        raise RuntimeError("OpenCV (cv2) is not available.")
    found: List[Dict] = []
    for idx in range(max_index):
        cap = None
        try:
            cap = cv2.VideoCapture(idx) if backend is None else cv2.VideoCapture(idx, backend)
            if not cap.isOpened():
                continue
            t0 = time.time()
            while time.time() - t0 < timeout:
                ret, frame = cap.read()
                if ret and frame is not None:
                    h, w = frame.shape[:2]
                    found.append({"index": idx, "width": int(w), "height": int(h)})
                    break
                time.sleep(0.05)
        except Exception as exc:
            logger.debug("Camera probe failed for index=%d: %s", idx, exc)
        finally:
            if cap is not None:
                cap.release()
    return found


class CameraFrameSource:
    """Blocking webcam reader; `read()` is meant to run off the event loop."""

    def __init__(self, index: int = 0, width: int = 640, height: int = 480, backend: Optional[int] = None):
        self.index = int(index)
        self.width = int(width)
        self.height = int(height)
        self.backend = backend
        self._cap = None

    def open(self) -> None:
        cap = open_camera(self.index, self.width, self.height, self.backend)
        if not cap.isOpened():
            cap.release()
            raise RuntimeError(f"Could not open camera (index={self.index})")
        self._cap = cap
        logger.info("Camera opened (index=%d)", self.index)

    def read(self) -> np.ndarray:
        if self._cap is None:
            raise RuntimeError("camera is not open")
        ok, frame = self._cap.read()
        if not ok or frame is None:
            raise RuntimeError("camera read failed")
        return frame

    def release(self) -> None:
        if self._cap is not None:
            try:
                self._cap.release()
            finally:
                self._cap = None


class FrameBuffer:
    """Preallocated BGR buffer the current frame is resized into each tick."""

    def __init__(self, width: int = 320, height: int = 240):
        self.width = int(width)
        self.height = int(height)
        self._buf = np.empty((self.height, self.width, 3), dtype=np.uint8)

    @property
    def array(self) -> np.ndarray:
        return self._buf

    def fill(self, frame):
        """Resize `frame` into the buffer; non-image frames pass through untouched."""
        if not isinstance(frame, np.ndarray) or frame.ndim != 3 or frame.shape[2] != 3:
            return frame
        if frame.shape[:2] == (self.height, self.width):
            np.copyto(self._buf, frame, casting="unsafe")
            return self._buf
        if cv2 is None:
            raise RuntimeError("OpenCV (cv2) is not available.")
        if frame.dtype != np.uint8:
            frame = frame.astype(np.uint8)
        cv2.resize(frame, (self.width, self.height), dst=self._buf, interpolation=cv2.INTER_AREA)
        return self._buf
