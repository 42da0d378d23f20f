"""
Centralized configuration helpers.

Settings are read from the environment; a local `.env` file (git-ignored)
is loaded first if present. Example:
    PROCTOR_LOGS_URL=http://127.0.0.1:8000
    PROCTOR_YOLO_MODEL=yolov8n.pt
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv


# Load environment variables from .env if present.
load_dotenv()


def env_str(name: str, default: str = "") -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    return str(raw)


def env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return str(raw).strip().lower() in ("1", "true", "yes", "on")


def env_int(name: str, default: int = 0, min_value: Optional[int] = None, max_value: Optional[int] = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        val = int(str(raw).strip())
    except Exception:
        return default
    if min_value is not None:
        val = max(min_value, val)
    if max_value is not None:
        val = min(max_value, val)
    return val


def env_float(name: str, default: float = 0.0, min_value: Optional[float] = None, max_value: Optional[float] = None) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        val = float(str(raw).strip())
    except Exception:
        return default
    if val != val:  # NaN
        return default
    if min_value is not None:
        val = max(min_value, val)
    if max_value is not None:
        val = min(max_value, val)
    return val


@dataclass
class EngineConfig:
    absence_ms: int = 10_000
    alert_cooldown_ms: int = 500
    min_object_score: float = 0.5
    # Working buffer handed to the object detector.
    frame_width: int = 320
    frame_height: int = 240
    frame_interval_sec: float = 1.0 / 30.0
    fault_backoff_sec: float = 0.5
    # 0 keeps skipping faulty ticks forever.
    max_consecutive_faults: int = 10


def load_engine_config() -> EngineConfig:
    return EngineConfig(
        absence_ms=env_int("PROCTOR_ABSENCE_MS", 10_000, min_value=1),
        alert_cooldown_ms=env_int("PROCTOR_ALERT_COOLDOWN_MS", 500, min_value=0),
        min_object_score=env_float("PROCTOR_MIN_OBJECT_SCORE", 0.5, min_value=0.0, max_value=1.0),
        frame_width=env_int("PROCTOR_FRAME_WIDTH", 320, min_value=16),
        frame_height=env_int("PROCTOR_FRAME_HEIGHT", 240, min_value=16),
        frame_interval_sec=env_float("PROCTOR_FRAME_INTERVAL_SEC", 1.0 / 30.0, min_value=0.0),
        fault_backoff_sec=env_float("PROCTOR_FAULT_BACKOFF_SEC", 0.5, min_value=0.0),
        max_consecutive_faults=env_int("PROCTOR_MAX_CONSECUTIVE_FAULTS", 10, min_value=0),
    )


@dataclass
class DetectorConfig:
    face_min_confidence: float
    # mediapipe: 0 = short range (webcam), 1 = full range
    face_model_selection: int
    yolo_model: str
    camera_index: int
    camera_width: int
    camera_height: int


def load_detector_config() -> DetectorConfig:
    return DetectorConfig(
        face_min_confidence=env_float("PROCTOR_FACE_MIN_CONFIDENCE", 0.5, min_value=0.05, max_value=1.0),
        face_model_selection=env_int("PROCTOR_FACE_MODEL_SELECTION", 0, min_value=0, max_value=1),
        yolo_model=env_str("PROCTOR_YOLO_MODEL", "yolov8n.pt").strip() or "yolov8n.pt",
        camera_index=env_int("PROCTOR_CAMERA_INDEX", 0, min_value=0),
        camera_width=env_int("PROCTOR_CAMERA_WIDTH", 640, min_value=64),
        camera_height=env_int("PROCTOR_CAMERA_HEIGHT", 480, min_value=64),
    )


@dataclass
class PersistenceConfig:
    logs_url: str
    timeout_sec: float
    upload_enabled: bool


def load_persistence_config() -> PersistenceConfig:
    return PersistenceConfig(
        logs_url=env_str("PROCTOR_LOGS_URL", "http://127.0.0.1:8000").strip(),
        timeout_sec=env_float("PROCTOR_LOGS_TIMEOUT_SEC", 5.0, min_value=0.1),
        upload_enabled=env_bool("PROCTOR_UPLOAD_ENABLED", default=True),
    )


@dataclass
class ServerConfig:
    store_path: str
    host: str
    port: int


def load_server_config() -> ServerConfig:
    return ServerConfig(
        store_path=env_str("PROCTOR_LOG_STORE", "out/logs.jsonl").strip() or "out/logs.jsonl",
        host=env_str("PROCTOR_SERVER_HOST", "127.0.0.1").strip() or "127.0.0.1",
        port=env_int("PROCTOR_SERVER_PORT", 8000, min_value=1, max_value=65535),
    )
