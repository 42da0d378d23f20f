"""Run a live proctoring session from a webcam and print the integrity report.

Example:
    python tools/run_session.py --name "Jane Doe" --duration 600
"""
import asyncio
import json
import logging
import sys
import time
from pathlib import Path

PROJ_ROOT = Path(__file__).resolve().parents[1]
if str(PROJ_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJ_ROOT))

from analysis.report import format_elapsed, format_report_text, report_for_session
from config import load_detector_config, load_engine_config, load_persistence_config
from cv.capture import CameraFrameSource, list_cameras
from cv.detectors import build_detectors
from monitor.sampling import FrameSamplingLoop
from monitor.session import ProctoringSession, ValidationError
from replay.recorder import SessionRecorder
from sync.log_client import LogClient, LogUploader

logger = logging.getLogger("run_session")
logging.basicConfig(level=logging.INFO)


async def _run_until_done(session: ProctoringSession, loop: FrameSamplingLoop, duration: float) -> None:
    loop.start()
    t0 = time.monotonic()
    last_status = -1
    try:
        while session.running:
            if duration > 0 and (time.monotonic() - t0) >= duration:
                break
            elapsed = session.elapsed_seconds()
            if elapsed // 30 != last_status:
                last_status = elapsed // 30
                logger.info("Elapsed %s, alerts=%d", format_elapsed(elapsed), len(session.stats.alerts))
            await asyncio.sleep(0.2)
    finally:
        session.stop()
        await loop.wait()


def main():
    import argparse

    det_cfg = load_detector_config()
    persist_cfg = load_persistence_config()

    ap = argparse.ArgumentParser()
    ap.add_argument("--name", type=str, default="", help="Candidate name (required)")
    ap.add_argument("--webcam", type=int, default=det_cfg.camera_index, help="Webcam index")
    ap.add_argument("--duration", type=float, default=0.0, help="Stop after N seconds (0 = until Ctrl-C)")
    ap.add_argument("--model", type=str, default=det_cfg.yolo_model, help="YOLO weights for object detection")
    ap.add_argument("--logs-url", type=str, default=persist_cfg.logs_url, help="Base URL of the log server")
    ap.add_argument("--no-upload", action="store_true", help="Do not store the report on the log server")
    ap.add_argument("--report-json", type=str, default=None, help="Also write the report to this JSON file")
    ap.add_argument("--record-dir", type=str, default=None, help="Write observations/alerts JSONL here")
    ap.add_argument("--list-cams", action="store_true", help="List available cameras and exit")
    args = ap.parse_args()

    if args.list_cams:
        cams = list_cameras(max_index=12, timeout=0.8)
        if not cams:
            print("No cameras found (tried indices 0-11)")
        for c in cams:
            print(f"  index={c['index']}, resolution={c['width']}x{c['height']}")
        raise SystemExit(0)

    source = CameraFrameSource(args.webcam, det_cfg.camera_width, det_cfg.camera_height)
    face_det, obj_det = build_detectors(det_cfg, model_path=args.model)

    def acquire():
        source.open()
        face_det.load()
        obj_det.load()

    session = ProctoringSession(load_engine_config())
    try:
        started = session.start(args.name, acquire=acquire)
    except ValidationError:
        print("Please enter candidate name (--name) before starting the session.")
        raise SystemExit(2)
    if not started:
        for a in session.stats.recent_alerts():
            print(f"[{a.timestamp}] {a.message}")
        source.release()
        raise SystemExit(1)

    recorder = None
    if args.record_dir:
        rec_dir = Path(args.record_dir)
        recorder = SessionRecorder(
            observation_path=str(rec_dir / "observations.jsonl"),
            alert_path=str(rec_dir / "alerts.jsonl"),
        )
        recorder.open()

    loop = FrameSamplingLoop(
        session, source, face_det, obj_det,
        on_observation=recorder.on_observation if recorder else None,
    )
    try:
        asyncio.run(_run_until_done(session, loop, args.duration))
    except KeyboardInterrupt:
        session.stop()
    finally:
        source.release()
        face_det.close()
        if recorder:
            recorder.close()

    report = report_for_session(session)
    print(format_report_text(report))
    if args.report_json:
        out = Path(args.report_json)
        out.parent.mkdir(parents=True, exist_ok=True)
        with open(out, "w", encoding="utf-8") as fh:
            json.dump(report.to_dict(), fh, ensure_ascii=False, indent=2)

    if persist_cfg.upload_enabled and not args.no_upload:
        uploader = LogUploader(LogClient(args.logs_url, timeout_sec=persist_cfg.timeout_sec))
        uploader.submit(session.to_log_record())
        uploader.close(timeout=persist_cfg.timeout_sec + 1.0)


if __name__ == "__main__":
    main()
