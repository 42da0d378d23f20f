"""Generate a simulated proctoring session as an observations JSONL file.

Phases (seconds from start): candidate present, candidate absent long enough
to trigger the absence alert, a second person in frame, a phone on the desk,
a book on the desk, then candidate alone again.
"""
import json
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

FACE = {"bbox": [0.35, 0.25, 0.3, 0.4], "score": 0.95}
SECOND_FACE = {"bbox": [0.75, 0.3, 0.15, 0.2], "score": 0.8}
PHONE = {"class": "cell phone", "score": 0.9, "bbox": [40, 150, 50, 80]}
BOOK = {"class": "book", "score": 0.7, "bbox": [180, 160, 120, 70]}
CUP = {"class": "cup", "score": 0.9, "bbox": [10, 10, 20, 30]}


def gen_observations(duration: float = 27.0, step: float = 0.2, start_ms: Optional[float] = None) -> List[Dict[str, Any]]:
    t0 = time.time() * 1000.0 if start_ms is None else float(start_ms)
    recs = []
    ts = 0.0
    while ts <= duration:
        faces: List[Dict[str, Any]] = []
        objects: List[Dict[str, Any]] = []
        if ts < 3.0 or ts >= 15.0:
            faces.append(FACE)
        if 15.0 <= ts < 17.0:
            faces.append(SECOND_FACE)
        if 17.0 <= ts < 20.0:
            objects.append(PHONE)
        if 20.0 <= ts < 23.0:
            objects.append(BOOK)
        # low-value clutter that never alerts
        objects.append(CUP)
        recs.append({"ts": round(t0 + ts * 1000.0, 3), "faces": faces, "objects": objects})
        ts = round(ts + step, 6)
    return recs


def main():
    import argparse
    parser = argparse.ArgumentParser()
    parser.add_argument("--out", required=True, help="observations JSONL path")
    parser.add_argument("--duration", type=float, default=27.0)
    parser.add_argument("--step", type=float, default=0.2)
    args = parser.parse_args()

    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    recs = gen_observations(duration=args.duration, step=args.step)
    with open(out, "w", encoding="utf-8") as f:
        for r in recs:
            f.write(json.dumps(r, ensure_ascii=False) + "\n")
    print("Generated:", out, f"({len(recs)} observations)")


if __name__ == "__main__":
    main()
