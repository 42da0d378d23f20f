"""Replay a recorded observations JSONL through a fresh session and print the report."""
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

PROJ_ROOT = Path(__file__).resolve().parents[1]
if str(PROJ_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJ_ROOT))

from analysis.report import SessionReport, format_report_text, report_for_session
from config import EngineConfig, load_engine_config
from monitor.observation import FrameObservation
from monitor.session import ProctoringSession
from replay.recorder import load_observations_jsonl

logger = logging.getLogger(__name__)


def replay_observations(
    observations: Sequence[FrameObservation],
    candidate_name: str,
    cfg: Optional[EngineConfig] = None,
) -> SessionReport:
    """Run observations in order; the session clock follows their timestamps."""
    if not observations:
        raise ValueError("no observations to replay")
    clock = {"now": float(observations[0].timestamp)}
    session = ProctoringSession(cfg or load_engine_config(), clock=lambda: clock["now"])
    session.start(candidate_name)
    for obs in observations:
        clock["now"] = max(clock["now"], float(obs.timestamp))
        session.process_observation(obs)
    session.stop()
    return report_for_session(session)


def main():
    import argparse
    logging.basicConfig(level=logging.INFO)
    parser = argparse.ArgumentParser()
    parser.add_argument("--in", dest="infile", required=True)
    parser.add_argument("--name", default="replay")
    parser.add_argument("--json", action="store_true", help="print report as JSON")
    args = parser.parse_args()

    report = replay_observations(load_observations_jsonl(args.infile), args.name)
    if args.json:
        print(json.dumps(report.to_dict(), ensure_ascii=False, indent=2))
    else:
        print(format_report_text(report))


if __name__ == "__main__":
    main()
