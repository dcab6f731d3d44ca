"""Application entrypoint — start the API server or run one-off commands."""

from __future__ import annotations

import argparse
import sys
from datetime import timedelta
from pathlib import Path

import uvicorn

from anxiety_engine.config import get_settings
from anxiety_engine.logger import setup_logging
from anxiety_engine.scoring.fusion import score_inputs
from anxiety_engine.scoring.models import ScoringInputs


def _score(path: str, settings) -> None:
    raw = Path(path).read_text(encoding="utf-8") if path != "-" else sys.stdin.read()
    inputs = ScoringInputs.model_validate_json(raw)
    report = score_inputs(
        inputs,
        checkin_decay_hours=settings.checkin_decay_hours,
        calibration_min_baselines=settings.calibration_min_baselines,
    )
    print(report.model_dump_json(indent=2))


def _simulate(args: argparse.Namespace, settings) -> None:
    from anxiety_engine.research.export import export_reports_csv, export_reports_json
    from anxiety_engine.simulation import simulate

    _, reports = simulate(
        args.ticks,
        seed=args.seed,
        interval=timedelta(seconds=args.interval),
        settings=settings,
    )
    for r in reports:
        s = r.score
        print(
            f"{r.timestamp:%H:%M:%S}  score={s.final_score:5.1f}  aps={s.aps:5.1f}  "
            f"lrs={s.lrs:5.1f}  cs={s.cs:5.1f}  {s.level.value:<9}  {s.confidence.value}"
        )

    if args.export:
        out = Path(args.export)
        writer = export_reports_json if out.suffix == ".json" else export_reports_csv
        print(f"Exported to {writer(reports, out)}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="anxiety-engine",
        description="Rule-based anxiety scoring from wearable and self-report inputs.",
    )
    sub = parser.add_subparsers(dest="command")

    # ── serve ─────────────────────────────────────────────────
    serve_parser = sub.add_parser("serve", help="Start the API server.")
    serve_parser.add_argument("--host", default=None)
    serve_parser.add_argument("--port", type=int, default=None)
    serve_parser.add_argument("--reload", action="store_true")

    # ── score ─────────────────────────────────────────────────
    score_parser = sub.add_parser("score", help="Score a ScoringInputs JSON file.")
    score_parser.add_argument("path", help="JSON file, or '-' for stdin.")

    # ── simulate ──────────────────────────────────────────────
    sim_parser = sub.add_parser("simulate", help="Run a synthetic session.")
    sim_parser.add_argument("--ticks", type=int, default=30)
    sim_parser.add_argument("--seed", type=int, default=None)
    sim_parser.add_argument("--interval", type=int, default=60, help="Seconds per tick.")
    sim_parser.add_argument("--export", default=None, help="Write reports to .csv or .json.")

    args = parser.parse_args(argv)
    settings = get_settings()
    setup_logging(settings.log_level)

    if args.command == "serve":
        uvicorn.run(
            "anxiety_engine.api.server:app",
            host=args.host or settings.api_host,
            port=args.port or settings.api_port,
            reload=args.reload,
        )
    elif args.command == "score":
        _score(args.path, settings)
    elif args.command == "simulate":
        _simulate(args, settings)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
