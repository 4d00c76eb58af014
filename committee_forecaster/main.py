"""Main CLI interface for the selection committee forecaster."""

import argparse
import logging
import sys
from pathlib import Path

from .data.feature_store import glossary_table
from .data.validators import DataRequirementError
from .ml.optimization.hyperparameter_tuning import TuningConfig
from .ml.optimization.season_rotation import RotationError
from .pipeline.committee import CommitteePipelineConfig, run_pipeline_to_file


def run_pipeline(args):
    """Run both stages over every held-out season and write the report."""
    tuning = TuningConfig(
        n_estimators=args.n_estimators,
        cv_folds=args.cv_folds,
        random_seed=args.seed,
        n_jobs=args.n_jobs,
    )
    config = CommitteePipelineConfig(
        teams_csv=args.teams,
        games_csv=args.games,
        output_dir=args.output_dir,
        n_selected=args.field_size,
        make_figures=not args.no_figures,
        tuning=tuning,
    )
    output = args.output or str(Path(args.output_dir) / "report.json")

    print(f"Running selection and seeding rotation on {args.teams}...")
    try:
        report = run_pipeline_to_file(config, output)
    except (DataRequirementError, RotationError) as exc:
        print(f"Error: {exc}")
        return 1

    print(f"✓ Pipeline complete. Report written to {output}")
    print(f"Selection accuracy: {_fmt(report['selection']['accuracy'])}")
    print(
        f"Seed MSE: {_fmt(report['seeding']['mse'])}  "
        f"RMSE: {_fmt(report['seeding']['rmse'])}"
    )
    tournament = report.get("tournament")
    if tournament:
        print(
            f"Tournament accuracy (model / committee): "
            f"{_fmt(tournament['model_accuracy'])} / {_fmt(tournament['committee_accuracy'])}"
        )
    return 0


def show_glossary(args):
    """Print the predictor glossary."""
    table = glossary_table()
    for row in table.itertuples(index=False):
        print(f"{row.predictor:<14} {row.kind:<11} {row.description}")
    return 0


def _fmt(value) -> str:
    return "n/a" if value is None else f"{value:.4f}"


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Selection Committee Forecaster - predict tournament selections and seeds"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    run_parser = subparsers.add_parser("run", help="Run leave-one-season-out selection and seeding")
    run_parser.add_argument("--teams", "-t", required=True, help="Team-season metrics CSV")
    run_parser.add_argument("--games", "-g", default=None, help="Tournament game results CSV (optional)")
    run_parser.add_argument("--output-dir", "-d", default="output", help="Directory for tables and figures")
    run_parser.add_argument("--output", "-o", default=None, help="Report JSON path (default: <output-dir>/report.json)")
    run_parser.add_argument("--field-size", type=int, default=68, help="Teams selected per season (default: 68)")
    run_parser.add_argument("--n-estimators", type=int, default=1500, help="Boosted trees per model (default: 1500)")
    run_parser.add_argument("--cv-folds", type=int, default=5, help="Cross-validation folds for depth tuning")
    run_parser.add_argument("--seed", type=int, default=2024, help="Random seed")
    run_parser.add_argument("--n-jobs", type=int, default=1, help="XGBoost threads")
    run_parser.add_argument("--no-figures", action="store_true", help="Skip writing PNG figures")

    subparsers.add_parser("glossary", help="Print the predictor glossary")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "run":
        return run_pipeline(args)
    elif args.command == "glossary":
        return show_glossary(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
