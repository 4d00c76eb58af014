"""End-to-end selection and seeding pipeline with held-out evaluation."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

import pandas as pd

from ..data.feature_store import load_and_filter
from ..data.loader import DataLoader
from ..data.validators import MAX_FIELD_SIZE
from ..ml.evaluation.metrics import (
    classification_accuracy,
    missed_selections_by_season,
    seed_error,
)
from ..ml.evaluation.tournament import (
    compare_tournament_outcomes,
    comparison_by_season,
    summarize_tournament_comparison,
)
from ..ml.optimization.hyperparameter_tuning import TuningConfig
from ..reporting import write_outputs
from .seeding import SeedingResult, run_seeding_rotation
from .selection import SelectionResult, run_selection_rotation

logger = logging.getLogger(__name__)


@dataclass
class CommitteePipelineConfig:
    """Pipeline configuration knobs."""

    teams_csv: Optional[str] = None
    games_csv: Optional[str] = None
    output_dir: str = "output"
    n_selected: int = MAX_FIELD_SIZE
    make_figures: bool = True
    tuning: TuningConfig = field(default_factory=TuningConfig)


class CommitteePipeline:
    """Runs selection, seeding and evaluation over every held-out season."""

    def __init__(self, config: Optional[CommitteePipelineConfig] = None):
        self.config = config or CommitteePipelineConfig()
        self.selection: Optional[SelectionResult] = None
        self.seeding: Optional[SeedingResult] = None
        self.tournament_games: Optional[pd.DataFrame] = None
        self._predictions: Optional[pd.DataFrame] = None

    @property
    def predictions(self) -> pd.DataFrame:
        """Copy of the assembled per-team predictions."""
        if self._predictions is None:
            raise RuntimeError("Pipeline has not been run yet.")
        return self._predictions.copy()

    def run(
        self,
        raw_teams: Optional[pd.DataFrame] = None,
        games: Optional[pd.DataFrame] = None,
    ) -> Dict:
        """
        Run the complete pipeline and return the report.

        Args:
            raw_teams: Raw team-season table; read from ``teams_csv`` when omitted
            games: Tournament game results; read from ``games_csv`` when omitted
                and a path is configured

        Returns:
            JSON-serialisable report dict
        """
        if raw_teams is None:
            raw_teams = DataLoader.load_team_seasons(self.config.teams_csv)
        if games is None and self.config.games_csv:
            games = DataLoader.load_game_results(self.config.games_csv)
        elif games is not None:
            games = DataLoader.normalize_game_results(games)

        team_seasons = load_and_filter(raw_teams)

        self.selection = run_selection_rotation(
            team_seasons, tuning=self.config.tuning, n_selected=self.config.n_selected
        )
        self.seeding = run_seeding_rotation(
            team_seasons, self.selection.predictions, tuning=self.config.tuning
        )
        self._predictions = self.seeding.predictions.sort_values(
            ["season", "team"], kind="mergesort"
        ).reset_index(drop=True)

        report = self._evaluate(games)
        report["tuning"] = {
            "config": asdict(self.config.tuning),
            "selection": self.selection.tuning_summary(),
            "seeding": self.seeding.tuning_summary(),
        }
        report["generated_at"] = datetime.now(timezone.utc).isoformat()
        return report

    def _evaluate(self, games: Optional[pd.DataFrame]) -> Dict:
        predictions = self._predictions
        errors = seed_error(predictions)
        missed = missed_selections_by_season(predictions)
        report: Dict = {
            "seasons": sorted(int(s) for s in predictions["season"].unique()),
            "n_team_seasons": int(len(predictions)),
            "selection": {
                "accuracy": classification_accuracy(predictions),
                "by_season": missed.to_dict(orient="records"),
            },
            "seeding": {
                "mse": errors["mse"],
                "rmse": errors["rmse"],
                "n": errors["n"],
                "excluded": errors["excluded"],
                "by_season": errors["by_season"].to_dict(orient="records"),
            },
        }
        logger.info(
            "Selection accuracy %.4f; seed MSE %.3f RMSE %.3f",
            report["selection"]["accuracy"], errors["mse"], errors["rmse"],
        )

        if games is not None:
            compared = compare_tournament_outcomes(games, predictions)
            self.tournament_games = compared
            report["tournament"] = {
                **summarize_tournament_comparison(compared),
                "by_season": comparison_by_season(compared).to_dict(orient="records"),
            }
        return _json_safe(report)


def run_pipeline_to_file(config: CommitteePipelineConfig, output_path: str) -> Dict:
    """Run the pipeline, write tables and figures, and save the report as JSON."""
    pipeline = CommitteePipeline(config)
    report = pipeline.run()
    report["artifacts"] = write_outputs(pipeline, report, config.output_dir, config.make_figures)

    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(report, f, indent=2)
    logger.info("Report written to %s", path)
    return report


def _json_safe(value):
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    if value is pd.NA:
        return None
    if hasattr(value, "item"):
        value = value.item()
    if isinstance(value, float) and math.isnan(value):
        return None
    return value
