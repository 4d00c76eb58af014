"""CSV tables summarising a pipeline run."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional

import pandas as pd

from ..data.feature_store import glossary_table

logger = logging.getLogger(__name__)

PREDICTION_COLUMNS = [
    "season",
    "team",
    "conf_tourney",
    "made_tournament",
    "selection_prob",
    "selected",
    "seed",
    "seed_score",
    "playin_role",
    "pred_seed",
]


def seed_error_table(report: Dict) -> pd.DataFrame:
    """Per-season MSE/RMSE with an ``overall`` row appended."""
    seeding = report["seeding"]
    by_season = pd.DataFrame(seeding["by_season"])
    overall = pd.DataFrame(
        [
            {
                "season": "overall",
                "n": seeding["n"],
                "excluded": seeding["excluded"],
                "mse": seeding["mse"],
                "rmse": seeding["rmse"],
            }
        ]
    )
    return pd.concat([by_season, overall], ignore_index=True)


def tournament_table(report: Dict) -> Optional[pd.DataFrame]:
    tournament = report.get("tournament")
    if not tournament:
        return None
    return pd.DataFrame(
        [
            {
                "seeding": source,
                "accuracy": tournament[f"{source}_accuracy"],
                "mean_error": tournament[f"{source}_error"],
                "undefined_games": tournament[f"{source}_undefined"],
                "n_games": tournament["n_games"],
            }
            for source in ("model", "committee")
        ]
    )


def write_tables(
    report: Dict,
    predictions: pd.DataFrame,
    output_dir: str,
    tournament_games: Optional[pd.DataFrame] = None,
) -> Dict[str, str]:
    """
    Write the glossary, selection, seeding and tournament tables.

    Returns:
        Mapping of table name -> written path
    """
    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    tables = {
        "predictor_glossary": glossary_table(),
        "selection_by_season": pd.DataFrame(report["selection"]["by_season"]),
        "seed_error": seed_error_table(report),
        "predictions": predictions[[c for c in PREDICTION_COLUMNS if c in predictions.columns]],
    }
    comparison = tournament_table(report)
    if comparison is not None:
        tables["tournament_summary"] = comparison
    if tournament_games is not None:
        tables["tournament_games"] = tournament_games

    paths = {}
    for name, frame in tables.items():
        path = out_dir / f"{name}.csv"
        frame.to_csv(path, index=False)
        paths[name] = str(path)
    logger.info("Wrote %d tables to %s", len(paths), out_dir)
    return paths
