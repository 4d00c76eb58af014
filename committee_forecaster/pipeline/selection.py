"""Stage 1: season-rotated selection model with a fixed-size field cutoff."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import pandas as pd

from ..data.validators import MAX_FIELD_SIZE
from ..ml.optimization.hyperparameter_tuning import (
    CLASSIFICATION,
    FittedModel,
    TuningConfig,
    tune_and_fit,
)
from ..ml.optimization.season_rotation import FoldOutcome, LeaveOneSeasonOutCV

logger = logging.getLogger(__name__)

SELECTION_PROB = "selection_prob"
SELECTED = "selected"
TARGET = "made_tournament"


@dataclass
class SelectionResult:
    """Held-out selection predictions for every season."""

    predictions: pd.DataFrame
    folds: List[FoldOutcome] = field(default_factory=list)

    def importances(self) -> pd.DataFrame:
        """Feature importance per fold, one row per held-out season."""
        return fold_importances(self.folds)

    def tuning_summary(self) -> List[dict]:
        return [
            {"fold": f.fold, "season": f.season, **f.model.tuning.to_dict()}
            for f in self.folds
        ]


def apply_selection_cutoff(
    predictions: pd.DataFrame,
    n_selected: int = MAX_FIELD_SIZE,
    prob_column: str = SELECTION_PROB,
) -> pd.DataFrame:
    """
    Label the ``n_selected`` most likely teams of each season as selected.

    Teams are ranked by selection probability descending, equivalently by
    non-selection probability ascending. Equal probabilities fall back to
    team name order, so the cutoff is reproducible.

    Args:
        predictions: Rows with ``season``, ``team`` and the probability column
        n_selected: Field size per season
        prob_column: Column holding the selection probability

    Returns:
        Copy of ``predictions`` with a 0/1 ``selected`` column
    """
    out = predictions.copy()
    ordered = out.sort_values(
        ["season", prob_column, "team"],
        ascending=[True, False, True],
        kind="mergesort",
    )
    position = ordered.groupby("season").cumcount()
    out[SELECTED] = (position < n_selected).astype(int).reindex(out.index)

    per_season = out.groupby("season")[SELECTED].sum()
    for season, count in per_season.items():
        if count < n_selected:
            logger.warning(
                "Season %d has only %d teams; selecting all of them.", season, int(count)
            )
    return out


def run_selection_rotation(
    team_seasons: pd.DataFrame,
    tuning: Optional[TuningConfig] = None,
    n_selected: int = MAX_FIELD_SIZE,
) -> SelectionResult:
    """
    Predict every season's selections with a model trained on the other seasons.

    Args:
        team_seasons: Output of the feature store
        tuning: Optional TuningConfig shared by every fold
        n_selected: Field size per season

    Returns:
        SelectionResult whose predictions carry ``selection_prob`` and ``selected``
    """
    tuning = tuning or TuningConfig()

    def fit(train_rows: pd.DataFrame) -> FittedModel:
        return tune_and_fit(train_rows, TARGET, CLASSIFICATION, "accuracy", tuning)

    def predict(model: FittedModel, test_rows: pd.DataFrame) -> pd.DataFrame:
        held_out = test_rows.copy()
        held_out[SELECTION_PROB] = model.predict_proba(test_rows)
        return held_out

    held_out, folds = LeaveOneSeasonOutCV().rotate(
        team_seasons, fit, predict, label="selection"
    )
    predictions = apply_selection_cutoff(held_out, n_selected=n_selected)
    predictions = predictions.sort_values(["season", "team"], kind="mergesort")

    accuracy = float((predictions[SELECTED] == predictions[TARGET]).mean())
    logger.info("Selection rotation complete: held-out accuracy %.4f", accuracy)
    return SelectionResult(predictions=predictions, folds=folds)


def fold_importances(folds: List[FoldOutcome]) -> pd.DataFrame:
    rows = []
    for outcome in folds:
        importance = outcome.model.feature_importance()
        rows.append(importance.rename(outcome.season))
    if not rows:
        return pd.DataFrame()
    frame = pd.DataFrame(rows).fillna(0.0)
    frame.index.name = "season"
    return frame
