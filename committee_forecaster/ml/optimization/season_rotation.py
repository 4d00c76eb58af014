"""
Leave-One-Season-Out rotation shared by the selection and seeding stages.

Each season is held out in turn: the model for season S is fit on every
other season and predicts only season S. Concatenating the held-out
predictions yields exactly one out-of-sample prediction per row.

For fold indices 1..7 (seasons 2017-2019, 2021-2024):
  Fold 1: train=[2018-2024], test=[2017]
  Fold 2: train=[2017, 2019-2024], test=[2018]
  ... etc
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

import pandas as pd

logger = logging.getLogger(__name__)

RowFilter = Callable[[pd.DataFrame], pd.Series]


class RotationError(RuntimeError):
    """Raised when fitting or predicting fails for any held-out season."""


@dataclass
class SeasonFold:
    """A single held-out season and its training complement."""

    fold: int
    season: int
    train_index: pd.Index
    test_index: pd.Index


@dataclass
class FoldOutcome:
    """Model and bookkeeping produced for one held-out season."""

    fold: int
    season: int
    train_size: int
    test_size: int
    model: Any = None


class LeaveOneSeasonOutCV:
    """
    Rotation over the precomputed fold index of a team-season table.

    Folds come from the ``fold`` column assigned by the feature store and
    are never recomputed here, so both pipeline stages partition identically.
    """

    def __init__(self, fold_column: str = "fold", season_column: str = "season"):
        self.fold_column = fold_column
        self.season_column = season_column

    def split(self, rows: pd.DataFrame) -> List[SeasonFold]:
        """
        Generate one train/test split per fold index.

        Args:
            rows: Team-season table with fold and season columns

        Returns:
            List of SeasonFold ordered by fold index
        """
        seasons_per_fold = rows.groupby(self.fold_column)[self.season_column].unique()
        folds = []
        for fold, seasons in seasons_per_fold.sort_index().items():
            if len(seasons) != 1:
                raise ValueError(
                    f"Fold {fold} spans several seasons: {sorted(int(s) for s in seasons)}"
                )
            test_mask = rows[self.fold_column] == fold
            folds.append(
                SeasonFold(
                    fold=int(fold),
                    season=int(seasons[0]),
                    train_index=rows.index[~test_mask],
                    test_index=rows.index[test_mask],
                )
            )
        return folds

    @staticmethod
    def validate_partition(folds: List[SeasonFold], index: pd.Index) -> None:
        """Check the test sets cover ``index`` exactly once and train sets are complements."""
        tested: set = set()
        for fold in folds:
            overlap = tested.intersection(fold.test_index)
            if overlap:
                raise ValueError(f"Fold {fold.fold} re-tests {len(overlap)} rows")
            tested.update(fold.test_index)
            complement = index.difference(fold.test_index)
            if not complement.equals(fold.train_index.sort_values()):
                raise ValueError(f"Fold {fold.fold} training set is not the test complement")
        if tested != set(index):
            raise ValueError("Fold test sets do not cover every row")

    def rotate(
        self,
        rows: pd.DataFrame,
        fit_fn: Callable[[pd.DataFrame], Any],
        predict_fn: Callable[[Any, pd.DataFrame], pd.DataFrame],
        train_filter: Optional[RowFilter] = None,
        test_filter: Optional[RowFilter] = None,
        label: str = "rotation",
    ) -> Tuple[pd.DataFrame, List[FoldOutcome]]:
        """
        Fit on each fold's training rows and predict its held-out season.

        Args:
            rows: Team-season table
            fit_fn: Callable(train_rows) -> model
            predict_fn: Callable(model, test_rows) -> DataFrame indexed like test_rows
            train_filter: Optional row mask applied inside each training set
            test_filter: Optional row mask applied inside each test set
            label: Name used in log and error messages

        Returns:
            Tuple of (held-out predictions concatenated in season order,
            per-fold outcomes)
        """
        folds = self.split(rows)
        self.validate_partition(folds, rows.index)

        predictions: List[pd.DataFrame] = []
        outcomes: List[FoldOutcome] = []
        for fold in folds:
            train_rows = rows.loc[fold.train_index]
            test_rows = rows.loc[fold.test_index]
            if train_filter is not None:
                train_rows = train_rows.loc[train_filter(train_rows)]
            if test_filter is not None:
                test_rows = test_rows.loc[test_filter(test_rows)]

            logger.info(
                "%s fold %d (season %d): train=%d test=%d",
                label, fold.fold, fold.season, len(train_rows), len(test_rows),
            )
            try:
                model = fit_fn(train_rows)
                fold_preds = predict_fn(model, test_rows) if len(test_rows) else None
            except Exception as exc:
                raise RotationError(
                    f"{label} failed for fold {fold.fold} (season {fold.season}): {exc}"
                ) from exc

            if fold_preds is not None:
                predictions.append(fold_preds)
            outcomes.append(
                FoldOutcome(
                    fold=fold.fold,
                    season=fold.season,
                    train_size=len(train_rows),
                    test_size=len(test_rows),
                    model=model,
                )
            )

        if not predictions:
            return pd.DataFrame(), outcomes
        return pd.concat(predictions), outcomes
