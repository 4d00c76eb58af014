"""
Tree-depth search and final fit for the gradient-boosted committee models.

Provides:
- TuningConfig: search and learner knobs shared by both stages
- depth_grid: regular integer grid over tree depth
- GradientBoostingTuner: Optuna grid search scored by stratified k-fold CV
- FittedModel: preprocessing + XGBoost pipeline refit at the best depth
- tune_and_fit: entry point used by the selection and seeding stages
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np
import optuna
import pandas as pd
from sklearn.compose import ColumnTransformer
from sklearn.model_selection import StratifiedKFold, cross_val_score
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder, StandardScaler
from xgboost import XGBClassifier, XGBRegressor

optuna.logging.set_verbosity(optuna.logging.WARNING)

logger = logging.getLogger(__name__)

CLASSIFICATION = "classification"
REGRESSION = "regression"

# metric -> (sklearn scorer, sign converting the scorer value to the reported metric)
METRICS = {
    "accuracy": ("accuracy", 1.0),
    "rmse": ("neg_root_mean_squared_error", -1.0),
}

# Never model features: identifiers, rotation bookkeeping and pipeline outputs.
ALWAYS_EXCLUDED = (
    "team",
    "season",
    "fold",
    "selection_prob",
    "selected",
    "seed_score",
    "pred_seed",
    "playin_role",
)
MODE_EXCLUDED = {
    CLASSIFICATION: ("seed",),
    REGRESSION: ("made_tournament",),
}


@dataclass
class TuningConfig:
    """Search space and learner settings."""

    n_estimators: int = 1500
    depth_low: int = 3
    depth_high: int = 6
    depth_levels: int = 10
    cv_folds: int = 5
    learning_rate: float = 0.3
    random_seed: int = 2024
    n_jobs: int = 1


@dataclass
class TuningResult:
    """Result of the tree-depth search."""

    best_depth: int
    best_score: float
    metric: str
    scores: Dict[int, float] = field(default_factory=dict)
    n_train: int = 0

    def to_dict(self) -> Dict:
        return {
            "best_depth": self.best_depth,
            "best_score": round(self.best_score, 6),
            "metric": self.metric,
            "scores": {str(depth): round(score, 6) for depth, score in self.scores.items()},
            "n_train": self.n_train,
        }


def depth_grid(low: int, high: int, levels: int) -> List[int]:
    """
    Regular grid of integer tree depths.

    ``levels`` evenly spaced points on [low, high] are rounded to integers
    and de-duplicated, so 10 levels on [3, 6] yields [3, 4, 5, 6].
    """
    if low > high:
        raise ValueError(f"depth_low ({low}) must not exceed depth_high ({high})")
    points = np.linspace(low, high, max(levels, 1))
    return sorted({int(round(p)) for p in points})


def model_features(rows: pd.DataFrame, target: str, mode: str) -> List[str]:
    excluded = set(ALWAYS_EXCLUDED) | set(MODE_EXCLUDED[mode]) | {target}
    return [col for col in rows.columns if col not in excluded]


def _is_categorical(series: pd.Series) -> bool:
    return not pd.api.types.is_numeric_dtype(series) or pd.api.types.is_bool_dtype(series)


def build_pipeline(
    rows: pd.DataFrame,
    features: Sequence[str],
    mode: str,
    max_depth: int,
    config: TuningConfig,
) -> Pipeline:
    """Standardize numerics, one-hot encode categoricals, then boost trees."""
    categorical = [col for col in features if _is_categorical(rows[col])]
    numeric = [col for col in features if col not in categorical]

    preprocess = ColumnTransformer(
        [
            ("num", StandardScaler(), numeric),
            ("cat", OneHotEncoder(handle_unknown="ignore", sparse_output=False), categorical),
        ],
        verbose_feature_names_out=False,
    )
    params = dict(
        n_estimators=config.n_estimators,
        max_depth=max_depth,
        learning_rate=config.learning_rate,
        random_state=config.random_seed,
        n_jobs=config.n_jobs,
    )
    if mode == CLASSIFICATION:
        learner = XGBClassifier(objective="binary:logistic", eval_metric="logloss", **params)
    else:
        learner = XGBRegressor(objective="reg:squarederror", **params)
    return Pipeline([("preprocess", preprocess), ("model", learner)])


class FittedModel:
    """A preprocessing + boosting pipeline refit on the full training set."""

    def __init__(
        self,
        pipeline: Pipeline,
        mode: str,
        target: str,
        features: List[str],
        tuning: TuningResult,
    ):
        self.pipeline = pipeline
        self.mode = mode
        self.target = target
        self.features = features
        self.tuning = tuning

    def predict(self, rows: pd.DataFrame) -> np.ndarray:
        """Class labels in classification mode, continuous scores in regression mode."""
        return self.pipeline.predict(rows[self.features])

    def predict_proba(self, rows: pd.DataFrame) -> np.ndarray:
        """Probability of the positive class for each row."""
        if self.mode != CLASSIFICATION:
            raise ValueError("predict_proba is only available for classification models")
        return self.pipeline.predict_proba(rows[self.features])[:, 1]

    def feature_importance(self) -> pd.Series:
        """Gain-based importance per encoded feature, sorted descending."""
        names = self.pipeline.named_steps["preprocess"].get_feature_names_out()
        values = self.pipeline.named_steps["model"].feature_importances_
        return pd.Series(values, index=names, name="importance").sort_values(ascending=False)


class GradientBoostingTuner:
    """
    Grid search over XGBoost tree depth.

    Every depth on the grid is scored by stratified k-fold cross-validation
    (stratified on the class label or on the integer seed). Candidates are
    enumerated through an Optuna GridSampler study; the fold assignment uses
    a fixed seed so repeated runs pick the same depth.
    """

    def __init__(self, config: Optional[TuningConfig] = None):
        self.config = config or TuningConfig()

    def tune(
        self,
        rows: pd.DataFrame,
        target: str,
        mode: str,
        metric: str,
        features: List[str],
    ) -> TuningResult:
        scorer, sign = METRICS[metric]
        y = rows[target].astype(float).to_numpy()
        strata = np.rint(y).astype(int)
        cv = StratifiedKFold(
            n_splits=self.config.cv_folds,
            shuffle=True,
            random_state=self.config.random_seed,
        )
        splits = list(cv.split(np.zeros(len(strata)), strata))
        grid = depth_grid(self.config.depth_low, self.config.depth_high, self.config.depth_levels)
        scores: Dict[int, float] = {}

        def objective(trial: optuna.Trial) -> float:
            depth = trial.suggest_int("max_depth", grid[0], grid[-1])
            pipeline = build_pipeline(rows, features, mode, depth, self.config)
            cv_scores = cross_val_score(
                pipeline,
                rows[features],
                _target_values(y, mode),
                scoring=scorer,
                cv=splits,
                error_score="raise",
            )
            score = sign * float(np.mean(cv_scores))
            scores[depth] = score
            logger.debug("%s depth=%d cv %s=%.4f", target, depth, metric, score)
            return score

        study = optuna.create_study(
            direction="maximize" if sign > 0 else "minimize",
            study_name=f"{target}_{mode}_depth",
            sampler=optuna.samplers.GridSampler(
                {"max_depth": grid}, seed=self.config.random_seed
            ),
        )
        study.optimize(objective, n_trials=len(grid))

        best_depth = _best_depth(scores, maximize=sign > 0)
        return TuningResult(
            best_depth=best_depth,
            best_score=scores[best_depth],
            metric=metric,
            scores=dict(sorted(scores.items())),
            n_train=len(rows),
        )


def tune_and_fit(
    train_rows: pd.DataFrame,
    target: str,
    mode: str,
    metric: str,
    config: Optional[TuningConfig] = None,
) -> FittedModel:
    """
    Tune tree depth by cross-validation and refit on all training rows.

    Args:
        train_rows: Training team-seasons (left unmodified)
        target: Name of the target column
        mode: "classification" or "regression"
        metric: "accuracy" or "rmse"
        config: Optional TuningConfig

    Returns:
        FittedModel refit at the best-scoring depth
    """
    if mode not in MODE_EXCLUDED:
        raise ValueError(f"Unknown mode: {mode}")
    if metric not in METRICS:
        raise ValueError(f"Unknown metric: {metric}")
    if target not in train_rows.columns:
        raise ValueError(f"Target column '{target}' not in training rows")

    config = config or TuningConfig()
    rows = train_rows.loc[train_rows[target].notna()]
    features = model_features(rows, target, mode)
    if not features:
        raise ValueError("No predictor columns left after exclusions")

    result = GradientBoostingTuner(config).tune(rows, target, mode, metric, features)
    logger.info(
        "Tuned %s (%s): depth=%d cv %s=%.4f on %d rows",
        target, mode, result.best_depth, metric, result.best_score, len(rows),
    )

    pipeline = build_pipeline(rows, features, mode, result.best_depth, config)
    pipeline.fit(rows[features], _target_values(rows[target].astype(float).to_numpy(), mode))
    return FittedModel(pipeline, mode, target, features, result)


def _target_values(y: np.ndarray, mode: str) -> np.ndarray:
    if mode == CLASSIFICATION:
        return y.astype(int)
    return y.astype(float)


def _best_depth(scores: Dict[int, float], maximize: bool) -> int:
    # Shallowest depth wins ties.
    ordered = sorted(scores.items(), key=lambda item: (-item[1] if maximize else item[1], item[0]))
    return ordered[0][0]
