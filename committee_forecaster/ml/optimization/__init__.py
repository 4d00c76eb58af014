"""Season rotation and tree-depth tuning."""

from .hyperparameter_tuning import FittedModel, TuningConfig, TuningResult, tune_and_fit
from .season_rotation import FoldOutcome, LeaveOneSeasonOutCV, RotationError, SeasonFold

__all__ = [
    "FittedModel",
    "FoldOutcome",
    "LeaveOneSeasonOutCV",
    "RotationError",
    "SeasonFold",
    "TuningConfig",
    "TuningResult",
    "tune_and_fit",
]
