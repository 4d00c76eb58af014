"""Input loading, validation and the team-season feature store."""

from .feature_store import load_and_filter, season_fold
from .loader import DataLoader
from .validators import DataRequirementError

__all__ = ["DataLoader", "DataRequirementError", "load_and_filter", "season_fold"]
