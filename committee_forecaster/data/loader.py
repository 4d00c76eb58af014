"""CSV loaders for team-season metrics and tournament game results."""

import logging
from pathlib import Path

import pandas as pd

from .validators import DataRequirementError, validate_game_results

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {"1", "true", "t", "yes", "y", "w", "win"}
_FALSE_STRINGS = {"0", "false", "f", "no", "n", "l", "loss"}


class DataLoader:
    """Loads the raw input tables from CSV files."""

    @staticmethod
    def load_team_seasons(file_path: str) -> pd.DataFrame:
        """
        Load the per-team-per-season metrics table.

        Args:
            file_path: Path to CSV file

        Returns:
            Raw DataFrame, one row per team and season
        """
        path = DataLoader._require_file(file_path, "team-season table")
        frame = pd.read_csv(path)
        if frame.empty:
            raise DataRequirementError(f"Team-season table is empty: {path}")
        logger.info("Loaded %d team-season rows from %s", len(frame), path)
        return frame

    @staticmethod
    def load_game_results(file_path: str) -> pd.DataFrame:
        """
        Load historical tournament game results.

        Args:
            file_path: Path to CSV file with ``season``, ``team1``, ``team2``
                and ``team1_won`` columns

        Returns:
            DataFrame with ``team1_won`` coerced to bool
        """
        path = DataLoader._require_file(file_path, "game results")
        frame = pd.read_csv(path)
        frame = DataLoader.normalize_game_results(frame)
        logger.info("Loaded %d tournament games from %s", len(frame), path)
        return frame

    @staticmethod
    def normalize_game_results(frame: pd.DataFrame) -> pd.DataFrame:
        """Coerce column types of a game-results table and validate it."""
        frame = frame.copy()
        if "team1_won" in frame.columns:
            frame["team1_won"] = frame["team1_won"].map(DataLoader._parse_winner)
        errors = validate_game_results(frame)
        if errors:
            raise DataRequirementError("Invalid game results: " + "; ".join(errors))
        frame["season"] = frame["season"].astype(int)
        frame["team1"] = frame["team1"].astype(str)
        frame["team2"] = frame["team2"].astype(str)
        frame["team1_won"] = frame["team1_won"].astype(bool)
        return frame

    @staticmethod
    def _parse_winner(value):
        if isinstance(value, bool):
            return value
        if pd.isna(value):
            return None
        text = str(value).strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
        try:
            return float(text) != 0.0
        except ValueError:
            return None

    @staticmethod
    def _require_file(file_path: str, label: str) -> Path:
        if not file_path:
            raise DataRequirementError(f"No path given for {label}.")
        path = Path(file_path)
        if not path.is_file():
            raise DataRequirementError(f"{label} file not found: {path}")
        return path
