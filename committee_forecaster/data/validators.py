"""Schema validators for the team-season and game-result tables."""

from __future__ import annotations

from typing import Iterable, List

import numpy as np
import pandas as pd

MAX_FIELD_SIZE = 68
MIN_SEED = 1
MAX_SEED = 16


class DataRequirementError(ValueError):
    """Raised when required input data is missing or malformed."""


def missing_columns(frame: pd.DataFrame, required: Iterable[str]) -> List[str]:
    return [col for col in required if col not in frame.columns]


def validate_seed_column(frame: pd.DataFrame) -> List[str]:
    """
    Check the committee seed invariants of a team-season table.

    Args:
        frame: Table with ``season``, ``seed`` and ``made_tournament`` columns

    Returns:
        List of human-readable violations (empty when valid)
    """
    errors: List[str] = []
    seeds = pd.to_numeric(frame["seed"], errors="coerce")
    present = seeds.notna()

    unparseable = frame["seed"].notna() & ~present
    if unparseable.any():
        errors.append(f"{int(unparseable.sum())} seed values are not numeric")

    values = seeds[present]
    non_integer = values != np.floor(values)
    if non_integer.any():
        errors.append(f"{int(non_integer.sum())} seed values are not integers")

    out_of_range = (values < MIN_SEED) | (values > MAX_SEED)
    if out_of_range.any():
        errors.append(
            f"{int(out_of_range.sum())} seed values fall outside [{MIN_SEED}, {MAX_SEED}]"
        )

    seeded_per_season = present.groupby(frame["season"]).sum()
    for season, count in seeded_per_season.items():
        if count > MAX_FIELD_SIZE:
            errors.append(f"season {season} has {int(count)} seeded teams (max {MAX_FIELD_SIZE})")

    made = pd.to_numeric(frame["made_tournament"], errors="coerce")
    unselected_with_seed = present & (made != 1)
    if unselected_with_seed.any():
        teams = frame.loc[unselected_with_seed, "team"].astype(str).head(5).tolist()
        errors.append(
            "seeded teams not marked as selected: " + ", ".join(teams)
        )
    return errors


def validate_game_results(frame: pd.DataFrame) -> List[str]:
    errors: List[str] = []
    missing = missing_columns(frame, ("season", "team1", "team2", "team1_won"))
    if missing:
        return [f"game results missing columns: {', '.join(missing)}"]

    same_team = frame["team1"] == frame["team2"]
    if same_team.any():
        errors.append(f"{int(same_team.sum())} games list the same team twice")

    unknown_winner = frame["team1_won"].isna()
    if unknown_winner.any():
        errors.append(f"{int(unknown_winner.sum())} games have no winner indicator")
    return errors
