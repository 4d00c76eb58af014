"""Committee-usable predictors and season fold assignment for team-season rows."""

from __future__ import annotations

import logging
from typing import Dict

import pandas as pd

from .validators import DataRequirementError, missing_columns, validate_seed_column

logger = logging.getLogger(__name__)

FIRST_SEASON = 2017
CANCELLED_SEASON = 2020

ID_COLUMNS = ["team", "season"]
NUMERIC_PREDICTORS = [
    "win_pct",
    "sos",
    "nc_sos",
    "sor",
    "wab",
    "kpi",
    "net",
    "bpi",
    "kenpom",
    "q1_wins",
    "q1_losses",
]
CATEGORICAL_PREDICTORS = ["conf_tourney", "prev_tourney"]
LABEL_COLUMNS = ["made_tournament", "seed"]
FOLD_COLUMN = "fold"
INELIGIBLE_COLUMN = "ineligible"

REQUIRED_COLUMNS = ID_COLUMNS + NUMERIC_PREDICTORS + CATEGORICAL_PREDICTORS + LABEL_COLUMNS
CHAMPION_RESULT = "champion"

PREDICTOR_GLOSSARY: Dict[str, Dict[str, str]] = {
    "win_pct": {"kind": "record", "description": "Overall winning percentage"},
    "sos": {"kind": "schedule", "description": "Strength of schedule rank"},
    "nc_sos": {"kind": "schedule", "description": "Non-conference strength of schedule rank"},
    "sor": {"kind": "resume", "description": "ESPN strength of record rank"},
    "wab": {"kind": "resume", "description": "Wins above bubble rank"},
    "kpi": {"kind": "resume", "description": "Kevin Pauga Index rank"},
    "net": {"kind": "predictive", "description": "NCAA Evaluation Tool rank"},
    "bpi": {"kind": "predictive", "description": "ESPN Basketball Power Index rank"},
    "kenpom": {"kind": "predictive", "description": "KenPom adjusted efficiency rank"},
    "q1_wins": {"kind": "record", "description": "Quadrant 1 wins"},
    "q1_losses": {"kind": "record", "description": "Quadrant 1 losses"},
    "conf_tourney": {
        "kind": "record",
        "description": "Conference tournament result ('champion' earns the automatic bid)",
    },
    "prev_tourney": {"kind": "record", "description": "Previous season's NCAA tournament result"},
}


def season_fold(season: int) -> int:
    """
    Map a season to its rotation index.

    2017-2019 map to 1-3 and 2021-2024 to 4-7, keeping indices contiguous
    across the cancelled 2020 tournament.
    """
    if season < CANCELLED_SEASON:
        return season - (FIRST_SEASON - 1)
    return season - FIRST_SEASON


def load_and_filter(raw_table: pd.DataFrame) -> pd.DataFrame:
    """
    Reduce a raw team-season table to committee-usable predictors.

    Args:
        raw_table: Raw per-team-per-season table

    Returns:
        New DataFrame with identifiers, predictors, labels and ``fold``
    """
    missing = missing_columns(raw_table, REQUIRED_COLUMNS)
    if missing:
        raise DataRequirementError(
            "Team-season table is missing required columns: " + ", ".join(missing)
        )

    frame = raw_table.copy()
    if INELIGIBLE_COLUMN in frame.columns:
        ineligible = _as_label(frame[INELIGIBLE_COLUMN].fillna(0), INELIGIBLE_COLUMN).astype(bool)
        if ineligible.any():
            logger.info("Dropping %d ineligible team-seasons.", int(ineligible.sum()))
        frame = frame.loc[~ineligible]

    dropped = [col for col in frame.columns if col not in REQUIRED_COLUMNS]
    if dropped:
        logger.debug("Dropping non-predictor columns: %s", ", ".join(dropped))
    frame = frame[REQUIRED_COLUMNS].copy()

    frame["season"] = pd.to_numeric(frame["season"], errors="coerce")
    if frame["season"].isna().any():
        raise DataRequirementError("Team-season table has rows without a valid season.")
    frame["season"] = frame["season"].astype(int)
    frame = frame.loc[frame["season"] >= FIRST_SEASON]

    cancelled = frame["season"] == CANCELLED_SEASON
    if cancelled.any():
        logger.info("Skipping season %d (no tournament).", CANCELLED_SEASON)
        frame = frame.loc[~cancelled]
    frame = frame.copy()
    if frame.empty:
        raise DataRequirementError(f"No team-seasons from {FIRST_SEASON} onward.")

    frame["team"] = frame["team"].astype(str)
    for col in NUMERIC_PREDICTORS:
        frame[col] = pd.to_numeric(frame[col], errors="coerce")
    for col in CATEGORICAL_PREDICTORS:
        frame[col] = frame[col].astype(object).where(frame[col].notna(), None)
    frame["made_tournament"] = _as_label(frame["made_tournament"], "made_tournament")

    errors = validate_seed_column(frame)
    if errors:
        raise DataRequirementError("Seed invariants violated: " + "; ".join(errors))
    frame["seed"] = pd.to_numeric(frame["seed"], errors="coerce").astype("Int64")

    duplicated = frame.duplicated(subset=ID_COLUMNS)
    if duplicated.any():
        raise DataRequirementError(
            f"{int(duplicated.sum())} duplicate (team, season) rows in team-season table."
        )

    frame[FOLD_COLUMN] = frame["season"].map(season_fold).astype(int)
    frame = frame.sort_values(["season", "team"], kind="mergesort").reset_index(drop=True)
    logger.info(
        "Feature store holds %d team-seasons across %d seasons.",
        len(frame),
        frame["season"].nunique(),
    )
    return frame


def glossary_table() -> pd.DataFrame:
    rows = [
        {"predictor": name, "kind": entry["kind"], "description": entry["description"]}
        for name, entry in PREDICTOR_GLOSSARY.items()
    ]
    return pd.DataFrame(rows, columns=["predictor", "kind", "description"])


def _as_label(values: pd.Series, name: str) -> pd.Series:
    if values.dtype == bool:
        return values.astype(int)
    text = values.astype(str).str.strip().str.lower()
    mapped = text.map({"1": 1, "1.0": 1, "true": 1, "yes": 1, "0": 0, "0.0": 0, "false": 0, "no": 0})
    if mapped.isna().any():
        bad = values[mapped.isna()].astype(str).unique()[:5]
        raise DataRequirementError(
            f"{name} must be a 0/1 label; got: " + ", ".join(bad)
        )
    return mapped.astype(int)
