"""
Head-to-head comparison of model and committee seeds against game results.

For each tournament game the better-seeded team is the "favourite". A
seeding scores a hit when its favourite wins; when the favourite loses,
the error is the seed gap to the team that beat it. A seeding that puts
both teams on one line names no favourite and scores a miss with no
error. Games between two teams sharing a committee seed line are
play-ins; they are flagged and left out of the aggregates.
"""

from __future__ import annotations

import logging
from typing import Dict, Tuple

import pandas as pd

logger = logging.getLogger(__name__)

# Seed given to a team missing from a seeding: worse than any real seed line.
ABSENT_SEED = 17


def score_game(team1_seed: float, team2_seed: float, team1_won: bool) -> Tuple[float, float]:
    """
    Score one game under one seeding.

    Args:
        team1_seed: Seed of team1, NaN when absent from the seeding
        team2_seed: Seed of team2, NaN when absent from the seeding
        team1_won: Whether team1 won

    Returns:
        (result, error): result is 1.0 when the better seed won, else 0.0;
        error is the winner's seed minus the favourite's seed when the
        favourite lost, else 0.0. Equal seeds give (0.0, 0.0); both are
        NaN only when neither team is seeded.
    """
    missing1 = pd.isna(team1_seed)
    missing2 = pd.isna(team2_seed)
    if missing1 and missing2:
        return float("nan"), float("nan")
    seed1 = ABSENT_SEED if missing1 else float(team1_seed)
    seed2 = ABSENT_SEED if missing2 else float(team2_seed)
    if seed1 == seed2:
        return 0.0, 0.0

    winner_seed, loser_seed = (seed1, seed2) if team1_won else (seed2, seed1)
    if winner_seed < loser_seed:
        return 1.0, 0.0
    return 0.0, float(winner_seed - loser_seed)


def compare_tournament_outcomes(games: pd.DataFrame, predictions: pd.DataFrame) -> pd.DataFrame:
    """
    Attach model and committee seeds to each game and score both seedings.

    Args:
        games: Rows with ``season``, ``team1``, ``team2``, ``team1_won``
        predictions: Assembled predictions with ``season``, ``team``,
            ``seed`` (committee) and ``pred_seed`` (model)

    Returns:
        Copy of ``games`` with seed columns, ``is_playin``, ``model_result``,
        ``model_error``, ``committee_result`` and ``committee_error``
    """
    seeds = predictions[["season", "team", "seed", "pred_seed"]].copy()
    seeds["seed"] = seeds["seed"].astype(float)
    seeds["pred_seed"] = seeds["pred_seed"].astype(float)

    out = games.copy()
    for side in ("team1", "team2"):
        side_seeds = seeds.rename(
            columns={
                "team": side,
                "seed": f"{side}_committee_seed",
                "pred_seed": f"{side}_model_seed",
            }
        )
        out = out.merge(side_seeds, on=["season", side], how="left")

    unknown = out["team1_committee_seed"].isna() | out["team2_committee_seed"].isna()
    if unknown.any():
        logger.warning("%d games involve a team without a committee seed.", int(unknown.sum()))

    out["is_playin"] = (
        out["team1_committee_seed"].notna()
        & (out["team1_committee_seed"] == out["team2_committee_seed"])
    )
    for prefix in ("model", "committee"):
        scored = [
            score_game(s1, s2, bool(won))
            for s1, s2, won in zip(
                out[f"team1_{prefix}_seed"], out[f"team2_{prefix}_seed"], out["team1_won"]
            )
        ]
        out[f"{prefix}_result"] = [r for r, _ in scored]
        out[f"{prefix}_error"] = [e for _, e in scored]
    return out


def summarize_tournament_comparison(compared: pd.DataFrame) -> Dict[str, float]:
    """Unweighted means of result and error over every non-play-in game."""
    games = compared.loc[~compared["is_playin"]]
    summary: Dict[str, float] = {
        "n_games": int(len(games)),
        "n_playin_excluded": int(compared["is_playin"].sum()),
    }
    for prefix in ("model", "committee"):
        results = games[f"{prefix}_result"].dropna()
        errors = games[f"{prefix}_error"].dropna()
        summary[f"{prefix}_accuracy"] = float(results.mean()) if len(results) else float("nan")
        summary[f"{prefix}_error"] = float(errors.mean()) if len(errors) else float("nan")
        summary[f"{prefix}_undefined"] = int(len(games) - len(results))
    return summary


def comparison_by_season(compared: pd.DataFrame) -> pd.DataFrame:
    games = compared.loc[~compared["is_playin"]]
    return (
        games.groupby("season")[
            ["model_result", "model_error", "committee_result", "committee_error"]
        ]
        .mean()
        .rename(
            columns={
                "model_result": "model_accuracy",
                "committee_result": "committee_accuracy",
            }
        )
        .reset_index()
    )
