"""
Stage 2: season-rotated seed model and seed-line assignment.

The regression model scores each predicted selection on the seed scale
(lower is better). Scores are turned into seed lines by two ordered rule
tables evaluated top-to-bottom per team:

- play-in roles: conference champions are exempt; among the remaining
  teams, ranked weakest first, ranks 2/3 and 4/5 form the two at-large
  play-in pairs (the weaker team of each pair "floats", the stronger one
  "anchors" the seed line).
- seeds: a float takes its anchor's seed; every other team takes the seed
  of its 4-team band in the compacted ranking of non-float teams, with the
  final band (seed 16) absorbing the extra automatic-bid teams.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from ..data.feature_store import CHAMPION_RESULT
from ..data.validators import MAX_SEED
from ..ml.optimization.hyperparameter_tuning import (
    REGRESSION,
    FittedModel,
    TuningConfig,
    tune_and_fit,
)
from ..ml.optimization.season_rotation import FoldOutcome, LeaveOneSeasonOutCV
from .selection import SELECTED, fold_importances

logger = logging.getLogger(__name__)

SEED_SCORE = "seed_score"
PRED_SEED = "pred_seed"
PLAYIN_ROLE = "playin_role"
TARGET = "seed"
TEAMS_PER_SEED = 4

FLOAT1 = "float1"
FLOAT2 = "float2"
ANCHOR1 = "anchor1"
ANCHOR2 = "anchor2"
NO_ROLE = ""

# Non-champion rank (weakest first) -> play-in role.
PLAYIN_RANKS = {2: FLOAT2, 3: ANCHOR2, 4: FLOAT1, 5: ANCHOR1}
PARTNERS = {FLOAT1: ANCHOR1, FLOAT2: ANCHOR2, ANCHOR1: FLOAT1, ANCHOR2: FLOAT2}
FLOATS = (FLOAT1, FLOAT2)


@dataclass
class TeamSlot:
    """Per-team state threaded through the rule tables."""

    team: str
    score: float
    is_champion: bool
    weak_rank: Optional[int] = None
    compact_rank: Optional[int] = None
    role: str = NO_ROLE
    seed: Optional[int] = None


@dataclass(frozen=True)
class Rule:
    name: str
    applies: Callable[[TeamSlot, "SeasonBoard"], bool]
    outcome: Callable[[TeamSlot, "SeasonBoard"], object]


@dataclass
class SeasonBoard:
    """All slots of one season, keyed by team."""

    slots: Dict[str, TeamSlot]
    n_non_champions: int = 0

    def by_role(self, role: str) -> Optional[TeamSlot]:
        for slot in self.slots.values():
            if slot.role == role:
                return slot
        return None


def band_seed(compact_rank: int) -> int:
    """Seed for a 1-based compacted rank: ranks 1-4 -> 1, 5-8 -> 2, ..., capped at 16."""
    return min(MAX_SEED, math.ceil(compact_rank / TEAMS_PER_SEED))


def _pair_complete(slot: TeamSlot, board: SeasonBoard) -> bool:
    # Both ranks of the pair must exist among the non-champions.
    role = PLAYIN_RANKS[slot.weak_rank]
    ranks = [r for r, name in PLAYIN_RANKS.items() if name in (role, PARTNERS[role])]
    return max(ranks) <= board.n_non_champions


ROLE_RULES: Tuple[Rule, ...] = (
    Rule("champion_exempt", lambda s, b: s.is_champion, lambda s, b: NO_ROLE),
    Rule(
        "playin_pair",
        lambda s, b: s.weak_rank in PLAYIN_RANKS and _pair_complete(s, b),
        lambda s, b: PLAYIN_RANKS[s.weak_rank],
    ),
    Rule("no_role", lambda s, b: True, lambda s, b: NO_ROLE),
)

SEED_RULES: Tuple[Rule, ...] = (
    Rule(
        "float_takes_anchor_seed",
        lambda s, b: s.role in FLOATS,
        lambda s, b: b.by_role(PARTNERS[s.role]).seed,
    ),
    Rule("band_seed", lambda s, b: True, lambda s, b: band_seed(s.compact_rank)),
)


def evaluate_rules(rules: Tuple[Rule, ...], slot: TeamSlot, board: SeasonBoard):
    for rule in rules:
        if rule.applies(slot, board):
            return rule.outcome(slot, board)
    raise ValueError(f"No rule matched team {slot.team}")


def assign_seeds(season_predictions: pd.DataFrame, score_column: str = SEED_SCORE) -> pd.DataFrame:
    """
    Convert one season's seed scores into integer seed lines.

    Args:
        season_predictions: Predicted selections of a single season with
            ``team``, ``conf_tourney`` and the score column
        score_column: Column holding the continuous seed score

    Returns:
        Copy with ``playin_role`` and ``pred_seed`` columns
    """
    out = season_predictions.copy()
    if out.empty:
        out[PLAYIN_ROLE] = pd.Series(dtype=object)
        out[PRED_SEED] = pd.Series(dtype="Int64")
        return out

    slots = {
        row.team: TeamSlot(
            team=row.team,
            score=float(getattr(row, score_column)),
            is_champion=row.conf_tourney == CHAMPION_RESULT,
        )
        for row in out.itertuples(index=False)
    }
    if len(slots) != len(out):
        raise ValueError("Team names must be unique within a season")
    board = SeasonBoard(slots=slots)

    # Weakest first: exact reverse of the (score, team) ranking below.
    contenders = sorted(
        (s for s in slots.values() if not s.is_champion),
        key=lambda s: (s.score, s.team),
        reverse=True,
    )
    for rank, slot in enumerate(contenders, start=1):
        slot.weak_rank = rank
    board.n_non_champions = len(contenders)

    for slot in slots.values():
        slot.role = evaluate_rules(ROLE_RULES, slot, board)

    ranked = sorted(
        (s for s in slots.values() if s.role not in FLOATS),
        key=lambda s: (s.score, s.team),
    )
    for rank, slot in enumerate(ranked, start=1):
        slot.compact_rank = rank

    # Anchors and banded teams first, then floats that read their anchor's seed.
    for slot in ranked:
        slot.seed = evaluate_rules(SEED_RULES, slot, board)
    for slot in slots.values():
        if slot.role in FLOATS:
            slot.seed = evaluate_rules(SEED_RULES, slot, board)

    out[PLAYIN_ROLE] = out["team"].map(lambda t: slots[t].role)
    out[PRED_SEED] = out["team"].map(lambda t: slots[t].seed).astype("Int64")
    return out


@dataclass
class SeedingResult:
    """Held-out seed predictions merged onto the selection predictions."""

    predictions: pd.DataFrame
    folds: List[FoldOutcome] = field(default_factory=list)

    def importances(self) -> pd.DataFrame:
        return fold_importances(self.folds)

    def tuning_summary(self) -> List[dict]:
        return [
            {"fold": f.fold, "season": f.season, **f.model.tuning.to_dict()}
            for f in self.folds
        ]


def run_seeding_rotation(
    team_seasons: pd.DataFrame,
    selections: pd.DataFrame,
    tuning: Optional[TuningConfig] = None,
) -> SeedingResult:
    """
    Seed each season's predicted field with a model trained on other seasons.

    Training rows are the committee's actual selections (the only rows with a
    true seed); test rows are the teams Stage 1 predicted as selected.

    Args:
        team_seasons: Output of the feature store
        selections: Stage 1 predictions for the same rows (``selected`` column)
        tuning: Optional TuningConfig shared by every fold

    Returns:
        SeedingResult with ``seed_score``, ``playin_role`` and ``pred_seed``
        added to the selection predictions (missing for unselected teams)
    """
    tuning = tuning or TuningConfig()
    rows = team_seasons.copy()
    rows[SELECTED] = selections[SELECTED].reindex(rows.index)
    if rows[SELECTED].isna().any():
        raise ValueError("Selection predictions do not cover every team-season")

    def fit(train_rows: pd.DataFrame) -> FittedModel:
        return tune_and_fit(train_rows, TARGET, REGRESSION, "rmse", tuning)

    def predict(model: FittedModel, test_rows: pd.DataFrame) -> pd.DataFrame:
        return pd.DataFrame({SEED_SCORE: model.predict(test_rows)}, index=test_rows.index)

    scores, folds = LeaveOneSeasonOutCV().rotate(
        rows,
        fit,
        predict,
        train_filter=lambda r: r["made_tournament"] == 1,
        test_filter=lambda r: r[SELECTED] == 1,
        label="seeding",
    )

    predictions = selections.copy()
    predictions[SEED_SCORE] = scores[SEED_SCORE].reindex(predictions.index) if len(scores) else np.nan
    seeded = [
        assign_seeds(group)
        for _, group in predictions.loc[predictions[SELECTED] == 1].groupby("season", sort=True)
    ]
    predictions[PLAYIN_ROLE] = NO_ROLE
    predictions[PRED_SEED] = pd.Series(pd.NA, index=predictions.index, dtype="Int64")
    if seeded:
        assigned = pd.concat(seeded)
        predictions.loc[assigned.index, PLAYIN_ROLE] = assigned[PLAYIN_ROLE]
        predictions.loc[assigned.index, PRED_SEED] = assigned[PRED_SEED]

    logger.info(
        "Seeding rotation complete: %d teams seeded across %d seasons",
        int(predictions[PRED_SEED].notna().sum()),
        predictions["season"].nunique(),
    )
    return SeedingResult(predictions=predictions, folds=folds)
