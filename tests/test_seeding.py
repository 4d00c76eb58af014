"""Tests for seed-line assignment and the Stage 2 rotation."""

import pandas as pd
import pytest

from committee_forecaster.data.feature_store import load_and_filter
from committee_forecaster.ml.optimization.hyperparameter_tuning import TuningConfig
from committee_forecaster.pipeline.seeding import (
    ANCHOR1,
    ANCHOR2,
    FLOAT1,
    FLOAT2,
    NO_ROLE,
    PLAYIN_ROLE,
    PRED_SEED,
    SEED_SCORE,
    assign_seeds,
    band_seed,
    run_seeding_rotation,
)
from committee_forecaster.pipeline.selection import SELECTED, run_selection_rotation

FAST = TuningConfig(n_estimators=10, cv_folds=3, depth_high=4, random_seed=5)


def field(scores, champions):
    """One season's predicted field; ``champions`` is a set of team numbers."""
    return pd.DataFrame(
        {
            "team": [f"Team {n:02d}" for n in scores],
            "season": 2022,
            "conf_tourney": ["champion" if n in champions else "semis" for n in scores],
            SEED_SCORE: [float(s) for s in scores.values()],
        }
    )


def seeds_by_team(out):
    return dict(zip(out["team"], out[PRED_SEED]))


def roles_by_team(out):
    return dict(zip(out["team"], out[PLAYIN_ROLE]))


@pytest.mark.parametrize(
    "rank,seed", [(1, 1), (4, 1), (5, 2), (33, 9), (60, 15), (61, 16), (66, 16), (70, 16)]
)
def test_band_seed(rank, seed):
    assert band_seed(rank) == seed


class TestAssignSeeds:
    @pytest.fixture
    def full_field(self):
        # Team n has score n; teams 39-68 won their conference tournaments.
        return field({n: n for n in range(1, 69)}, champions=set(range(39, 69)))

    def test_playin_roles_go_to_last_at_large_teams(self, full_field):
        roles = roles_by_team(assign_seeds(full_field))
        assert roles["Team 37"] == FLOAT2
        assert roles["Team 36"] == ANCHOR2
        assert roles["Team 35"] == FLOAT1
        assert roles["Team 34"] == ANCHOR1
        assert sum(1 for r in roles.values() if r != NO_ROLE) == 4

    def test_weakest_at_large_team_has_no_role(self, full_field):
        roles = roles_by_team(assign_seeds(full_field))
        assert roles["Team 38"] == NO_ROLE

    def test_champions_never_float(self, full_field):
        out = assign_seeds(full_field)
        champs = out["conf_tourney"] == "champion"
        assert (out.loc[champs, PLAYIN_ROLE] == NO_ROLE).all()

    def test_floats_share_anchor_seed(self, full_field):
        seeds = seeds_by_team(assign_seeds(full_field))
        assert seeds["Team 34"] == seeds["Team 35"] == 9
        assert seeds["Team 36"] == seeds["Team 37"] == 9

    def test_seed_line_sizes(self, full_field):
        out = assign_seeds(full_field)
        counts = out[PRED_SEED].value_counts().sort_index()
        assert list(counts.index) == list(range(1, 17))
        assert counts[9] == 6
        assert counts[16] == 6
        assert all(counts[s] == 4 for s in range(1, 16) if s != 9)

    def test_seeds_follow_score_order(self, full_field):
        out = assign_seeds(full_field)
        seeds = seeds_by_team(out)
        assert [seeds[f"Team {n:02d}"] for n in (1, 4, 5, 32, 33)] == [1, 1, 2, 8, 9]
        assert [seeds[f"Team {n:02d}"] for n in range(63, 69)] == [16] * 6
        non_floats = out.loc[~out[PLAYIN_ROLE].isin([FLOAT1, FLOAT2])].sort_values(SEED_SCORE)
        assert non_floats[PRED_SEED].is_monotonic_increasing

    def test_seeds_within_range(self, full_field):
        out = assign_seeds(full_field)
        assert out[PRED_SEED].between(1, 16).all()
        assert str(out[PRED_SEED].dtype) == "Int64"

    def test_input_row_order_irrelevant(self, full_field):
        forward = seeds_by_team(assign_seeds(full_field))
        backward = seeds_by_team(assign_seeds(full_field.iloc[::-1]))
        assert forward == backward

    def test_score_ties_broken_by_team_name(self):
        scores = {n: n for n in range(1, 11)}
        scores[9] = scores[10] = 9.0
        out = assign_seeds(field(scores, champions=set()))
        roles = roles_by_team(out)
        # Team 10 sorts after Team 09, so it is ranked as the weaker of the two.
        assert roles["Team 10"] == NO_ROLE
        assert roles["Team 09"] == FLOAT2
        assert roles["Team 08"] == ANCHOR2

    def test_weak_champions_bypass_playin(self):
        # The two weakest teams both won their conference tournaments.
        scores = {n: n for n in range(1, 21)}
        out = assign_seeds(field(scores, champions={19, 20}))
        roles = roles_by_team(out)
        assert roles["Team 19"] == roles["Team 20"] == NO_ROLE
        assert roles["Team 17"] == FLOAT2
        assert roles["Team 14"] == ANCHOR1
        seeds = seeds_by_team(out)
        # Compacted ranks 17 and 18 once the two floats are set aside.
        assert seeds["Team 19"] == seeds["Team 20"] == 5

    def test_single_playin_pair_with_three_at_large_teams(self):
        scores = {n: n for n in range(1, 11)}
        out = assign_seeds(field(scores, champions=set(range(1, 8))))
        roles = roles_by_team(out)
        assert roles["Team 09"] == FLOAT2
        assert roles["Team 08"] == ANCHOR2
        assert FLOAT1 not in roles.values()
        assert ANCHOR1 not in roles.values()
        seeds = seeds_by_team(out)
        assert seeds["Team 09"] == seeds["Team 08"]

    def test_no_playin_with_two_at_large_teams(self):
        scores = {n: n for n in range(1, 11)}
        out = assign_seeds(field(scores, champions=set(range(1, 9))))
        assert (out[PLAYIN_ROLE] == NO_ROLE).all()
        assert seeds_by_team(out)["Team 10"] == 3

    def test_empty_season(self):
        out = assign_seeds(field({}, champions=set()))
        assert out.empty
        assert PRED_SEED in out.columns
        assert PLAYIN_ROLE in out.columns

    def test_duplicate_team_names_rejected(self):
        frame = field({1: 1, 2: 2}, champions=set())
        frame.loc[1, "team"] = "Team 01"
        with pytest.raises(ValueError, match="unique"):
            assign_seeds(frame)


class TestSeedingRotation:
    @pytest.fixture
    def team_seasons(self, make_raw_team_seasons):
        return load_and_filter(make_raw_team_seasons(n_teams=74, seasons=[2017, 2018, 2019]))

    @pytest.fixture
    def seeded(self, team_seasons):
        selection = run_selection_rotation(team_seasons, tuning=FAST)
        return run_seeding_rotation(team_seasons, selection.predictions, tuning=FAST)

    def test_only_predicted_selections_are_seeded(self, seeded):
        preds = seeded.predictions
        selected = preds[SELECTED] == 1
        assert preds.loc[selected, PRED_SEED].notna().all()
        assert preds.loc[~selected, PRED_SEED].isna().all()
        assert preds.loc[~selected, SEED_SCORE].isna().all()
        assert (preds.loc[~selected, PLAYIN_ROLE] == NO_ROLE).all()

    def test_each_season_seeded_independently(self, seeded):
        preds = seeded.predictions
        for _, season in preds.loc[preds[SELECTED] == 1].groupby("season"):
            assert season[PRED_SEED].between(1, 16).all()
            assert season[PRED_SEED].min() == 1
            assert season[PRED_SEED].max() == 16

    def test_models_train_on_committee_field(self, seeded):
        assert [f.season for f in seeded.folds] == [2017, 2018, 2019]
        assert all(f.train_size == 68 * 2 for f in seeded.folds)
        assert all(f.test_size == 68 for f in seeded.folds)
        assert all(s["metric"] == "rmse" for s in seeded.tuning_summary())

    def test_selections_must_cover_team_seasons(self, team_seasons):
        partial = team_seasons.iloc[:10].assign(selected=1)
        with pytest.raises(ValueError, match="cover"):
            run_seeding_rotation(team_seasons, partial, tuning=FAST)
