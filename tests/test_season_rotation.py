"""Tests for the leave-one-season-out rotation."""

import pandas as pd
import pytest

from committee_forecaster.data.feature_store import load_and_filter
from committee_forecaster.ml.optimization.season_rotation import (
    LeaveOneSeasonOutCV,
    RotationError,
    SeasonFold,
)


@pytest.fixture
def team_seasons(raw_team_seasons):
    return load_and_filter(raw_team_seasons)


class TestSplit:
    def test_one_fold_per_season(self, team_seasons):
        folds = LeaveOneSeasonOutCV().split(team_seasons)
        assert [f.fold for f in folds] == list(range(1, 8))
        assert [f.season for f in folds] == [2017, 2018, 2019, 2021, 2022, 2023, 2024]

    def test_full_coverage_without_overlap(self, team_seasons):
        folds = LeaveOneSeasonOutCV().split(team_seasons)
        tested = pd.Index([]).append([f.test_index for f in folds])
        assert len(tested) == len(team_seasons)
        assert set(tested) == set(team_seasons.index)
        for fold in folds:
            assert not set(fold.train_index) & set(fold.test_index)
            assert len(fold.train_index) + len(fold.test_index) == len(team_seasons)

    def test_selected_teams_tested_exactly_once(self, team_seasons):
        folds = LeaveOneSeasonOutCV().split(team_seasons)
        selected = set(team_seasons.index[team_seasons["made_tournament"] == 1])
        test_hits = {idx: 0 for idx in selected}
        for fold in folds:
            for idx in selected & set(fold.test_index):
                test_hits[idx] += 1
            # Every other season's selections train this fold's model.
            held_season = team_seasons.loc[fold.test_index, "season"].iloc[0]
            others = {i for i in selected if team_seasons.loc[i, "season"] != held_season}
            assert others <= set(fold.train_index)
        assert set(test_hits.values()) == {1}

    def test_fold_spanning_two_seasons_rejected(self, team_seasons):
        broken = team_seasons.copy()
        broken.loc[broken["season"] == 2018, "fold"] = 1
        with pytest.raises(ValueError, match="spans several seasons"):
            LeaveOneSeasonOutCV().split(broken)


class TestValidatePartition:
    def test_overlapping_test_sets_rejected(self):
        index = pd.RangeIndex(6)
        folds = [
            SeasonFold(1, 2017, pd.Index([3, 4, 5]), pd.Index([0, 1, 2])),
            SeasonFold(2, 2018, pd.Index([0, 1, 5]), pd.Index([2, 3, 4])),
        ]
        with pytest.raises(ValueError, match="re-tests"):
            LeaveOneSeasonOutCV.validate_partition(folds, index)

    def test_incomplete_coverage_rejected(self):
        index = pd.RangeIndex(6)
        folds = [SeasonFold(1, 2017, pd.Index([3, 4, 5]), pd.Index([0, 1, 2]))]
        with pytest.raises(ValueError, match="cover"):
            LeaveOneSeasonOutCV.validate_partition(folds, index)

    def test_training_set_must_be_complement(self):
        index = pd.RangeIndex(4)
        folds = [
            SeasonFold(1, 2017, pd.Index([2]), pd.Index([0, 1])),
            SeasonFold(2, 2018, pd.Index([0, 1]), pd.Index([2, 3])),
        ]
        with pytest.raises(ValueError, match="complement"):
            LeaveOneSeasonOutCV.validate_partition(folds, index)


class TestRotate:
    def test_predictions_cover_every_row_once(self, team_seasons):
        seen_train_seasons = []

        def fit(train_rows):
            seen_train_seasons.append(set(train_rows["season"]))
            return float(train_rows["made_tournament"].mean())

        def predict(model, test_rows):
            return pd.DataFrame({"p": model}, index=test_rows.index)

        preds, outcomes = LeaveOneSeasonOutCV().rotate(team_seasons, fit, predict)
        assert len(preds) == len(team_seasons)
        assert preds.index.is_unique
        assert len(outcomes) == 7
        for outcome, train_seasons in zip(outcomes, seen_train_seasons):
            assert outcome.season not in train_seasons
            assert len(train_seasons) == 6

    def test_filters_restrict_train_and_test_rows(self, team_seasons):
        def fit(train_rows):
            assert (train_rows["made_tournament"] == 1).all()
            return None

        def predict(model, test_rows):
            return pd.DataFrame({"p": 0.0}, index=test_rows.index)

        preds, outcomes = LeaveOneSeasonOutCV().rotate(
            team_seasons,
            fit,
            predict,
            train_filter=lambda r: r["made_tournament"] == 1,
            test_filter=lambda r: r["seed"].notna(),
        )
        assert len(preds) == 68 * 7
        assert all(o.train_size == 68 * 6 for o in outcomes)

    def test_fit_failure_aborts_whole_run(self, team_seasons):
        def fit(train_rows):
            if 2021 not in set(train_rows["season"]):
                raise RuntimeError("learner exploded")
            return None

        def predict(model, test_rows):
            return pd.DataFrame({"p": 0.0}, index=test_rows.index)

        with pytest.raises(RotationError, match="season 2021") as excinfo:
            LeaveOneSeasonOutCV().rotate(team_seasons, fit, predict)
        assert isinstance(excinfo.value.__cause__, RuntimeError)
