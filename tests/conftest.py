"""Synthetic team-season tables shared by the test modules."""

import numpy as np
import pandas as pd
import pytest

SEASONS = [2017, 2018, 2019, 2021, 2022, 2023, 2024]
FIELD_SEEDS = sorted([s for s in range(1, 17) for _ in range(4)] + [11, 11, 16, 16])
N_CHAMPIONS = 24


def build_raw_team_seasons(n_teams=80, seasons=SEASONS, seed=7):
    """
    Raw team-season table with committee-like selections and seeds.

    Each season the conference champions take automatic bids, the best
    remaining teams fill the 68-team field, and seed lines follow team
    quality (seed lines 11 and 16 hold six teams).
    """
    rng = np.random.default_rng(seed)
    rows = []
    for season in seasons:
        quality = rng.normal(0.0, 1.0, size=n_teams)
        order = np.argsort(-quality)
        rank = np.empty(n_teams, dtype=int)
        rank[order] = np.arange(1, n_teams + 1)

        champions = set(rng.choice(n_teams, size=N_CHAMPIONS, replace=False).tolist())
        at_large = [int(i) for i in order if int(i) not in champions]
        field = set(champions) | set(at_large[: 68 - len(champions)])
        field_order = [int(i) for i in order if int(i) in field]
        seeds = {team: FIELD_SEEDS[pos] for pos, team in enumerate(field_order)}

        for i in range(n_teams):
            noisy = lambda scale: float(max(1, rank[i] * 4 + rng.normal(0, scale)))
            rows.append(
                {
                    "team": f"Team {i:03d}",
                    "team_id": 1000 + i,
                    "conference": f"Conf {i % 12}",
                    "season": season,
                    "win_pct": float(np.clip(0.55 + 0.12 * quality[i] + rng.normal(0, 0.05), 0.1, 1.0)),
                    "sos": noisy(40),
                    "nc_sos": noisy(80),
                    "sor": noisy(20),
                    "wab": noisy(20),
                    "kpi": noisy(25),
                    "net": noisy(15),
                    "bpi": noisy(20),
                    "kenpom": noisy(18),
                    "q1_wins": int(max(0, round(4 + 3 * quality[i] + rng.normal(0, 1)))),
                    "q1_losses": int(max(0, round(4 - quality[i] + rng.normal(0, 1)))),
                    "conf_tourney": "champion" if i in champions else rng.choice(["runner_up", "semis", "early"]),
                    "prev_tourney": rng.choice(["none", "first_round", "second_round", "sweet16"]),
                    "prev_net": noisy(30),
                    "made_tournament": int(i in field),
                    "seed": seeds.get(i, np.nan),
                    "ineligible": False,
                }
            )
    return pd.DataFrame(rows)


@pytest.fixture
def raw_team_seasons():
    return build_raw_team_seasons()


@pytest.fixture
def make_raw_team_seasons():
    return build_raw_team_seasons
