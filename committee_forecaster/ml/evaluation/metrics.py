"""Selection accuracy and seed error over the assembled held-out predictions."""

from __future__ import annotations

from typing import Dict

import numpy as np
import pandas as pd

SELECTED = "selected"
LABEL = "made_tournament"
TRUE_SEED = "seed"
PRED_SEED = "pred_seed"


def classification_accuracy(predictions: pd.DataFrame) -> float:
    """Share of team-seasons whose predicted selection matches the committee's."""
    if predictions.empty:
        return float("nan")
    return float((predictions[SELECTED].astype(int) == predictions[LABEL].astype(int)).mean())


def missed_selections_by_season(predictions: pd.DataFrame) -> pd.DataFrame:
    """
    Per-season misclassification counts.

    ``missed`` counts teams the committee selected but the model left out
    (false negatives); ``wrongly_included`` counts the reverse.
    """
    selected = predictions[SELECTED].astype(int)
    label = predictions[LABEL].astype(int)
    frame = pd.DataFrame(
        {
            "season": predictions["season"],
            "missed": ((label == 1) & (selected == 0)).astype(int),
            "wrongly_included": ((label == 0) & (selected == 1)).astype(int),
        }
    )
    return frame.groupby("season", as_index=False)[["missed", "wrongly_included"]].sum()


def seed_error(predictions: pd.DataFrame) -> Dict[str, object]:
    """
    MSE and RMSE between predicted and committee seeds.

    Only committee selections are scored; of those, teams the model left out
    of its field have no predicted seed and are counted under ``excluded``.

    Returns:
        Dict with a per-season DataFrame under ``by_season`` and overall
        ``mse``, ``rmse``, ``n`` and ``excluded``
    """
    committee = predictions.loc[predictions[TRUE_SEED].notna()]
    scored = committee.loc[committee[PRED_SEED].notna()]
    sq_err = (
        scored[PRED_SEED].astype(float) - scored[TRUE_SEED].astype(float)
    ) ** 2

    by_season = (
        pd.DataFrame({"season": scored["season"], "sq_err": sq_err})
        .groupby("season")["sq_err"]
        .agg(["mean", "count"])
        .rename(columns={"mean": "mse", "count": "n"})
        .reset_index()
    )
    by_season["rmse"] = np.sqrt(by_season["mse"])
    excluded = committee.loc[committee[PRED_SEED].isna()].groupby("season").size()
    by_season["excluded"] = by_season["season"].map(excluded).fillna(0).astype(int)

    mse = float(sq_err.mean()) if len(sq_err) else float("nan")
    return {
        "by_season": by_season[["season", "n", "excluded", "mse", "rmse"]],
        "mse": mse,
        "rmse": float(np.sqrt(mse)),
        "n": int(len(sq_err)),
        "excluded": int(len(committee) - len(scored)),
    }
