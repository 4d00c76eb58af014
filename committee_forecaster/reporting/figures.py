"""Seed residual and feature importance figures."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd


def _make_figure(figsize=(10, 6)):
    return plt.figure(figsize=figsize, dpi=120)


def plot_seed_residuals(predictions: pd.DataFrame, path: str) -> Optional[str]:
    """Scatter of committee seed vs (predicted - committee) seed."""
    scored = predictions.loc[predictions["seed"].notna() & predictions["pred_seed"].notna()]
    if scored.empty:
        return None
    true_seed = scored["seed"].astype(float).to_numpy()
    residual = scored["pred_seed"].astype(float).to_numpy() - true_seed
    jitter = np.random.default_rng(0).uniform(-0.15, 0.15, size=len(true_seed))

    fig = _make_figure()
    ax = fig.add_subplot(1, 1, 1)
    ax.scatter(true_seed + jitter, residual, s=18, alpha=0.6, color="#4C78A8")
    ax.axhline(0, color="black", lw=1)
    ax.set_xticks(range(1, 17))
    ax.set_title("Seed Residuals (Held-Out Seasons)")
    ax.set_xlabel("Committee Seed")
    ax.set_ylabel("Predicted Seed - Committee Seed")
    ax.grid(alpha=0.25)
    fig.tight_layout()
    fig.savefig(path)
    plt.close(fig)
    return path


def plot_feature_importance(
    importances: Dict[str, pd.DataFrame], path: str, top_n: int = 15
) -> Optional[str]:
    """One horizontal bar chart per stage of the mean fold importance."""
    stages = {name: frame for name, frame in importances.items() if not frame.empty}
    if not stages:
        return None

    fig = _make_figure((6 * len(stages), 6))
    for i, (name, frame) in enumerate(stages.items(), start=1):
        mean = frame.mean(axis=0).sort_values(ascending=True).tail(top_n)
        ax = fig.add_subplot(1, len(stages), i)
        ax.barh(mean.index, mean.to_numpy(), color="#F58518")
        ax.set_title(f"{name.title()} Model Importance")
        ax.set_xlabel("Mean Gain Share Across Folds")
        ax.grid(alpha=0.2, axis="x")
    fig.tight_layout()
    fig.savefig(path)
    plt.close(fig)
    return path


def write_figures(pipeline, output_dir: str) -> Dict[str, str]:
    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    written = {
        "seed_residuals": plot_seed_residuals(
            pipeline.predictions, str(out_dir / "seed_residuals.png")
        ),
        "feature_importance": plot_feature_importance(
            {
                "selection": pipeline.selection.importances(),
                "seeding": pipeline.seeding.importances(),
            },
            str(out_dir / "feature_importance.png"),
        ),
    }
    return {name: path for name, path in written.items() if path}
