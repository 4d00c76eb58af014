"""Tables and figures written after a pipeline run."""

from typing import Dict

from .figures import write_figures
from .tables import write_tables


def write_outputs(pipeline, report: Dict, output_dir: str, make_figures: bool = True) -> Dict[str, str]:
    """Write every table (and optionally figure) for a finished pipeline."""
    paths = write_tables(
        report,
        pipeline.predictions,
        output_dir,
        tournament_games=pipeline.tournament_games,
    )
    if make_figures:
        paths.update(write_figures(pipeline, output_dir))
    return paths


__all__ = ["write_figures", "write_outputs", "write_tables"]
