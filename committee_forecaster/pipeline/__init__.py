"""Selection and seeding stages and the end-to-end pipeline."""

from .committee import CommitteePipeline, CommitteePipelineConfig, run_pipeline_to_file
from .seeding import SeedingResult, assign_seeds, run_seeding_rotation
from .selection import SelectionResult, apply_selection_cutoff, run_selection_rotation

__all__ = [
    "CommitteePipeline",
    "CommitteePipelineConfig",
    "SeedingResult",
    "SelectionResult",
    "apply_selection_cutoff",
    "assign_seeds",
    "run_pipeline_to_file",
    "run_seeding_rotation",
    "run_selection_rotation",
]
