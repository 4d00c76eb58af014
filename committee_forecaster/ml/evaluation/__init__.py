"""Selection, seeding and tournament-outcome evaluation."""

from .metrics import classification_accuracy, missed_selections_by_season, seed_error
from .tournament import compare_tournament_outcomes, summarize_tournament_comparison

__all__ = [
    "classification_accuracy",
    "compare_tournament_outcomes",
    "missed_selections_by_season",
    "seed_error",
    "summarize_tournament_comparison",
]
