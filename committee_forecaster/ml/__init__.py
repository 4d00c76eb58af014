"""Model tuning, season rotation and evaluation."""
