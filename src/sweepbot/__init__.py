"""Random hyperparameter sweeps against OpenML tasks."""

# openml reads this when it serializes flows containing sweepbot estimators
__version__ = "0.1.0"
