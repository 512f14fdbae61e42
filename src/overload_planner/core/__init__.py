"""Training-history engine: statistics, stages, evaluation, loads and plans."""
