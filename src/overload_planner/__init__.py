"""Progressive-overload planner for a four-workout machine rotation."""

__version__ = "0.1.0"
