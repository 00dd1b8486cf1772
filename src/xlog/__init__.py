"""xlog — personal gamification engine for tasks, streaks, and ranks."""

__version__ = "0.4.0"
