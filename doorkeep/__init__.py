"""doorkeep: keyword monitoring over search results with exactly-once alerts."""

__version__ = "1.0.0"
