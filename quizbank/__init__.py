"""CSV question bank import pipeline and quiz store."""

__version__ = "0.1.0"
