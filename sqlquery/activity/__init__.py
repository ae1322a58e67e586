"""Query activity lifecycle."""

from .activity import RESULTS_OUTPUT, SQLQueryActivity

__all__ = ["RESULTS_OUTPUT", "SQLQueryActivity"]
