"""Personal finance API: users, income and expense transactions, summaries."""

__version__ = "0.1.0"
