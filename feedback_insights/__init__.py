"""Faculty feedback insights: spreadsheet ingestion, aggregation and LLM analysis."""

__version__ = "0.1.0"
