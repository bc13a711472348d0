"""Feed ingestion pipeline: schedule assignment and batch processing workers."""

__version__ = "0.1.0"
