"""Tail append-only log files and stream parsed records to subscribers."""

__version__ = "0.1.0"
