"""Simulated kernel paging entries, physical frame allocation and a small shell."""

__version__ = "0.1.0"

__all__ = ["paging", "kmm", "shell"]