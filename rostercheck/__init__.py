"""Roster reconciliation: identity matching and field verification."""

__version__ = "0.1.0"
