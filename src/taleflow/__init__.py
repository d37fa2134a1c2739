"""Narrative execution engine for branching story graphs."""

__version__ = "0.1.0"
