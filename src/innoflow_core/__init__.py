"""Innoflow Core - innovation pipeline tracking and org-chart planning."""

__version__ = "1.0.0"
