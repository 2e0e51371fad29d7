"""Renovation schedule import: spreadsheet / CSV -> canonical timeline tasks."""

__version__ = "0.1.0"
