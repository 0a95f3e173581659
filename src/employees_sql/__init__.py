"""Parameterized queries against the MySQL employees sample schema."""

__version__ = "0.1.0"
