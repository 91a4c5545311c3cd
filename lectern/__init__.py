"""Lectern: cached, normalized access to scripture text."""

__version__ = "0.1.0"
