"""Reverie: a private, semantically searchable journal."""

__version__ = "0.1.0"
