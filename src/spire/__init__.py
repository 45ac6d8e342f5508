"""Spire - build pipeline for annotated component modules."""

__version__ = "0.1.0"
