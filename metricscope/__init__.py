"""Span-derived metric labels, an in-memory metric store and display helpers."""

__version__ = "0.1.0"