"""Sokudoku: rapid serial visual presentation for Japanese text."""

__version__ = "0.1.0"
