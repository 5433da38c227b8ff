"""Validation of localized TTML caption files and locale file sets."""

__version__ = "0.1.0"
