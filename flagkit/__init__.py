"""Typed command-line flags with environment and file fallbacks, help text and exit-code handling."""

__version__ = "0.1.0"