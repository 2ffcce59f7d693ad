"""News-driven auto-update pipeline for a wiki."""

__version__ = "0.1.0"
