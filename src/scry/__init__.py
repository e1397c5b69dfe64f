"""scry — extract plain text from Scrivener projects."""

__version__ = "0.3.0"
