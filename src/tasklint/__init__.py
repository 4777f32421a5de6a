"""tasklint - Structural validation for Markdown task lists."""

__version__ = "0.1.0"
