"""Run npm and composer security audits, filter and store the findings, and write JSON and Markdown reports."""

__version__ = "0.1.0"

__all__ = ["__version__"]