"""
Top-level package for contrib_stats.

This package exposes the main CLI entry point via the
``contrib_stats.cli`` module.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
