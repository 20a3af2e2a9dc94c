"""
Configuration loading for contrib_stats.

Provides a loader for the optional JSON configuration file. See
:mod:`contrib_stats.config.loader` for implementation details.
"""

from .loader import DEFAULTS, ConfigError, load_config  # noqa: F401
