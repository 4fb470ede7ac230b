"""
takopack version information.

This module provides a single source of truth for the package version.

Version format:
    MAJOR.MINOR.PATCH[.devN]
"""

__version__ = "0.1.0.dev0"
