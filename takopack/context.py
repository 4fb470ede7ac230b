"""
Shared context object for takopack CLI commands.

This module defines the Click context used to share configuration and
runtime options across CLI subcommands.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from takopack.config import TakopackConfig


class TakopackContext:
    """Global context object for takopack CLI commands.

    An instance of this class is created once per CLI invocation and
    passed to commands using Click's context mechanism.

    Attributes:
        config_path: Path to the takopack configuration file, if provided.
        verbose: Verbosity level (0=WARNING, 1=INFO, 2+=DEBUG).
        color: Whether colored terminal output is enabled.
        config: Loaded configuration, defaults when no file was found.
    """

    __slots__ = ("config_path", "verbose", "color", "config")

    def __init__(self) -> None:
        self.config_path: Optional[Path] = None
        self.verbose: int = 0
        self.color: bool = True
        self.config: TakopackConfig = TakopackConfig()


#: Click decorator for injecting :class:`TakopackContext` into commands.
pass_context = click.make_pass_decorator(TakopackContext, ensure=True)
