"""
Command-line interface for takopack.

This module provides the main CLI entry point and handles global options,
configuration loading, and command registration.
"""

from __future__ import annotations

import os
import sys
import logging
from pathlib import Path
from typing import Optional

import click

from takopack.config import load_config
from takopack.__version__ import __version__
from takopack.context import TakopackContext
from takopack.exceptions import ConfigError, TakopackError
from takopack.utils.logger import get_logger, level_for_verbosity, setup_logging
from takopack.utils.console import print_error, print_warning, reconfigure_console

logger = get_logger("cli")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file.",
    envvar="TAKOPACK_CONFIG",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (can be repeated: -v, -vv).",
)
@click.option(
    "--color/--no-color",
    default=True,
    help="Enable or disable colored output.",
    envvar="TAKOPACK_COLOR",
)
@click.version_option(
    version=__version__,
    prog_name="takopack",
    message="%(prog)s %(version)s",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: int,
    color: bool,
) -> None:
    """takopack: turn Rust crates and lockfiles into distribution packages.

    \b
    Available commands:
      takopack translate CRATE REQ     Render one dependency as package clauses
      takopack track LOCKFILE          Record a lockfile in the crate database
      takopack vendor LOCKFILE CRATE   Package a crate and its dependency tree
      takopack batch FILE LOCKFILE     Package a list of crates

    \b
    Examples:
      takopack translate serde ^1.0
      takopack track Cargo.lock --action-file todo.txt
      takopack -v vendor Cargo.lock ripgrep

    Use ``takopack COMMAND --help`` for command-specific options.
    """
    # Respect NO_COLOR for log formatting and console output
    if color:
        os.environ.pop("NO_COLOR", None)
    else:
        os.environ["NO_COLOR"] = "1"
    reconfigure_console()

    _configure_logging(verbose)

    try:
        loaded_config = load_config(config)
    except ConfigError as exc:
        print_error(str(exc))
        raise SystemExit(1) from exc

    takopack_ctx = TakopackContext()
    takopack_ctx.config_path = config or loaded_config.source_path
    takopack_ctx.color = color
    takopack_ctx.verbose = verbose
    takopack_ctx.config = loaded_config
    ctx.obj = takopack_ctx

    logger.debug("takopack v%s", __version__)
    logger.debug("Config path: %s", takopack_ctx.config_path)
    logger.debug("Verbosity: %s | Color: %s", verbose, color)


def _configure_logging(verbose: int) -> None:
    """Configure logging level based on verbosity flags."""
    level = level_for_verbosity(verbose)
    setup_logging(level=level, verbose=verbose >= 2)
    logger.debug("Logging initialized at %s level", logging.getLevelName(level))


# Register CLI subcommands
from takopack.commands.translate import translate  # noqa: E402
from takopack.commands.track import track  # noqa: E402
from takopack.commands.vendor import batch, vendor  # noqa: E402

cli.add_command(translate)
cli.add_command(track)
cli.add_command(vendor)
cli.add_command(batch)


def main() -> int:
    """Main entry point for the takopack CLI.

    Returns:
        Exit code:
            0   Success
            1   Unhandled or application error
            2   Usage error (Click)
            130 Interrupted by user (Ctrl+C)
    """
    try:
        cli(standalone_mode=False)
        return 0

    except click.ClickException as exc:
        exc.show()
        return exc.exit_code

    except TakopackError as exc:
        print_error(str(exc))
        logger.debug(
            "TakopackError details: %s",
            exc.details or "<none>",
            exc_info=True,
        )
        return 1

    except KeyboardInterrupt:
        print_warning("\nOperation cancelled by user")
        return 130

    except Exception as exc:
        print_error(f"Unexpected error: {exc}")
        logger.exception("Unhandled exception in CLI")
        return 1


if __name__ == "__main__":
    sys.exit(main())
