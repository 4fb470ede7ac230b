"""Vendor and batch command implementations for takopack.

``vendor`` packages one crate and, recursively, every runtime dependency
pinned for it in a lockfile. ``batch`` packages an explicit crate list
without following dependencies.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional

import click

from takopack.context import TakopackContext, pass_context
from takopack.core.batch import process_batch, read_batch_file
from takopack.core.lockfile import parse_lockfile
from takopack.core.pipeline import LockfilePipeline
from takopack.core.recursive import FailedPackage, RecursivePackager
from takopack.exceptions import TakopackError
from takopack.utils import (
    get_logger,
    print_error,
    print_success,
    print_table,
    print_warning,
)

logger = get_logger("commands.vendor")

_OUTPUT_OPTION = click.option(
    "--output",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    help="Output directory (default: a timestamped directory).",
)


def _report(summary_text: str, failed: List[FailedPackage], base_dir: Path) -> None:
    if failed:
        print_table(
            [
                {"Crate": f.crate_name, "Version": f.version, "Error": f.error}
                for f in failed
            ],
            title="Failed packages",
            column_styles={"Error": {"style": "error"}},
        )
        print_warning(f"{summary_text}; output in {base_dir}")
        sys.exit(1)
    print_success(f"{summary_text}; output in {base_dir}")


@click.command()
@click.argument(
    "lockfile",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.argument("crate")
@click.argument("version", required=False)
@_OUTPUT_OPTION
@pass_context
def vendor(
    ctx: TakopackContext,
    lockfile: Path,
    crate: str,
    version: Optional[str],
    output: Optional[Path],
) -> None:
    """Package CRATE and its whole dependency tree from LOCKFILE."""
    try:
        graph = parse_lockfile(lockfile, registry_prefixes=ctx.config.registry_prefixes)
        packager = RecursivePackager(LockfilePipeline(graph, ctx.config), output)
        summary = packager.run(crate, version)
    except TakopackError as exc:
        print_error(str(exc))
        sys.exit(1)

    _report(summary.summary(), summary.failed, summary.base_dir)


@click.command()
@click.argument(
    "crate_list",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.argument(
    "lockfile",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@_OUTPUT_OPTION
@pass_context
def batch(
    ctx: TakopackContext,
    crate_list: Path,
    lockfile: Path,
    output: Optional[Path],
) -> None:
    """Package every 'name version' line of CRATE_LIST from LOCKFILE."""
    try:
        entries = read_batch_file(crate_list)
        graph = parse_lockfile(lockfile, registry_prefixes=ctx.config.registry_prefixes)
        result = process_batch(entries, LockfilePipeline(graph, ctx.config), output)
    except TakopackError as exc:
        print_error(str(exc))
        sys.exit(1)

    if not entries:
        print_warning(f"No crates listed in {crate_list}")
        return
    _report(result.summary(), result.failed, result.base_dir)
