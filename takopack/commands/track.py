"""Track command implementation for takopack.

Merges the registry packages of a lockfile into the crate version
database and reports which crates are new or upgraded, i.e. which need
packaging. The list can be written as a batch file for ``takopack batch``::

    $ takopack track Cargo.lock --action-file todo.txt
    $ takopack batch todo.txt Cargo.lock
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click

from takopack.constants import DEFAULT_BACKUP_KEEP
from takopack.context import TakopackContext, pass_context
from takopack.core.crate_database import CrateDatabase
from takopack.core.lockfile import parse_lockfile
from takopack.exceptions import TakopackError
from takopack.utils import (
    get_logger,
    print_error,
    print_success,
    print_table,
    print_warning,
    safe_write_file,
)

logger = get_logger("commands.track")


@click.command()
@click.argument(
    "lockfile",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--database",
    "-d",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Crate database file (default: per-user application directory).",
)
@click.option(
    "--action-file",
    "-a",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write crates needing action here, one 'name version' per line.",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Report changes without saving the database.",
)
@pass_context
def track(
    ctx: TakopackContext,
    lockfile: Path,
    database: Optional[Path],
    action_file: Optional[Path],
    dry_run: bool,
) -> None:
    """Record LOCKFILE's crates in the database and list what changed."""
    config = ctx.config
    db_path = database or config.resolved_database_path()

    try:
        graph = parse_lockfile(lockfile, registry_prefixes=config.registry_prefixes)
        db = CrateDatabase.load_or_create(db_path)
        needs_action = db.merge_dependency_graph(graph)

        if not dry_run:
            db.to_file(
                db_path,
                backup=config.backup_database,
                keep_backups=DEFAULT_BACKUP_KEEP,
            )
        if action_file is not None:
            lines = [f"{entry.name} {entry.version}" for entry in needs_action]
            safe_write_file(
                action_file,
                "\n".join(lines) + ("\n" if lines else ""),
                create_backup=False,
            )
    except TakopackError as exc:
        print_error(str(exc))
        sys.exit(1)

    for skipped in graph.skipped:
        logger.info("Skipped %s", skipped)

    if not needs_action:
        print_success(f"Database up to date ({len(db)} crates)")
        return

    print_table(
        [
            {
                "Crate": entry.name,
                "Version": str(entry.version),
                "Compat": entry.compat_version,
                "Compatible": "yes" if entry.compatible else "no",
            }
            for entry in needs_action
        ],
        title="Crates needing action",
        column_styles={"Crate": {"style": "package"}},
    )
    if dry_run:
        print_warning("Dry run: database not saved")
    else:
        print_success(f"Saved {len(db)} crates to {db_path}")
