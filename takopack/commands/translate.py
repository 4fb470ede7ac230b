"""Translate command implementation for takopack.

Prints the package clauses a single crate dependency translates to, which
is handy for checking how a requirement will be rendered::

    $ takopack translate serde "^1.0.100"
    rust-serde-1-default (>= 1.0.100-~~)

    $ takopack translate rand 0.8 --no-default-features -F std
    rust-rand-0.8-std
"""

from __future__ import annotations

import sys
from typing import Optional, Tuple

import click

from takopack.context import TakopackContext, pass_context
from takopack.core.translator import translate_dependencies
from takopack.exceptions import TakopackError
from takopack.models.dependency import CrateDependency
from takopack.models.version import Version
from takopack.utils import get_logger, print_error, print_lines

logger = get_logger("commands.translate")


@click.command()
@click.argument("crate")
@click.argument("requirement", default="*")
@click.option(
    "--feature",
    "-F",
    "features",
    multiple=True,
    help="Feature requested on the dependency (repeatable).",
)
@click.option(
    "--no-default-features",
    is_flag=True,
    help="Do not depend on the crate's default features.",
)
@click.option(
    "--pin",
    metavar="VERSION",
    help="Exact version from a lockfile, overriding REQUIREMENT.",
)
@pass_context
def translate(
    ctx: TakopackContext,
    crate: str,
    requirement: str,
    features: Tuple[str, ...],
    no_default_features: bool,
    pin: Optional[str],
) -> None:
    """Translate one dependency on CRATE into package clauses."""
    try:
        dependency = CrateDependency(
            name=crate,
            req=requirement,
            features=tuple(features),
            default_features=not no_default_features,
        )
        pins = {crate: Version.parse(pin)} if pin else None
        translated = translate_dependencies([dependency], ctx.config, pins=pins)
    except TakopackError as exc:
        print_error(str(exc))
        sys.exit(1)

    for item in translated:
        logger.debug("%s: %s", item.key, item.version_range or "*")
        print_lines(item.clauses)
