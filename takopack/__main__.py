"""
Executable module for takopack.

Running:
    python -m takopack

is equivalent to:
    takopack
"""

from __future__ import annotations

import sys


def main() -> int:
    """Entrypoint when executing ``python -m takopack``.

    Returns:
        Exit code returned by the CLI.
    """
    # Import lazily so click and rich are only loaded for CLI use
    from takopack.cli import main as cli_main

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
