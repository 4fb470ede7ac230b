"""
Version helpers for takopack.

Compatibility versions decide which crate versions may share one
downstream package: semver says ``1.2.0`` and ``1.9.3`` are compatible,
``0.2.0`` and ``0.3.0`` are not, and nothing is compatible with a
pre-release.
"""

from __future__ import annotations

from typing import Union

from takopack.models.version import Version


def compat_version(version: Union[Version, str]) -> str:
    """Return the coarsest version string compatible releases share.

    Examples:
        >>> compat_version("1.4.2")
        '1.0'
        >>> compat_version("0.3.7")
        '0.3'
        >>> compat_version("0.0.5")
        '0.0.5'
        >>> compat_version("2.0.0-rc.1")
        '2.0.0-rc.1'
    """
    if isinstance(version, str):
        version = Version.parse(version)

    if version.pre:
        return f"{version.major}.{version.minor}.{version.patch}-{version.pre}"
    if version.major != 0:
        return f"{version.major}.0"
    if version.minor != 0:
        return f"0.{version.minor}"
    return f"0.0.{version.patch}"
