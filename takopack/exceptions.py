"""
Custom exception hierarchy for takopack.

All exceptions inherit from :class:`TakopackError` and carry optional
structured metadata via the ``details`` attribute, so callers can report
the crate, feature or requirement involved without re-running anything.
"""

from __future__ import annotations

from typing import Any, Mapping, MutableMapping, Optional


class TakopackError(Exception):
    """Base exception for all takopack errors.

    Args:
        message: Human-readable error message.
        details: Optional structured metadata describing the error.
    """

    __slots__ = ("message", "details")

    def __init__(
        self,
        message: str,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.message: str = message
        self.details: MutableMapping[str, Any] = dict(details) if details else {}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        formatted = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({formatted})"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, details={dict(self.details)!r})"
        )


def _add_if(details: MutableMapping[str, Any], key: str, value: Any) -> None:
    """Add a key to ``details`` only if ``value`` is not ``None``."""
    if value is not None:
        details[key] = value


class ParseError(TakopackError):
    """Raised when a text document cannot be parsed.

    Args:
        message: Error description.
        line_number: Line number where parsing failed.
        line_content: Raw content of the problematic line.
        file_path: Path to the file being parsed.
    """

    __slots__ = ("line_number", "line_content", "file_path")

    def __init__(
        self,
        message: str,
        *,
        line_number: Optional[int] = None,
        line_content: Optional[str] = None,
        file_path: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "line", line_number)
        _add_if(details, "content", line_content)
        _add_if(details, "file", file_path)

        super().__init__(message, details)

        self.line_number = line_number
        self.line_content = line_content
        self.file_path = file_path


class LockfileError(ParseError):
    """Raised when a lockfile is structurally invalid.

    Lockfiles are machine generated, so any missing field or unparsable
    version aborts the whole parse.

    Args:
        message: Error description.
        crate_name: Crate whose entry is invalid, when known.
        **kwargs: Additional arguments forwarded to ``ParseError``.
    """

    __slots__ = ("crate_name",)

    def __init__(
        self,
        message: str,
        *,
        crate_name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)

        self.crate_name = crate_name
        if crate_name is not None:
            self.details["crate"] = crate_name


class FileOperationError(TakopackError):
    """Raised when file system operations fail.

    Args:
        message: Error description.
        file_path: Path to the file involved.
        operation: Operation being performed (read/write/delete).
        original_error: Original exception that triggered this error.
    """

    __slots__ = ("file_path", "operation", "original_error")

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "path", file_path)
        _add_if(details, "operation", operation)
        _add_if(
            details,
            "original_error",
            str(original_error) if original_error else None,
        )

        super().__init__(message, details)

        self.file_path = file_path
        self.operation = operation
        self.original_error = original_error


class ConfigError(TakopackError):
    """Raised when the configuration file is invalid.

    Args:
        message: Error description.
        config_path: Path to the offending configuration file.
        option: Name of the invalid option.
    """

    __slots__ = ("config_path", "option")

    def __init__(
        self,
        message: str,
        *,
        config_path: Optional[str] = None,
        option: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "config", config_path)
        _add_if(details, "option", option)

        super().__init__(message, details)

        self.config_path = config_path
        self.option = option


class ConstraintError(TakopackError):
    """Raised when a version requirement cannot be parsed or translated.

    Args:
        message: Error description.
        crate_name: Crate the requirement belongs to.
        requirement: Raw requirement string.
    """

    __slots__ = ("crate_name", "requirement")

    def __init__(
        self,
        message: str,
        *,
        crate_name: Optional[str] = None,
        requirement: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "crate", crate_name)
        _add_if(details, "requirement", requirement)

        super().__init__(message, details)

        self.crate_name = crate_name
        self.requirement = requirement


class UnrepresentableConstraintError(ConstraintError):
    """Raised when a requirement has no equivalent in ``>=``/``<<`` syntax."""

    __slots__ = ()


class VersionRangeError(TakopackError):
    """Raised when a version range ends up empty (lower >= upper).

    Args:
        message: Error description.
        lower: Rendered lower bound.
        upper: Rendered upper bound.
    """

    __slots__ = ("lower", "upper")

    def __init__(
        self,
        message: str,
        *,
        lower: Optional[str] = None,
        upper: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "lower", lower)
        _add_if(details, "upper", upper)

        super().__init__(message, details)

        self.lower = lower
        self.upper = upper


class FeatureCycleError(TakopackError):
    """Raised when merging colliding feature names introduces a cycle.

    Args:
        message: Error description.
        feature: Feature that survived the merge.
        merged_feature: Feature that was merged into it.
    """

    __slots__ = ("feature", "merged_feature")

    def __init__(
        self,
        message: str,
        *,
        feature: Optional[str] = None,
        merged_feature: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "feature", feature)
        _add_if(details, "merged_feature", merged_feature)

        super().__init__(message, details)

        self.feature = feature
        self.merged_feature = merged_feature


class PackagingError(TakopackError):
    """Raised when a single crate cannot be packaged.

    Args:
        message: Error description.
        crate_name: Crate being packaged.
        version: Requested version, if any.
    """

    __slots__ = ("crate_name", "version")

    def __init__(
        self,
        message: str,
        *,
        crate_name: Optional[str] = None,
        version: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "crate", crate_name)
        _add_if(details, "version", version)

        super().__init__(message, details)

        self.crate_name = crate_name
        self.version = version
