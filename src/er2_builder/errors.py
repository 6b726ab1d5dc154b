# SPDX-License-Identifier: MIT
"""Error types raised while building an ER2 package.

Every stage of the build pipeline raises a subclass of :class:`BuildError`.
The assembler never retries and never produces a partial package, so any of
these errors ends the build.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class BuildError(Exception):
    """Base class for all build failures."""

    pass


class FetchError(BuildError):
    """Raised when the source repository cannot be cloned or inspected."""

    pass


class ParseError(BuildError):
    """Raised when manifest or lock file content is not valid JSON."""

    pass


@dataclass(frozen=True, slots=True)
class ValidationErrorDetail:
    """Details about a single manifest validation error.

    Attributes:
        field: JSON path to the invalid field (e.g., "require" or "extra.contao.runonce[0]")
        message: Human-readable error message
        value: The invalid value that caused the error (if available)
    """

    field: str
    message: str
    value: Any = None


class ValidationError(BuildError):
    """Raised when the fetched project is not a buildable Contao module.

    Attributes:
        errors: Structured schema violations, empty for plain project errors
    """

    def __init__(self, message: str, errors: list[ValidationErrorDetail] | None = None):
        self.errors = errors or []
        super().__init__(message)


class InspectError(BuildError):
    """Raised when querying the type of a dependency fails."""

    pass


class InstallError(BuildError):
    """Raised when installing the remaining dependencies fails."""

    pass


class PackageIOError(BuildError):
    """Raised when copying files or writing the archive fails."""

    pass


class ClassmapError(BuildError):
    """Raised when an autoload root cannot be scanned for classes."""

    pass


class BuildConfigError(BuildError):
    """Raised when build configuration is invalid."""

    pass


class TemplateError(BuildError):
    """Raised when a bootstrap template cannot be rendered."""

    pass
