# SPDX-License-Identifier: MIT
"""Resolution of the module directory inside the package."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import ValidationError
from .manifest import Manifest
from .schema import MODULE_PATH_PATTERN, MODULE_ROOT


@dataclass(frozen=True)
class ModulePathResolution:
    """The module directory of a package.

    Attributes:
        path: Path relative to the package root, e.g. "system/modules/foo"
        guessed: True when no mapping targeted a module directory and the
            path was derived from the package name
    """

    path: str
    guessed: bool = False


def resolve_module_path(manifest: Manifest) -> ModulePathResolution:
    """Find the directory the module's config and classes live in.

    Mapping targets are scanned in declaration order and the first one
    inside ``system/modules/<name>`` is the module path, used as written
    apart from leading and trailing slashes. Without such a target, the last
    segment of the package name is used.

    Raises:
        ValidationError: If the path must be guessed and the manifest has no name
    """
    for mapping in manifest.path_mappings:
        target = mapping.target.strip("/")
        if MODULE_PATH_PATTERN.match(target):
            return ModulePathResolution(path=target)

    if not manifest.short_name:
        raise ValidationError("Cannot guess the module path: the manifest has no name")

    return ModulePathResolution(path=f"{MODULE_ROOT}/{manifest.short_name}", guessed=True)
