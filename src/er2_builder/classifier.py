# SPDX-License-Identifier: MIT
"""Classification of dependencies provided by the Contao installation.

A Contao 2.x/3.x installation already ships the core, the Composer
integration and every other installed module. Requiring them from an ER2
package would pull a second copy into the module's vendor directory, so
they are stripped from "require", declared as replaced, and reported to the
operator who must declare them in the ER2 repository by hand.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from .composer import PackageInspector
from .lockfile import LOCK_FILENAME, LockEntry, load_lock, serialize_lock
from .manifest import Manifest
from .schema import MODULE_TYPES, WILDCARD_CONSTRAINT

# Packages provided by every Contao installation
PLATFORM_PACKAGES = frozenset(
    {
        "contao",
        "contao/core",
        "contao-community-alliance/composer",
        "contao-community-alliance/composer-installer",
        "contao-community-alliance/composer-plugin",
    }
)

# Legacy ER2 extensions mirrored into Composer
LEGACY_NAMESPACE_PATTERN = re.compile(r"^contao-legacy/")


def is_platform_package(package: str, platform_packages: frozenset[str] = PLATFORM_PACKAGES) -> bool:
    """Check whether a package is provided by Contao, judging by its name alone."""
    return package in platform_packages or bool(LEGACY_NAMESPACE_PATTERN.match(package))


@dataclass(frozen=True)
class DependencyRecord:
    """A dependency stripped from the manifest.

    Attributes:
        name: Package name
        constraint: Version constraint as declared in "require"
    """

    name: str
    constraint: str

    def __str__(self) -> str:
        return f"{self.name} {self.constraint}"


@dataclass
class ClassificationResult:
    """Outcome of classifying the dependencies of a manifest.

    Attributes:
        excluded: Stripped dependencies in declaration order
        kept: Dependencies left in "require"
        queried: Packages whose type had to be looked up
    """

    excluded: list[DependencyRecord] = field(default_factory=list)
    kept: dict[str, str] = field(default_factory=dict)
    queried: list[str] = field(default_factory=list)

    @property
    def excluded_names(self) -> list[str]:
        return [record.name for record in self.excluded]


@dataclass
class LockPolicyResult:
    """What happened to composer.lock.

    Attributes:
        present: Whether the fetched source had a lock file
        deleted: Whether the lock file was removed instead of rewritten
        removed: Lock entries stripped from a rewritten lock file
    """

    present: bool = False
    deleted: bool = False
    removed: list[LockEntry] = field(default_factory=list)


class DependencyClassifier:
    """Strips platform-provided dependencies from a manifest.

    Args:
        inspector: Answers the Composer type of dependencies that are not
            recognised by name alone
        platform_packages: Package names that are always excluded
        module_types: Package types that mark a dependency as a Contao module
    """

    def __init__(
        self,
        inspector: PackageInspector,
        platform_packages: frozenset[str] = PLATFORM_PACKAGES,
        module_types: frozenset[str] = MODULE_TYPES,
    ) -> None:
        self.inspector = inspector
        self.platform_packages = platform_packages
        self.module_types = module_types

    def is_platform_package(self, package: str) -> bool:
        """Check whether a package is excluded by its name alone."""
        return is_platform_package(package, self.platform_packages)

    def is_excluded(self, package: str, constraint: str, queried: list[str] | None = None) -> bool:
        """Check whether a dependency is provided by the Contao installation.

        Names matching the fast path never reach the inspector.

        Raises:
            InspectError: If the inspector cannot determine the package type
        """
        if self.is_platform_package(package):
            return True
        if queried is not None:
            queried.append(package)
        return self.inspector.type_of(package, constraint) in self.module_types

    def classify(self, manifest: Manifest) -> ClassificationResult:
        """Strip excluded dependencies from ``manifest`` in place.

        Every excluded package is removed from "require", declared in
        "replace" with a wildcard constraint, and recorded in the result.
        A "require" mapping left empty is removed from the manifest.

        Raises:
            InspectError: If a dependency type query fails
        """
        result = ClassificationResult()

        if "require" not in manifest.data:
            return result

        for package, constraint in list(manifest.require.items()):
            if self.is_excluded(package, constraint, result.queried):
                manifest.set_replace(package, WILDCARD_CONSTRAINT)
                manifest.remove_require(package)
                result.excluded.append(DependencyRecord(package, constraint))
            else:
                result.kept[package] = constraint

        if "require" in manifest.data and not manifest.require:
            del manifest.data["require"]

        return result

    def is_excluded_lock_entry(self, entry: LockEntry) -> bool:
        """Check a lock entry by name or type, without querying."""
        return self.is_platform_package(entry.name) or entry.type in self.module_types

    def apply_lock_policy(
        self,
        source_dir: str | Path,
        manifest: Manifest,
        retain: bool = True,
    ) -> LockPolicyResult:
        """Rewrite or delete composer.lock of the fetched source.

        With ``retain``, excluded entries are removed from the lock's package
        list (remaining entries keep their order) and declared in the
        manifest's "replace". Without it, the lock file is deleted so the
        install resolves from the manifest alone.

        Raises:
            ParseError: If the lock file is not valid JSON
        """
        lock_path = Path(source_dir) / LOCK_FILENAME
        if not lock_path.exists():
            return LockPolicyResult()

        if not retain:
            lock_path.unlink()
            return LockPolicyResult(present=True, deleted=True)

        lock = load_lock(lock_path.read_bytes())
        removed = lock.remove_packages(self.is_excluded_lock_entry)
        for entry in removed:
            manifest.set_replace(entry.name, WILDCARD_CONSTRAINT)

        lock_path.write_bytes(serialize_lock(lock))
        return LockPolicyResult(present=True, removed=removed)
