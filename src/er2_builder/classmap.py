# SPDX-License-Identifier: MIT
"""Classmap generation for the autoload roots of a module.

Contao 2.x cannot use Composer's autoloader on its own: its class file cache
must already know every class name. The classmap built here lists each
class, interface, trait and enum declared under the manifest's autoload
roots, and the roots themselves are copied to ``<module>/classes/``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Optional

from .errors import ClassmapError, PackageIOError
from .filesystem import FileCopier
from .manifest import Manifest

CLASSES_DIR = "classes"
PHP_EXTENSIONS = {".php", ".inc", ".hh"}

# Comments, strings and heredocs hide declarations from the scanner
_NOISE_PATTERN = re.compile(
    r"""
      /\*.*?\*/                                   # block comment
    | //[^\n]*                                    # line comment
    | \#(?!\[)[^\n]*                              # hash comment (not an attribute)
    | '(?:\\.|[^'\\])*'                           # single-quoted string
    | "(?:\\.|[^"\\])*"                           # double-quoted string
    | <<<[ \t]*(["']?)(\w+)\1[ \t]*\r?\n.*?^[ \t]*\2\b   # heredoc / nowdoc
    """,
    re.DOTALL | re.MULTILINE | re.VERBOSE,
)

_DECLARATION_PATTERN = re.compile(
    r"""
      (?<![\w$:>\\])(?P<kind>class|interface|trait|enum)
        \s+(?P<name>[a-zA-Z_\x7f-\uffff][\w\x7f-\uffff]*)
    | (?<![\w$:>\\])namespace
        (?P<namespace>\s+[a-zA-Z_\x7f-\uffff][\w\x7f-\uffff]*(?:\s*\\\s*[a-zA-Z_\x7f-\uffff][\w\x7f-\uffff]*)*)?
        \s*[{;]
    """,
    re.VERBOSE | re.IGNORECASE,
)

# Words that follow "class" in anonymous class expressions
_ANONYMOUS_CLASS_FOLLOWERS = {"extends", "implements"}


def strip_noise(source: str) -> str:
    """Blank out comments, strings and heredocs of PHP source."""
    return _NOISE_PATTERN.sub(" ", source)


def find_classes(source: str) -> list[str]:
    """List fully-qualified names of the types declared in PHP source.

    Example:
        >>> find_classes("<?php namespace Acme\\\\Foo; class Bar {}")
        ['Acme\\\\Foo\\\\Bar']
    """
    classes: list[str] = []
    namespace = ""
    for match in _DECLARATION_PATTERN.finditer(strip_noise(source)):
        if match.group("kind") is None:
            declared = match.group("namespace") or ""
            namespace = re.sub(r"\s+", "", declared)
            if namespace:
                namespace += "\\"
            continue

        name = match.group("name")
        if name.lower() in _ANONYMOUS_CLASS_FOLLOWERS:
            continue
        classes.append(namespace + name)
    return classes


def _iter_php_files(path: Path) -> Iterable[Path]:
    if path.is_file():
        yield path
        return
    for candidate in sorted(path.rglob("*")):
        if candidate.is_file() and candidate.suffix.lower() in PHP_EXTENSIONS:
            yield candidate


def create_map(path: str | Path) -> dict[str, Path]:
    """Scan a file or directory for declared classes.

    Raises:
        ClassmapError: If the path is neither a file nor a directory, or a
            file cannot be read
    """
    root = Path(path)
    if not root.exists():
        raise ClassmapError(
            f"Could not scan for classes inside {root} which does not appear to be a file nor a folder"
        )

    classmap: dict[str, Path] = {}
    for php_file in _iter_php_files(root):
        try:
            source = php_file.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise ClassmapError(f"Could not read {php_file}: {e}") from e
        for class_name in find_classes(source):
            classmap[class_name] = php_file
    return classmap


def _as_paths(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [v for v in value if isinstance(v, str)]
    return []


@dataclass
class AutoloadRoots:
    """Autoload roots of a manifest, per autoload style.

    Attributes:
        psr0: Roots declared under autoload.psr-0
        psr4: Roots declared under autoload.psr-4
        classmap: Roots declared under autoload.classmap
    """

    psr0: list[str] = field(default_factory=list)
    psr4: list[str] = field(default_factory=list)
    classmap: list[str] = field(default_factory=list)

    @classmethod
    def from_manifest(cls, manifest: Manifest) -> "AutoloadRoots":
        autoload = manifest.autoload
        roots = cls()
        for key, target in (("psr-0", roots.psr0), ("psr-4", roots.psr4)):
            namespaces = autoload.get(key)
            if isinstance(namespaces, dict):
                for paths in namespaces.values():
                    target.extend(_as_paths(paths))
        roots.classmap.extend(_as_paths(autoload.get("classmap")))
        return roots

    def ordered(self) -> list[str]:
        """All roots in processing order: PSR-0, PSR-4, then classmap."""
        return [*self.psr0, *self.psr4, *self.classmap]


@dataclass
class ClassmapResult:
    """Outcome of a classmap build.

    Attributes:
        classmap: Class name to source file (relative to the source root)
        copied: Copied roots, relative to the package root
    """

    classmap: dict[str, str] = field(default_factory=dict)
    copied: list[str] = field(default_factory=list)

    @property
    def class_names(self) -> list[str]:
        return list(self.classmap)


class ClassmapBuilder:
    """Builds the classmap and copies autoload roots into ``<module>/classes``.

    Args:
        source_root: Root of the fetched source
        target_root: Root of the package being assembled
        module_path: Module directory relative to the package root
        copier: Performs the copies
    """

    def __init__(
        self,
        source_root: str | Path,
        target_root: str | Path,
        module_path: str,
        copier: Optional[FileCopier] = None,
    ) -> None:
        self.source_root = Path(source_root)
        self.target_root = Path(target_root)
        self.module_path = module_path
        self.copier = copier or FileCopier()

    @property
    def classes_dir(self) -> Path:
        return self.target_root / self.module_path / CLASSES_DIR

    def _relative(self, path: Path) -> str:
        try:
            return path.relative_to(self.source_root).as_posix()
        except ValueError:
            return path.as_posix()

    def build(self, roots: AutoloadRoots) -> ClassmapResult:
        """Scan and copy every root in processing order.

        A class found again in a later root replaces the earlier entry.

        Raises:
            ClassmapError: If a root cannot be scanned
            PackageIOError: If a root cannot be copied
        """
        result = ClassmapResult()
        self.classes_dir.mkdir(parents=True, exist_ok=True)

        for root in roots.ordered():
            found = create_map(self.source_root / root)
            for class_name, path in found.items():
                result.classmap[class_name] = self._relative(path)
            result.copied.append(self.copy_root(root))

        return result

    def copy_root(self, root: str) -> str:
        """Copy one source path to ``<module>/classes/<root>``."""
        dest = self.classes_dir / root
        self.copier.copy(self.source_root / root, dest)
        return dest.relative_to(self.target_root).as_posix()

    def copy_vendor(self, vendor_dir: str) -> str:
        """Copy the installed vendor directory to ``<module>/classes/vendor``.

        Raises:
            PackageIOError: If the vendor directory is missing
        """
        source = self.source_root / vendor_dir
        if not source.is_dir():
            raise PackageIOError(
                f"Vendor directory {vendor_dir} not found; did the dependency install run?"
            )
        dest = self.classes_dir / "vendor"
        self.copier.copy_tree(source, dest)
        return dest.relative_to(self.target_root).as_posix()
