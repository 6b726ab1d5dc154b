# SPDX-License-Identifier: MIT
"""Restructuring of the fetched source into the ER2 package layout."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence

from . import bootstrap
from .filesystem import FileCopier
from .manifest import PathMapping

CONFIG_DIR = "config"
RUNONCE_EXECUTOR = "runonce.php"
AUTOLOAD_FILE = "autoload.php"
CONFIG_FILE = "config.php"


def runonce_filename(index: int) -> str:
    return f"runonce_{index}.php"


@dataclass
class TransformResult:
    """Files produced by a tree transformation.

    Attributes:
        copied: Mapping targets that were copied, relative to the package root
        runonce_files: Numbered run-once copies, relative to the package root
        executor_class: Class name of the generated run-once executor, if any
    """

    copied: list[str] = field(default_factory=list)
    runonce_files: list[str] = field(default_factory=list)
    executor_class: Optional[str] = None

    @property
    def bootstrap_generated(self) -> bool:
        return self.executor_class is not None


class TreeTransformer:
    """Copies mapped paths into the package and writes bootstrap glue.

    Args:
        copier: Performs the file and directory copies
        class_name_factory: Produces the run-once executor class name
    """

    def __init__(
        self,
        copier: Optional[FileCopier] = None,
        class_name_factory: Callable[[], str] = bootstrap.generate_runonce_class_name,
    ) -> None:
        self.copier = copier or FileCopier()
        self.class_name_factory = class_name_factory

    def apply(
        self,
        mappings: Iterable[PathMapping],
        runonce: Sequence[str],
        source_root: str | Path,
        target_root: str | Path,
        module_path: str,
    ) -> TransformResult:
        """Copy mappings and run-once scripts into the package tree.

        Run-once script ``i`` (zero-based, in declaration order) is copied to
        ``<module>/config/runonce_<i>.php``. When there is at least one, an
        executor ``<module>/config/runonce.php`` is generated that runs them
        in order at module load.

        Raises:
            PackageIOError: If a mapped source or run-once script is missing
        """
        source = Path(source_root)
        target = Path(target_root)
        config_dir = target / module_path / CONFIG_DIR
        config_dir.mkdir(parents=True, exist_ok=True)

        result = TransformResult()

        for mapping in mappings:
            self.copier.copy(source / mapping.source, target / mapping.target)
            result.copied.append(mapping.target)

        for index, script in enumerate(runonce):
            dest = config_dir / runonce_filename(index)
            self.copier.copy_file(source / script, dest)
            result.runonce_files.append(dest.relative_to(target).as_posix())

        if result.runonce_files:
            class_name = self.class_name_factory()
            (config_dir / RUNONCE_EXECUTOR).write_text(
                bootstrap.render_runonce_executor(class_name), encoding="utf-8"
            )
            result.executor_class = class_name

        return result

    def write_autoload_include(self, target_root: str | Path, module_path: str) -> Path:
        """Append or create ``<module>/config/autoload.php``."""
        path = Path(target_root) / module_path / CONFIG_DIR / AUTOLOAD_FILE
        existing = path.read_text(encoding="utf-8") if path.exists() else None
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(bootstrap.extend_autoload(existing, module_path), encoding="utf-8")
        return path

    def write_config_extension(
        self,
        target_root: str | Path,
        module_path: str,
        class_names: Iterable[str],
    ) -> Path:
        """Append or create ``<module>/config/config.php``."""
        path = Path(target_root) / module_path / CONFIG_DIR / CONFIG_FILE
        existing = path.read_text(encoding="utf-8") if path.exists() else None
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            bootstrap.extend_config(existing, module_path, class_names), encoding="utf-8"
        )
        return path
