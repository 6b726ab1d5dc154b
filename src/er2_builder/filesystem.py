# SPDX-License-Identifier: MIT
"""Plain file copies and zip archive writing for assembled packages."""

from __future__ import annotations

import shutil
import zipfile
from pathlib import Path
from types import TracebackType
from typing import Optional

from .errors import PackageIOError


class FileCopier:
    """Recursive copies that merge into existing target directories.

    Copies never create symbolic links: symlinked files in the source are
    copied as regular files.
    """

    def copy_file(self, source: str | Path, target: str | Path) -> Path:
        """Copy one file, creating parent directories of the target.

        Raises:
            PackageIOError: If the source is missing or the copy fails
        """
        src = Path(source)
        dst = Path(target)
        if not src.is_file():
            raise PackageIOError(f"Source file does not exist: {src}")
        try:
            dst.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(src, dst)
            shutil.copymode(src, dst)
        except OSError as e:
            raise PackageIOError(f"Failed to copy {src} to {dst}: {e}") from e
        return dst

    def copy_tree(self, source: str | Path, target: str | Path) -> Path:
        """Copy a directory tree, merging into the target if it exists.

        Raises:
            PackageIOError: If the source is not a directory or the copy fails
        """
        src = Path(source)
        dst = Path(target)
        if not src.is_dir():
            raise PackageIOError(f"Source directory does not exist: {src}")
        try:
            shutil.copytree(src, dst, symlinks=False, dirs_exist_ok=True)
        except (OSError, shutil.Error) as e:
            raise PackageIOError(f"Failed to copy {src} to {dst}: {e}") from e
        return dst

    def copy(self, source: str | Path, target: str | Path) -> Path:
        """Copy a file or a directory tree, whichever ``source`` is.

        Raises:
            PackageIOError: If the source does not exist
        """
        src = Path(source)
        if src.is_dir():
            return self.copy_tree(src, target)
        if src.is_file():
            return self.copy_file(src, target)
        raise PackageIOError(f"Source path does not exist: {src}")


class ZipArchiveWriter:
    """Writes a deflate-compressed zip archive.

    Example:
        >>> with ZipArchiveWriter("package.zip") as archive:
        ...     archive.add_directory("system/modules/foo")
        ...     archive.add_file("build/RELEASE", "system/modules/foo/RELEASE")
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._zip: Optional[zipfile.ZipFile] = None
        self.entries: list[str] = []

    def create(self) -> "ZipArchiveWriter":
        """Open the archive, replacing any existing file.

        Raises:
            PackageIOError: If the archive cannot be created
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._zip = zipfile.ZipFile(self.path, "w", zipfile.ZIP_DEFLATED)
        except OSError as e:
            raise PackageIOError(f"Failed to create archive {self.path}: {e}") from e
        return self

    def _archive(self) -> zipfile.ZipFile:
        if self._zip is None:
            raise PackageIOError(f"Archive {self.path} is not open")
        return self._zip

    def add_directory(self, archive_path: str) -> None:
        name = archive_path.strip("/") + "/"
        self._archive().writestr(zipfile.ZipInfo(name), b"")
        self.entries.append(name)

    def add_file(self, source: str | Path, archive_path: str) -> None:
        """Add a file under ``archive_path``.

        Raises:
            PackageIOError: If the file cannot be read
        """
        try:
            self._archive().write(Path(source), archive_path)
        except OSError as e:
            raise PackageIOError(f"Failed to add {source} to archive: {e}") from e
        self.entries.append(archive_path)

    def close(self) -> None:
        if self._zip is not None:
            self._zip.close()
            self._zip = None

    def __enter__(self) -> "ZipArchiveWriter":
        if self._zip is None:
            self.create()
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()


def write_archive(source_dir: str | Path, archive_path: str | Path) -> list[str]:
    """Write every directory and file below ``source_dir`` into a zip archive.

    Entries use paths relative to ``source_dir`` with forward slashes, so
    the archive holds exactly the tree a directory build would produce.

    Returns:
        Archive entry names in the order they were written
    """
    root = Path(source_dir)
    with ZipArchiveWriter(archive_path) as archive:
        for path in sorted(root.rglob("*")):
            rel = path.relative_to(root).as_posix()
            if path.is_dir():
                archive.add_directory(rel)
            else:
                archive.add_file(path, rel)
        return list(archive.entries)
