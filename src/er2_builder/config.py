# SPDX-License-Identifier: MIT
"""Build configuration for ER2 packages.

Settings come from the command line, with defaults optionally read from the
``[tool.er2-builder]`` table of a pyproject.toml::

    [tool.er2-builder]
    branch = "main"
    timeout = 300
    composer = "/usr/local/bin/composer"
    lockfile = false
    mode = "dir"
"""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from .errors import BuildConfigError, ParseError
from .manifest import Manifest, load_manifest
from .process import DEFAULT_TIMEOUT

DEFAULT_BRANCH = "master"
DEFAULT_OUTPUT = "package.zip"

MODE_ZIP = "zip"
MODE_DIR = "dir"
MODES = (MODE_ZIP, MODE_DIR)


def load_override_manifest(path: str | Path) -> Manifest:
    """Load a JSON document to merge over a fetched composer.json.

    Raises:
        BuildConfigError: If the file does not exist or is not a JSON object
    """
    override_path = Path(path)
    if not override_path.is_file():
        raise BuildConfigError(f"Override manifest not found: {override_path}")
    try:
        return load_manifest(override_path.read_bytes())
    except ParseError as e:
        raise BuildConfigError(f"Invalid override manifest {override_path}: {e}") from e


@dataclass
class BuilderDefaults:
    """Defaults from ``[tool.er2-builder]``.

    Attributes:
        branch: Branch to clone
        timeout: Seconds allowed for each external process
        composer: Composer executable or path to composer.phar
        lockfile: Whether to keep a rewritten composer.lock
        mode: "zip" for an archive, "dir" for a directory
    """

    branch: str = DEFAULT_BRANCH
    timeout: float = DEFAULT_TIMEOUT
    composer: Optional[str] = None
    lockfile: bool = True
    mode: str = MODE_ZIP

    @classmethod
    def from_pyproject(cls, project_dir: str | Path | None = None) -> "BuilderDefaults":
        """Read defaults from pyproject.toml in ``project_dir`` (default: cwd).

        A missing file or table yields the built-in defaults.

        Raises:
            BuildConfigError: If the file is invalid or a value has the wrong type
        """
        pyproject_path = Path(project_dir or Path.cwd()) / "pyproject.toml"
        if not pyproject_path.exists():
            return cls()

        try:
            with open(pyproject_path, "rb") as f:
                pyproject = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise BuildConfigError(f"Invalid TOML syntax in {pyproject_path}: {e}") from e

        return cls.from_dict(pyproject.get("tool", {}).get("er2-builder", {}))

    @classmethod
    def from_dict(cls, table: dict[str, Any]) -> "BuilderDefaults":
        defaults = cls()

        if "branch" in table:
            if not isinstance(table["branch"], str) or not table["branch"]:
                raise BuildConfigError("tool.er2-builder.branch must be a non-empty string")
            defaults.branch = table["branch"]

        if "timeout" in table:
            timeout = table["timeout"]
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
                raise BuildConfigError("tool.er2-builder.timeout must be a positive number")
            defaults.timeout = float(timeout)

        if "composer" in table:
            if not isinstance(table["composer"], str):
                raise BuildConfigError("tool.er2-builder.composer must be a string")
            defaults.composer = table["composer"] or None

        if "lockfile" in table:
            if not isinstance(table["lockfile"], bool):
                raise BuildConfigError("tool.er2-builder.lockfile must be a boolean")
            defaults.lockfile = table["lockfile"]

        if "mode" in table:
            if table["mode"] not in MODES:
                raise BuildConfigError(f"tool.er2-builder.mode must be one of: {', '.join(MODES)}")
            defaults.mode = table["mode"]

        return defaults


@dataclass
class BuildConfig:
    """Configuration of a single package build.

    Attributes:
        uri: Git repository to build from
        output: Archive file or directory to create
        branch: Branch to clone
        create_dir: Create a directory instead of a zip archive
        keep_lockfile: Rewrite composer.lock instead of deleting it
        timeout: Seconds allowed for each external process
        override_manifest: JSON file merged over the fetched composer.json
        composer: Composer executable or path to composer.phar
    """

    uri: str
    output: Path = field(default_factory=lambda: Path(DEFAULT_OUTPUT))
    branch: str = DEFAULT_BRANCH
    create_dir: bool = False
    keep_lockfile: bool = True
    timeout: float = DEFAULT_TIMEOUT
    override_manifest: Optional[Path] = None
    composer: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.uri:
            raise BuildConfigError("A repository URI is required")
        if not self.branch:
            raise BuildConfigError("A branch is required")
        if self.timeout <= 0:
            raise BuildConfigError(f"Timeout must be positive, got {self.timeout}")
        self.output = Path(self.output)
        if self.override_manifest is not None:
            self.override_manifest = Path(self.override_manifest)

    @property
    def mode(self) -> str:
        return MODE_DIR if self.create_dir else MODE_ZIP

    def load_override(self) -> Optional[Manifest]:
        """Load the operator's override manifest, if one is configured."""
        if self.override_manifest is None:
            return None
        return load_override_manifest(self.override_manifest)

    def describe(self) -> dict[str, Any]:
        """Settings as a JSON-compatible mapping, for verbose output."""
        return {
            "uri": self.uri,
            "branch": self.branch,
            "output": str(self.output),
            "mode": self.mode,
            "lockfile": self.keep_lockfile,
            "timeout": self.timeout,
            "config": str(self.override_manifest) if self.override_manifest else None,
            "composer": self.composer,
        }

    def describe_json(self) -> str:
        return json.dumps(self.describe(), indent=2)
