# SPDX-License-Identifier: MIT
"""Pytest configuration and fixtures for er2-builder tests."""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Any, Callable, Generator, Optional

import pytest
from click.testing import CliRunner

# The CLI module registers its commands on import
from er2_builder.main import cli  # noqa: F401
from er2_builder.errors import FetchError, InspectError, InstallError
from er2_builder.git import RevisionInfo

SAMPLE_REVISION = RevisionInfo(
    describe="heads/master",
    commit="3f2a9c1d5e7b8a6f4c3d2e1f0a9b8c7d6e5f4a3b",
    date="Tue, 14 Jan 2014 10:15:42 +0100",
)

SAMPLE_MANIFEST: dict[str, Any] = {
    "name": "acme/foo-bar",
    "description": "Foo bar module",
    "type": "contao-module",
    "license": "LGPL-3.0+",
    "require": {
        "php": ">=5.3",
        "contao/core": ">=2.11,<4",
        "contao-community-alliance/composer-plugin": "*",
        "acme/helper": "~1.0",
        "acme/other-module": "~2.0",
    },
    "autoload": {"psr-0": {"Acme\\FooBar\\": "src/"}},
    "extra": {
        "contao": {
            "sources": {"contao": "system/modules/foo-bar"},
            "runonce": ["runonce/update.php"],
        }
    },
}

SAMPLE_LOCK: dict[str, Any] = {
    "hash": "d41d8cd98f00b204e9800998ecf8427e",
    "packages": [
        {"name": "contao/core", "version": "2.11.17", "type": "metapackage"},
        {"name": "acme/helper", "version": "1.0.3", "type": "library"},
        {"name": "acme/other-module", "version": "2.0.1", "type": "contao-module"},
        {"name": "psr/log", "version": "1.0.0"},
    ],
}


class FakeFetcher:
    """Fetcher that copies a local project instead of cloning it."""

    def __init__(self, project_dir: Path, revision: RevisionInfo = SAMPLE_REVISION) -> None:
        self.project_dir = project_dir
        self.revision = revision
        self.cloned: list[tuple[str, str, Path]] = []
        self.fail_clone = False

    def clone(self, uri: str, branch: str, destination: str | Path) -> Path:
        if self.fail_clone:
            raise FetchError(f"fatal: repository '{uri}' not found")
        target = Path(destination)
        self.cloned.append((uri, branch, target))
        shutil.copytree(self.project_dir, target, dirs_exist_ok=True)
        return target

    def revision_info(self, checkout: str | Path) -> RevisionInfo:
        return self.revision


class FakeComposer:
    """Composer stand-in with a fixed package type table.

    ``install`` writes a vendor directory holding an autoloader and one
    installed library, like a real install of the sample project would.
    """

    def __init__(self, types: Optional[dict[str, str]] = None) -> None:
        self.types = types or {}
        self.queries: list[tuple[str, str]] = []
        self.installs: list[Path] = []
        self.installed_manifests: list[dict[str, Any]] = []
        self.installed_locks: list[Optional[dict[str, Any]]] = []
        self.fail_install = False
        self.fail_query = False

    def type_of(self, package: str, constraint: str) -> str:
        self.queries.append((package, constraint))
        if self.fail_query:
            raise InspectError(f"Package {package} not found")
        return self.types.get(package, "library")

    def install(self, manifest_dir: str | Path, no_dev: bool = True) -> None:
        path = Path(manifest_dir)
        self.installs.append(path)
        self.installed_manifests.append(json.loads((path / "composer.json").read_text()))
        lock = path / "composer.lock"
        self.installed_locks.append(json.loads(lock.read_text()) if lock.exists() else None)
        if self.fail_install:
            raise InstallError("Your requirements could not be resolved to an installable set of packages.")

        vendor = path / "vendor"
        (vendor / "composer").mkdir(parents=True, exist_ok=True)
        (vendor / "autoload.php").write_text("<?php\n\nreturn ComposerAutoloaderInit::getLoader();\n")
        helper = vendor / "acme" / "helper" / "src"
        helper.mkdir(parents=True, exist_ok=True)
        (helper / "Helper.php").write_text("<?php\n\nnamespace Acme\\Helper;\n\nclass Helper {}\n")


def write_project(project_dir: Path, manifest: dict[str, Any], lock: Optional[dict[str, Any]] = None) -> Path:
    """Write a module project with sources, a run-once script and classes."""
    project_dir.mkdir(parents=True, exist_ok=True)
    (project_dir / "composer.json").write_text(json.dumps(manifest, indent=4))
    if lock is not None:
        (project_dir / "composer.lock").write_text(json.dumps(lock))

    config_dir = project_dir / "contao" / "config"
    config_dir.mkdir(parents=True)
    (config_dir / "config.php").write_text("<?php\n\n$GLOBALS['BE_MOD']['content']['foo'] = array();\n?>\n")
    languages = project_dir / "contao" / "languages" / "en"
    languages.mkdir(parents=True)
    (languages / "default.php").write_text("<?php\n\n$GLOBALS['TL_LANG']['MSC']['foo'] = 'Foo';\n")

    runonce = project_dir / "runonce"
    runonce.mkdir()
    (runonce / "update.php").write_text("<?php\n\n// migrate foo tables\n")

    classes = project_dir / "src" / "Acme" / "FooBar"
    classes.mkdir(parents=True)
    (classes / "Widget.php").write_text(
        "<?php\n\nnamespace Acme\\FooBar;\n\nclass Widget extends \\Widget\n{\n}\n"
    )
    (classes / "WidgetInterface.php").write_text(
        "<?php\n\nnamespace Acme\\FooBar;\n\ninterface WidgetInterface\n{\n}\n"
    )
    return project_dir


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def sample_project(tmp_path: Path) -> Generator[Path, None, None]:
    """Create the sample module project with a lock file."""
    yield write_project(tmp_path / "foo-bar", SAMPLE_MANIFEST, SAMPLE_LOCK)


@pytest.fixture
def project_factory(tmp_path: Path) -> Callable[..., Path]:
    """Create module projects with custom manifests."""
    counter = {"n": 0}

    def factory(manifest: dict[str, Any], lock: Optional[dict[str, Any]] = None) -> Path:
        counter["n"] += 1
        return write_project(tmp_path / f"project_{counter['n']}", manifest, lock)

    return factory


@pytest.fixture
def fake_composer() -> FakeComposer:
    """Composer fake that knows acme/other-module as a Contao module."""
    return FakeComposer(types={"acme/other-module": "contao-module"})


@pytest.fixture
def fake_fetcher(sample_project: Path) -> FakeFetcher:
    """Fetcher fake serving the sample project."""
    return FakeFetcher(sample_project)
