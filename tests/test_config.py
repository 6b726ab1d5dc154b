# SPDX-License-Identifier: MIT
"""Tests for build configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from er2_builder.config import BuildConfig, BuilderDefaults, load_override_manifest
from er2_builder.errors import BuildConfigError


class TestBuilderDefaults:
    """Tests for [tool.er2-builder] defaults."""

    def test_missing_pyproject(self, tmp_path: Path) -> None:
        defaults = BuilderDefaults.from_pyproject(tmp_path)
        assert defaults == BuilderDefaults()
        assert defaults.branch == "master"
        assert defaults.timeout == 120.0
        assert defaults.lockfile is True
        assert defaults.mode == "zip"

    def test_reads_table(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text(
            """[project]
name = "my-modules"

[tool.er2-builder]
branch = "develop"
timeout = 300
composer = "/opt/composer.phar"
lockfile = false
mode = "dir"
"""
        )
        defaults = BuilderDefaults.from_pyproject(tmp_path)
        assert defaults.branch == "develop"
        assert defaults.timeout == 300.0
        assert defaults.composer == "/opt/composer.phar"
        assert defaults.lockfile is False
        assert defaults.mode == "dir"

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text("[tool.er2-builder\n")
        with pytest.raises(BuildConfigError, match="Invalid TOML"):
            BuilderDefaults.from_pyproject(tmp_path)

    @pytest.mark.parametrize(
        "table",
        [
            {"branch": ""},
            {"timeout": 0},
            {"timeout": "fast"},
            {"timeout": True},
            {"lockfile": "yes"},
            {"mode": "tar"},
            {"composer": 1},
        ],
    )
    def test_invalid_values(self, table: dict) -> None:
        with pytest.raises(BuildConfigError):
            BuilderDefaults.from_dict(table)


class TestBuildConfig:
    """Tests for BuildConfig."""

    def test_defaults(self) -> None:
        config = BuildConfig(uri="https://example.com/foo.git")
        assert config.output == Path("package.zip")
        assert config.branch == "master"
        assert config.keep_lockfile
        assert config.mode == "zip"

    def test_dir_mode(self) -> None:
        assert BuildConfig(uri="x", create_dir=True).mode == "dir"

    @pytest.mark.parametrize(
        "kwargs",
        [{"uri": ""}, {"uri": "x", "branch": ""}, {"uri": "x", "timeout": 0}],
    )
    def test_invalid(self, kwargs: dict) -> None:
        with pytest.raises(BuildConfigError):
            BuildConfig(**kwargs)

    def test_load_override(self, tmp_path: Path) -> None:
        path = tmp_path / "override.json"
        path.write_text('{"type": "contao-module"}')
        assert BuildConfig(uri="x", override_manifest=path).load_override().type == "contao-module"
        assert BuildConfig(uri="x").load_override() is None

    def test_missing_override(self, tmp_path: Path) -> None:
        with pytest.raises(BuildConfigError, match="not found"):
            load_override_manifest(tmp_path / "missing.json")

    def test_invalid_override(self, tmp_path: Path) -> None:
        path = tmp_path / "override.json"
        path.write_text("[]")
        with pytest.raises(BuildConfigError, match="Invalid override"):
            load_override_manifest(path)

    def test_describe(self) -> None:
        described = BuildConfig(uri="x", output="out", create_dir=True).describe()
        assert described["mode"] == "dir"
        assert described["output"] == "out"
