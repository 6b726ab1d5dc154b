# SPDX-License-Identifier: MIT
"""Tests for stripping dependencies the Contao installation provides."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from hypothesis import given, strategies as st

from er2_builder.classifier import (
    PLATFORM_PACKAGES,
    DependencyClassifier,
    DependencyRecord,
    is_platform_package,
)
from er2_builder.composer import RepositoryInspector
from er2_builder.errors import InspectError
from er2_builder.manifest import Manifest

from conftest import FakeComposer

package_names = st.from_regex(r"[a-z][a-z0-9-]{0,10}/[a-z][a-z0-9-]{0,10}", fullmatch=True)


class TestPlatformPackages:
    """Tests for the name-based fast path."""

    @pytest.mark.parametrize("package", sorted(PLATFORM_PACKAGES))
    def test_platform_names(self, package: str) -> None:
        assert is_platform_package(package)

    def test_legacy_namespace(self) -> None:
        assert is_platform_package("contao-legacy/news4ward")

    def test_regular_package(self) -> None:
        assert not is_platform_package("contao-community-alliance/dc-general")
        assert not is_platform_package("acme/contao")

    @given(st.sampled_from(sorted(PLATFORM_PACKAGES)) | package_names.map(lambda n: "contao-legacy/" + n.split("/")[1]))
    def test_fast_path_never_queries(self, package: str) -> None:
        composer = FakeComposer()
        classifier = DependencyClassifier(composer)
        assert classifier.is_excluded(package, "*")
        assert composer.queries == []


class TestClassify:
    """Tests for classifying the require mapping."""

    def test_platform_core_and_module_scenario(self) -> None:
        manifest = Manifest(
            {
                "type": "contao-module",
                "require": {
                    "contao/core": ">=2.11",
                    "acme/lib": "^1.0",
                    "acme/mod": "~2.0",
                },
            }
        )
        composer = FakeComposer(types={"acme/mod": "contao-module"})

        result = DependencyClassifier(composer).classify(manifest)

        assert result.excluded == [
            DependencyRecord("contao/core", ">=2.11"),
            DependencyRecord("acme/mod", "~2.0"),
        ]
        assert manifest.require == {"acme/lib": "^1.0"}
        assert manifest.replace == {"contao/core": "*", "acme/mod": "*"}
        assert composer.queries == [("acme/lib", "^1.0"), ("acme/mod", "~2.0")]

    def test_legacy_module_type_is_excluded(self) -> None:
        manifest = Manifest({"require": {"acme/old": "*"}})
        composer = FakeComposer(types={"acme/old": "legacy-contao-module"})
        result = DependencyClassifier(composer).classify(manifest)
        assert result.excluded_names == ["acme/old"]

    def test_empty_require_is_dropped(self) -> None:
        manifest = Manifest({"require": {"contao/core": "*", "contao-legacy/foo": "1.0"}})
        DependencyClassifier(FakeComposer()).classify(manifest)
        assert "require" not in manifest.data
        assert manifest.replace == {"contao/core": "*", "contao-legacy/foo": "*"}

    def test_no_require(self) -> None:
        manifest = Manifest({"name": "acme/foo"})
        result = DependencyClassifier(FakeComposer()).classify(manifest)
        assert result.excluded == []
        assert manifest.data == {"name": "acme/foo"}

    def test_existing_replace_is_kept(self) -> None:
        manifest = Manifest({"require": {"contao/core": "*"}, "replace": {"acme/old": "1.0"}})
        DependencyClassifier(FakeComposer()).classify(manifest)
        assert manifest.replace == {"acme/old": "1.0", "contao/core": "*"}

    def test_inspect_failure_propagates(self) -> None:
        composer = FakeComposer()
        composer.fail_query = True
        with pytest.raises(InspectError):
            DependencyClassifier(composer).classify(Manifest({"require": {"acme/lib": "1.0"}}))

    def test_inline_repository_answers_first(self) -> None:
        manifest = Manifest(
            {
                "require": {"acme/legacy": "1.0", "acme/inline": "2.0"},
                "repositories": [
                    {"type": "vcs", "url": "https://example.com/acme/lib.git"},
                    {"install": {"package": "acme/legacy", "type": "legacy-contao-module"}},
                    {"type": "package", "package": {"name": "acme/inline", "type": "contao-module"}},
                ],
            }
        )
        composer = FakeComposer()
        result = DependencyClassifier(RepositoryInspector(manifest, composer)).classify(manifest)

        assert result.excluded_names == ["acme/legacy", "acme/inline"]
        assert composer.queries == []

    @given(st.dictionaries(package_names, st.sampled_from(["*", "1.0", "^2.0"]), max_size=6))
    def test_require_and_replace_partition(self, require: dict[str, str]) -> None:
        manifest = Manifest({"require": dict(require)})
        result = DependencyClassifier(FakeComposer()).classify(manifest)

        excluded = set(result.excluded_names)
        assert excluded.isdisjoint(manifest.require)
        assert excluded | set(manifest.require) == set(require)
        assert all(manifest.replace[name] == "*" for name in excluded)


class TestLockPolicy:
    """Tests for rewriting or deleting composer.lock."""

    def _write_lock(self, directory: Path) -> Path:
        lock = directory / "composer.lock"
        lock.write_text(
            json.dumps(
                {
                    "packages": [
                        {"name": "contao/core", "type": "metapackage"},
                        {"name": "acme/lib", "type": "library"},
                        {"name": "acme/mod", "type": "contao-module"},
                        {"name": "psr/log"},
                    ]
                },
                indent=4,
            )
        )
        return lock

    def test_retain_rewrites_lock(self, tmp_path: Path) -> None:
        lock = self._write_lock(tmp_path)
        manifest = Manifest({})
        composer = FakeComposer()

        result = DependencyClassifier(composer).apply_lock_policy(tmp_path, manifest, retain=True)

        assert result.present and not result.deleted
        assert [entry.name for entry in result.removed] == ["contao/core", "acme/mod"]
        rewritten = json.loads(lock.read_text())
        assert [p["name"] for p in rewritten["packages"]] == ["acme/lib", "psr/log"]
        assert "\n" not in lock.read_text()
        assert manifest.replace == {"contao/core": "*", "acme/mod": "*"}
        assert composer.queries == []

    def test_no_retain_deletes_lock(self, tmp_path: Path) -> None:
        lock = self._write_lock(tmp_path)
        manifest = Manifest({})

        result = DependencyClassifier(FakeComposer()).apply_lock_policy(tmp_path, manifest, retain=False)

        assert result.deleted
        assert not lock.exists()
        assert manifest.data == {}

    def test_missing_lock(self, tmp_path: Path) -> None:
        result = DependencyClassifier(FakeComposer()).apply_lock_policy(tmp_path, Manifest({}))
        assert not result.present
