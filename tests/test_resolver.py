# SPDX-License-Identifier: MIT
"""Tests for module path resolution."""

from __future__ import annotations

import pytest
from hypothesis import given, strategies as st

from er2_builder.errors import ValidationError
from er2_builder.manifest import Manifest
from er2_builder.resolver import resolve_module_path

segments = st.from_regex(r"[a-z][a-z0-9_-]{0,12}", fullmatch=True)


def _manifest(sources: dict[str, str], name: str = "acme/foo-bar") -> Manifest:
    return Manifest({"name": name, "extra": {"contao": {"sources": sources}}})


class TestResolveModulePath:
    """Tests for finding the module directory."""

    def test_first_matching_target_wins(self) -> None:
        manifest = _manifest(
            {
                "assets": "files/foo",
                "contao": "system/modules/first",
                "more": "system/modules/second/config",
            }
        )
        resolution = resolve_module_path(manifest)
        assert resolution.path == "system/modules/first"
        assert not resolution.guessed

    def test_deeper_target_is_used_as_is(self) -> None:
        resolution = resolve_module_path(_manifest({"dca": "system/modules/foo/dca"}))
        assert resolution.path == "system/modules/foo/dca"
        assert not resolution.guessed

    def test_target_slashes_are_trimmed(self) -> None:
        resolution = resolve_module_path(_manifest({"src": "/system/modules/foo/"}))
        assert resolution.path == "system/modules/foo"

    def test_guess_from_name(self) -> None:
        resolution = resolve_module_path(_manifest({"assets": "files/foo"}))
        assert resolution.path == "system/modules/foo-bar"
        assert resolution.guessed

    def test_guess_without_mappings(self) -> None:
        resolution = resolve_module_path(Manifest({"name": "acme/foo-bar"}))
        assert resolution.path == "system/modules/foo-bar"
        assert resolution.guessed

    def test_guess_without_name(self) -> None:
        with pytest.raises(ValidationError, match="no name"):
            resolve_module_path(Manifest({}))

    def test_modules_root_itself_does_not_match(self) -> None:
        resolution = resolve_module_path(_manifest({"x": "system/modules"}))
        assert resolution.guessed

    @given(st.lists(segments, min_size=1, max_size=4, unique=True))
    def test_earliest_module_target_decides(self, names: list[str]) -> None:
        sources = {f"src{i}": f"system/modules/{name}/sub" for i, name in enumerate(names)}
        resolution = resolve_module_path(_manifest(sources))
        assert resolution.path == f"system/modules/{names[0]}/sub"

    @given(segments, segments)
    def test_guess_uses_last_name_segment(self, vendor: str, project: str) -> None:
        resolution = resolve_module_path(Manifest({"name": f"{vendor}/{project}"}))
        assert resolution.path == f"system/modules/{project}"
