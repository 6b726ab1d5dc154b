# SPDX-License-Identifier: MIT
"""Tests for composer.lock handling."""

from __future__ import annotations

import json

import pytest

from er2_builder.errors import ParseError
from er2_builder.lockfile import LockEntry, load_lock, serialize_lock


class TestLockFile:
    """Tests for the lock file model."""

    def test_entry_type_defaults_to_library(self) -> None:
        assert LockEntry.from_dict({"name": "psr/log"}).type == "library"

    def test_remove_packages_keeps_order(self) -> None:
        lock = load_lock(
            json.dumps(
                {
                    "packages": [
                        {"name": "a/one", "type": "library"},
                        {"name": "b/two", "type": "contao-module"},
                        {"name": "c/three", "type": "library"},
                        {"name": "d/four", "type": "contao-module"},
                    ]
                }
            )
        )
        removed = lock.remove_packages(lambda entry: entry.type == "contao-module")

        assert [entry.name for entry in removed] == ["b/two", "d/four"]
        assert [p["name"] for p in lock.data["packages"]] == ["a/one", "c/three"]

    def test_remove_without_packages(self) -> None:
        lock = load_lock('{"hash": "abc"}')
        assert lock.remove_packages(lambda entry: True) == []
        assert lock.data == {"hash": "abc"}

    def test_invalid_lock(self) -> None:
        with pytest.raises(ParseError):
            load_lock("not json")

    def test_serialize_compact(self) -> None:
        lock = load_lock('{\n    "packages": [\n        {"name": "a/one"}\n    ]\n}')
        assert serialize_lock(lock) == b'{"packages": [{"name": "a/one"}]}'
