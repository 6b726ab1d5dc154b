# SPDX-License-Identifier: MIT
"""composer.lock model."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable

from .errors import ParseError

LOCK_FILENAME = "composer.lock"


@dataclass(frozen=True)
class LockEntry:
    """One resolved package of a lock file.

    Attributes:
        name: Package name
        type: Composer package type ("library" when the entry omits it)
        data: The full decoded entry, kept verbatim for rewriting
    """

    name: str
    type: str
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LockEntry":
        return cls(name=data.get("name", ""), type=data.get("type", "library"), data=data)


@dataclass
class LockFile:
    """A decoded composer.lock document."""

    data: dict[str, Any] = field(default_factory=dict)

    @property
    def packages(self) -> list[LockEntry]:
        packages = self.data.get("packages")
        if not isinstance(packages, list):
            return []
        return [LockEntry.from_dict(p) for p in packages if isinstance(p, dict)]

    def remove_packages(self, predicate: Callable[[LockEntry], bool]) -> list[LockEntry]:
        """Drop every package entry matching ``predicate``.

        The remaining entries keep their relative order and the list is
        compacted. A lock without a "packages" list is left untouched.

        Returns:
            The removed entries, in their original order
        """
        if not isinstance(self.data.get("packages"), list):
            return []

        kept: list[dict[str, Any]] = []
        removed: list[LockEntry] = []
        for raw in self.data["packages"]:
            entry = LockEntry.from_dict(raw) if isinstance(raw, dict) else None
            if entry is not None and predicate(entry):
                removed.append(entry)
            else:
                kept.append(raw)

        self.data["packages"] = kept
        return removed


def load_lock(content: bytes | str) -> LockFile:
    """Decode composer.lock content.

    Raises:
        ParseError: If the content is not a JSON object
    """
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ParseError(f"Invalid JSON in lock file: {e}") from e

    if not isinstance(data, dict):
        raise ParseError(f"Lock file must be a JSON object, got {type(data).__name__}")

    return LockFile(data=data)


def serialize_lock(lock: LockFile) -> bytes:
    """Encode a lock file as compact JSON."""
    return json.dumps(lock.data, ensure_ascii=False).encode("utf-8")
