# SPDX-License-Identifier: MIT
"""Composer manifest model for Contao module projects.

The manifest is kept as the decoded JSON tree (mappings, lists and scalars)
so every key survives a load/serialize round trip, including the ones the
builder never looks at. Typed accessors expose the parts the build reads.

Example:
    >>> manifest = load_manifest(b'{"name": "acme/foo", "type": "contao-module"}')
    >>> validate_manifest(manifest)
    >>> manifest.short_name
    'foo'
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator
from jsonschema import ValidationError as SchemaError

from .errors import ParseError, ValidationError, ValidationErrorDetail
from .schema import DEFAULT_VENDOR_DIR, MANIFEST_SCHEMA, MODULE_TYPE

MANIFEST_FILENAME = "composer.json"


@dataclass(frozen=True, slots=True)
class PathMapping:
    """A source path in the clone copied to a target path in the package.

    Attributes:
        source: Path relative to the root of the fetched source
        target: Path relative to the root of the assembled package
    """

    source: str
    target: str


@dataclass
class Manifest:
    """A decoded composer.json document.

    Attributes:
        data: The decoded JSON object, mutated in place by the classifier
    """

    data: dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.data.get("name") or ""

    @property
    def short_name(self) -> str:
        """Last segment of the package name ("acme/foo-bar" -> "foo-bar")."""
        return self.name.rsplit("/", 1)[-1]

    @property
    def type(self) -> str | None:
        return self.data.get("type")

    @property
    def require(self) -> dict[str, str]:
        """The require mapping, empty when absent."""
        require = self.data.get("require")
        return require if isinstance(require, dict) else {}

    @property
    def replace(self) -> dict[str, str]:
        """The replace mapping, empty when absent."""
        replace = self.data.get("replace")
        return replace if isinstance(replace, dict) else {}

    @property
    def contao_extra(self) -> dict[str, Any]:
        extra = self.data.get("extra")
        if not isinstance(extra, dict):
            return {}
        contao = extra.get("contao")
        return contao if isinstance(contao, dict) else {}

    @property
    def symlinks(self) -> dict[str, str]:
        """Symlinks merged with sources, in declaration order.

        A source path present in both keeps its position from "symlinks" and
        takes its target from "sources".
        """
        merged: dict[str, str] = {}
        for key in ("symlinks", "sources"):
            entries = self.contao_extra.get(key)
            if isinstance(entries, dict):
                merged.update(entries)
        return merged

    @property
    def path_mappings(self) -> list[PathMapping]:
        return [PathMapping(source, target) for source, target in self.symlinks.items()]

    @property
    def runonce(self) -> list[str]:
        """Run-once scripts in execution order."""
        runonce = self.contao_extra.get("runonce")
        if isinstance(runonce, dict):
            return list(runonce.values())
        if isinstance(runonce, list):
            return list(runonce)
        return []

    @property
    def autoload(self) -> dict[str, Any]:
        autoload = self.data.get("autoload")
        return autoload if isinstance(autoload, dict) else {}

    @property
    def repositories(self) -> list[dict[str, Any]]:
        repositories = self.data.get("repositories")
        if not isinstance(repositories, list):
            return []
        return [repo for repo in repositories if isinstance(repo, dict)]

    @property
    def vendor_dir(self) -> str:
        config = self.data.get("config")
        if isinstance(config, dict) and config.get("vendor-dir"):
            return config["vendor-dir"]
        return DEFAULT_VENDOR_DIR

    def set_replace(self, package: str, constraint: str) -> None:
        """Record a package in "replace", creating the mapping if needed."""
        replace = self.data.get("replace")
        if not isinstance(replace, dict):
            replace = {}
            self.data["replace"] = replace
        replace[package] = constraint

    def remove_require(self, package: str) -> None:
        """Remove a package from "require", dropping the key once it is empty."""
        require = self.data.get("require")
        if isinstance(require, dict):
            require.pop(package, None)
            if not require:
                del self.data["require"]


def load_manifest(content: bytes | str) -> Manifest:
    """Decode composer.json content.

    Args:
        content: Raw JSON document

    Returns:
        The decoded Manifest

    Raises:
        ParseError: If the content is not a JSON object
    """
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ParseError(f"Invalid JSON in manifest: {e}") from e

    if not isinstance(data, dict):
        raise ParseError(f"Manifest must be a JSON object, got {type(data).__name__}")

    return Manifest(data=data)


def load_manifest_file(path: str | Path) -> Manifest:
    """Load composer.json from a file or a project directory.

    Raises:
        ValidationError: If the file does not exist
        ParseError: If the file is not a JSON object
    """
    manifest_path = Path(path)
    if manifest_path.is_dir():
        manifest_path = manifest_path / MANIFEST_FILENAME

    if not manifest_path.exists():
        raise ValidationError(
            f"Project does not seem to be a composer project: {manifest_path} not found"
        )

    return load_manifest(manifest_path.read_bytes())


def merge_values(base: Any, override: Any) -> Any:
    """Deep-merge two decoded JSON values.

    Mappings present on both sides merge key by key. Any other combination
    (scalars, lists, or a mapping against a non-mapping) takes the override
    value as-is; lists are replaced, never concatenated.
    """
    if isinstance(base, dict) and isinstance(override, dict):
        merged = copy.deepcopy(base)
        for key, value in override.items():
            if key in merged:
                merged[key] = merge_values(merged[key], value)
            else:
                merged[key] = copy.deepcopy(value)
        return merged
    return copy.deepcopy(override)


def merge_manifests(base: Manifest, override: Manifest | dict[str, Any]) -> Manifest:
    """Merge an operator-supplied manifest over a fetched one.

    Neither input is modified.
    """
    override_data = override.data if isinstance(override, Manifest) else override
    return Manifest(data=merge_values(base.data, override_data))


def _json_path_from_error(error: SchemaError) -> str:
    """Convert a jsonschema error path to a readable field path."""
    if not error.absolute_path:
        return "<root>"
    parts = []
    for part in error.absolute_path:
        if isinstance(part, int):
            parts.append(f"[{part}]")
        else:
            if parts:
                parts.append(f".{part}")
            else:
                parts.append(str(part))
    return "".join(parts)


def _format_error_message(error: SchemaError) -> str:
    """Format a jsonschema error into a human-readable message."""
    if error.validator == "type":
        expected = error.validator_value
        actual = type(error.instance).__name__
        return f"Expected {expected}, got {actual}"

    if error.validator == "anyOf":
        return "Value does not have any of the accepted shapes"

    if error.validator == "minLength":
        return f"String must be at least {error.validator_value} character(s)"

    return error.message


def _innermost_error(error: SchemaError) -> SchemaError:
    """Descend into "anyOf" failures that are caused deeper in the document."""
    while error.validator == "anyOf" and error.context:
        deeper = max(error.context, key=lambda e: len(e.absolute_path))
        if len(deeper.absolute_path) <= len(error.absolute_path):
            break
        error = deeper
    return error


def _collect_schema_errors(data: dict[str, Any]) -> list[ValidationErrorDetail]:
    validator = Draft202012Validator(MANIFEST_SCHEMA)
    errors = sorted(
        (_innermost_error(e) for e in validator.iter_errors(data)),
        key=lambda e: list(e.absolute_path),
    )
    return [
        ValidationErrorDetail(
            field=_json_path_from_error(error),
            message=_format_error_message(error),
            value=error.instance,
        )
        for error in errors
    ]


def validate_manifest(manifest: Manifest) -> None:
    """Check that a manifest describes a buildable Contao module.

    Raises:
        ValidationError: If "type" is missing or not the module type, or if
            the keys the builder reads have an unexpected shape
    """
    if manifest.type != MODULE_TYPE:
        raise ValidationError("not a module project")

    errors = _collect_schema_errors(manifest.data)
    if errors:
        message = f"Manifest validation failed with {len(errors)} error(s)"
        message += f": {errors[0].field}: {errors[0].message}"
        raise ValidationError(message, errors)


def serialize_manifest(manifest: Manifest) -> bytes:
    """Encode a manifest as pretty-printed JSON."""
    return (json.dumps(manifest.data, indent=4, ensure_ascii=False) + "\n").encode("utf-8")
