# SPDX-License-Identifier: MIT
"""JSON Schema and fixed markers for Contao module manifests (composer.json).

Only the parts of composer.json that the ER2 build reads are described here.
Unknown keys are allowed so any Composer manifest passes as long as the keys
the builder depends on have the expected shape.
"""

from __future__ import annotations

import re

# Project type every buildable manifest must declare
MODULE_TYPE = "contao-module"
LEGACY_MODULE_TYPE = "legacy-contao-module"

# Dependency types that are provided by the Contao installation itself
MODULE_TYPES = frozenset({MODULE_TYPE, LEGACY_MODULE_TYPE})

# Directory under which the host installation keeps its modules
MODULE_ROOT = "system/modules"

# A target path inside a module directory: system/modules/<one segment>
MODULE_PATH_PATTERN = re.compile(r"^" + re.escape(MODULE_ROOT) + r"/[^/]+")

# Constraint written to "replace" for every stripped dependency
WILDCARD_CONSTRAINT = "*"

DEFAULT_VENDOR_DIR = "vendor"

_EMPTY_LIST: dict = {"type": "array", "maxItems": 0}


def _or_empty_list(schema: dict) -> dict:
    """Accept ``schema`` or ``[]``, which is how PHP encodes an empty mapping."""
    return {"anyOf": [schema, _EMPTY_LIST]}


_STRING_MAP: dict = {
    "type": "object",
    "additionalProperties": {"type": "string"},
}

_OPTIONAL_STRING_MAP: dict = _or_empty_list(_STRING_MAP)

_AUTOLOAD_NAMESPACE_MAP: dict = _or_empty_list(
    {
        "type": "object",
        "additionalProperties": {
            "anyOf": [
                {"type": "string"},
                {"type": "array", "items": {"type": "string"}},
            ],
        },
    }
)

MANIFEST_SCHEMA: dict = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "Contao module manifest",
    "description": "Subset of composer.json consumed by the ER2 package builder",
    "type": "object",
    "required": ["type"],
    "properties": {
        "name": {
            "type": "string",
            "description": "Composer package name (vendor/project)",
            "minLength": 1,
        },
        "type": {
            "type": "string",
            "const": MODULE_TYPE,
        },
        "require": _OPTIONAL_STRING_MAP,
        "replace": _OPTIONAL_STRING_MAP,
        "repositories": {
            "type": "array",
            "items": {"type": "object"},
        },
        "config": {
            "type": "object",
            "properties": {
                "vendor-dir": {"type": "string", "minLength": 1},
            },
        },
        "extra": _or_empty_list(
            {
                "type": "object",
                "properties": {
                    "contao": _or_empty_list(
                        {
                            "type": "object",
                            "properties": {
                                "symlinks": _OPTIONAL_STRING_MAP,
                                "sources": _OPTIONAL_STRING_MAP,
                                "runonce": {
                                    "anyOf": [
                                        {"type": "array", "items": {"type": "string"}},
                                        _STRING_MAP,
                                    ],
                                },
                            },
                        }
                    ),
                },
            }
        ),
        "autoload": _or_empty_list(
            {
                "type": "object",
                "properties": {
                    "psr-0": _AUTOLOAD_NAMESPACE_MAP,
                    "psr-4": _AUTOLOAD_NAMESPACE_MAP,
                    "classmap": {"type": "array", "items": {"type": "string"}},
                },
            }
        ),
    },
    "additionalProperties": True,
}
