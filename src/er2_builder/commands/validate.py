# SPDX-License-Identifier: MIT
"""Validate a local Contao module project before building it."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from ..classifier import is_platform_package
from ..classmap import AutoloadRoots
from ..config import load_override_manifest
from ..errors import BuildConfigError, ParseError, ValidationError
from ..manifest import Manifest, load_manifest_file, merge_manifests, validate_manifest
from ..resolver import resolve_module_path
from ..main import echo_error, echo_info, echo_success, echo_warning, pass_context, Context


def _check_sources(project_dir: Path, manifest: Manifest) -> list[str]:
    """Check that every path the build copies exists in the project.

    Returns a list of warnings.
    """
    issues: list[str] = []

    for mapping in manifest.path_mappings:
        if not (project_dir / mapping.source).exists():
            issues.append(f"Mapped source not found: {mapping.source} -> {mapping.target}")

    for script in manifest.runonce:
        if not (project_dir / script).is_file():
            issues.append(f"Run-once script not found: {script}")

    for root in AutoloadRoots.from_manifest(manifest).ordered():
        if not (project_dir / root).exists():
            issues.append(f"Autoload root not found: {root}")

    return issues


@click.command()
@click.argument(
    "path",
    required=False,
    type=click.Path(exists=True, path_type=Path),
)
@click.option(
    "--config",
    "-c",
    "override",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON file merged over the project's composer.json.",
)
@click.option(
    "--strict",
    is_flag=True,
    help="Treat warnings as errors.",
)
@pass_context
def validate(ctx: Context, path: Optional[Path], override: Optional[Path], strict: bool) -> None:
    """Validate the composer.json of a module project.

    PATH is a project directory or a composer.json file and defaults to the
    current directory. Nothing is cloned and Composer is not run.

    \b
    Examples:
        er2-builder validate
        er2-builder validate path/to/project
        er2-builder validate -c override.json composer.json
    """
    errors: list[str] = []
    warnings: list[str] = []

    target = path or ctx.project_dir or Path.cwd()
    project_dir = target if target.is_dir() else target.parent

    echo_info(f"Validating: {target}")

    try:
        manifest = load_manifest_file(target)
        if override is not None:
            overrides = load_override_manifest(override)
            manifest = merge_manifests(manifest, overrides)
    except (ParseError, ValidationError, BuildConfigError) as e:
        echo_error(str(e))
        raise SystemExit(1)

    try:
        validate_manifest(manifest)
        echo_info("  Manifest schema: valid")
    except ValidationError as e:
        if e.errors:
            for detail in e.errors:
                errors.append(f"Manifest error [{detail.field}]: {detail.message}")
        else:
            errors.append(str(e))

    if not errors:
        try:
            resolution = resolve_module_path(manifest)
        except ValidationError as e:
            errors.append(str(e))
        else:
            echo_info(f"  Module path: {resolution.path}")
            if resolution.guessed:
                warnings.append(
                    f"Module path not found, guessing the module path from name: {resolution.path}"
                )

        provided = [p for p in manifest.require if is_platform_package(p)]
        if provided:
            echo_info(f"  Provided by Contao: {', '.join(provided)}")

        warnings.extend(_check_sources(project_dir, manifest))

    # Report results
    echo_info("")

    if warnings:
        echo_warning(f"Warnings ({len(warnings)}):")
        for warning in warnings:
            echo_warning(f"  - {warning}")

    if errors:
        echo_error(f"Errors ({len(errors)}):")
        for error in errors:
            echo_error(f"  - {error}")

    if errors:
        echo_error("\nValidation failed!")
        raise SystemExit(1)

    if warnings and strict:
        echo_error("\nValidation failed (strict mode)!")
        raise SystemExit(1)

    if warnings:
        echo_success("\nValidation passed with warnings.")
    else:
        echo_success("\nValidation passed!")
