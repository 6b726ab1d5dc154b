# SPDX-License-Identifier: MIT
"""CLI entry point for the er2-builder command."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click

from .config import BuilderDefaults
from .errors import BuildConfigError, BuildError


class Context:
    """CLI context object passed to commands."""

    def __init__(self) -> None:
        self.defaults: Optional[BuilderDefaults] = None
        self.verbose: bool = False
        self.project_dir: Optional[Path] = None

    def load_defaults(self) -> BuilderDefaults:
        """Load ``[tool.er2-builder]`` defaults, caching the result."""
        if self.defaults is None:
            self.defaults = BuilderDefaults.from_pyproject(self.project_dir)
        return self.defaults


pass_context = click.make_pass_decorator(Context, ensure=True)


def echo_error(message: str) -> None:
    """Print an error message to stderr."""
    click.secho(f"Error: {message}", fg="red", err=True)


def echo_success(message: str) -> None:
    """Print a success message."""
    click.secho(message, fg="green")


def echo_info(message: str) -> None:
    """Print an info message."""
    click.echo(message)


def echo_warning(message: str) -> None:
    """Print a warning message."""
    click.secho(f"Warning: {message}", fg="yellow", err=True)


@click.group()
@click.version_option(package_name="er2-builder")
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Show the output of git and Composer.",
)
@click.option(
    "-C",
    "--directory",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Read pyproject.toml defaults from this directory.",
)
@pass_context
def cli(ctx: Context, verbose: bool, directory: Optional[Path]) -> None:
    """Build ER2 packages from Composer designed Contao modules.

    Legacy Contao installations install modules from the ER2 extension
    repository. This tool turns a module project that targets the Composer
    integration into a package those installations can use.

    \b
    Examples:
        er2-builder build https://github.com/acme/foo.git
        er2-builder build -b release/1.2 https://github.com/acme/foo.git foo.zip
        er2-builder build --dir https://github.com/acme/foo.git build/foo
        er2-builder validate path/to/project
    """
    ctx.verbose = verbose
    ctx.project_dir = directory


# Import and register commands
from .commands import build, validate

cli.add_command(build.build)
cli.add_command(validate.validate)


def main() -> None:
    """Main entry point for the CLI."""
    try:
        cli()
    except BuildConfigError as e:
        echo_error(f"Configuration error: {e}")
        sys.exit(1)
    except BuildError as e:
        echo_error(str(e))
        sys.exit(1)
    except Exception as e:
        echo_error(f"Unexpected error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
