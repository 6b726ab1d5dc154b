# SPDX-License-Identifier: MIT
"""Build an ER2 package from a git repository."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import click
from click.core import ParameterSource

from ..assembler import BuildObserver, BuildReport, BuildState, PackageAssembler
from ..composer import Composer, describe_command, resolve_composer_command
from ..config import DEFAULT_OUTPUT, MODE_DIR, BuildConfig
from ..errors import BuildConfigError, BuildError
from ..git import GitSourceFetcher
from ..main import Context, echo_error, echo_info, echo_success, echo_warning, pass_context
from ..process import CommandResult


class ClickObserver(BuildObserver):
    """Reports build progress on the terminal."""

    def __init__(self, verbose: bool = False) -> None:
        self.verbose = verbose

    def stage(self, state: BuildState) -> None:
        if self.verbose:
            click.secho(f"[{state.value}]", dim=True)

    def step(self, message: str) -> None:
        echo_info(f"  - {message}")

    def warning(self, message: str) -> None:
        echo_warning(message)

    def command_output(self, result: CommandResult) -> None:
        """Echo the captured output of an external command."""
        if not self.verbose:
            return
        click.secho(f"    $ {describe_command(result.args)}", dim=True)
        for stream in (result.stdout, result.stderr):
            if stream.strip():
                echo_info(stream.rstrip())


def _is_default(name: str) -> bool:
    source = click.get_current_context().get_parameter_source(name)
    return source in (None, ParameterSource.DEFAULT)


def _report_dependencies(report: BuildReport) -> None:
    if not report.excluded:
        return
    echo_info("  - Remember to define the dependencies")
    for record in report.excluded:
        click.secho(f"  * {record}", fg="yellow")


@click.command()
@click.argument("uri")
@click.argument("output", type=click.Path(path_type=Path), default=DEFAULT_OUTPUT)
@click.option(
    "--dir/--zip",
    "-D/-Z",
    "create_dir",
    default=False,
    help="Create a directory instead of a zip archive.",
)
@click.option(
    "--lockfile/--no-lockfile",
    default=True,
    help="Keep composer.lock (without excluded packages) instead of deleting it.",
)
@click.option(
    "--branch",
    "-b",
    default="master",
    help="Branch to build.",
)
@click.option(
    "--timeout",
    "-t",
    type=click.FloatRange(min=0, min_open=True),
    default=120.0,
    help="Seconds allowed for each git and Composer invocation.",
)
@click.option(
    "--config",
    "-c",
    "override",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON file merged over the project's composer.json.",
)
@click.option(
    "--composer",
    help="Composer executable or path to composer.phar.",
)
@pass_context
def build(
    ctx: Context,
    uri: str,
    output: Path,
    create_dir: bool,
    lockfile: bool,
    branch: str,
    timeout: float,
    override: Optional[Path],
    composer: Optional[str],
) -> None:
    """Build an ER2 package from the module project at URI.

    The project is cloned, dependencies provided by Contao are removed, the
    rest is installed with Composer, and the result is restructured into the
    module layout ER2 expects. OUTPUT defaults to package.zip.

    \b
    Examples:
        er2-builder build https://github.com/acme/foo.git
        er2-builder build --no-lockfile https://github.com/acme/foo.git foo.zip
        er2-builder build -D -c override.json https://github.com/acme/foo.git out/
    """
    try:
        defaults = ctx.load_defaults()
    except BuildConfigError as e:
        echo_error(str(e))
        raise SystemExit(1)

    settings: dict[str, Any] = {
        "branch": defaults.branch if _is_default("branch") else branch,
        "timeout": defaults.timeout if _is_default("timeout") else timeout,
        "keep_lockfile": defaults.lockfile if _is_default("lockfile") else lockfile,
        "create_dir": defaults.mode == MODE_DIR if _is_default("create_dir") else create_dir,
        "composer": composer or defaults.composer,
    }

    try:
        config = BuildConfig(uri=uri, output=output, override_manifest=override, **settings)
    except BuildConfigError as e:
        echo_error(f"Configuration error: {e}")
        raise SystemExit(1)

    if ctx.verbose:
        echo_info(config.describe_json())

    observer = ClickObserver(verbose=ctx.verbose)

    try:
        command = resolve_composer_command(config.composer, timeout=config.timeout)
        assembler = PackageAssembler(
            config,
            fetcher=GitSourceFetcher(timeout=config.timeout, on_output=observer.command_output),
            installer=Composer(command, timeout=config.timeout, on_output=observer.command_output),
            observer=observer,
        )
        report = assembler.build()
    except BuildError as e:
        echo_error(str(e))
        raise SystemExit(1)

    _report_dependencies(report)

    if report.mode == MODE_DIR:
        echo_success(f"Package directory created: {report.output}")
    else:
        echo_success(f"Package archive created: {report.output} ({len(report.entries)} entries)")
