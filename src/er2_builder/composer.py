# SPDX-License-Identifier: MIT
"""Composer integration: dependency installation and package type queries.

The builder never resolves PHP dependencies itself. It runs Composer for
``install`` and ``show`` and only interprets the exit status and the
``type`` line of ``composer show``.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Any, Callable, Optional, Protocol, Sequence

import click
import httpx

from .errors import InspectError, InstallError
from .manifest import Manifest
from .process import DEFAULT_TIMEOUT, CommandError, CommandResult, run_command

COMPOSER_INSTALLER_URL = "https://getcomposer.org/installer"
COMPOSER_PHAR = "composer.phar"
DEFAULT_PACKAGE_TYPE = "library"


class PackageInspector(Protocol):
    """Answers the declared Composer type of a dependency."""

    def type_of(self, package: str, constraint: str) -> str:
        """Return the type of ``package`` at ``constraint``.

        Raises:
            InspectError: If the type cannot be determined
        """
        ...


def parse_show_type(output: str) -> str:
    """Extract the package type from ``composer show`` output.

    The output is a list of ``key : value`` lines; the first line whose key
    is ``type`` wins. Packages without a type line are libraries.
    """
    for line in output.splitlines():
        key, sep, value = line.partition(":")
        if sep and key.strip() == "type":
            return value.strip()
    return DEFAULT_PACKAGE_TYPE


class Composer:
    """Runs a Composer executable.

    Args:
        command: Argument vector prefix invoking Composer,
            e.g. ["composer"] or ["php", "/path/to/composer.phar"]
        timeout: Seconds allowed for each invocation
        on_output: Called with the result of every successful invocation
    """

    def __init__(
        self,
        command: Sequence[str] = ("composer",),
        timeout: float | None = DEFAULT_TIMEOUT,
        on_output: Callable[[CommandResult], None] | None = None,
    ) -> None:
        self.command = list(command)
        self.timeout = timeout
        self.on_output = on_output

    def _run(self, args: list[str], cwd: Path | None = None) -> CommandResult:
        result = run_command([*self.command, *args], cwd=cwd, timeout=self.timeout)
        if self.on_output is not None:
            self.on_output(result)
        return result

    def install(self, manifest_dir: str | Path, no_dev: bool = True) -> None:
        """Install the dependencies declared in ``manifest_dir``.

        Raises:
            InstallError: With Composer's error output if installation fails
        """
        args = ["install"]
        if no_dev:
            args.append("--no-dev")
        try:
            self._run(args, cwd=Path(manifest_dir))
        except CommandError as e:
            raise InstallError(str(e)) from e

    def type_of(self, package: str, constraint: str) -> str:
        """Query the type of a package with ``composer show``.

        Raises:
            InspectError: With Composer's error output if the query fails
        """
        try:
            result = self._run(["show", package, constraint])
        except CommandError as e:
            raise InspectError(str(e)) from e
        return parse_show_type(result.stdout)


class RepositoryInspector:
    """Answers package types from inline repositories of a manifest.

    Two repository shapes are recognised::

        {"type": "package", "package": {"name": "acme/foo", "type": "contao-module"}}
        {"install": {"package": "acme/foo", "type": "contao-module"}}

    Packages not declared inline are passed to ``fallback``.
    """

    def __init__(self, manifest: Manifest, fallback: PackageInspector) -> None:
        self.manifest = manifest
        self.fallback = fallback

    def _declared_type(self, package: str) -> Optional[str]:
        for repository in self.manifest.repositories:
            install = repository.get("install")
            if isinstance(install, dict) and install.get("package") == package:
                if install.get("type"):
                    return install["type"]

            inline = repository.get("package")
            for candidate in inline if isinstance(inline, list) else [inline]:
                if isinstance(candidate, dict) and candidate.get("name") == package:
                    if candidate.get("type"):
                        return candidate["type"]
        return None

    def type_of(self, package: str, constraint: str) -> str:
        declared = self._declared_type(package)
        if declared is not None:
            return declared
        return self.fallback.type_of(package, constraint)


def ensure_composer(
    install_dir: str | Path | None = None,
    php: str = "php",
    timeout: float | None = DEFAULT_TIMEOUT,
    client: httpx.Client | None = None,
) -> Path:
    """Make sure a local composer.phar exists, installing it if needed.

    Args:
        install_dir: Directory to keep composer.phar in
            (defaults to the er2-builder application directory)
        php: PHP executable used to run the installer
        timeout: Seconds allowed for the download and the installer
        client: HTTP client to download with (a new one is created if omitted)

    Returns:
        Path to composer.phar

    Raises:
        InstallError: If the installer cannot be downloaded or fails
    """
    target_dir = Path(install_dir) if install_dir else Path(click.get_app_dir("er2-builder"))
    phar = target_dir / COMPOSER_PHAR
    if phar.exists():
        return phar

    target_dir.mkdir(parents=True, exist_ok=True)
    installer = target_dir / "composer-setup.php"

    try:
        if client is None:
            with httpx.Client(follow_redirects=True, timeout=timeout) as http:
                response = http.get(COMPOSER_INSTALLER_URL)
        else:
            response = client.get(COMPOSER_INSTALLER_URL)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise InstallError(f"Failed to download the Composer installer: {e}") from e

    installer.write_bytes(response.content)
    try:
        run_command(
            [php, str(installer), f"--install-dir={target_dir}", f"--filename={COMPOSER_PHAR}"],
            cwd=target_dir,
            timeout=timeout,
        )
    except CommandError as e:
        raise InstallError(str(e)) from e
    finally:
        installer.unlink(missing_ok=True)

    return phar


def resolve_composer_command(
    composer: str | None = None,
    timeout: float | None = DEFAULT_TIMEOUT,
    installer: Callable[..., Path] = ensure_composer,
) -> list[str]:
    """Determine how to invoke Composer.

    An explicit ``composer`` setting wins; a path ending in ``.phar`` is run
    through PHP. Otherwise a ``composer`` executable on PATH is used, and as
    a last resort a local composer.phar is installed.
    """
    if composer:
        if composer.endswith(".phar"):
            return ["php", composer]
        return [composer]

    found = shutil.which("composer")
    if found:
        return [found]

    return ["php", str(installer(timeout=timeout))]


def describe_command(args: Sequence[Any]) -> str:
    return " ".join(str(a) for a in args)
