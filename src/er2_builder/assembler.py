# SPDX-License-Identifier: MIT
"""Build pipeline turning a Composer module project into an ER2 package.

The pipeline runs strictly in order::

    FETCHING -> VALIDATING -> CLASSIFYING_DEPS -> INSTALLING_DEPS
      -> TRANSFORMING -> RECORDING_PROVENANCE -> PACKAGING
      -> CLEANING_UP -> DONE

A failure in any stage skips the remaining stages and moves through
CLEANING_UP to FAILED. The two temporary directories are removed on every
exit path and the original error is re-raised. Nothing is retried.

Example:
    >>> config = BuildConfig(uri="https://example.com/acme/foo.git")
    >>> report = PackageAssembler(config, GitSourceFetcher(), Composer()).build()
    >>> report.module_path
    'system/modules/foo'
"""

from __future__ import annotations

import shutil
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Protocol

from .classmap import AutoloadRoots, ClassmapBuilder
from .classifier import ClassificationResult, DependencyClassifier, DependencyRecord, LockPolicyResult
from .composer import PackageInspector, RepositoryInspector
from .config import BuildConfig
from .filesystem import FileCopier, write_archive
from .git import RevisionInfo
from .manifest import (
    MANIFEST_FILENAME,
    Manifest,
    load_manifest_file,
    merge_manifests,
    serialize_manifest,
    validate_manifest,
)
from .resolver import ModulePathResolution, resolve_module_path
from .transformer import TreeTransformer

REPOSITORY_PREFIX = "er2_repository_"
PACKAGE_PREFIX = "er2_package_"
RELEASE_FILE = "RELEASE"


class BuildState(Enum):
    FETCHING = "fetching"
    VALIDATING = "validating"
    CLASSIFYING_DEPS = "classifying_deps"
    INSTALLING_DEPS = "installing_deps"
    TRANSFORMING = "transforming"
    RECORDING_PROVENANCE = "recording_provenance"
    PACKAGING = "packaging"
    CLEANING_UP = "cleaning_up"
    DONE = "done"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (BuildState.DONE, BuildState.FAILED)


class SourceFetcher(Protocol):
    """Retrieves the project source and its commit metadata."""

    def clone(self, uri: str, branch: str, destination: str | Path) -> Path: ...

    def revision_info(self, checkout: str | Path) -> RevisionInfo: ...


class PackageInstaller(PackageInspector, Protocol):
    """Installs the remaining dependencies and answers package types."""

    def install(self, manifest_dir: str | Path, no_dev: bool = True) -> None: ...


@dataclass(frozen=True)
class ProvenanceRecord:
    """Contents of the RELEASE file written into the module directory.

    Attributes:
        url: Repository the package was built from
        head: ``git describe --all`` of the built revision
        commit: Commit hash of the built revision
        datetime: Commit date in RFC 2822 format
    """

    url: str
    head: str
    commit: str
    datetime: str

    @classmethod
    def from_revision(cls, uri: str, revision: RevisionInfo) -> "ProvenanceRecord":
        return cls(url=uri, head=revision.describe, commit=revision.commit, datetime=revision.date)

    def render(self) -> str:
        return (
            f"url: {self.url}\n"
            f"head: {self.head}\n"
            f"commit: {self.commit}\n"
            f"datetime: {self.datetime}"
        )


@dataclass
class BuildReport:
    """What a build produced and what the operator has to follow up on.

    Attributes:
        output: The archive or directory that was written
        mode: "zip" or "dir"
        states: Every state the build entered, in order
        module_path: Module directory inside the package
        module_path_guessed: Whether the module path came from the package name
        excluded: Dependencies that must be declared in the ER2 repository
        lock: What happened to composer.lock
        class_names: Classes registered for the Contao 2.x class cache
        executor_class: Class name of the generated run-once executor
        provenance: Contents of the RELEASE file
        entries: Archive entries, for zip builds
    """

    output: Path
    mode: str
    states: list[BuildState] = field(default_factory=list)
    module_path: Optional[str] = None
    module_path_guessed: bool = False
    excluded: list[DependencyRecord] = field(default_factory=list)
    lock: LockPolicyResult = field(default_factory=LockPolicyResult)
    class_names: list[str] = field(default_factory=list)
    executor_class: Optional[str] = None
    provenance: Optional[ProvenanceRecord] = None
    entries: list[str] = field(default_factory=list)

    @property
    def state(self) -> Optional[BuildState]:
        return self.states[-1] if self.states else None


class BuildObserver:
    """Receives progress of a build. The default implementation is silent."""

    def stage(self, state: BuildState) -> None:
        pass

    def step(self, message: str) -> None:
        pass

    def warning(self, message: str) -> None:
        pass


class PackageAssembler:
    """Runs the build pipeline for one repository.

    Args:
        config: Build settings
        fetcher: Clones the repository and reads its revision
        installer: Runs the dependency install and answers package types
            not declared in the manifest's repositories
        copier: Performs file copies into the package
        transformer: Restructures mapped paths and writes bootstrap glue
        observer: Receives progress and warnings
    """

    def __init__(
        self,
        config: BuildConfig,
        fetcher: SourceFetcher,
        installer: PackageInstaller,
        copier: Optional[FileCopier] = None,
        transformer: Optional[TreeTransformer] = None,
        observer: Optional[BuildObserver] = None,
    ) -> None:
        self.config = config
        self.fetcher = fetcher
        self.installer = installer
        self.copier = copier or FileCopier()
        self.transformer = transformer or TreeTransformer(copier=self.copier)
        self.observer = observer or BuildObserver()

    def _enter(self, report: BuildReport, state: BuildState) -> None:
        report.states.append(state)
        self.observer.stage(state)

    def build(self) -> BuildReport:
        """Run the pipeline.

        Returns:
            The report of a successful build

        Raises:
            BuildError: The error of the failing stage, after cleanup
        """
        report = BuildReport(output=self.config.output, mode=self.config.mode)
        repository = Path(tempfile.mkdtemp(prefix=REPOSITORY_PREFIX))
        package = Path(tempfile.mkdtemp(prefix=PACKAGE_PREFIX))

        succeeded = False
        try:
            self._run(report, repository, package)
            succeeded = True
        finally:
            self._enter(report, BuildState.CLEANING_UP)
            self.observer.step("Cleanup")
            self.cleanup(repository, package)
            self._enter(report, BuildState.DONE if succeeded else BuildState.FAILED)

        return report

    def cleanup(self, *directories: Path) -> None:
        """Remove temporary directories; missing ones are ignored."""
        for directory in directories:
            shutil.rmtree(directory, ignore_errors=True)

    def _run(self, report: BuildReport, repository: Path, package: Path) -> None:
        self._enter(report, BuildState.FETCHING)
        self.observer.step("Clone project")
        self.fetcher.clone(self.config.uri, self.config.branch, repository)

        self._enter(report, BuildState.VALIDATING)
        self.observer.step("Validate project")
        manifest = self.validate(repository)
        resolution = self.resolve(manifest)
        report.module_path = resolution.path
        report.module_path_guessed = resolution.guessed

        self._enter(report, BuildState.CLASSIFYING_DEPS)
        classifier = DependencyClassifier(RepositoryInspector(manifest, fallback=self.installer))
        classification = self.classify(classifier, manifest)
        report.excluded = classification.excluded
        report.lock = classifier.apply_lock_policy(
            repository, manifest, retain=self.config.keep_lockfile
        )
        (repository / MANIFEST_FILENAME).write_bytes(serialize_manifest(manifest))

        self._enter(report, BuildState.INSTALLING_DEPS)
        self.observer.step("Install dependencies")
        self.installer.install(repository, no_dev=True)

        self._enter(report, BuildState.TRANSFORMING)
        self.transform(report, manifest, repository, package, resolution.path)

        self._enter(report, BuildState.RECORDING_PROVENANCE)
        self.observer.step("Write release file")
        revision = self.fetcher.revision_info(repository)
        report.provenance = ProvenanceRecord.from_revision(self.config.uri, revision)
        release = package / resolution.path / RELEASE_FILE
        release.parent.mkdir(parents=True, exist_ok=True)
        release.write_text(report.provenance.render(), encoding="utf-8")

        self._enter(report, BuildState.PACKAGING)
        self.package(report, package)

    def validate(self, repository: Path) -> Manifest:
        """Load, merge and validate the fetched manifest."""
        manifest = load_manifest_file(repository)
        override = self.config.load_override()
        if override is not None:
            manifest = merge_manifests(manifest, override)
        validate_manifest(manifest)
        return manifest

    def resolve(self, manifest: Manifest) -> ModulePathResolution:
        resolution = resolve_module_path(manifest)
        if resolution.guessed:
            self.observer.warning(
                f"Module path not found, guessing the module path from name: {resolution.path}"
            )
        return resolution

    def classify(self, classifier: DependencyClassifier, manifest: Manifest) -> ClassificationResult:
        """Strip dependencies the Contao installation provides."""
        if manifest.require:
            self.observer.step("Remove unneeded dependencies")
        return classifier.classify(manifest)

    def transform(
        self,
        report: BuildReport,
        manifest: Manifest,
        repository: Path,
        package: Path,
        module_path: str,
    ) -> None:
        self.observer.step("Copy files into package")
        transformed = self.transformer.apply(
            manifest.path_mappings, manifest.runonce, repository, package, module_path
        )
        report.executor_class = transformed.executor_class

        self.observer.step("Build classmap")
        builder = ClassmapBuilder(repository, package, module_path, self.copier)
        result = builder.build(AutoloadRoots.from_manifest(manifest))
        report.class_names = result.class_names

        self.observer.step("Copy dependencies into package")
        builder.copy_vendor(manifest.vendor_dir)

        self.observer.step("Write autoloader")
        self.transformer.write_autoload_include(package, module_path)
        self.transformer.write_config_extension(package, module_path, result.class_names)

    def package(self, report: BuildReport, package: Path) -> None:
        if self.config.create_dir:
            self.observer.step("Create package")
            self.copier.copy_tree(package, self.config.output)
        else:
            self.observer.step("Create package archive")
            report.entries = write_archive(package, self.config.output)
