# SPDX-License-Identifier: MIT
"""ER2 package building for Composer designed Contao modules.

Legacy Contao installations install modules from the ER2 extension
repository, which knows nothing about Composer. This package turns a
``contao-module`` project into an ER2 package:

- dependencies provided by Contao are stripped and reported
- the remaining dependencies are installed with Composer
- mapped sources are restructured into ``system/modules/<name>``
- bootstrap glue wires the Composer autoloader and run-once scripts into
  Contao 2.x and 3.x

Example:
    >>> from er2_builder import BuildConfig, Composer, GitSourceFetcher, PackageAssembler
    >>>
    >>> config = BuildConfig(uri="https://github.com/acme/foo.git", output="foo.zip")
    >>> report = PackageAssembler(config, GitSourceFetcher(), Composer()).build()
    >>> [str(record) for record in report.excluded]
    ['contao/core >=2.11,<4']
"""

__version__ = "0.1.0"

from .assembler import (
    BuildObserver,
    BuildReport,
    BuildState,
    PackageAssembler,
    ProvenanceRecord,
)
from .classifier import (
    PLATFORM_PACKAGES,
    ClassificationResult,
    DependencyClassifier,
    DependencyRecord,
    LockPolicyResult,
    is_platform_package,
)
from .classmap import AutoloadRoots, ClassmapBuilder, ClassmapResult, create_map, find_classes
from .composer import (
    Composer,
    PackageInspector,
    RepositoryInspector,
    ensure_composer,
    resolve_composer_command,
)
from .config import BuildConfig, BuilderDefaults, load_override_manifest
from .errors import (
    BuildConfigError,
    BuildError,
    ClassmapError,
    FetchError,
    InspectError,
    InstallError,
    PackageIOError,
    ParseError,
    TemplateError,
    ValidationError,
    ValidationErrorDetail,
)
from .filesystem import FileCopier, ZipArchiveWriter, write_archive
from .git import GitSourceFetcher, RevisionInfo
from .lockfile import LockEntry, LockFile, load_lock, serialize_lock
from .manifest import (
    Manifest,
    PathMapping,
    load_manifest,
    load_manifest_file,
    merge_manifests,
    serialize_manifest,
    validate_manifest,
)
from .process import CommandError, CommandResult, run_command
from .resolver import ModulePathResolution, resolve_module_path
from .transformer import TransformResult, TreeTransformer

__all__ = [
    # Version
    "__version__",
    # Assembler
    "BuildObserver",
    "BuildReport",
    "BuildState",
    "PackageAssembler",
    "ProvenanceRecord",
    # Classifier
    "PLATFORM_PACKAGES",
    "ClassificationResult",
    "DependencyClassifier",
    "DependencyRecord",
    "LockPolicyResult",
    "is_platform_package",
    # Classmap
    "AutoloadRoots",
    "ClassmapBuilder",
    "ClassmapResult",
    "create_map",
    "find_classes",
    # Composer
    "Composer",
    "PackageInspector",
    "RepositoryInspector",
    "ensure_composer",
    "resolve_composer_command",
    # Config
    "BuildConfig",
    "BuilderDefaults",
    "load_override_manifest",
    # Errors
    "BuildConfigError",
    "BuildError",
    "ClassmapError",
    "FetchError",
    "InspectError",
    "InstallError",
    "PackageIOError",
    "ParseError",
    "TemplateError",
    "ValidationError",
    "ValidationErrorDetail",
    # Filesystem
    "FileCopier",
    "ZipArchiveWriter",
    "write_archive",
    # Git
    "GitSourceFetcher",
    "RevisionInfo",
    # Lock file
    "LockEntry",
    "LockFile",
    "load_lock",
    "serialize_lock",
    # Manifest
    "Manifest",
    "PathMapping",
    "load_manifest",
    "load_manifest_file",
    "merge_manifests",
    "serialize_manifest",
    "validate_manifest",
    # Process
    "CommandError",
    "CommandResult",
    "run_command",
    # Resolver
    "ModulePathResolution",
    "resolve_module_path",
    # Transformer
    "TransformResult",
    "TreeTransformer",
]
