"""frontpack: bundle script, style and markup into one self-consistent build."""

from frontpack.api import (
    build,
    bundle_markup,
    bundle_script,
    bundle_style,
    clean_build,
    relocate_assets,
)
from frontpack.exceptions import (
    CollaboratorError,
    FrontpackError,
    NameCollisionError,
    ResolutionError,
    StreamConsumedError,
    WriteError,
)
from frontpack.orchestration.build import BuildArtifact, BuildOrchestrator, BuildSpec

__version__ = "0.1.0"

__all__ = [
    "BuildArtifact",
    "BuildOrchestrator",
    "BuildSpec",
    "CollaboratorError",
    "FrontpackError",
    "NameCollisionError",
    "ResolutionError",
    "StreamConsumedError",
    "WriteError",
    "build",
    "bundle_markup",
    "bundle_script",
    "bundle_style",
    "clean_build",
    "relocate_assets",
]
