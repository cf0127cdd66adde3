"""Build orchestration."""

from frontpack.orchestration.build import (
    BuildArtifact,
    BuildOrchestrator,
    BuildSpec,
    clean_build,
    run_coroutine,
)

__all__ = ["BuildArtifact", "BuildOrchestrator", "BuildSpec", "clean_build", "run_coroutine"]
