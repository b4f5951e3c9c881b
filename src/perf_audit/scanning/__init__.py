"""Build output scanning."""

from .scanner import (
    ARTIFACT_EXTENSIONS,
    ArtifactScanner,
    glob_to_regex,
    gzip_size,
    is_artifact,
    scan_artifacts,
)

__all__ = [
    "ARTIFACT_EXTENSIONS",
    "ArtifactScanner",
    "glob_to_regex",
    "gzip_size",
    "is_artifact",
    "scan_artifacts",
]
