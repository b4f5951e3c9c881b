"""Build output scanner: turns an output directory into sized artifacts."""

import gzip
import re
from collections.abc import Iterable
from pathlib import Path
from typing import Optional

from ..exceptions import FileAccessError
from ..logging_config import get_logger
from ..models import Artifact, Target

logger = get_logger(__name__)

# Script and stylesheet bundles; source maps are never artifacts
ARTIFACT_EXTENSIONS = frozenset({".js", ".mjs", ".css"})

GZIP_LEVEL = 6


def glob_to_regex(pattern: str) -> "re.Pattern[str]":
    """Translate an ignore glob into a whole-path regular expression.

    ``**`` matches any depth (``**/`` also matches zero directories),
    ``*`` matches within one path segment and ``?`` matches one character.
    Everything else is literal.
    """
    if pattern.startswith("./"):
        pattern = pattern[2:]

    out = []
    i = 0
    n = len(pattern)
    while i < n:
        if pattern.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            out.append(".*")
            i += 2
        elif pattern[i] == "*":
            out.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            out.append("[^/]")
            i += 1
        else:
            out.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(out) + r"\Z")


def gzip_size(data: bytes) -> int:
    """Size of *data* after gzip at the default level, with a zeroed header mtime."""
    return len(gzip.compress(data, compresslevel=GZIP_LEVEL, mtime=0))


def is_artifact(path: Path) -> bool:
    return path.suffix in ARTIFACT_EXTENSIONS and ".map" not in path.name


class ArtifactScanner:
    """Scans one target's output directory.

    Each instance is independent, so client and server scanners can run
    on separate threads.
    """

    def __init__(
        self,
        output_path: str,
        target: Target,
        compress: bool = True,
        ignore_paths: Iterable[str] = (),
        cwd: Optional[Path] = None,
        exclude_dirs: Iterable[str] = (),
    ):
        self.output_path = Path(output_path)
        self.target = Target(target)
        self.compress = compress
        self.cwd = Path(cwd) if cwd is not None else Path.cwd()
        self._ignore = [glob_to_regex(p) for p in ignore_paths]
        # Another target's output nested inside this one (dist/server in dist)
        self._excluded = [Path(d).resolve() for d in exclude_dirs]

    def scan(self) -> list[Artifact]:
        """
        Measure every bundle file under the output directory.

        Returns:
            Artifacts in sorted path order; empty if the directory is missing

        Raises:
            FileAccessError: If a file cannot be stat-ed or read
        """
        root = self.output_path
        if not root.is_dir():
            logger.info(f"Output directory not found: {root}")
            return []

        artifacts = []
        skipped = 0
        for filepath in sorted(root.rglob("*")):
            if not filepath.is_file() or not is_artifact(filepath):
                continue
            if self._is_excluded(filepath):
                continue
            if self._is_ignored(filepath):
                skipped += 1
                logger.debug(f"Ignored: {filepath}")
                continue
            artifacts.append(self._measure(filepath))

        logger.debug(
            f"Scanned {root} ({self.target.value}): {len(artifacts)} artifacts, {skipped} ignored"
        )
        return artifacts

    def _measure(self, filepath: Path) -> Artifact:
        try:
            raw_size = filepath.stat().st_size
            compressed_size = gzip_size(filepath.read_bytes()) if self.compress else None
        except OSError as e:
            raise FileAccessError(filepath, str(e)) from e

        return Artifact(
            name=filepath.relative_to(self.output_path).as_posix(),
            raw_size=raw_size,
            target=self.target,
            compressed_size=compressed_size,
        )

    def _is_excluded(self, filepath: Path) -> bool:
        if not self._excluded:
            return False
        absolute = filepath.resolve()
        return any(root in absolute.parents for root in self._excluded)

    def _is_ignored(self, filepath: Path) -> bool:
        if not self._ignore:
            return False
        relative = self._relative_to_cwd(filepath)
        return any(rx.match(relative) for rx in self._ignore)

    def _relative_to_cwd(self, filepath: Path) -> str:
        absolute = filepath.resolve()
        try:
            return absolute.relative_to(self.cwd.resolve()).as_posix()
        except ValueError:
            return absolute.as_posix()


def scan_artifacts(
    output_path: str,
    target: Target,
    compress: bool = True,
    ignore_paths: Iterable[str] = (),
    cwd: Optional[Path] = None,
) -> list[Artifact]:
    """Convenience wrapper around :class:`ArtifactScanner`."""
    return ArtifactScanner(output_path, target, compress, ignore_paths, cwd).scan()
