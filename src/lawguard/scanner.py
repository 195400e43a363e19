"""
lawguard - Corpus collection.

Handles:
- Directory walking with exact-basename exclusions at any depth
- Deterministic discovery order (lexicographic per directory)
- Source loading, optionally on a bounded thread pool
- Partial-failure tolerance for missing or unreadable roots
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, Optional

from .errors import CollectionError
from .patterns import KIND_BY_SUFFIX

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceArtifact:
    """A loaded source file. Never mutated after collection."""
    path: str
    content: str
    kind: str
    index: int = 0


@dataclass(frozen=True)
class Diagnostic:
    """A tooling warning. Reported separately, never counted as a violation."""
    source: str
    message: str
    path: Optional[str] = None

    def __str__(self) -> str:
        where = f" {self.path}" if self.path else ""
        return f"{self.source}{where}: {self.message}"


@dataclass
class CollectionResult:
    artifacts: list[SourceArtifact] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    roots_scanned: int = 0


def kind_for(path: str) -> str:
    """Derive the artifact kind from the file suffix."""
    return KIND_BY_SUFFIX.get(os.path.splitext(path)[1].lower(), "other")


def _walk_root(
    root: Path,
    ignore_dirs: frozenset[str],
    extensions: frozenset[str],
    diagnostics: list[Diagnostic],
) -> Iterator[str]:
    def on_error(err: OSError) -> None:
        # Subdirectory failures are diagnostics; the root itself is checked first.
        logger.warning("Cannot list %s: %s", err.filename, err.strerror)
        diagnostics.append(Diagnostic("collector", f"cannot list directory: {err.strerror}", err.filename))

    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        dirnames[:] = sorted(d for d in dirnames if d not in ignore_dirs)
        for name in sorted(filenames):
            if os.path.splitext(name)[1].lower() in extensions:
                yield os.path.join(dirpath, name)


def iter_paths(
    roots: Iterable[Path],
    ignore_dirs: Iterable[str],
    include_extensions: Iterable[str],
    diagnostics: list[Diagnostic],
) -> tuple[list[str], int]:
    """
    List eligible file paths under each root, in discovery order.

    Returns (paths, roots_scanned). Roots that are missing or unreadable are
    logged, recorded in diagnostics, and skipped.
    """
    ignore = frozenset(ignore_dirs)
    exts = frozenset(e.lower() for e in include_extensions)
    paths: list[str] = []
    scanned = 0

    for root in roots:
        if not root.exists():
            logger.warning("Root does not exist, skipping: %s", root)
            diagnostics.append(Diagnostic("collector", "root does not exist", str(root)))
            continue
        if not root.is_dir():
            logger.warning("Root is not a directory, skipping: %s", root)
            diagnostics.append(Diagnostic("collector", "root is not a directory", str(root)))
            continue
        try:
            os.scandir(root).close()
        except OSError as e:
            logger.warning("Root is not readable, skipping: %s (%s)", root, e.strerror)
            diagnostics.append(Diagnostic("collector", f"root is not readable: {e.strerror}", str(root)))
            continue

        scanned += 1
        paths.extend(_walk_root(root, ignore, exts, diagnostics))

    return paths, scanned


def _try_load(path: str) -> tuple[Optional[str], Optional[str]]:
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            return f.read(), None
    except OSError as e:
        return None, e.strerror or str(e)


def collect_artifacts(
    roots: Iterable[Path],
    ignore_dirs: Iterable[str] = (),
    include_extensions: Iterable[str] = (),
    workers: int = 1,
) -> CollectionResult:
    """
    Collect eligible artifacts under roots.

    Artifact order is the discovery order regardless of `workers`.

    Raises:
        CollectionError: no root could be enumerated at all.
    """
    result = CollectionResult()
    roots = list(roots)
    paths, result.roots_scanned = iter_paths(
        roots, ignore_dirs, include_extensions, result.diagnostics
    )

    if result.roots_scanned == 0:
        listed = ", ".join(str(r) for r in roots) or "(none)"
        raise CollectionError(f"no readable root among: {listed}")

    if workers > 1 and len(paths) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            loaded = list(pool.map(_try_load, paths))
    else:
        loaded = [_try_load(p) for p in paths]

    for path, (content, error) in zip(paths, loaded):
        if content is None:
            logger.warning("Cannot read %s: %s", path, error)
            result.diagnostics.append(Diagnostic("collector", f"cannot read file: {error}", path))
            continue
        result.artifacts.append(SourceArtifact(
            path=path,
            content=content,
            kind=kind_for(path),
            index=len(result.artifacts),
        ))

    logger.info(
        "Collected %d artifacts from %d root(s)", len(result.artifacts), result.roots_scanned
    )
    return result
