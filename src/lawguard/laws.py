"""
lawguard - Policy texts.

The laws are also kept as plain text documents (one *.txt per law) so
reviewers and agents can read them. The runner lists them at startup.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import ConfigError
from .scanner import Diagnostic

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 100


@dataclass(frozen=True)
class Law:
    title: str
    content: str

    @property
    def preview(self) -> str:
        if len(self.content) <= PREVIEW_CHARS:
            return self.content
        return self.content[:PREVIEW_CHARS] + "..."


def load_laws(laws_dir: Path) -> list[Law]:
    """
    Load every *.txt file in laws_dir, sorted by file name.

    Raises:
        FileNotFoundError: laws_dir does not exist.
    """
    if not laws_dir.is_dir():
        raise FileNotFoundError(f"Laws directory not found: {laws_dir}")
    laws = []
    for path in sorted(laws_dir.glob("*.txt")):
        laws.append(Law(title=path.name, content=path.read_text(encoding="utf-8").strip()))
    return laws


def resolve_laws(
    laws_dir: Optional[Path],
    required: bool = False,
) -> tuple[list[Law], list[Diagnostic]]:
    """
    Load laws for a run.

    A missing directory is fatal only when required; otherwise it becomes a
    diagnostic and the run proceeds without policy texts.
    """
    if laws_dir is None:
        if required:
            raise ConfigError("require_laws is set but no laws_dir is configured")
        return [], []
    try:
        laws = load_laws(laws_dir)
    except FileNotFoundError as e:
        if required:
            raise ConfigError(str(e)) from e
        logger.warning("%s", e)
        return [], [Diagnostic("laws", "laws directory not found", str(laws_dir))]
    logger.info("Loaded %d law text(s) from %s", len(laws), laws_dir)
    return laws, []
