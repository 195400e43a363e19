"""
lawguard - Aggregation and output formatting.

Handles:
- Violation dataclass
- Per-run Aggregator (thread-safe, restores canonical order)
- RunReport with summary counts and the JSON report schema
- Console rendering
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from .scanner import Diagnostic

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Violation:
    """A single law violation."""
    rule_id: str
    path: str
    detail: str
    fix: Optional[str] = None

    def __str__(self) -> str:
        return f"[{self.rule_id}] {self.path} - {self.detail}"


def display_path(path: str, root: Optional[Path]) -> str:
    """Path relative to root as posix string, or the path unchanged."""
    if root is None:
        return path
    try:
        return Path(path).relative_to(root).as_posix()
    except ValueError:
        return path


@dataclass
class RunReport:
    timestamp: str
    violations: list[Violation]
    root: Optional[Path] = None
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.violations)

    @property
    def by_law(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for v in self.violations:
            counts[v.rule_id] = counts.get(v.rule_id, 0) + 1
        return counts

    def passed(self, always_succeed: bool = False) -> bool:
        """Run-completion signal: True unless violations exist and always_succeed is off."""
        return always_succeed or not self.violations

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "violations": [
                {
                    "law": v.rule_id,
                    "file": display_path(v.path, self.root),
                    "detail": v.detail,
                    "fix": v.fix,
                }
                for v in self.violations
            ],
            "summary": {
                "total": self.total,
                "byLaw": self.by_law,
            },
        }

    def render_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)


class Aggregator:
    """
    Collects violations and diagnostics for one run.

    Workers may call add() concurrently. violations() always returns the
    canonical order: artifact discovery index, then rule registration position,
    then emission order within one evaluation.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: list[tuple[tuple[int, int, int], Violation]] = []
        self._diagnostics: list[Diagnostic] = []

    def add(self, artifact_index: int, rule_position: int, violations: Iterable[Violation]) -> None:
        batch = [
            ((artifact_index, rule_position, seq), v)
            for seq, v in enumerate(violations)
        ]
        if not batch:
            return
        with self._lock:
            self._entries.extend(batch)

    def add_diagnostic(self, diagnostic: Diagnostic) -> None:
        with self._lock:
            self._diagnostics.append(diagnostic)

    def extend_diagnostics(self, diagnostics: Iterable[Diagnostic]) -> None:
        with self._lock:
            self._diagnostics.extend(diagnostics)

    @property
    def diagnostics(self) -> list[Diagnostic]:
        with self._lock:
            return list(self._diagnostics)

    def violations(self) -> list[Violation]:
        with self._lock:
            entries = sorted(self._entries, key=lambda e: e[0])
        return [v for _, v in entries]

    def finalize(
        self,
        rule_filter: Optional[str] = None,
        root: Optional[Path] = None,
        timestamp: Optional[str] = None,
    ) -> RunReport:
        """
        Build the run report.

        The rule filter is applied before anything is counted, so the summary
        describes exactly the violations that will be printed.
        Diagnostics are sorted by (path, source, message) so their order does
        not depend on worker scheduling.
        """
        violations = self.violations()
        if rule_filter:
            violations = [v for v in violations if v.rule_id == rule_filter]
        return RunReport(
            timestamp=timestamp or datetime.now(timezone.utc).isoformat(),
            violations=violations,
            root=root,
            diagnostics=sorted(
                self.diagnostics, key=lambda d: (d.path or "", d.source, d.message)
            ),
        )


# =============================================================================
# Output
# =============================================================================

HEADER = "┏━━━━━━━━ Law violations ━━━━━━━━"
OK_LINE = "✔ All laws respected."
DIAG_PREFIX = "[diagnostic]"


def render_console(report: RunReport) -> str:
    """Render diagnostics then one block per violation."""
    lines: list[str] = [f"{DIAG_PREFIX} {d}" for d in report.diagnostics]

    if not report.violations:
        lines.append(OK_LINE)
        return "\n".join(lines)

    lines.append(HEADER)
    for v in report.violations:
        lines.append(f"┣ [{v.rule_id}] {display_path(v.path, report.root)}")
        lines.append(f"┣→ {v.detail}")
        lines.append(f"┗↪ Fix: {v.fix or '-'}")
    lines.append("")
    counts = "  ".join(f"{law}={n}" for law, n in report.by_law.items())
    lines.append(f"Violations: {report.total}  {counts}")
    return "\n".join(lines)


def write_report(report: RunReport, path: Path) -> Optional[Diagnostic]:
    """
    Write the JSON report.

    Returns a Diagnostic instead of raising when the file cannot be written;
    console output does not depend on it.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(report.render_json() + "\n", encoding="utf-8")
    except OSError as e:
        logger.warning("Cannot write report to %s: %s", path, e)
        return Diagnostic("report", f"cannot write report: {e.strerror or e}", str(path))
    logger.info("Report written to %s", path)
    return None
