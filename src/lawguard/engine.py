"""
lawguard - Rule engine.

Dispatches each artifact to the rules that apply to its kind, honouring path
exceptions, and feeds the results into a per-run Aggregator.

A rule that raises on one artifact is recorded as a diagnostic; the remaining
rules and artifacts are still evaluated.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Optional

from .allowlist import ExceptionMatcher
from .reporting import Aggregator
from .rules import Rule
from .scanner import Diagnostic, SourceArtifact

logger = logging.getLogger(__name__)


class RuleEngine:
    """Ordered rule registry plus the evaluation loop."""

    def __init__(
        self,
        rules: Iterable[Rule] = (),
        matcher: Optional[ExceptionMatcher] = None,
        workers: int = 1,
    ) -> None:
        self._rules: list[Rule] = []
        self.matcher = matcher or ExceptionMatcher()
        self.workers = max(1, workers)
        for rule in rules:
            self.register(rule)

    @property
    def rules(self) -> list[Rule]:
        return list(self._rules)

    def register(self, rule: Rule) -> None:
        """Append a rule. Registration order is the reporting order."""
        if not rule.rule_id:
            raise ValueError(f"{rule!r} has no rule_id")
        if any(r.rule_id == rule.rule_id for r in self._rules):
            raise ValueError(f"duplicate rule id: {rule.rule_id}")
        self._rules.append(rule)

    def evaluate_artifact(
        self,
        artifact: SourceArtifact,
        aggregator: Aggregator,
        order: Optional[int] = None,
    ) -> None:
        """
        Run every applicable, non-exempt rule on one artifact.

        order is the artifact's position in the run; it defaults to
        artifact.index.
        """
        order = artifact.index if order is None else order
        for position, rule in enumerate(self._rules):
            if not rule.applies_to(artifact):
                continue
            entry = self.matcher.find(artifact.path, rule.rule_id)
            if entry is not None:
                logger.debug("%s exempt from %s (%s)", artifact.path, rule.rule_id, entry.pattern)
                continue
            try:
                violations = rule.evaluate(artifact)
            except Exception as e:
                logger.exception("Rule %s failed on %s", rule.rule_id, artifact.path)
                aggregator.add_diagnostic(Diagnostic(
                    source=f"rule:{rule.rule_id}",
                    message=f"evaluation failed: {type(e).__name__}: {e}",
                    path=artifact.path,
                ))
                continue
            aggregator.add(order, position, violations)

    def run(
        self,
        artifacts: Iterable[SourceArtifact],
        aggregator: Optional[Aggregator] = None,
    ) -> Aggregator:
        """
        Evaluate all artifacts.

        Violations are ordered by position in artifacts, then rule registration.
        With workers > 1 artifacts are spread over a bounded thread pool; the
        aggregator restores that order afterwards.
        """
        aggregator = aggregator if aggregator is not None else Aggregator()
        artifacts = list(artifacts)

        if self.workers > 1 and len(artifacts) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                futures = [
                    pool.submit(self.evaluate_artifact, a, aggregator, i)
                    for i, a in enumerate(artifacts)
                ]
                for future in futures:
                    future.result()
        else:
            for i, artifact in enumerate(artifacts):
                self.evaluate_artifact(artifact, aggregator, i)

        logger.info(
            "Evaluated %d artifacts against %d rules", len(artifacts), len(self._rules)
        )
        return aggregator
