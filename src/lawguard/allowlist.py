"""
lawguard - Path exceptions.

An exception entry exempts matching artifacts from one law, or from every law
when its scope is "*". Scope is always explicit; an entry never guesses
whether it was meant per-law or per-artifact.

Patterns are fnmatch globs applied to the path string exactly as the collector
produced it, or to its final component when the entry matches by "name".
Paths are not canonicalized, so a pattern written with "/" will not match a
Windows-style path.
"""

from __future__ import annotations

import fnmatch
import os
from dataclasses import dataclass
from typing import Iterable, Optional

ALL_RULES = "*"
MATCH_PATH = "path"
MATCH_NAME = "name"


@dataclass(frozen=True)
class ExceptionEntry:
    """A path pattern exempting artifacts from one law or all of them."""
    pattern: str
    scope: str
    reason: Optional[str] = None
    match: str = MATCH_PATH

    def __post_init__(self) -> None:
        if not self.pattern:
            raise ValueError("exception entry needs a non-empty pattern")
        if not self.scope:
            raise ValueError(f"exception entry {self.pattern!r} needs an explicit scope")
        if self.match not in (MATCH_PATH, MATCH_NAME):
            raise ValueError(f"exception entry {self.pattern!r}: match must be 'path' or 'name'")

    @property
    def is_global(self) -> bool:
        return self.scope == ALL_RULES

    def matches(self, path: str) -> bool:
        subject = os.path.basename(path) if self.match == MATCH_NAME else path
        return fnmatch.fnmatchcase(subject, self.pattern)


class ExceptionMatcher:
    """Read-only lookup of exception entries grouped by scope."""

    def __init__(self, entries: Iterable[ExceptionEntry] = ()) -> None:
        self._by_scope: dict[str, list[ExceptionEntry]] = {}
        for entry in entries:
            self._by_scope.setdefault(entry.scope, []).append(entry)

    @property
    def entries(self) -> list[ExceptionEntry]:
        return [e for group in self._by_scope.values() for e in group]

    def find(self, path: str, rule_id: str) -> Optional[ExceptionEntry]:
        """Return the first entry exempting (path, rule_id), or None."""
        for scope in (rule_id, ALL_RULES):
            for entry in self._by_scope.get(scope, ()):
                if entry.matches(path):
                    return entry
        return None

    def matches(self, path: str, rule_id: str) -> bool:
        return self.find(path, rule_id) is not None
