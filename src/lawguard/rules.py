"""
lawguard - Law implementations.

Each law is a Rule: an id, the artifact kinds it applies to, and a pure
evaluate(artifact) -> list[Violation]. Rules only hold read-only settings
taken from GuardConfig, so one instance can be shared across worker threads.

Matching is heuristic text search. Comments and string literals are not
told apart from live code; a commented-out query still counts.

Laws:
    DB-01      raw SELECT on a protected table
    CRON-01    scheduled job bypassing the approved wrappers
    PLANS-01   price digital root and payment ids on plan rows
    DELETE-01  DELETE on a protected table
    ASSET-01   asset SELECT without the published-parent guard
    ARCH-01    several brands mixed in one artifact
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

from .config import GuardConfig
from .patterns import PRICE_EXAMPLES
from .reporting import Violation
from .scanner import SourceArtifact

SQL = "sql"
SCRIPT = "script"

_FLAGS = re.IGNORECASE


def digital_root(n: int) -> int:
    """
    Repeated decimal digit sum of a positive integer, down to one digit.

    digital_root(2900) == 2, digital_root(3000) == 3.
    """
    if isinstance(n, bool) or not isinstance(n, int):
        raise TypeError(f"digital_root expects an int, got {type(n).__name__}")
    if n <= 0:
        raise ValueError(f"digital_root is defined for positive integers, got {n}")
    return 1 + (n - 1) % 9


def _name(name: str) -> str:
    """Regex for an identifier not glued to a preceding/following word char."""
    return rf"(?<!\w){re.escape(name)}(?!\w)"


def _call(name: str) -> str:
    return rf"(?<!\w){re.escape(name)}\s*\("


def _mentions(text_lower: str, needles: Iterable[str]) -> list[str]:
    return [n for n in needles if n.lower() in text_lower]


def _paren_span(text: str, start: int) -> str:
    """Text inside the balanced parentheses opening at or after start."""
    open_idx = text.find("(", start)
    if open_idx < 0:
        return text[start:]
    depth = 0
    for i in range(open_idx, len(text)):
        c = text[i]
        if c == "(":
            depth += 1
        elif c == ")":
            depth -= 1
            if depth == 0:
                return text[open_idx + 1:i]
    return text[open_idx + 1:]


def _statements(text: str) -> list[str]:
    return [s for s in text.split(";") if s.strip()]


# =============================================================================
# Base
# =============================================================================

class Rule:
    """Base class for laws. Subclasses set rule_id/kinds and implement evaluate."""

    rule_id: str = ""
    kinds: frozenset[str] = frozenset()
    title: str = ""

    def applies_to(self, artifact: SourceArtifact) -> bool:
        return artifact.kind in self.kinds

    def evaluate(self, artifact: SourceArtifact) -> list[Violation]:
        raise NotImplementedError

    def violation(self, artifact: SourceArtifact, detail: str, fix: Optional[str] = None) -> Violation:
        return Violation(rule_id=self.rule_id, path=artifact.path, detail=detail, fix=fix)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.rule_id}>"


# =============================================================================
# DB-01
# =============================================================================

class RawAccessRule(Rule):
    rule_id = "DB-01"
    kinds = frozenset({SQL, SCRIPT})
    title = "No raw SELECT on protected tables"

    def __init__(self, protected_tables: Iterable[str], approved_surfaces: Iterable[str]) -> None:
        self.protected_tables = tuple(protected_tables)
        self.approved_surfaces = tuple(approved_surfaces)
        self._patterns = [
            (table, re.compile(rf"\bselect\b[^;]*?\b(?:from|join)\b[^;]*?{_name(table)}", _FLAGS))
            for table in self.protected_tables
        ]

    @classmethod
    def from_config(cls, cfg: GuardConfig) -> "RawAccessRule":
        return cls(cfg.protected_tables, cfg.approved_surfaces)

    def evaluate(self, artifact: SourceArtifact) -> list[Violation]:
        text = artifact.content
        lower = text.lower()
        if "select" not in lower:
            return []
        if _mentions(lower, self.approved_surfaces):
            return []

        found: list[Violation] = []
        for table, rx in self._patterns:
            if table.lower() not in lower:
                continue
            if rx.search(text):
                found.append(self.violation(
                    artifact,
                    f"Raw SELECT on protected table {table}. Use the public views or RPCs.",
                    f"Replace with one of: {', '.join(self.approved_surfaces)}.",
                ))
        return found


# =============================================================================
# CRON-01
# =============================================================================

class WrapperEnforcementRule(Rule):
    rule_id = "CRON-01"
    kinds = frozenset({SQL, SCRIPT})
    title = "Scheduled jobs go through approved wrappers"

    def __init__(
        self,
        scheduler_patterns: Iterable[str],
        core_functions: Iterable[str],
        approved_wrappers: Iterable[str],
    ) -> None:
        self.scheduler_patterns = [re.compile(p, _FLAGS) for p in scheduler_patterns]
        self.core_functions = tuple(core_functions)
        self.approved_wrappers = tuple(approved_wrappers)
        self._core_calls = [(f, re.compile(_call(f), _FLAGS)) for f in self.core_functions]
        self._wrapper_calls = [re.compile(_call(w), _FLAGS) for w in self.approved_wrappers]

    @classmethod
    def from_config(cls, cfg: GuardConfig) -> "WrapperEnforcementRule":
        return cls(cfg.scheduler_patterns, cfg.core_functions, cfg.approved_wrappers)

    def registrations(self, text: str) -> list[str]:
        """Argument text of every scheduler registration, in file order."""
        starts = sorted(
            m.end() - 1 if m.group(0).endswith("(") else m.end()
            for rx in self.scheduler_patterns
            for m in rx.finditer(text)
        )
        return [_paren_span(text, s) for s in starts]

    def evaluate(self, artifact: SourceArtifact) -> list[Violation]:
        spans = self.registrations(artifact.content)
        if not spans:
            return []

        found: list[Violation] = []
        wrappers = ", ".join(self.approved_wrappers) or "(none configured)"
        for func, rx in self._core_calls:
            if any(rx.search(span) for span in spans):
                found.append(self.violation(
                    artifact,
                    f"Scheduled job calls core function {func} directly.",
                    f"Schedule the matching wrapper instead ({wrappers}); wrappers log to job_audit.",
                ))

        if not any(rx.search(artifact.content) for rx in self._wrapper_calls):
            found.append(self.violation(
                artifact,
                "Scheduler used without any approved wrapper.",
                f"Use one of: {wrappers}.",
            ))
        return found


# =============================================================================
# PLANS-01
# =============================================================================

_PRICE_ASSIGN = re.compile(r"\b(\w+_price_cents)\s*=\s*(\d+)\b", _FLAGS)


class NumericInvariantRule(Rule):
    rule_id = "PLANS-01"
    kinds = frozenset({SQL})
    title = "Plan prices keep the digital root; paid plans carry payment ids"

    def __init__(
        self,
        pricing_tables: Iterable[str],
        target: int,
        tier_column: str,
        default_tier: str,
        payment_id_fields: Iterable[str],
        price_examples: Iterable[int] = (),
    ) -> None:
        self.pricing_tables = tuple(pricing_tables)
        self.target = target
        self.default_tier = default_tier
        self.payment_id_fields = tuple(payment_id_fields)
        self.price_examples = tuple(p for p in price_examples if digital_root(p) == target)

        tables = "|".join(_name(t) for t in self.pricing_tables) or r"(?!)"
        self._targets = re.compile(rf"\b(?:insert\s+into|update)\s+(?:only\s+)?(?:{tables})", _FLAGS)
        self._insert = re.compile(r"\binsert\s+into\b", _FLAGS)
        col = _name(tier_column)
        self._tier_not_default = re.compile(
            rf"{col}\s*(?:<>|!=)\s*'{re.escape(default_tier)}'", _FLAGS
        )
        self._tier_equals = re.compile(rf"{col}\s*=\s*'([^']*)'", _FLAGS)
        self._payment_ids = [
            re.compile(rf"{_name(f)}(?!\s*=\s*null\b)", _FLAGS) for f in self.payment_id_fields
        ]

    @classmethod
    def from_config(cls, cfg: GuardConfig) -> "NumericInvariantRule":
        return cls(
            cfg.pricing_tables,
            cfg.digital_root_target,
            cfg.tier_column,
            cfg.default_tier,
            cfg.payment_id_fields,
            PRICE_EXAMPLES,
        )

    def is_non_default_tier(self, statement: str) -> bool:
        if self._tier_not_default.search(statement):
            return True
        return any(
            m.group(1).lower() != self.default_tier.lower()
            for m in self._tier_equals.finditer(statement)
        )

    def has_payment_ids(self, statement: str) -> bool:
        return any(rx.search(statement) for rx in self._payment_ids)

    def _price_fix(self) -> str:
        fix = f"Choose a cent amount with digital root {self.target}"
        if self.price_examples:
            fix += f" (e.g. {', '.join(str(p) for p in self.price_examples)})"
        return fix + "."

    def evaluate(self, artifact: SourceArtifact) -> list[Violation]:
        found: list[Violation] = []
        for statement in _statements(artifact.content):
            if not self._targets.search(statement):
                continue

            prices = list(_PRICE_ASSIGN.finditer(statement))
            for m in prices:
                column, cents = m.group(1), int(m.group(2))
                if cents == 0:
                    continue  # free tier
                root = digital_root(cents)
                if root != self.target:
                    found.append(self.violation(
                        artifact,
                        f"Price {column} = {cents} has digital root {root}, expected {self.target}.",
                        self._price_fix(),
                    ))

            # Payment ids are only required where a row is created or priced.
            if not (prices or self._insert.search(statement)):
                continue
            if self.is_non_default_tier(statement) and not self.has_payment_ids(statement):
                fields = " / ".join(self.payment_id_fields)
                found.append(self.violation(
                    artifact,
                    f"Non-{self.default_tier} plan row without payment provider ids.",
                    f"Set {fields} and run f_assert_plans_sane().",
                ))
        return found


# =============================================================================
# DELETE-01
# =============================================================================

class ProtectedDeleteRule(Rule):
    rule_id = "DELETE-01"
    kinds = frozenset({SQL})
    title = "No DELETE on protected tables outside guard files"

    def __init__(self, tables: Iterable[str]) -> None:
        self.tables = tuple(tables)
        self._patterns = [
            (t, re.compile(rf"\bdelete\b[^;]*?\bfrom\b[^;]*?{_name(t)}", _FLAGS))
            for t in self.tables
        ]

    @classmethod
    def from_config(cls, cfg: GuardConfig) -> "ProtectedDeleteRule":
        return cls(cfg.protected_delete_tables)

    def evaluate(self, artifact: SourceArtifact) -> list[Violation]:
        return [
            self.violation(
                artifact,
                f"DELETE on {table}. Forbidden while entitlements or receipts reference rows.",
                "Unpublish instead (UPDATE ... SET published = false); the database guard blocks such deletes.",
            )
            for table, rx in self._patterns
            if rx.search(artifact.content)
        ]


# =============================================================================
# ASSET-01
# =============================================================================

class ConditionalAccessRule(Rule):
    rule_id = "ASSET-01"
    kinds = frozenset({SQL, SCRIPT})
    title = "Assets are only readable for published parents"

    def __init__(
        self,
        dependent_tables: Iterable[str],
        parent_table: str,
        parent_key: str,
        published_column: str,
    ) -> None:
        self.dependent_tables = tuple(dependent_tables)
        self.parent_table = parent_table
        self.published_column = published_column
        self._guard = re.compile(
            rf"exists\s*\(\s*select\s+1\s+from\s+{_name(parent_table)}\s+(?:as\s+)?(?P<alias>\w+)\s+"
            rf"where\s+(?P=alias)\.id\s*=\s*(?:\w+\.)?{re.escape(parent_key)}\s+"
            rf"and\s+(?P=alias)\.{re.escape(published_column)}\s*=\s*true\s*\)",
            _FLAGS,
        )
        self._select = re.compile(r"\bselect\b", _FLAGS)

    @classmethod
    def from_config(cls, cfg: GuardConfig) -> "ConditionalAccessRule":
        return cls(cfg.dependent_tables, cfg.parent_table, cfg.parent_key, cfg.published_column)

    def has_guard(self, text: str) -> bool:
        return self._guard.search(text) is not None

    def evaluate(self, artifact: SourceArtifact) -> list[Violation]:
        text = artifact.content
        mentioned = _mentions(text.lower(), self.dependent_tables)
        if not mentioned or not self._select.search(text) or self.has_guard(text):
            return []
        return [
            self.violation(
                artifact,
                f"SELECT on {table} without the {self.parent_table}.{self.published_column} = true guard.",
                f"Apply the RLS policy or EXISTS (select 1 from {self.parent_table} n where "
                f"n.id = ... and n.{self.published_column} = true).",
            )
            for table in mentioned
        ]


# =============================================================================
# ARCH-01
# =============================================================================

class IsolationRule(Rule):
    rule_id = "ARCH-01"
    kinds = frozenset({SCRIPT})
    title = "One brand per deployable app"

    def __init__(self, brand_identifiers: Iterable[str], brand_switch: Optional[str] = None) -> None:
        self.brand_identifiers = tuple(brand_identifiers)
        self.brand_switch = brand_switch

    @classmethod
    def from_config(cls, cfg: GuardConfig) -> "IsolationRule":
        return cls(cfg.brand_identifiers, cfg.brand_switch)

    def evaluate(self, artifact: SourceArtifact) -> list[Violation]:
        lower = artifact.content.lower()
        if self.brand_switch and self.brand_switch.lower() not in lower:
            return []
        brands = _mentions(lower, self.brand_identifiers)
        if len(brands) < 2:
            return []
        return [self.violation(
            artifact,
            f"Brands mixed in one app: {', '.join(brands)}.",
            "Split into separate apps per brand with shared libraries, not a shared UI runtime.",
        )]


# =============================================================================
# Registry
# =============================================================================

RULE_TYPES = (
    RawAccessRule,
    WrapperEnforcementRule,
    NumericInvariantRule,
    ProtectedDeleteRule,
    ConditionalAccessRule,
    IsolationRule,
)

RULE_IDS = tuple(r.rule_id for r in RULE_TYPES)


def default_rules(cfg: GuardConfig) -> list[Rule]:
    """The built-in laws in registration order."""
    return [rule_type.from_config(cfg) for rule_type in RULE_TYPES]
