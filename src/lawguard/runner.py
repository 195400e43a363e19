"""
lawguard - Main runner and CLI.

Orchestrates a run: laws -> collection -> engine -> aggregation -> report,
and maps the outcome to a process exit status for CI.

Exit status:
    0  no violations, or --always-succeed
    1  violations found
    2  configuration error (also argparse usage errors)
    3  no root could be enumerated
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from . import __version__
from .allowlist import ExceptionMatcher
from .config import GuardConfig, load_config
from .engine import RuleEngine
from .errors import CollectionError, ConfigError
from .hooks import install_pre_commit_hook
from .laws import Law, resolve_laws
from .reporting import DIAG_PREFIX, Aggregator, RunReport, render_console, write_report
from .rules import Rule, default_rules
from .scanner import collect_artifacts

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_VIOLATIONS = 1
EXIT_CONFIG_ERROR = 2
EXIT_COLLECTION_FAILURE = 3


@dataclass
class RunResult:
    report: RunReport
    laws: list[Law] = field(default_factory=list)
    artifact_count: int = 0


def run(
    cfg: GuardConfig,
    rule_filter: Optional[str] = None,
    rules: Optional[Sequence[Rule]] = None,
) -> RunResult:
    """
    Run all laws over the configured corpus.

    Raises:
        ConfigError: required laws missing, or rule_filter names no registered law.
        CollectionError: no root could be enumerated.
    """
    laws, law_diagnostics = resolve_laws(cfg.laws_path(), cfg.require_laws)

    engine = RuleEngine(
        rules if rules is not None else default_rules(cfg),
        matcher=ExceptionMatcher(cfg.exceptions),
        workers=cfg.workers,
    )
    known = [r.rule_id for r in engine.rules]
    if rule_filter and rule_filter not in known:
        raise ConfigError(f"unknown law {rule_filter!r}; known laws: {', '.join(known)}")

    collection = collect_artifacts(
        cfg.root_paths(),
        ignore_dirs=cfg.ignore_dirs,
        include_extensions=cfg.include_extensions,
        workers=cfg.workers,
    )

    aggregator = Aggregator()
    aggregator.extend_diagnostics(law_diagnostics)
    aggregator.extend_diagnostics(collection.diagnostics)
    engine.run(collection.artifacts, aggregator)

    report = aggregator.finalize(rule_filter=rule_filter, root=cfg.report_root_path())
    return RunResult(report=report, laws=laws, artifact_count=len(collection.artifacts))


def exit_status(report: RunReport, always_succeed: bool = False) -> int:
    return EXIT_OK if report.passed(always_succeed) else EXIT_VIOLATIONS


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lawguard",
        description=f"lawguard v{__version__} - pre-deploy policy compliance checks",
    )
    parser.add_argument(
        "roots",
        nargs="*",
        help="Directories to scan (default: roots from config)",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Config file (default: ./lawguard.yaml if present)",
    )
    parser.add_argument(
        "--report",
        metavar="PATH",
        help="Also write the JSON report to PATH",
    )
    parser.add_argument(
        "--always-succeed",
        action="store_true",
        help="Exit 0 even when violations are found (they are still reported)",
    )
    parser.add_argument(
        "--law",
        metavar="ID",
        help="Only report violations of this law (e.g. DB-01)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Worker threads for reading and evaluation (default: 1)",
    )
    parser.add_argument(
        "--list-laws",
        action="store_true",
        help="Print the registered laws and policy texts, then exit",
    )
    parser.add_argument(
        "--install-hook",
        action="store_true",
        help="Install the git pre-commit hook in the current repository and exit",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log progress to stderr",
    )
    return parser


def _print_rules(rules: Sequence[Rule]) -> None:
    for rule in rules:
        print(f"{rule.rule_id:<10} {rule.title}")


def _print_laws(laws: list[Law]) -> None:
    for law in laws:
        print(f"📜 {law.title}: {law.preview}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point."""
    # Fix unicode output on Windows console
    if sys.platform == "win32":
        try:
            if hasattr(sys.stdout, "reconfigure"):
                sys.stdout.reconfigure(encoding="utf-8", errors="replace")  # type: ignore[union-attr]
            if hasattr(sys.stderr, "reconfigure"):
                sys.stderr.reconfigure(encoding="utf-8", errors="replace")  # type: ignore[union-attr]
        except (OSError, ValueError):
            pass

    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    cwd = Path.cwd()

    if args.install_hook:
        try:
            hook = install_pre_commit_hook(cwd)
        except FileNotFoundError as e:
            print(f"lawguard: {e}", file=sys.stderr)
            return EXIT_CONFIG_ERROR
        print(f"✔ pre-commit hook installed: {hook}")
        return EXIT_OK

    try:
        cfg = load_config(Path(args.config) if args.config else None, cwd=cwd)
        cfg = cfg.with_overrides(
            roots=tuple(str(cwd / r) for r in args.roots) or None,
            workers=args.workers,
        )

        if args.list_laws:
            _print_rules(default_rules(cfg))
            laws, diagnostics = resolve_laws(cfg.laws_path(), cfg.require_laws)
            for d in diagnostics:
                print(f"{DIAG_PREFIX} {d}")
            _print_laws(laws)
            return EXIT_OK

        result = run(cfg, rule_filter=args.law)
    except ConfigError as e:
        print(f"lawguard: configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except CollectionError as e:
        print(f"lawguard: nothing to scan: {e}", file=sys.stderr)
        return EXIT_COLLECTION_FAILURE

    _print_laws(result.laws)
    print(render_console(result.report))

    if args.report:
        diagnostic = write_report(result.report, cwd / args.report)
        if diagnostic is not None:
            print(f"{DIAG_PREFIX} {diagnostic}")

    return exit_status(result.report, args.always_succeed)


if __name__ == "__main__":
    raise SystemExit(main())
