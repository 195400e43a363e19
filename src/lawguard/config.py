"""
lawguard - Configuration.

Loads GuardConfig from defaults (patterns.py), an optional YAML file, and
environment variables, in that order. CLI flags are applied on top by the
runner.

Config file lookup:
    1. explicit path (--config / LAWGUARD_CONFIG); missing file is an error
    2. lawguard.yaml in the working directory, if present
    3. built-in defaults
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Optional

import yaml

from . import patterns
from .allowlist import ExceptionEntry
from .errors import ConfigError

CONFIG_FILENAME = "lawguard.yaml"

# camelCase spellings accepted in YAML alongside the snake_case field names
KEY_ALIASES = {
    "ignoreDirs": "ignore_dirs",
    "includeExtensions": "include_extensions",
    "protectedTables": "protected_tables",
    "approvedSurfaces": "approved_surfaces",
    "schedulerPatterns": "scheduler_patterns",
    "coreFunctions": "core_functions",
    "approvedWrappers": "approved_wrappers",
    "pricingTables": "pricing_tables",
    "digitalRootTarget": "digital_root_target",
    "tierColumn": "tier_column",
    "defaultTier": "default_tier",
    "paymentIdFields": "payment_id_fields",
    "protectedDeleteTables": "protected_delete_tables",
    "dependentTables": "dependent_tables",
    "parentTable": "parent_table",
    "parentKey": "parent_key",
    "publishedColumn": "published_column",
    "brandSwitch": "brand_switch",
    "brandIdentifiers": "brand_identifiers",
    "lawsDir": "laws_dir",
    "requireLaws": "require_laws",
    "reportRoot": "report_root",
    "useDefaultExceptions": "use_default_exceptions",
}

ENV_ROOTS = "LAWGUARD_ROOTS"
ENV_WORKERS = "LAWGUARD_WORKERS"
ENV_CONFIG = "LAWGUARD_CONFIG"


def _default_exceptions() -> tuple[ExceptionEntry, ...]:
    return tuple(
        ExceptionEntry(pattern=p, scope=s, match=m, reason=r)
        for p, s, m, r in patterns.DEFAULT_EXCEPTIONS
    )


@dataclass(frozen=True)
class GuardConfig:
    """Runtime configuration for a lawguard run."""

    base_dir: Path = field(default_factory=Path.cwd)

    # Corpus
    roots: tuple[str, ...] = patterns.DEFAULT_ROOTS
    ignore_dirs: tuple[str, ...] = patterns.DEFAULT_IGNORE_DIRS
    include_extensions: tuple[str, ...] = patterns.DEFAULT_INCLUDE_EXTENSIONS

    # DB-01
    protected_tables: tuple[str, ...] = patterns.PROTECTED_TABLES
    approved_surfaces: tuple[str, ...] = patterns.APPROVED_SURFACES

    # CRON-01
    scheduler_patterns: tuple[str, ...] = patterns.SCHEDULER_PATTERNS
    core_functions: tuple[str, ...] = patterns.CORE_FUNCTIONS
    approved_wrappers: tuple[str, ...] = patterns.APPROVED_WRAPPERS

    # PLANS-01
    pricing_tables: tuple[str, ...] = patterns.PRICING_TABLES
    digital_root_target: int = patterns.DIGITAL_ROOT_TARGET
    tier_column: str = patterns.TIER_COLUMN
    default_tier: str = patterns.DEFAULT_TIER
    payment_id_fields: tuple[str, ...] = patterns.PAYMENT_ID_FIELDS

    # DELETE-01
    protected_delete_tables: tuple[str, ...] = patterns.PROTECTED_DELETE_TABLES

    # ASSET-01
    dependent_tables: tuple[str, ...] = patterns.DEPENDENT_TABLES
    parent_table: str = patterns.PARENT_TABLE
    parent_key: str = patterns.PARENT_KEY
    published_column: str = patterns.PUBLISHED_COLUMN

    # ARCH-01
    brand_switch: Optional[str] = patterns.BRAND_SWITCH
    brand_identifiers: tuple[str, ...] = patterns.BRAND_IDENTIFIERS

    # Exceptions
    exceptions: tuple[ExceptionEntry, ...] = field(default_factory=_default_exceptions)

    # Policy texts
    laws_dir: Optional[str] = None
    require_laws: bool = False

    # Execution / output
    workers: int = 1
    report_root: Optional[str] = None

    def root_paths(self) -> list[Path]:
        """Configured roots resolved against base_dir."""
        return [self.base_dir / r for r in self.roots]

    def laws_path(self) -> Optional[Path]:
        if self.laws_dir is None:
            return None
        return self.base_dir / self.laws_dir

    def report_root_path(self) -> Path:
        if self.report_root is None:
            return self.base_dir
        return self.base_dir / self.report_root

    def with_overrides(self, **changes: Any) -> "GuardConfig":
        """Return a copy with the non-None overrides applied."""
        changes = {k: v for k, v in changes.items() if v is not None}
        if not changes:
            return self
        cfg = replace(self, **changes)
        _validate(cfg)
        return cfg


_TUPLE_FIELDS = frozenset(
    f.name for f in fields(GuardConfig)
    if f.name != "exceptions" and str(f.type).startswith("tuple")
)
_KNOWN_KEYS = frozenset(f.name for f in fields(GuardConfig)) - {"base_dir"}


def _as_str_tuple(key: str, value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{key}: expected a list of strings, got {value!r}")
    return tuple(value)


def _as_bool(key: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"{key}: expected true or false, got {value!r}")
    return value


def _parse_exceptions(value: Any) -> tuple[ExceptionEntry, ...]:
    if not isinstance(value, list):
        raise ConfigError(f"exceptions: expected a list, got {type(value).__name__}")
    entries: list[ExceptionEntry] = []
    for i, item in enumerate(value):
        if not isinstance(item, dict):
            raise ConfigError(f"exceptions[{i}]: expected a mapping")
        if "scope" not in item:
            raise ConfigError(
                f"exceptions[{i}]: 'scope' is required (a law id, or '*' for all laws)"
            )
        try:
            entries.append(ExceptionEntry(
                pattern=str(item.get("pattern", "")),
                scope=str(item["scope"]),
                reason=item.get("reason"),
                match=str(item.get("match", "path")),
            ))
        except ValueError as e:
            raise ConfigError(f"exceptions[{i}]: {e}") from e
    return tuple(entries)


def _validate(cfg: GuardConfig) -> None:
    if not 1 <= cfg.digital_root_target <= 9:
        raise ConfigError(
            f"digital_root_target must be between 1 and 9, got {cfg.digital_root_target}"
        )
    if cfg.workers < 1:
        raise ConfigError(f"workers must be at least 1, got {cfg.workers}")
    if not cfg.roots:
        raise ConfigError("roots: at least one root is required")


def config_from_mapping(data: dict[str, Any], base_dir: Path) -> GuardConfig:
    """Build a GuardConfig from a parsed YAML mapping."""
    values: dict[str, Any] = {}
    extra_exceptions: tuple[ExceptionEntry, ...] = ()
    use_defaults = True

    for raw_key, value in data.items():
        key = KEY_ALIASES.get(raw_key, raw_key)
        if key == "use_default_exceptions":
            use_defaults = _as_bool(raw_key, value)
            continue
        if key not in _KNOWN_KEYS:
            raise ConfigError(f"unknown configuration key: {raw_key}")
        if key == "exceptions":
            extra_exceptions = _parse_exceptions(value or [])
        elif key in _TUPLE_FIELDS:
            values[key] = _as_str_tuple(raw_key, value)
        elif key in ("digital_root_target", "workers"):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{raw_key}: expected an integer, got {value!r}")
            values[key] = value
        elif key == "require_laws":
            values[key] = _as_bool(raw_key, value)
        else:
            values[key] = None if value is None else str(value)

    base_exceptions = _default_exceptions() if use_defaults else ()
    values["exceptions"] = base_exceptions + extra_exceptions

    cfg = GuardConfig(base_dir=base_dir, **values)
    _validate(cfg)
    return cfg


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"cannot read config {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"config {path} must be a YAML mapping, got {type(data).__name__}")
    return data


def _apply_env_overrides(cfg: GuardConfig, environ: dict[str, str]) -> GuardConfig:
    roots = environ.get(ENV_ROOTS)
    workers = environ.get(ENV_WORKERS)
    changes: dict[str, Any] = {}
    if roots:
        changes["roots"] = tuple(r for r in roots.split(os.pathsep) if r)
    if workers:
        try:
            changes["workers"] = int(workers)
        except ValueError as e:
            raise ConfigError(f"{ENV_WORKERS} must be an integer, got {workers!r}") from e
    return cfg.with_overrides(**changes)


def load_config(
    config_path: Optional[Path] = None,
    cwd: Optional[Path] = None,
    environ: Optional[dict[str, str]] = None,
) -> GuardConfig:
    """
    Load configuration.

    Args:
        config_path: Explicit config file. Must exist if given.
        cwd: Directory used for lookup and as base_dir when no file is found.
        environ: Environment mapping (defaults to os.environ).

    Raises:
        ConfigError: explicit file missing, unreadable, or invalid.
    """
    cwd = cwd or Path.cwd()
    environ = dict(os.environ) if environ is None else environ

    if config_path is None and environ.get(ENV_CONFIG):
        config_path = Path(environ[ENV_CONFIG])

    if config_path is not None:
        if not config_path.is_absolute():
            config_path = cwd / config_path
        if not config_path.is_file():
            raise ConfigError(f"config file not found: {config_path}")
        cfg = config_from_mapping(_read_yaml(config_path), base_dir=config_path.parent)
    elif (cwd / CONFIG_FILENAME).is_file():
        path = cwd / CONFIG_FILENAME
        cfg = config_from_mapping(_read_yaml(path), base_dir=cwd)
    else:
        cfg = GuardConfig(base_dir=cwd)

    return _apply_env_overrides(cfg, environ)
