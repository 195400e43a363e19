"""
Tests for configuration loading.
"""
import os
from pathlib import Path

import pytest

from lawguard import patterns
from lawguard.config import (
    CONFIG_FILENAME,
    ENV_CONFIG,
    ENV_ROOTS,
    ENV_WORKERS,
    GuardConfig,
    config_from_mapping,
    load_config,
)
from lawguard.errors import ConfigError


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


class TestDefaults:

    def test_defaults_from_patterns(self, tmp_path):
        cfg = GuardConfig(base_dir=tmp_path)
        assert cfg.protected_tables == patterns.PROTECTED_TABLES
        assert cfg.digital_root_target == 2
        assert cfg.workers == 1
        assert [e.pattern for e in cfg.exceptions] == [p for p, *_ in patterns.DEFAULT_EXCEPTIONS]

    def test_no_file_uses_defaults(self, tmp_path):
        cfg = load_config(cwd=tmp_path, environ={})
        assert cfg.base_dir == tmp_path
        assert cfg.roots == patterns.DEFAULT_ROOTS

    def test_paths_resolve_against_base_dir(self, tmp_path):
        cfg = GuardConfig(base_dir=tmp_path, roots=("sql",), laws_dir="dox", report_root="repo")
        assert cfg.root_paths() == [tmp_path / "sql"]
        assert cfg.laws_path() == tmp_path / "dox"
        assert cfg.report_root_path() == tmp_path / "repo"
        assert GuardConfig(base_dir=tmp_path).laws_path() is None
        assert GuardConfig(base_dir=tmp_path).report_root_path() == tmp_path


class TestMapping:

    def test_camel_case_aliases(self, tmp_path):
        cfg = config_from_mapping(
            {"protectedTables": ["public.secrets"], "digitalRootTarget": 5, "brandSwitch": "TENANT"},
            tmp_path,
        )
        assert cfg.protected_tables == ("public.secrets",)
        assert cfg.digital_root_target == 5
        assert cfg.brand_switch == "TENANT"

    def test_single_string_becomes_tuple(self, tmp_path):
        cfg = config_from_mapping({"roots": "db"}, tmp_path)
        assert cfg.roots == ("db",)

    def test_unknown_key(self, tmp_path):
        with pytest.raises(ConfigError, match="unknown configuration key: protected"):
            config_from_mapping({"protected": []}, tmp_path)

    def test_bad_list(self, tmp_path):
        with pytest.raises(ConfigError, match="protected_tables"):
            config_from_mapping({"protected_tables": [1, 2]}, tmp_path)

    @pytest.mark.parametrize("value", [0, 10])
    def test_digital_root_target_range(self, tmp_path, value):
        with pytest.raises(ConfigError, match="digital_root_target"):
            config_from_mapping({"digital_root_target": value}, tmp_path)

    def test_workers_must_be_int(self, tmp_path):
        with pytest.raises(ConfigError, match="workers"):
            config_from_mapping({"workers": "four"}, tmp_path)

    @pytest.mark.parametrize("key", ["requireLaws", "use_default_exceptions"])
    @pytest.mark.parametrize("value", ["false", "no", 0])
    def test_boolean_keys_reject_non_bool(self, tmp_path, key, value):
        with pytest.raises(ConfigError, match=key):
            config_from_mapping({key: value}, tmp_path)

    def test_boolean_keys_from_yaml(self, tmp_path):
        _write(tmp_path / CONFIG_FILENAME, "requireLaws: no\nuseDefaultExceptions: false\n")
        cfg = load_config(cwd=tmp_path, environ={})
        assert cfg.require_laws is False
        assert cfg.exceptions == ()

    def test_exceptions_extend_defaults(self, tmp_path):
        cfg = config_from_mapping(
            {"exceptions": [{"pattern": "*/seed/*", "scope": "DB-01", "reason": "fixtures"}]},
            tmp_path,
        )
        assert len(cfg.exceptions) == len(patterns.DEFAULT_EXCEPTIONS) + 1
        extra = cfg.exceptions[-1]
        assert (extra.pattern, extra.scope, extra.reason, extra.match) == ("*/seed/*", "DB-01", "fixtures", "path")

    def test_exceptions_without_defaults(self, tmp_path):
        cfg = config_from_mapping(
            {"useDefaultExceptions": False, "exceptions": [{"pattern": "*.gen.sql", "scope": "*", "match": "name"}]},
            tmp_path,
        )
        [entry] = cfg.exceptions
        assert entry.is_global and entry.match == "name"

    def test_exception_scope_required(self, tmp_path):
        with pytest.raises(ConfigError, match="scope"):
            config_from_mapping({"exceptions": [{"pattern": "*/seed/*"}]}, tmp_path)

    def test_exception_bad_match(self, tmp_path):
        with pytest.raises(ConfigError, match=r"exceptions\[0\]"):
            config_from_mapping({"exceptions": [{"pattern": "x", "scope": "*", "match": "glob"}]}, tmp_path)

    def test_empty_roots_rejected(self, tmp_path):
        with pytest.raises(ConfigError, match="roots"):
            config_from_mapping({"roots": []}, tmp_path)


class TestLoadConfig:

    def test_file_in_cwd(self, tmp_path):
        _write(tmp_path / CONFIG_FILENAME, "roots: [db]\nworkers: 3\n")
        cfg = load_config(cwd=tmp_path, environ={})
        assert cfg.roots == ("db",)
        assert cfg.workers == 3
        assert cfg.base_dir == tmp_path

    def test_explicit_file_sets_base_dir(self, tmp_path):
        conf_dir = tmp_path / "conf"
        conf_dir.mkdir()
        path = _write(conf_dir / "guard.yaml", "roots: [sql]\n")
        cfg = load_config(path, cwd=tmp_path, environ={})
        assert cfg.base_dir == conf_dir
        assert cfg.root_paths() == [conf_dir / "sql"]

    def test_relative_explicit_file(self, tmp_path):
        _write(tmp_path / "other.yaml", "workers: 2\n")
        cfg = load_config(Path("other.yaml"), cwd=tmp_path, environ={})
        assert cfg.workers == 2

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "missing.yaml", cwd=tmp_path, environ={})

    def test_invalid_yaml(self, tmp_path):
        _write(tmp_path / CONFIG_FILENAME, "roots: [unclosed\n")
        with pytest.raises(ConfigError, match="invalid YAML"):
            load_config(cwd=tmp_path, environ={})

    def test_non_mapping(self, tmp_path):
        _write(tmp_path / CONFIG_FILENAME, "- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(cwd=tmp_path, environ={})

    def test_empty_file(self, tmp_path):
        _write(tmp_path / CONFIG_FILENAME, "")
        assert load_config(cwd=tmp_path, environ={}).roots == patterns.DEFAULT_ROOTS


class TestEnvironment:

    def test_env_config_path(self, tmp_path):
        path = _write(tmp_path / "ci.yaml", "roots: [ci]\n")
        cfg = load_config(cwd=tmp_path, environ={ENV_CONFIG: str(path)})
        assert cfg.roots == ("ci",)

    def test_env_roots_and_workers(self, tmp_path):
        environ = {ENV_ROOTS: os.pathsep.join(["a", "b"]), ENV_WORKERS: "4"}
        cfg = load_config(cwd=tmp_path, environ=environ)
        assert cfg.roots == ("a", "b")
        assert cfg.workers == 4

    def test_env_workers_invalid(self, tmp_path):
        with pytest.raises(ConfigError, match=ENV_WORKERS):
            load_config(cwd=tmp_path, environ={ENV_WORKERS: "many"})

    def test_env_overrides_file(self, tmp_path):
        _write(tmp_path / CONFIG_FILENAME, "roots: [file_root]\n")
        cfg = load_config(cwd=tmp_path, environ={ENV_ROOTS: "env_root"})
        assert cfg.roots == ("env_root",)


class TestOverrides:

    def test_none_values_ignored(self, tmp_path):
        cfg = GuardConfig(base_dir=tmp_path)
        assert cfg.with_overrides(roots=None, workers=None) is cfg

    def test_invalid_override(self, tmp_path):
        with pytest.raises(ConfigError):
            GuardConfig(base_dir=tmp_path).with_overrides(workers=0)
