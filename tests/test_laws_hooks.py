"""
Tests for policy text loading and the pre-commit hook installer.
"""
import os
import stat
import sys

import pytest

from lawguard.errors import ConfigError
from lawguard.hooks import HOOK_TEMPLATE, install_pre_commit_hook
from lawguard.laws import PREVIEW_CHARS, Law, load_laws, resolve_laws


class TestLaws:

    def test_load_sorted_txt_only(self, tmp_path):
        (tmp_path / "b.txt").write_text("second\n", encoding="utf-8")
        (tmp_path / "a.txt").write_text("  first  \n", encoding="utf-8")
        (tmp_path / "notes.md").write_text("ignored", encoding="utf-8")
        laws = load_laws(tmp_path)
        assert [(law.title, law.content) for law in laws] == [("a.txt", "first"), ("b.txt", "second")]

    def test_missing_dir(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_laws(tmp_path / "dox")

    def test_preview(self):
        short = Law("a.txt", "short")
        long = Law("b.txt", "x" * (PREVIEW_CHARS + 5))
        assert short.preview == "short"
        assert long.preview == "x" * PREVIEW_CHARS + "..."

    def test_resolve_unset(self):
        assert resolve_laws(None) == ([], [])

    def test_resolve_unset_but_required(self):
        with pytest.raises(ConfigError):
            resolve_laws(None, required=True)

    def test_resolve_missing_optional(self, tmp_path):
        laws, diagnostics = resolve_laws(tmp_path / "dox")
        assert laws == []
        [diag] = diagnostics
        assert diag.source == "laws"
        assert diag.path == str(tmp_path / "dox")

    def test_resolve_missing_required(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            resolve_laws(tmp_path / "dox", required=True)


class TestHooks:

    def test_requires_git_hooks_dir(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            install_pre_commit_hook(tmp_path)

    def test_writes_hook(self, tmp_path):
        (tmp_path / ".git" / "hooks").mkdir(parents=True)
        hook = install_pre_commit_hook(tmp_path, command="lawguard --workers 2")
        assert hook == tmp_path / ".git" / "hooks" / "pre-commit"
        text = hook.read_text(encoding="utf-8")
        assert text == HOOK_TEMPLATE.format(command="lawguard --workers 2")
        assert text.startswith("#!/usr/bin/env bash")

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_hook_is_executable(self, tmp_path):
        (tmp_path / ".git" / "hooks").mkdir(parents=True)
        hook = install_pre_commit_hook(tmp_path)
        assert os.stat(hook).st_mode & stat.S_IXUSR

    def test_overwrites_existing_hook(self, tmp_path):
        hooks = tmp_path / ".git" / "hooks"
        hooks.mkdir(parents=True)
        (hooks / "pre-commit").write_text("old", encoding="utf-8")
        install_pre_commit_hook(tmp_path)
        assert "lawguard" in (hooks / "pre-commit").read_text(encoding="utf-8")
