"""
Install the lawguard git pre-commit hook.

The hook runs lawguard before every commit and blocks the commit when any law
is violated.
"""

from __future__ import annotations

import logging
import stat
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_COMMAND = "lawguard"

HOOK_TEMPLATE = """#!/usr/bin/env bash
# lawguard: block the commit when a law is violated
{command}
STATUS=$?
if [ $STATUS -ne 0 ]; then
  echo "Commit blocked: lawguard reported violations (exit $STATUS)."
  exit $STATUS
fi
exit 0
"""


def install_pre_commit_hook(repo_root: Path, command: str = DEFAULT_COMMAND) -> Path:
    """
    Write .git/hooks/pre-commit under repo_root and make it executable.

    Raises:
        FileNotFoundError: repo_root has no .git/hooks directory.
    """
    hooks_dir = repo_root / ".git" / "hooks"
    if not hooks_dir.is_dir():
        raise FileNotFoundError(f"Git hooks directory not found: {hooks_dir}")

    hook = hooks_dir / "pre-commit"
    hook.write_text(HOOK_TEMPLATE.format(command=command), encoding="utf-8")
    hook.chmod(hook.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    logger.info("Installed pre-commit hook at %s", hook)
    return hook
