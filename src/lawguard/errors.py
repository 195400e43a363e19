"""Exception types raised by lawguard."""

from __future__ import annotations


class LawguardError(Exception):
    """Base class for lawguard failures that abort a run."""


class ConfigError(LawguardError):
    """Configuration is missing, malformed, or inconsistent."""


class CollectionError(LawguardError):
    """No configured root could be enumerated."""
