"""
lawguard - Pre-deploy policy compliance checks.

Scans SQL migrations and application sources for violations of the
architectural and data-governance laws:
- DB-01      raw SELECT on protected tables (use public views / RPCs)
- CRON-01    scheduled jobs calling core functions instead of wrappers
- PLANS-01   plan prices with the wrong digital root, paid plans without payment ids
- DELETE-01  DELETE on protected tables outside guard files
- ASSET-01   asset reads without the published-parent guard
- ARCH-01    several brands mixed in one app

Usage:
    lawguard [roots...]
    lawguard --report lawguard-report.json
    lawguard --law DB-01
    lawguard --always-succeed
    python -m lawguard --install-hook
"""

__version__ = "1.0.0"
