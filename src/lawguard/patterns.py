"""
lawguard - Default law definitions.

This module contains PURE DATA: the tables, functions, wrappers and path
exceptions the laws are checked against. Every value here can be overridden
from lawguard.yaml; nothing in this file is read at evaluation time except
through GuardConfig.

Organization:
1. CORPUS - Roots, ignored directories, eligible suffixes
2. RAW ACCESS - Protected tables and approved surfaces (DB-01)
3. CRON - Scheduler patterns, core functions, wrappers (CRON-01)
4. PLANS - Pricing tables and the digital root target (PLANS-01)
5. DELETE - Protected-delete tables (DELETE-01)
6. ASSETS - Dependent tables and the published guard (ASSET-01)
7. BRANDS - Brand switch and identifiers (ARCH-01)
8. EXCEPTIONS - Default path exceptions
"""

from __future__ import annotations

# =============================================================================
# 1. CORPUS
# =============================================================================

DEFAULT_ROOTS = (
    "src",
    "apps",
    "packages",
    "database",
    "supabase",
    "sql",
    "migrations",
    "cursor",
)

DEFAULT_IGNORE_DIRS = (
    ".git",
    ".next",
    ".turbo",
    ".venv",
    "venv",
    "__pycache__",
    "node_modules",
    "dist",
    "build",
    "coverage",
)

DEFAULT_INCLUDE_EXTENSIONS = (".sql", ".ts", ".tsx", ".js", ".mjs", ".cjs")

# Suffix -> artifact kind. Anything else is "other".
KIND_BY_SUFFIX = {
    ".sql": "sql",
    ".ts": "script",
    ".tsx": "script",
    ".js": "script",
    ".jsx": "script",
    ".mjs": "script",
    ".cjs": "script",
    ".py": "script",
}

# =============================================================================
# 2. RAW ACCESS (DB-01)
# =============================================================================
# Tables the public surface must never SELECT from directly.

PROTECTED_TABLES = (
    "public.bundles",
    "public.plans",
    "public.neurons",
    "public.user_entitlements",
    "public.user_subscriptions",
    "public.user_purchases",
    "public.purchase_receipts",
    "public.neuron_assets",
)

# Referencing any of these (case-insensitive substring) marks the artifact as
# going through the approved indirection layer.
APPROVED_SURFACES = (
    "v_bundle_public",
    "v_plans_public",
    "rpc_",
)

# =============================================================================
# 3. CRON (CRON-01)
# =============================================================================

SCHEDULER_PATTERNS = (r"cron\.schedule\s*\(",)

# Business functions that may only be scheduled through a wrapper.
CORE_FUNCTIONS = (
    "public.refresh_tier_access_pool_all",
    "public.check_library_cap_and_alert",
    "public.check_preview_privileges_and_alert",
    "public.check_bundle_consistency_and_alert",
)

APPROVED_WRAPPERS = (
    "public.f_cron_run_refresh_tier_access_pool_all",
    "public.f_cron_run_check_library_cap",
    "public.f_cron_run_preview_privileges_audit",
    "public.f_cron_run_bundle_consistency_audit",
)

# =============================================================================
# 4. PLANS (PLANS-01)
# =============================================================================

PRICING_TABLES = ("public.plans",)
DIGITAL_ROOT_TARGET = 2
TIER_COLUMN = "code"
DEFAULT_TIER = "free"
PAYMENT_ID_FIELDS = ("stripe_price_id_month", "stripe_price_id_year")

# Shown in fixes; all have digital root 2.
PRICE_EXAMPLES = (2900, 29900, 7400, 74900, 299900)

# =============================================================================
# 5. DELETE (DELETE-01)
# =============================================================================

PROTECTED_DELETE_TABLES = ("public.neurons",)

# =============================================================================
# 6. ASSETS (ASSET-01)
# =============================================================================

DEPENDENT_TABLES = ("neuron_assets",)
PARENT_TABLE = "public.neurons"
PARENT_KEY = "neuron_id"
PUBLISHED_COLUMN = "published"

# =============================================================================
# 7. BRANDS (ARCH-01)
# =============================================================================

BRAND_SWITCH = "NEXT_PUBLIC_BRAND"
BRAND_IDENTIFIERS = ("AI_PROMPTS", "VULTUS")

# =============================================================================
# 8. EXCEPTIONS
# =============================================================================
# (pattern, scope, match, reason). Scope "*" applies to every law; match is
# "path" (whole path) or "name" (file name only).

DEFAULT_EXCEPTIONS = (
    ("*/migrations/*", "DELETE-01", "path", "migrations own the delete guard"),
    ("*deploy*", "DELETE-01", "name", "deploy scripts install the delete guard"),
    ("*guard*", "DELETE-01", "name", "guard definitions reference DELETE"),
)
