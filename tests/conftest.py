"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from lawguard.config import GuardConfig
from lawguard.scanner import SourceArtifact, kind_for


# =============================================================================
# ARTIFACT FIXTURES
# =============================================================================

@pytest.fixture
def make_artifact():
    """Factory: make_artifact(path, content) -> SourceArtifact with kind from suffix."""
    def _make(path: str, content: str, index: int = 0) -> SourceArtifact:
        return SourceArtifact(path=path, content=content, kind=kind_for(path), index=index)
    return _make


@pytest.fixture
def cfg(tmp_path):
    """Default configuration rooted at tmp_path."""
    return GuardConfig(base_dir=tmp_path)


# =============================================================================
# CORPUS FIXTURES
# =============================================================================

CLEAN_SQL = """\
create view public.v_plans_public as
  select code, name, monthly_price_cents from public.plans;
"""

RAW_SELECT_SQL = """\
select id, name from public.plans where active;
"""

CRON_SQL = """\
select cron.schedule('refresh-pool', '*/15 * * * *',
  $$ select public.refresh_tier_access_pool_all() $$);
"""

DELETE_SQL = """\
delete from public.neurons where id = '00000000-0000-0000-0000-000000000001';
"""

MIXED_BRANDS_TS = """\
const brand = process.env.NEXT_PUBLIC_BRAND;
export const theme = brand === 'AI_PROMPTS' ? 'ai' : 'VULTUS';
"""


def write_tree(root: Path, files: dict[str, str]) -> None:
    for rel, content in files.items():
        p = root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(content, encoding="utf-8")


@pytest.fixture
def corpus(tmp_path):
    """
    A small repository with one violation per law family.

    Layout:
        sql/01_views.sql            clean (approved view)
        sql/02_raw.sql              DB-01
        sql/03_cron.sql             CRON-01 x2
        sql/04_delete.sql           DELETE-01
        migrations/005_cleanup.sql  DELETE (exempt path)
        src/app/brand.ts            ARCH-01
        src/node_modules/x/bad.sql  ignored directory
    """
    write_tree(tmp_path, {
        "sql/01_views.sql": CLEAN_SQL,
        "sql/02_raw.sql": RAW_SELECT_SQL,
        "sql/03_cron.sql": CRON_SQL,
        "sql/04_delete.sql": DELETE_SQL,
        "migrations/005_cleanup.sql": DELETE_SQL,
        "src/app/brand.ts": MIXED_BRANDS_TS,
        "src/node_modules/x/bad.sql": RAW_SELECT_SQL,
        "src/README.md": "select * from public.plans",
    })
    return tmp_path


@pytest.fixture
def corpus_cfg(corpus):
    return GuardConfig(base_dir=corpus, roots=("sql", "migrations", "src"))
