import os

import pytest
from alembic import command
from alembic.config import Config


DSN = os.environ.get("DATABASE_URL", "")


def _alembic_config() -> Config:
    # env.py translates the async DSN to the psycopg driver.
    return Config("alembic.ini")


@pytest.mark.skipif(not DSN.startswith("postgresql"), reason="migrations target PostgreSQL")
def test_migrations_are_reversible():
    """Smoke-test: upgrade head -> downgrade base -> upgrade head."""

    import psycopg

    sync_dsn = DSN.replace("postgresql+asyncpg://", "postgresql://")
    with psycopg.connect(sync_dsn) as conn:
        with conn.cursor() as cur:
            cur.execute("SELECT 1")

    cfg = _alembic_config()

    command.upgrade(cfg, "head")
    command.downgrade(cfg, "base")
    command.upgrade(cfg, "head")
