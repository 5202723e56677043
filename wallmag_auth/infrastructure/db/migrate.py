"""
Plain-SQL migrations for the credential store.

    wallmag-migrate up       apply pending files from MIGRATIONS_DIR
    wallmag-migrate status   list applied and pending versions
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import psycopg

from wallmag_auth.logging import setup_logging
from wallmag_auth.settings import get_settings

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(os.environ.get("MIGRATIONS_DIR", "migrations"))
SCHEMA_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
  version    text PRIMARY KEY,
  applied_at timestamptz NOT NULL DEFAULT now()
);
"""


def list_migrations(directory: Path) -> list[Path]:
    if not directory.is_dir():
        raise FileNotFoundError(f"migrations dir not found: {directory}")
    return sorted(directory.glob("*.sql"))


def applied_versions(conn: psycopg.Connection) -> set[str]:
    with conn.cursor() as cur:
        cur.execute(SCHEMA_TABLE_SQL)
        cur.execute("SELECT version FROM schema_migrations")
        rows = cur.fetchall()
    conn.commit()
    return {r[0] for r in rows}


def apply_migrations(conninfo: str, directory: Path = MIGRATIONS_DIR) -> list[str]:
    """Apply every pending file in its own transaction; return the new versions."""
    applied: list[str] = []
    with psycopg.connect(conninfo) as conn:
        done = applied_versions(conn)
        for path in list_migrations(directory):
            if path.stem in done:
                continue
            with conn.transaction():
                conn.execute(path.read_text(encoding="utf-8"))
                conn.execute(
                    "INSERT INTO schema_migrations (version) VALUES (%s)", (path.stem,)
                )
            logger.info("migration applied", extra={"version": path.stem})
            applied.append(path.stem)
    return applied


def migration_status(
    conninfo: str, directory: Path = MIGRATIONS_DIR
) -> tuple[list[str], list[str]]:
    with psycopg.connect(conninfo) as conn:
        done = applied_versions(conn)
    versions = [p.stem for p in list_migrations(directory)]
    return [v for v in versions if v in done], [v for v in versions if v not in done]


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    settings = get_settings()
    setup_logging(settings.log_level)

    if argv == ["up"]:
        applied = apply_migrations(settings.database_url)
        if not applied:
            logger.info("no pending migrations")
        return 0
    if argv == ["status"]:
        applied, pending = migration_status(settings.database_url)
        logger.info("migration status", extra={"applied": applied, "pending": pending})
        return 0

    print("usage: wallmag-migrate [up|status]", file=sys.stderr)
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
