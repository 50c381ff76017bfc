"""Postgres schema management for the collector.

Schema creation is idempotent (CREATE IF NOT EXISTS) so the worker can run it on
every start.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence, Tuple

import psycopg


# (name, description, default_criticality, color)
DEFAULT_CATEGORIES: Sequence[Tuple[str, str, int, str]] = (
    ("ransomware", "Ransomware operations, leak sites and extortion", 9, "#dc2626"),
    ("data-leak", "Breaches, dumps and stolen data offerings", 8, "#ea580c"),
    ("malware", "Malware families, loaders and backdoors", 7, "#ca8a04"),
    ("vulnerability", "Disclosed vulnerabilities and CVEs", 6, "#2563eb"),
    ("exploit", "Exploit code and active exploitation", 8, "#9333ea"),
    ("phishing", "Phishing kits and social engineering", 5, "#059669"),
)


SCHEMA_STATEMENTS: list[str] = [
    """
    CREATE TABLE IF NOT EXISTS categories (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      name TEXT UNIQUE NOT NULL,
      description TEXT NOT NULL DEFAULT '',
      default_criticality INTEGER NOT NULL DEFAULT 5,
      color TEXT NOT NULL DEFAULT '#6b7280',
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS content_items (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      title TEXT NOT NULL,
      source_name TEXT NOT NULL,
      source_url TEXT NOT NULL,
      content TEXT NOT NULL,
      published_at TIMESTAMPTZ,
      criticality_score INTEGER NOT NULL CHECK (criticality_score BETWEEN 1 AND 10),
      collected_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS content_categories (
      content_id UUID NOT NULL REFERENCES content_items(id) ON DELETE CASCADE,
      category_id UUID NOT NULL REFERENCES categories(id) ON DELETE CASCADE,
      PRIMARY KEY (content_id, category_id)
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_content_items_source_url ON content_items (source_url);",
    "CREATE INDEX IF NOT EXISTS idx_content_items_collected_at ON content_items (collected_at DESC);",
    "CREATE INDEX IF NOT EXISTS idx_content_items_criticality ON content_items (criticality_score DESC);",
]

SEED_CATEGORY_SQL = """
    INSERT INTO categories (name, description, default_criticality, color)
    VALUES (%s, %s, %s, %s)
    ON CONFLICT (name) DO NOTHING
"""


def ensure_postgres_schema(pg_dsn: str, *, statements: Optional[Iterable[str]] = None) -> None:
    """Ensure Postgres schema exists and the default categories are present."""
    stmts = list(statements) if statements is not None else SCHEMA_STATEMENTS
    with psycopg.connect(pg_dsn, autocommit=True) as conn:
        with conn.cursor() as cur:
            for s in stmts:
                cur.execute(s)
            for row in DEFAULT_CATEGORIES:
                cur.execute(SEED_CATEGORY_SQL, row)
