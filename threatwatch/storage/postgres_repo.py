"""Postgres persistence for collected content (psycopg + SQL).

Dedup is by ``source_url`` and is best-effort: the existence probe and the insert
are separate statements, so two writers can still race a duplicate in.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

import psycopg

from threatwatch.retry import RetryError, linear_backoff, quadratic_backoff, retry_call
from threatwatch.scoring.processor import CandidateRecord

logger = logging.getLogger(__name__)

INSERT_ITEM_SQL = """
    INSERT INTO content_items (title, source_name, source_url, content, published_at, criticality_score, collected_at)
    VALUES (%s, %s, %s, %s, %s, %s, now())
    RETURNING id
"""
CATEGORY_ID_SQL = "SELECT id FROM categories WHERE name = %s"
LINK_CATEGORY_SQL = """
    INSERT INTO content_categories (content_id, category_id)
    VALUES (%s, %s)
    ON CONFLICT DO NOTHING
"""
EXISTS_SQL = "SELECT EXISTS(SELECT 1 FROM content_items WHERE source_url = %s)"


class StorageUnavailableError(RuntimeError):
    """Raised when the database cannot be reached at startup."""


def connect_with_retry(
    pg_dsn: str,
    *,
    attempts: int = 5,
    sleep: Callable[[float], None] = time.sleep,
    connect: Callable[..., psycopg.Connection] = psycopg.connect,
) -> psycopg.Connection:
    """Open an autocommit connection and ping it, waiting 1s, 2s, ... between tries."""

    def _open():
        conn = connect(pg_dsn, autocommit=True)
        try:
            conn.execute("SELECT 1")
        except Exception:
            conn.close()
            raise
        return conn

    try:
        conn = retry_call(_open, attempts=attempts, backoff=linear_backoff, sleep=sleep, label="postgres ping")
    except RetryError as e:
        raise StorageUnavailableError(str(e)) from e
    logger.info("Database connection established")
    return conn


class PostgresContentRepo:
    def __init__(
        self,
        pg_dsn: str,
        *,
        conn: Optional[psycopg.Connection] = None,
        max_attempts: int = 3,
        backoff: Callable[[int], float] = quadratic_backoff,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.pg_dsn = pg_dsn
        self._conn = conn
        self.max_attempts = max_attempts
        self.backoff = backoff
        self.sleep = sleep

    def _connection(self) -> psycopg.Connection:
        if self._conn is None or self._conn.closed or self._conn.broken:
            self._conn = psycopg.connect(self.pg_dsn, autocommit=True)
        return self._conn

    def exists_by_url(self, url: str) -> bool:
        with self._connection().cursor() as cur:
            cur.execute(EXISTS_SQL, (url,))
            row = cur.fetchone()
        return bool(row and row[0])

    def insert(self, item: CandidateRecord) -> str:
        """Insert one item with its categories; retried as a whole transaction.

        Returns the new row id. Raises RetryError once every attempt has failed.
        """
        return retry_call(
            lambda: self._insert_with_transaction(item),
            attempts=self.max_attempts,
            backoff=self.backoff,
            sleep=self.sleep,
            label="insert content item",
        )

    def _insert_with_transaction(self, item: CandidateRecord) -> str:
        conn = self._connection()
        with conn.transaction():
            with conn.cursor() as cur:
                cur.execute(
                    INSERT_ITEM_SQL,
                    (
                        item.title,
                        item.source_name,
                        item.source_url,
                        item.content,
                        item.published_at,
                        item.criticality_score,
                    ),
                )
                content_id = cur.fetchone()[0]

                for name in item.categories:
                    cur.execute(CATEGORY_ID_SQL, (name,))
                    row = cur.fetchone()
                    if row is None:
                        logger.warning(f"Category not found category={name}")
                        continue
                    cur.execute(LINK_CATEGORY_SQL, (content_id, row[0]))

        logger.debug(
            f"Content item stored content_id={content_id} source={item.source_name} "
            f"score={item.criticality_score} categories={','.join(item.categories)}"
        )
        return str(content_id)

    def close(self) -> None:
        if self._conn is not None and not self._conn.closed:
            self._conn.close()
            logger.info("Database connection closed")
