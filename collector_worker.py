#!/usr/bin/env python3
"""Threat-intelligence collection worker.

Loads the configured sources, then runs collection cycles on a fixed interval:
- web pages (HTML scrape)
- RSS feeds (with HTML fallback)
- .onion forums (deep crawl through the SOCKS proxy)

Collected items are scored, categorized and stored in Postgres. SIGINT/SIGTERM
stop the scheduler after the cycle in flight and close the database connection.
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading

import psycopg

from threatwatch.collector import Collector
from threatwatch.config import CollectorConfig, ConfigurationError, load_sources, resolve_log_level
from threatwatch.ingestion.router import SourceRouter
from threatwatch.scheduler import CollectionScheduler
from threatwatch.storage.postgres_repo import PostgresContentRepo, StorageUnavailableError, connect_with_retry
from threatwatch.storage.postgres_schema import ensure_postgres_schema

logger = logging.getLogger("collector_worker")


def _configure_logging(level_name: str) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger().setLevel(resolve_log_level(level_name))


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Collect and triage threat-intelligence content")
    parser.add_argument("--once", action="store_true", help="run a single collection cycle and exit")
    args = parser.parse_args(argv)

    config = CollectorConfig.from_env()
    _configure_logging(config.log_level)
    logger.info(
        f"Starting collector interval={config.collection_interval:g}s sources_file={config.sources_file} "
        f"use_tor={config.use_tor}"
    )

    try:
        sources = load_sources(config.sources_file)
    except ConfigurationError as e:
        logger.critical(f"Failed to load sources: {e}")
        return 1
    if not sources:
        logger.critical("No sources configured; add sources to the sources file")
        return 1
    logger.info(f"Loaded sources count={len(sources)}")

    try:
        conn = connect_with_retry(config.pg_dsn)
    except (StorageUnavailableError, psycopg.Error) as e:
        logger.critical(f"Failed to connect to database: {e}")
        return 1
    try:
        ensure_postgres_schema(config.pg_dsn)
    except psycopg.Error as e:
        logger.critical(f"Failed to initialize database schema: {e}")
        conn.close()
        return 1

    repo = PostgresContentRepo(config.pg_dsn, conn=conn)
    collector = Collector(SourceRouter.from_config(config), repo)

    try:
        if args.once:
            report = collector.collect(sources)
            return 0 if report.errors == 0 else 2

        shutdown = threading.Event()

        def _handle_signal(signum, frame):
            logger.info(f"Shutdown signal received signal={signal.Signals(signum).name}")
            shutdown.set()

        signal.signal(signal.SIGINT, _handle_signal)
        signal.signal(signal.SIGTERM, _handle_signal)

        scheduler = CollectionScheduler(config.collection_interval, lambda: collector.collect(sources))
        scheduler.start(shutdown)
        shutdown.wait()
        scheduler.stop()
    finally:
        repo.close()

    logger.info("Collector shutdown complete")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
