import json
import os
import tempfile
import unittest
from unittest import mock

import psycopg

import collector_worker
from threatwatch.collector import CycleReport
from threatwatch.config import CollectorConfig
from threatwatch.storage.postgres_repo import StorageUnavailableError


class TestCollectorWorker(unittest.TestCase):
    def _sources_file(self, payload):
        fd, path = tempfile.mkstemp(suffix=".json")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f)
        self.addCleanup(os.remove, path)
        return path

    def _run(self, config, argv=()):
        with mock.patch.object(collector_worker.CollectorConfig, "from_env", return_value=config), mock.patch.object(
            collector_worker, "_configure_logging"
        ):
            return collector_worker.main(list(argv))

    def test_missing_sources_file_is_fatal(self):
        config = CollectorConfig(pg_dsn="dbname=x", sources_file="/nonexistent/sources.json")
        self.assertEqual(self._run(config), 1)

    def test_empty_source_list_is_fatal(self):
        config = CollectorConfig(pg_dsn="dbname=x", sources_file=self._sources_file([]))
        with mock.patch.object(collector_worker, "connect_with_retry") as connect:
            self.assertEqual(self._run(config), 1)
        connect.assert_not_called()

    def test_unreachable_storage_is_fatal(self):
        config = CollectorConfig(pg_dsn="dbname=x", sources_file=self._sources_file([{"name": "a", "url": "https://a.example.com/"}]))
        with mock.patch.object(collector_worker, "connect_with_retry", side_effect=StorageUnavailableError("down")):
            self.assertEqual(self._run(config), 1)

    def test_schema_failure_closes_connection(self):
        config = CollectorConfig(pg_dsn="dbname=x", sources_file=self._sources_file([{"name": "a", "url": "https://a.example.com/"}]))
        conn = mock.Mock(closed=False)
        with mock.patch.object(collector_worker, "connect_with_retry", return_value=conn), mock.patch.object(
            collector_worker, "ensure_postgres_schema", side_effect=psycopg.OperationalError("permission denied")
        ):
            self.assertEqual(self._run(config), 1)
        conn.close.assert_called_once()

    def test_once_runs_single_cycle_and_closes_storage(self):
        config = CollectorConfig(pg_dsn="dbname=x", sources_file=self._sources_file([{"name": "a", "url": "https://a.example.com/"}]))
        conn = mock.Mock(closed=False)
        with mock.patch.object(collector_worker, "connect_with_retry", return_value=conn), mock.patch.object(
            collector_worker, "ensure_postgres_schema"
        ), mock.patch.object(collector_worker.Collector, "collect", return_value=CycleReport(success=1)) as collect:
            self.assertEqual(self._run(config, ["--once"]), 0)
        collect.assert_called_once()
        conn.close.assert_called_once()


if __name__ == "__main__":
    unittest.main()
