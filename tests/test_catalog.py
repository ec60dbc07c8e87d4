# ============================================================================
# JOB CATALOG TESTS
# ============================================================================
# EPOCH: 1 - FUNCTION REGISTRATION
# STATUS: Tests - Catalog implementations
# PURPOSE: Verify in-memory, YAML and PostgreSQL catalogs
# CREATED: 18 OCT 2026
# ============================================================================
"""
Job Catalog Tests

Covers:
1. InMemoryCatalog queries and mutations
2. load_catalog() YAML parsing and validation errors
3. PostgresJobCatalog row mapping (pool mocked)

Run with:
    pytest tests/test_catalog.py -v
"""

from unittest.mock import MagicMock

import pytest

from core.contracts import NodeStatus
from core.models import BuildJob, ExecutionNode, LabelKind
from repositories.catalog_repo import PostgresJobCatalog
from services.catalog import InMemoryCatalog, load_catalog


# ============================================================================
# IN-MEMORY CATALOG
# ============================================================================

class TestInMemoryCatalog:
    def test_jobs_sorted_by_name(self):
        catalog = InMemoryCatalog(jobs=[BuildJob(name="pep8"), BuildJob(name="docs")])
        assert [j.name for j in catalog.list_jobs()] == ["docs", "pep8"]

    def test_put_job_replaces_by_name(self):
        catalog = InMemoryCatalog(jobs=[BuildJob(name="pep8")])
        catalog.put_job(BuildJob(name="pep8", enabled=False))
        assert catalog.list_jobs() == [BuildJob(name="pep8", enabled=False)]

    def test_set_enabled(self):
        catalog = InMemoryCatalog(jobs=[BuildJob(name="pep8")])
        job = catalog.set_enabled("pep8", False)
        assert not job.enabled
        assert catalog.get_job("pep8") == job

    def test_set_enabled_unknown_job(self):
        with pytest.raises(KeyError):
            InMemoryCatalog().set_enabled("missing", True)

    def test_remove_job(self):
        catalog = InMemoryCatalog(jobs=[BuildJob(name="pep8")])
        catalog.remove_job("pep8")
        catalog.remove_job("pep8")
        assert catalog.list_jobs() == []

    def test_node_status_and_labels_are_live(self):
        node = ExecutionNode(name="precise-123", labels={"precise"})
        catalog = InMemoryCatalog(nodes=[node])

        catalog.set_node_status("precise-123", NodeStatus.OFFLINE)
        catalog.set_node_labels("precise-123", ["oneiric"])

        assert catalog.node_status(node) == NodeStatus.OFFLINE
        assert catalog.node_labels(node) == frozenset({"oneiric"})

    def test_unknown_node_is_offline_without_labels(self):
        catalog = InMemoryCatalog()
        node = ExecutionNode(name="ghost")
        assert catalog.node_status(node) == NodeStatus.OFFLINE
        assert catalog.node_labels(node) == frozenset()


# ============================================================================
# YAML LOADING
# ============================================================================

CATALOG_YAML = """
jobs:
  - name: pep8
    label: "precise && x86"
  - name: docs
    enabled: false
  - name: unit
nodes:
  - name: precise-123
    labels: [precise, x86]
  - name: oneiric-456
    status: offline
    labels: oneiric
"""


class TestLoadCatalog:
    def test_loads_jobs_and_nodes(self, tmp_path):
        path = tmp_path / "catalog.yaml"
        path.write_text(CATALOG_YAML)

        catalog = load_catalog(path)

        jobs = {j.name: j for j in catalog.list_jobs()}
        assert set(jobs) == {"pep8", "docs", "unit"}
        assert jobs["pep8"].label.kind == LabelKind.ALL
        assert not jobs["docs"].enabled
        assert jobs["unit"].label.is_any

        nodes = {n.name: n for n in catalog.list_nodes()}
        assert nodes["precise-123"].labels == frozenset({"precise", "x86"})
        assert nodes["oneiric-456"].status == NodeStatus.OFFLINE
        assert nodes["oneiric-456"].labels == frozenset({"oneiric"})

    def test_empty_file_is_empty_catalog(self, tmp_path):
        path = tmp_path / "catalog.yaml"
        path.write_text("")
        assert load_catalog(str(path)).list_jobs() == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_catalog(tmp_path / "nope.yaml")

    @pytest.mark.parametrize("content,message", [
        ("- just\n- a list\n", "mapping"),
        ("jobs: pep8\n", "must be lists"),
        ("jobs:\n  - name: pep8\n  - name: pep8\n", "duplicate"),
        ("jobs:\n  - name: pep8\n    label: 'precise ||'\n", "Invalid catalog"),
        ("jobs:\n  - name: pep8\n    colour: red\n", "Invalid catalog"),
        ("nodes:\n  - name: n1\n    status: rebooting\n", "Invalid catalog"),
    ])
    def test_invalid_content(self, tmp_path, content, message):
        path = tmp_path / "catalog.yaml"
        path.write_text(content)
        with pytest.raises(ValueError, match=message):
            load_catalog(path)


# ============================================================================
# POSTGRES CATALOG
# ============================================================================

@pytest.fixture
def pool_cursor():
    """Mock pool and the cursor every query lands on."""
    pool = MagicMock()
    conn = pool.connection.return_value.__enter__.return_value
    cursor = conn.cursor.return_value.__enter__.return_value
    return pool, cursor


class TestPostgresJobCatalog:
    def test_list_jobs(self, pool_cursor):
        pool, cursor = pool_cursor
        cursor.fetchall.return_value = [
            {"name": "docs", "enabled": False, "label_expression": None},
            {"name": "pep8", "enabled": True, "label_expression": "precise && x86"},
        ]

        jobs = PostgresJobCatalog(pool).list_jobs()

        assert [j.name for j in jobs] == ["docs", "pep8"]
        assert not jobs[0].enabled
        assert jobs[1].label.labels == frozenset({"precise", "x86"})
        cursor.execute.assert_called_once()

    def test_node_status_and_labels(self, pool_cursor):
        pool, cursor = pool_cursor
        cursor.fetchone.return_value = {
            "name": "precise-123",
            "status": "ONLINE",
            "labels": ["precise", "x86"],
        }
        catalog = PostgresJobCatalog(pool)
        node = ExecutionNode(name="precise-123")

        assert catalog.node_status(node) == NodeStatus.ONLINE
        assert catalog.node_labels(node) == frozenset({"precise", "x86"})

        params = cursor.execute.call_args[0][1]
        assert params == {"name": "precise-123"}

    def test_unknown_node_is_offline(self, pool_cursor):
        pool, cursor = pool_cursor
        cursor.fetchone.return_value = None
        catalog = PostgresJobCatalog(pool)
        node = ExecutionNode(name="ghost")

        assert catalog.node_status(node) == NodeStatus.OFFLINE
        assert catalog.node_labels(node) == frozenset()

    def test_null_status_and_labels(self, pool_cursor):
        pool, cursor = pool_cursor
        cursor.fetchall.return_value = [{"name": "n1", "status": None, "labels": None}]

        nodes = PostgresJobCatalog(pool).list_nodes()

        assert nodes == [ExecutionNode(name="n1", status=NodeStatus.OFFLINE)]
