# ============================================================================
# CATALOG REPOSITORY
# ============================================================================
# EPOCH: 1 - FUNCTION REGISTRATION
# STATUS: Core - Read-only job catalog queries
# PURPOSE: JobCatalog backed by the orchestrator's PostgreSQL tables
# CREATED: 18 OCT 2026
# ============================================================================
"""
Catalog Repository

Read-only access to:
    build_jobs(name text primary key, enabled boolean, label_expression text)
    execution_nodes(name text primary key, status text, labels text[])

Every call is its own query: no snapshot is held between calls, matching
the reconciler's read-live-every-pass contract.
"""

import logging
from typing import FrozenSet, List, Optional

from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from core.contracts import NodeStatus
from core.models import BuildJob, ExecutionNode
from .database import TABLE_BUILD_JOBS, TABLE_EXECUTION_NODES

logger = logging.getLogger(__name__)


class PostgresJobCatalog:
    """JobCatalog over PostgreSQL."""

    def __init__(self, pool: ConnectionPool):
        self.pool = pool

    def list_jobs(self) -> List[BuildJob]:
        """All build jobs ordered by name."""
        with self.pool.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    sql.SQL("""
                    SELECT name, enabled, label_expression
                    FROM {}
                    ORDER BY name
                    """).format(TABLE_BUILD_JOBS)
                )
                rows = cur.fetchall()
        return [self._row_to_job(row) for row in rows]

    def list_nodes(self) -> List[ExecutionNode]:
        """All execution nodes ordered by name."""
        with self.pool.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    sql.SQL("""
                    SELECT name, status, labels
                    FROM {}
                    ORDER BY name
                    """).format(TABLE_EXECUTION_NODES)
                )
                rows = cur.fetchall()
        return [self._row_to_node(row) for row in rows]

    def get_node(self, name: str) -> Optional[ExecutionNode]:
        with self.pool.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    sql.SQL("""
                    SELECT name, status, labels
                    FROM {}
                    WHERE name = %(name)s
                    """).format(TABLE_EXECUTION_NODES),
                    {"name": name},
                )
                row = cur.fetchone()
        return self._row_to_node(row) if row else None

    def node_status(self, node: ExecutionNode) -> NodeStatus:
        """Live status; unknown nodes are OFFLINE."""
        current = self.get_node(node.name)
        if current is None:
            logger.debug(f"Node {node.name} not in catalog, treating as offline")
            return NodeStatus.OFFLINE
        return current.status

    def node_labels(self, node: ExecutionNode) -> FrozenSet[str]:
        """Live labels; unknown nodes have none."""
        current = self.get_node(node.name)
        if current is None:
            return frozenset()
        return current.labels

    def _row_to_job(self, row: dict) -> BuildJob:
        return BuildJob(
            name=row["name"],
            enabled=bool(row["enabled"]),
            label=row.get("label_expression"),
        )

    def _row_to_node(self, row: dict) -> ExecutionNode:
        status = row.get("status") or NodeStatus.OFFLINE.value
        return ExecutionNode(
            name=row["name"],
            status=NodeStatus(status.lower()),
            labels=frozenset(row.get("labels") or ()),
        )


__all__ = ["PostgresJobCatalog"]
