# ============================================================================
# JOB CATALOG SERVICE
# ============================================================================
# EPOCH: 1 - FUNCTION REGISTRATION
# STATUS: Core - Orchestrator query interface
# PURPOSE: Read-only job catalog and node state for the reconciler
# CREATED: 18 OCT 2026
# ============================================================================
"""
Job Catalog Service

The reconciler never reaches for a process-wide orchestrator object; it is
handed a JobCatalog and reads through it on every pass.

Implementations:
- InMemoryCatalog: thread-safe, mutable by the embedding orchestrator
- load_catalog(): InMemoryCatalog populated from a YAML file
- repositories.catalog_repo.PostgresJobCatalog: PostgreSQL tables

YAML format:
    jobs:
      - name: pep8
        label: precise && x86
      - name: docs
        enabled: false
    nodes:
      - name: precise-123
        labels: [precise, x86]
      - name: oneiric-456
        status: offline
        labels: oneiric
"""

import logging
import threading
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Optional, Protocol, Union

import yaml
from pydantic import ValidationError

from core.contracts import NodeStatus
from core.models import BuildJob, ExecutionNode

logger = logging.getLogger(__name__)


class JobCatalog(Protocol):
    """
    Read-only orchestrator queries used by a reconciliation pass.

    No snapshot isolation is promised across calls: a pass may see a
    mutation half applied and the next pass corrects it.
    """

    def list_jobs(self) -> List[BuildJob]:
        """All jobs, in a stable order."""
        ...

    def node_status(self, node: ExecutionNode) -> NodeStatus:
        """Live status of `node`."""
        ...

    def node_labels(self, node: ExecutionNode) -> FrozenSet[str]:
        """Live labels of `node`."""
        ...


class InMemoryCatalog:
    """Thread-safe in-process catalog."""

    def __init__(
        self,
        jobs: Optional[Iterable[BuildJob]] = None,
        nodes: Optional[Iterable[ExecutionNode]] = None,
    ):
        self._lock = threading.RLock()
        self._jobs: Dict[str, BuildJob] = {}
        self._nodes: Dict[str, ExecutionNode] = {}
        for job in jobs or ():
            self.put_job(job)
        for node in nodes or ():
            self.put_node(node)

    # =========================================================================
    # JOBCATALOG QUERIES
    # =========================================================================

    def list_jobs(self) -> List[BuildJob]:
        with self._lock:
            return [self._jobs[name] for name in sorted(self._jobs)]

    def node_status(self, node: ExecutionNode) -> NodeStatus:
        with self._lock:
            current = self._nodes.get(node.name)
        if current is None:
            return NodeStatus.OFFLINE
        return current.status

    def node_labels(self, node: ExecutionNode) -> FrozenSet[str]:
        with self._lock:
            current = self._nodes.get(node.name)
        if current is None:
            return frozenset()
        return current.labels

    # =========================================================================
    # MUTATION (orchestrator side)
    # =========================================================================

    def put_job(self, job: BuildJob) -> None:
        with self._lock:
            self._jobs[job.name] = job

    def remove_job(self, name: str) -> None:
        with self._lock:
            self._jobs.pop(name, None)

    def set_enabled(self, name: str, enabled: bool) -> BuildJob:
        """
        Enable or disable a job.

        Raises:
            KeyError if the job is unknown
        """
        with self._lock:
            job = self._jobs[name].model_copy(update={"enabled": enabled})
            self._jobs[name] = job
            return job

    def get_job(self, name: str) -> Optional[BuildJob]:
        with self._lock:
            return self._jobs.get(name)

    def put_node(self, node: ExecutionNode) -> None:
        with self._lock:
            self._nodes[node.name] = node

    def set_node_status(self, name: str, status: NodeStatus) -> ExecutionNode:
        """
        Change a node's status.

        Raises:
            KeyError if the node is unknown
        """
        with self._lock:
            node = self._nodes[name].model_copy(update={"status": status})
            self._nodes[name] = node
            return node

    def set_node_labels(self, name: str, labels: Iterable[str]) -> ExecutionNode:
        """
        Replace a node's labels.

        Raises:
            KeyError if the node is unknown
        """
        with self._lock:
            node = self._nodes[name].model_copy(update={"labels": frozenset(labels)})
            self._nodes[name] = node
            return node

    def list_nodes(self) -> List[ExecutionNode]:
        with self._lock:
            return [self._nodes[name] for name in sorted(self._nodes)]


# ============================================================================
# YAML LOADING
# ============================================================================

def load_catalog(path: Union[str, Path]) -> InMemoryCatalog:
    """
    Load a catalog from a YAML file.

    Args:
        path: YAML file with `jobs` and `nodes` lists

    Returns:
        InMemoryCatalog

    Raises:
        FileNotFoundError if the file does not exist
        ValueError if the content is not a valid catalog
    """
    path = Path(path)
    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Invalid catalog in {path}: top level must be a mapping")

    jobs_data = data.get("jobs") or []
    nodes_data = data.get("nodes") or []
    if not isinstance(jobs_data, list) or not isinstance(nodes_data, list):
        raise ValueError(f"Invalid catalog in {path}: 'jobs' and 'nodes' must be lists")

    try:
        jobs = [BuildJob(**entry) for entry in jobs_data]
        nodes = [ExecutionNode(**entry) for entry in nodes_data]
    except (TypeError, ValidationError) as e:
        raise ValueError(f"Invalid catalog in {path}: {e}") from e

    names = [job.name for job in jobs]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise ValueError(f"Invalid catalog in {path}: duplicate jobs {duplicates}")

    logger.info(f"Loaded catalog from {path}: {len(jobs)} jobs, {len(nodes)} nodes")
    return InMemoryCatalog(jobs=jobs, nodes=nodes)


__all__ = ["JobCatalog", "InMemoryCatalog", "load_catalog"]
