# ============================================================================
# WORKER MANAGER
# ============================================================================
# EPOCH: 1 - FUNCTION REGISTRATION
# STATUS: Core - One worker per execution node
# PURPOSE: Create, trigger and stop the per-node registration workers
# CREATED: 18 OCT 2026
# ============================================================================
"""
Worker Manager

Owns one (reconciler, lifecycle) pair per execution node. Workers share
nothing mutable: each has its own broker connection and registration set.
The manager is what the orchestrator talks to when the job catalog or the
node list changes:

    manager.sync_nodes(catalog.list_nodes())   # node added / removed
    manager.trigger_all()                      # job created / enabled / disabled
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from core.labels import eligible_nodes
from core.models import ExecutionNode, LabelExpression
from services.catalog import JobCatalog
from worker.availability import AvailabilityMonitor
from worker.broker import BrokerConnection
from worker.contracts import WorkerConfig
from worker.functions import FunctionFactory
from worker.lifecycle import WorkerLifecycle
from worker.reconciler import FunctionRegistrationReconciler

logger = logging.getLogger(__name__)

# (worker_id, node) -> new broker connection
ConnectionFactory = Callable[[str, ExecutionNode], BrokerConnection]


@dataclass
class ManagedWorker:
    """A node's reconciler and the thread driving it."""
    node_name: str
    reconciler: FunctionRegistrationReconciler
    lifecycle: WorkerLifecycle

    @property
    def worker_id(self) -> str:
        return self.lifecycle.worker_id


class WorkerManager:
    """Registry of per-node registration workers."""

    def __init__(
        self,
        catalog: JobCatalog,
        connection_factory: ConnectionFactory,
        config: WorkerConfig,
        availability: Optional[AvailabilityMonitor] = None,
        function_factory: Optional[FunctionFactory] = None,
    ):
        """
        Initialize manager.

        Args:
            catalog: Orchestrator queries shared (read-only) by all workers
            connection_factory: Opens a broker connection for a worker
            config: Worker configuration
            availability: Slot registry (a private one if not provided)
            function_factory: WorkFunction factory passed to every reconciler
        """
        self.catalog = catalog
        self.connection_factory = connection_factory
        self.config = config
        self.availability = availability or AvailabilityMonitor()
        self.function_factory = function_factory or FunctionFactory()

        self._lock = threading.Lock()
        self._workers: Dict[str, ManagedWorker] = {}

    def _build(self, node: ExecutionNode) -> ManagedWorker:
        worker_id = self.config.worker_id_for(node.name)
        reconciler = FunctionRegistrationReconciler(
            node=node,
            catalog=self.catalog,
            master_name=self.config.master_name,
            availability=self.availability.slot_for(node.name),
            factory=self.function_factory,
            executor_name=self.config.executor_name,
            worker_id=worker_id,
        )
        lifecycle = WorkerLifecycle(
            worker_id=worker_id,
            strategy=reconciler,
            connect=lambda: self.connection_factory(worker_id, node),
            settings=self.config.reconcile,
        )
        return ManagedWorker(node_name=node.name, reconciler=reconciler, lifecycle=lifecycle)

    # =========================================================================
    # START / STOP
    # =========================================================================

    def start(self, nodes: Iterable[ExecutionNode]) -> List[str]:
        """
        Start a worker for each node that does not have one.

        Returns:
            Worker ids started by this call
        """
        started = []
        with self._lock:
            for node in nodes:
                if node.name in self._workers:
                    continue
                worker = self._build(node)
                self._workers[node.name] = worker
                worker.lifecycle.start()
                started.append(worker.worker_id)

        if started:
            logger.info(f"Started {len(started)} workers: {started}")
        return started

    def stop(self, node_name: str, timeout: Optional[float] = None) -> bool:
        """
        Stop and forget the worker for `node_name`.

        Returns:
            True if a worker was stopped
        """
        with self._lock:
            worker = self._workers.pop(node_name, None)
        if worker is None:
            return False
        worker.lifecycle.stop(timeout)
        return True

    def stop_all(self, timeout: Optional[float] = None) -> None:
        """Stop every worker."""
        with self._lock:
            workers = list(self._workers.values())
            self._workers.clear()

        # Signal every thread before joining any of them
        for worker in workers:
            worker.lifecycle.request_stop()
        for worker in workers:
            worker.lifecycle.stop(timeout)
        logger.info(f"Stopped {len(workers)} workers")

    def sync_nodes(self, nodes: Iterable[ExecutionNode]) -> None:
        """Start workers for new nodes and stop workers for removed ones."""
        nodes = list(nodes)
        wanted = {node.name for node in nodes}
        with self._lock:
            removed = [name for name in self._workers if name not in wanted]
        for name in removed:
            self.stop(name)
        self.start(nodes)

    # =========================================================================
    # TRIGGERS / LOOKUP
    # =========================================================================

    def trigger(self, node_name: str) -> bool:
        """Request a pass on one node's worker. Returns False if unknown."""
        worker = self.get_worker(node_name)
        if worker is None:
            return False
        worker.lifecycle.trigger()
        return True

    def trigger_all(self) -> None:
        """Request a pass on every worker (e.g. after a catalog change)."""
        with self._lock:
            workers = list(self._workers.values())
        for worker in workers:
            worker.lifecycle.trigger()

    def get_worker(self, node_name: str) -> Optional[ManagedWorker]:
        with self._lock:
            return self._workers.get(node_name)

    def nodes(self) -> List[str]:
        with self._lock:
            return sorted(self._workers)

    def nodes_matching(self, label: LabelExpression) -> List[str]:
        """
        Managed nodes whose live labels satisfy `label`.

        Diagnostics only: registration ignores labels, so this answers
        "where would a label-scoped job be allowed to run".
        """
        with self._lock:
            workers = list(self._workers.values())
        live = []
        for worker in workers:
            node = worker.reconciler.get_node()
            live.append(node.model_copy(update={"labels": self.catalog.node_labels(node)}))
        return sorted(node.name for node in eligible_nodes(live, label))

    def status(self) -> List[dict]:
        """Per-worker diagnostics, sorted by node."""
        with self._lock:
            workers = [self._workers[name] for name in sorted(self._workers)]
        result = []
        for worker in workers:
            entry = worker.lifecycle.status()
            entry["node_name"] = worker.node_name
            entry["functions"] = sorted(worker.reconciler.function_names)
            entry["available"] = self.availability.is_unlocked(worker.node_name)
            result.append(entry)
        return result


__all__ = ["ConnectionFactory", "ManagedWorker", "WorkerManager"]
