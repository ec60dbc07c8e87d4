# ============================================================================
# FUNCTION REGISTRATION RECONCILER
# ============================================================================
# EPOCH: 1 - FUNCTION REGISTRATION
# STATUS: Core - Advertised function reconciliation
# PURPOSE: Keep a worker's broker functions in step with the job catalog
# CREATED: 18 OCT 2026
# ============================================================================
"""
Function Registration Reconciler

One reconciler serves one execution node. On every pass it:
1. Reads the node's live status from the catalog
2. Builds a brand-new registration set from the enabled jobs
3. Compares the new key set with the current one
4. Publishes the whole new set and swaps it in, only if the keys differ

How functions are registered:
    Every enabled job is advertised as "build:<job>:scheduler" on every
    online node. A job's label expression is evaluated against the node's
    labels and logged, but does not decide inclusion and does not change
    the function name:

        build:pep8:scheduler on precise-123
        build:pep8:scheduler on oneiric-456

    Offline nodes advertise nothing; a node going offline publishes an
    empty set, which withdraws every function.

The current set is a read-only mapping that is replaced, never edited, so
another thread reading `registration_set` sees either the old or the new
set in full.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, FrozenSet, Mapping, Optional

from core.labels import matches
from core.logging import log_checkpoint, log_context
from core.models import ExecutionNode
from services.catalog import JobCatalog
from worker.availability import AvailabilitySlot
from worker.broker import BrokerConnection
from worker.functions import (
    DEFAULT_EXECUTOR,
    FunctionFactory,
    WorkFunction,
    build_function_name,
)

logger = logging.getLogger(__name__)

RegistrationSet = Mapping[str, WorkFunction]

_EMPTY: RegistrationSet = MappingProxyType({})


# ============================================================================
# PASS RESULT
# ============================================================================

class ReconcileOutcome(str, Enum):
    """What a reconciliation pass did."""
    SKIPPED = "skipped"        # Not initialized yet, caller retries later
    UNCHANGED = "unchanged"    # Same function names, nothing published
    PUBLISHED = "published"    # New set published and swapped in


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of one pass with the resulting names and the diff."""
    outcome: ReconcileOutcome
    function_names: FrozenSet[str] = frozenset()
    added: FrozenSet[str] = frozenset()
    removed: FrozenSet[str] = frozenset()

    @property
    def published(self) -> bool:
        return self.outcome == ReconcileOutcome.PUBLISHED

    @classmethod
    def skipped(cls) -> "ReconcileResult":
        return cls(outcome=ReconcileOutcome.SKIPPED)


# ============================================================================
# SET COMPUTATION
# ============================================================================

def compute_registration_set(
    node: ExecutionNode,
    catalog: JobCatalog,
    connection: Any,
    factory: FunctionFactory,
    master_name: str,
    executor_name: str = DEFAULT_EXECUTOR,
) -> RegistrationSet:
    """
    Build the functions `node` should advertise right now.

    Args:
        node: Node identity; status and labels are read live from `catalog`
        catalog: Orchestrator queries
        connection: Broker connection the functions are bound to
        factory: Creates the bound WorkFunction values
        master_name: Orchestrator instance the functions report to
        executor_name: Executor that runs dispatched builds

    Returns:
        Read-only mapping of function name to WorkFunction. Empty when the
        node is offline.
    """
    if not catalog.node_status(node).is_online():
        return _EMPTY

    node_labels = catalog.node_labels(node)
    functions = {}
    for job in catalog.list_jobs():
        if job.is_disabled:
            continue

        # Evaluated for visibility only; see the module docstring
        if not matches(node_labels, job.label):
            logger.debug(
                f"Job {job.name} label '{job.label}' does not match node "
                f"{node.name} labels {sorted(node_labels)}; advertising anyway"
            )

        function_name = build_function_name(job.name)
        functions[function_name] = factory.create(
            function_name,
            executor_name,
            job,
            node,
            master_name,
            connection,
        )

    return MappingProxyType(functions)


# ============================================================================
# RECONCILER
# ============================================================================

class FunctionRegistrationReconciler:
    """
    Reconciliation strategy for one node's worker.

    Plugged into worker.lifecycle.WorkerLifecycle, which calls
    initialize() after each successful connect, reconcile() on every
    trigger, and teardown() when the connection goes away.
    """

    def __init__(
        self,
        node: ExecutionNode,
        catalog: JobCatalog,
        master_name: str,
        availability: AvailabilitySlot,
        factory: Optional[FunctionFactory] = None,
        executor_name: str = DEFAULT_EXECUTOR,
        worker_id: Optional[str] = None,
    ):
        """
        Initialize reconciler.

        Args:
            node: Node this worker serves
            catalog: Orchestrator queries, read on every pass
            master_name: Orchestrator instance name bound into functions
            availability: The node's availability slot
            factory: WorkFunction factory (default FunctionFactory)
            executor_name: Executor bound into functions
            worker_id: Identifier used in logs (defaults to the node name)
        """
        self._node = node
        self._node_lock = threading.Lock()
        self.catalog = catalog
        self.master_name = master_name
        self.availability = availability
        self.factory = factory or FunctionFactory()
        self.executor_name = executor_name
        self.worker_id = worker_id or node.name

        self._connection: Optional[BrokerConnection] = None
        self._functions: Optional[RegistrationSet] = None

    def get_node(self) -> ExecutionNode:
        """Node served by this worker; safe to call from any thread."""
        with self._node_lock:
            return self._node

    @property
    def is_initialized(self) -> bool:
        return self._connection is not None and self._functions is not None

    @property
    def registration_set(self) -> Optional[RegistrationSet]:
        """Current registration set, None before initialize()."""
        return self._functions

    @property
    def function_names(self) -> FrozenSet[str]:
        functions = self._functions
        return frozenset(functions) if functions is not None else frozenset()

    # =========================================================================
    # LIFECYCLE HOOKS
    # =========================================================================

    def initialize(self, connection: BrokerConnection) -> None:
        """
        Prepare a freshly connected worker.

        Order matters: the node's availability slot is released first, then
        the connection is bound, then the empty registration set is created.
        Nothing is published until the first reconcile().
        """
        node = self.get_node()
        with log_context(worker_id=self.worker_id, node_name=node.name, operation="initialize"):
            self.availability.unlock(self)
            self._connection = connection
            self._functions = _EMPTY
            log_checkpoint("worker_initialized", logger=logger)

    def reconcile(self) -> ReconcileResult:
        """
        Run one reconciliation pass.

        Safe to call before initialize(): returns a SKIPPED result and the
        caller tries again on its next trigger. Errors from the catalog,
        label evaluation or the broker propagate unchanged.
        """
        connection = self._connection
        previous = self._functions
        if connection is None or previous is None:
            logger.debug(f"Reconcile skipped for {self.worker_id}: not initialized")
            return ReconcileResult.skipped()

        node = self.get_node()
        with log_context(worker_id=self.worker_id, node_name=node.name, operation="reconcile"):
            candidate = compute_registration_set(
                node,
                self.catalog,
                connection,
                self.factory,
                self.master_name,
                self.executor_name,
            )

            new_names = frozenset(candidate)
            old_names = frozenset(previous)
            if new_names == old_names:
                return ReconcileResult(
                    outcome=ReconcileOutcome.UNCHANGED,
                    function_names=old_names,
                )

            added = new_names - old_names
            removed = old_names - new_names

            # Whole-set replacement; swap only once the broker has it
            connection.update_jobs(frozenset(candidate.values()))
            self._functions = candidate

            logger.info(
                f"Published {len(new_names)} functions for {self.worker_id} "
                f"(+{len(added)} -{len(removed)})"
            )
            log_checkpoint(
                "functions_published",
                data={
                    "count": len(new_names),
                    "added": sorted(added),
                    "removed": sorted(removed),
                },
                logger=logger,
            )

            return ReconcileResult(
                outcome=ReconcileOutcome.PUBLISHED,
                function_names=new_names,
                added=added,
                removed=removed,
            )

    def teardown(self) -> None:
        """Discard the registration set and the connection."""
        self._functions = None
        self._connection = None
        logger.debug(f"Reconciler torn down for {self.worker_id}")


__all__ = [
    "RegistrationSet",
    "ReconcileOutcome",
    "ReconcileResult",
    "compute_registration_set",
    "FunctionRegistrationReconciler",
]
