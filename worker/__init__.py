# ============================================================================
# WORKER MODULE
# ============================================================================
# EPOCH: 1 - FUNCTION REGISTRATION
# STATUS: Core - Per-node registration workers
# PURPOSE: Function reconciliation, availability slots, worker lifecycle
# CREATED: 18 OCT 2026
# ============================================================================
"""
Worker Module

Components for advertising build jobs to the broker, one worker per node:
- functions: Function naming and WorkFunction bindings
- availability: Per-node dispatch eligibility slots
- broker: BrokerConnection interface and in-memory broker
- reconciler: Registration set reconciliation
- lifecycle: Connect / initialize / reconcile / teardown thread
- manager: One worker per execution node
- contracts: Worker configuration
- main: Worker entry point
"""

from worker.functions import (
    DEFAULT_EXECUTOR,
    FunctionFactory,
    WorkFunction,
    build_function_name,
)
from worker.availability import (
    AvailabilityMonitor,
    AvailabilitySlot,
)
from worker.broker import (
    BrokerConnection,
    BrokerPublishError,
    InMemoryBroker,
    InMemoryBrokerConnection,
)
from worker.reconciler import (
    FunctionRegistrationReconciler,
    ReconcileOutcome,
    ReconcileResult,
    compute_registration_set,
)
from worker.lifecycle import (
    ReconcileStrategy,
    WorkerLifecycle,
    WorkerNotInitializedError,
)
from worker.contracts import CatalogSource, WorkerConfig
from worker.manager import ManagedWorker, WorkerManager

__all__ = [
    # Functions
    "DEFAULT_EXECUTOR",
    "FunctionFactory",
    "WorkFunction",
    "build_function_name",
    # Availability
    "AvailabilityMonitor",
    "AvailabilitySlot",
    # Broker
    "BrokerConnection",
    "BrokerPublishError",
    "InMemoryBroker",
    "InMemoryBrokerConnection",
    # Reconciler
    "FunctionRegistrationReconciler",
    "ReconcileOutcome",
    "ReconcileResult",
    "compute_registration_set",
    # Lifecycle
    "ReconcileStrategy",
    "WorkerLifecycle",
    "WorkerNotInitializedError",
    # Manager
    "CatalogSource",
    "WorkerConfig",
    "ManagedWorker",
    "WorkerManager",
]
