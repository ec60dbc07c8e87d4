# ============================================================================
# BROKER CONNECTION
# ============================================================================
# EPOCH: 1 - FUNCTION REGISTRATION
# STATUS: Core - Broker session seam
# PURPOSE: Interface the reconciler publishes through, plus in-memory broker
# CREATED: 18 OCT 2026
# ============================================================================
"""
Broker Connection

A BrokerConnection is one worker's session with the job broker. The
lifecycle opens it, the reconciler publishes through it, the lifecycle
closes it. `update_jobs` replaces, never merges: after the call the broker
advertises exactly the given functions for this worker.

Implementations:
- InMemoryBrokerConnection: local mode and tests
- infrastructure.service_bus.ServiceBusBrokerConnection: Azure Service Bus
"""

import logging
import threading
from typing import AbstractSet, Dict, FrozenSet, List, Optional, Protocol

from worker.functions import WorkFunction

logger = logging.getLogger(__name__)


class BrokerPublishError(RuntimeError):
    """Raised when a registration set could not be published."""

    def __init__(self, worker_id: str, reason: str):
        self.worker_id = worker_id
        self.reason = reason
        super().__init__(f"Failed to publish functions for {worker_id}: {reason}")


class BrokerConnection(Protocol):
    """One worker's broker session."""

    worker_id: str

    def update_jobs(self, functions: AbstractSet[WorkFunction]) -> None:
        """Replace everything advertised for this worker with `functions`."""
        ...

    def close(self) -> None:
        ...


class InMemoryBroker:
    """
    Process-local broker shared by InMemoryBrokerConnection instances.

    Holds the advertised function names per worker, which is what a real
    broker would route on.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._advertised: Dict[str, FrozenSet[str]] = {}

    def connect(self, worker_id: str) -> "InMemoryBrokerConnection":
        return InMemoryBrokerConnection(worker_id, broker=self)

    def replace(self, worker_id: str, names: FrozenSet[str]) -> None:
        with self._lock:
            if names:
                self._advertised[worker_id] = names
            else:
                self._advertised.pop(worker_id, None)

    def advertised(self, worker_id: str) -> FrozenSet[str]:
        with self._lock:
            return self._advertised.get(worker_id, frozenset())

    def workers_for(self, function_name: str) -> List[str]:
        """Workers currently advertising `function_name`, sorted."""
        with self._lock:
            return sorted(
                worker_id for worker_id, names in self._advertised.items()
                if function_name in names
            )


class InMemoryBrokerConnection:
    """
    BrokerConnection that records every publish.

    `publishes` keeps the function names of each update_jobs call in order.
    """

    def __init__(self, worker_id: str, broker: Optional[InMemoryBroker] = None):
        self.worker_id = worker_id
        self._broker = broker
        self._lock = threading.Lock()
        self._closed = False
        self.publishes: List[FrozenSet[str]] = []

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def publish_count(self) -> int:
        with self._lock:
            return len(self.publishes)

    @property
    def advertised(self) -> FrozenSet[str]:
        """Names from the most recent publish."""
        with self._lock:
            return self.publishes[-1] if self.publishes else frozenset()

    def update_jobs(self, functions: AbstractSet[WorkFunction]) -> None:
        names = frozenset(function.function_name for function in functions)
        with self._lock:
            if self._closed:
                raise BrokerPublishError(self.worker_id, "connection closed")
            self.publishes.append(names)
        if self._broker is not None:
            self._broker.replace(self.worker_id, names)
        logger.debug(f"In-memory publish for {self.worker_id}: {sorted(names)}")

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        # A closed session advertises nothing
        if self._broker is not None:
            self._broker.replace(self.worker_id, frozenset())


__all__ = [
    "BrokerPublishError",
    "BrokerConnection",
    "InMemoryBroker",
    "InMemoryBrokerConnection",
]
