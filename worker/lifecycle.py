# ============================================================================
# WORKER LIFECYCLE
# ============================================================================
# EPOCH: 1 - FUNCTION REGISTRATION
# STATUS: Core - Per-node worker thread
# PURPOSE: Connect, initialize, trigger reconciliation, tear down, retry
# CREATED: 18 OCT 2026
# ============================================================================
"""
Worker Lifecycle

One WorkerLifecycle thread drives one node's worker:

    connect -> strategy.initialize(conn) -> strategy.reconcile()
            -> wait for trigger() or interval -> strategy.reconcile() ...

The strategy is injected, not subclassed: anything exposing
initialize(connection), reconcile() and teardown() can be driven.

Failure handling:
- connect() raising: state FAILED, back off, reconnect
- reconcile() raising: connection closed, strategy torn down, back off,
  reconnect (initialize runs again on the new connection)
- stop(): wakes the thread, tears the strategy down, closes the connection

Passes for one node run strictly one after another on this thread, so
publishes are ordered by trigger.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Protocol

from core.config import ReconcileDefaults
from core.contracts import WorkerState
from core.logging import log_context
from worker.broker import BrokerConnection

logger = logging.getLogger(__name__)


class WorkerNotInitializedError(RuntimeError):
    """Raised when an operation needs a live worker connection."""

    def __init__(self, worker_id: str):
        self.worker_id = worker_id
        super().__init__(f"Worker {worker_id} is not connected")


class ReconcileStrategy(Protocol):
    """Hooks the lifecycle drives."""

    def initialize(self, connection: BrokerConnection) -> None:
        ...

    def reconcile(self) -> Any:
        ...

    def teardown(self) -> None:
        ...


ConnectFunc = Callable[[], BrokerConnection]


class WorkerLifecycle(threading.Thread):
    """
    Thread running the connect/reconcile loop for one worker.

    Daemon thread: an orchestrator shutting down without stop() does not
    hang on it.
    """

    def __init__(
        self,
        worker_id: str,
        strategy: ReconcileStrategy,
        connect: ConnectFunc,
        settings: Optional[ReconcileDefaults] = None,
    ):
        """
        Initialize lifecycle.

        Args:
            worker_id: Unique worker identifier (also the thread name)
            strategy: Reconciliation hooks
            connect: Opens a new broker connection
            settings: Interval and backoff (defaults if not provided)
        """
        super().__init__(name=worker_id, daemon=True)
        self.worker_id = worker_id
        self.strategy = strategy
        self._connect = connect
        self.settings = settings or ReconcileDefaults()

        self._state_lock = threading.Lock()
        self._state = WorkerState.CREATED
        self._connection: Optional[BrokerConnection] = None

        self._trigger_event = threading.Event()
        self._stop_event = threading.Event()

        # Stats
        self._reconcile_count = 0
        self._failure_count = 0
        self._last_error: Optional[str] = None
        self._last_reconcile_at: Optional[datetime] = None

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def state(self) -> WorkerState:
        with self._state_lock:
            return self._state

    def _set_state(self, state: WorkerState) -> None:
        with self._state_lock:
            if self._state != state:
                logger.debug(f"Worker {self.worker_id}: {self._state.value} -> {state.value}")
            self._state = state

    @property
    def connection(self) -> BrokerConnection:
        """
        Live broker connection.

        Raises:
            WorkerNotInitializedError before the first successful connect
        """
        connection = self._connection
        if connection is None:
            raise WorkerNotInitializedError(self.worker_id)
        return connection

    @property
    def reconcile_count(self) -> int:
        return self._reconcile_count

    @property
    def failure_count(self) -> int:
        return self._failure_count

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    @property
    def stopping(self) -> bool:
        return self._stop_event.is_set()

    def status(self) -> dict:
        """Snapshot for diagnostics."""
        return {
            "worker_id": self.worker_id,
            "state": self.state.value,
            "reconcile_count": self._reconcile_count,
            "failure_count": self._failure_count,
            "last_error": self._last_error,
            "last_reconcile_at": (
                self._last_reconcile_at.isoformat() if self._last_reconcile_at else None
            ),
        }

    # =========================================================================
    # CONTROL
    # =========================================================================

    def trigger(self) -> None:
        """Request a reconciliation pass; repeated calls coalesce."""
        self._trigger_event.set()

    def request_stop(self) -> None:
        """Ask the thread to exit without waiting for it."""
        if not self._stop_event.is_set():
            logger.info(f"Stopping worker {self.worker_id}")
        self._stop_event.set()
        self._trigger_event.set()

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Stop the worker and wait for the thread to finish.

        Args:
            timeout: Seconds to wait for the thread (default from settings)
        """
        self.request_stop()
        if self.is_alive() and threading.current_thread() is not self:
            self.join(timeout if timeout is not None else self.settings.stop_timeout_seconds)
            if self.is_alive():
                logger.warning(f"Worker {self.worker_id} did not stop within timeout")

    # =========================================================================
    # THREAD BODY
    # =========================================================================

    def run(self) -> None:
        with log_context(worker_id=self.worker_id):
            logger.info(f"Worker {self.worker_id} starting")
            attempt = 0
            try:
                while not self._stop_event.is_set():
                    if self._connection is None:
                        if not self._open():
                            self._backoff(attempt)
                            attempt += 1
                            continue

                    try:
                        self._run_pass()
                    except Exception as e:
                        self._failure_count += 1
                        self._last_error = f"{type(e).__name__}: {e}"
                        logger.exception(f"Reconcile failed for {self.worker_id}: {e}")
                        self._set_state(WorkerState.FAILED)
                        self._close()
                        self._backoff(attempt)
                        attempt += 1
                        continue

                    # Backoff grows until a full pass succeeds
                    attempt = 0
                    self._wait_for_trigger()
            finally:
                self._close()
                self._set_state(WorkerState.STOPPED)
                logger.info(
                    f"Worker {self.worker_id} stopped "
                    f"(passes={self._reconcile_count}, failures={self._failure_count})"
                )

    def _open(self) -> bool:
        """Connect and initialize the strategy. Returns False on failure."""
        self._set_state(WorkerState.CONNECTING)
        try:
            connection = self._connect()
        except Exception as e:
            self._failure_count += 1
            self._last_error = f"{type(e).__name__}: {e}"
            logger.warning(f"Connect failed for {self.worker_id}: {self._last_error}")
            self._set_state(WorkerState.FAILED)
            return False

        self._connection = connection
        try:
            self.strategy.initialize(connection)
        except Exception as e:
            self._failure_count += 1
            self._last_error = f"{type(e).__name__}: {e}"
            logger.exception(f"Initialize failed for {self.worker_id}: {e}")
            self._set_state(WorkerState.FAILED)
            self._close()
            return False

        self._set_state(WorkerState.INITIALIZED)
        logger.info(f"Worker {self.worker_id} connected")
        return True

    def _run_pass(self) -> None:
        self._trigger_event.clear()
        self.strategy.reconcile()
        self._last_reconcile_at = datetime.now(timezone.utc)
        self._reconcile_count += 1

    def _wait_for_trigger(self) -> None:
        self._trigger_event.wait(self.settings.interval_seconds)

    def _backoff(self, attempt: int) -> None:
        delay = self.settings.backoff_for(attempt)
        logger.info(f"Worker {self.worker_id} retrying in {delay:.1f}s")
        self._stop_event.wait(delay)

    def _close(self) -> None:
        """Tear down the strategy and close the connection, if any."""
        connection = self._connection
        if connection is None:
            return
        self.strategy.teardown()
        self._connection = None
        try:
            connection.close()
        except Exception as e:
            logger.warning(f"Error closing connection for {self.worker_id}: {e}")


__all__ = [
    "WorkerNotInitializedError",
    "ReconcileStrategy",
    "ConnectFunc",
    "WorkerLifecycle",
]
