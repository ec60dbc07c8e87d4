# ============================================================================
# WORKER CONTRACTS
# ============================================================================
# EPOCH: 1 - FUNCTION REGISTRATION
# STATUS: Core - Worker configuration
# PURPOSE: Process-level settings for the registration workers
# CREATED: 18 OCT 2026
# ============================================================================
"""
Worker Contracts

WorkerConfig gathers everything `python -m worker.main` needs:
which orchestrator this is, where the catalog lives, which broker to
publish to, and how often to reconcile.

Environment Variables:
    BROKER_MASTER_NAME: Orchestrator instance name (default: hostname)
    BROKER_MODE: "memory" or "servicebus"
    CATALOG_SOURCE: "yaml" or "postgres"
    CATALOG_PATH: YAML catalog file (CATALOG_SOURCE=yaml)
    RECONCILE_INTERVAL_SEC: Seconds between untriggered passes
    RECONCILE_MAX_BACKOFF_SEC: Cap on reconnect backoff
    WORKER_EXECUTOR: Executor name bound into advertised functions
    WORKER_LOG_LEVEL / WORKER_LOG_FORMAT: Logging
"""

import os
import socket
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from core.config import BrokerDefaults, ReconcileDefaults
from worker.functions import DEFAULT_EXECUTOR


class CatalogSource(str, Enum):
    """Where the job catalog is read from."""
    YAML = "yaml"
    POSTGRES = "postgres"


@dataclass
class WorkerConfig:
    """Configuration for the registration workers of one orchestrator."""

    # Identity
    master_name: str

    # Catalog
    catalog_source: str = CatalogSource.YAML.value
    catalog_path: Optional[str] = None

    # Execution
    executor_name: str = DEFAULT_EXECUTOR

    # Broker and loop timing
    broker: BrokerDefaults = field(default_factory=BrokerDefaults)
    reconcile: ReconcileDefaults = field(default_factory=ReconcileDefaults)

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    def worker_id_for(self, node_name: str) -> str:
        """Worker id of the worker serving `node_name`."""
        return f"{self.master_name}_exec-{node_name}"

    def validate(self) -> None:
        """
        Check for settings that cannot work together.

        Raises:
            ValueError describing the first problem found
        """
        if not self.master_name:
            raise ValueError("master_name must not be empty")
        if self.catalog_source not in {s.value for s in CatalogSource}:
            raise ValueError(f"Unknown catalog source: {self.catalog_source}")
        if self.catalog_source == CatalogSource.YAML.value and not self.catalog_path:
            raise ValueError("CATALOG_PATH is required when CATALOG_SOURCE=yaml")

    @classmethod
    def from_env(cls) -> "WorkerConfig":
        """Create config from environment variables."""
        return cls(
            master_name=os.getenv("BROKER_MASTER_NAME", socket.gethostname()),
            catalog_source=os.getenv("CATALOG_SOURCE", CatalogSource.YAML.value).lower(),
            catalog_path=os.getenv("CATALOG_PATH"),
            executor_name=os.getenv("WORKER_EXECUTOR", DEFAULT_EXECUTOR),
            broker=BrokerDefaults.from_env(),
            reconcile=ReconcileDefaults.from_env(),
            log_level=os.getenv("WORKER_LOG_LEVEL", "INFO"),
            log_json=os.getenv("WORKER_LOG_FORMAT", "").lower() == "json",
        )


__all__ = ["CatalogSource", "WorkerConfig"]
