# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 1 - FUNCTION REGISTRATION
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for reconciliation timing and broker access
# CREATED: 18 OCT 2026
# ============================================================================
"""
Configuration Defaults

Defaults for the worker lifecycle and the broker connection.
These can be overridden via environment variables.

Design:
- Immutable dataclasses for defaults
- Environment variable overrides
- Type-safe access
"""

import os
from dataclasses import dataclass, field
from typing import Optional
from enum import Enum


class BrokerMode(str, Enum):
    """Where registration messages are published."""
    MEMORY = "memory"            # In-process, local development
    SERVICE_BUS = "servicebus"   # Azure Service Bus


@dataclass(frozen=True)
class ReconcileDefaults:
    """
    Defaults for the reconciliation loop.

    A pass runs on every trigger and, with no trigger, every
    `interval_seconds`. Connect failures back off exponentially.
    """
    interval_seconds: float = 60.0
    initial_backoff_seconds: float = 1.0
    max_backoff_seconds: float = 60.0
    backoff_multiplier: float = 2.0
    stop_timeout_seconds: float = 30.0

    def backoff_for(self, attempt: int) -> float:
        """Delay before retry number `attempt` (0-based)."""
        delay = self.initial_backoff_seconds * (self.backoff_multiplier ** attempt)
        return min(delay, self.max_backoff_seconds)

    @classmethod
    def from_env(cls) -> "ReconcileDefaults":
        """Create from environment variables."""
        return cls(
            interval_seconds=float(os.getenv("RECONCILE_INTERVAL_SEC", 60.0)),
            initial_backoff_seconds=float(os.getenv("RECONCILE_INITIAL_BACKOFF_SEC", 1.0)),
            max_backoff_seconds=float(os.getenv("RECONCILE_MAX_BACKOFF_SEC", 60.0)),
            stop_timeout_seconds=float(os.getenv("WORKER_STOP_TIMEOUT_SEC", 30.0)),
        )


@dataclass(frozen=True)
class BrokerDefaults:
    """
    Defaults for broker publishing.

    Registration messages go to one session-enabled queue; the session id
    is the worker id so each worker's publishes stay ordered.
    """
    mode: str = BrokerMode.MEMORY.value
    registration_queue: str = "worker-registrations"
    message_ttl_hours: int = 24
    retry_count: int = 3
    retry_delay_seconds: float = 1.0

    @classmethod
    def from_env(cls) -> "BrokerDefaults":
        """Create from environment variables."""
        return cls(
            mode=os.getenv("BROKER_MODE", BrokerMode.MEMORY.value).lower(),
            registration_queue=os.getenv("BROKER_REGISTRATION_QUEUE", "worker-registrations"),
            message_ttl_hours=int(os.getenv("BROKER_MESSAGE_TTL_HOURS", 24)),
            retry_count=int(os.getenv("BROKER_RETRY_COUNT", 3)),
            retry_delay_seconds=float(os.getenv("BROKER_RETRY_DELAY", 1.0)),
        )


# ============================================================================
# GLOBAL DEFAULTS INSTANCE
# ============================================================================

@dataclass
class Defaults:
    """Container for all default configurations."""
    reconcile: ReconcileDefaults = field(default_factory=ReconcileDefaults)
    broker: BrokerDefaults = field(default_factory=BrokerDefaults)

    @classmethod
    def from_env(cls) -> "Defaults":
        """Create all defaults from environment variables."""
        return cls(
            reconcile=ReconcileDefaults.from_env(),
            broker=BrokerDefaults.from_env(),
        )


_defaults: Optional[Defaults] = None


def get_defaults() -> Defaults:
    """Get global defaults instance."""
    global _defaults
    if _defaults is None:
        _defaults = Defaults.from_env()
    return _defaults


def reset_defaults() -> None:
    """Reset defaults (for testing)."""
    global _defaults
    _defaults = None


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "BrokerMode",
    "ReconcileDefaults",
    "BrokerDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
