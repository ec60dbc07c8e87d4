# ============================================================================
# CLAUDE CONTEXT - BASE CONTRACTS & ENUMS
# ============================================================================
# EPOCH: 1 - FUNCTION REGISTRATION
# STATUS: Foundation - Core enums shared across worker components
# PURPOSE: Define node, availability slot and worker lifecycle states
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: NodeStatus, SlotState, WorkerState
# DEPENDENCIES: enum
# ============================================================================
"""
Base contracts for the function registration worker.

These enums cross the boundaries between the orchestrator catalog
(PostgreSQL / YAML), the broker (Azure Service Bus) and the worker threads.
"""

from enum import Enum


# ============================================================================
# STATUS ENUMS
# ============================================================================

class NodeStatus(str, Enum):
    """
    Execution node connectivity as reported by the orchestrator.

    Only ONLINE nodes advertise work functions.
    """
    ONLINE = "online"
    OFFLINE = "offline"

    def is_online(self) -> bool:
        """Check if the node can advertise functions."""
        return self is NodeStatus.ONLINE


class SlotState(str, Enum):
    """
    Availability slot states.

    UNLOCKED means the node may be considered for dispatch.
    """
    LOCKED = "locked"
    UNLOCKED = "unlocked"


class WorkerState(str, Enum):
    """
    Worker lifecycle states.

    State transitions:
        CREATED -> CONNECTING -> INITIALIZED -> STOPPED
                              -> FAILED -> CONNECTING (retry)
    """
    CREATED = "created"            # Thread constructed, not started
    CONNECTING = "connecting"      # Opening broker session
    INITIALIZED = "initialized"    # Slot released, registration set live
    FAILED = "failed"              # Connect or pass raised, backing off
    STOPPED = "stopped"            # Torn down


__all__ = ["NodeStatus", "SlotState", "WorkerState"]
