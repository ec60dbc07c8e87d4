# ============================================================================
# AVAILABILITY SLOTS
# ============================================================================
# EPOCH: 1 - FUNCTION REGISTRATION
# STATUS: Core - Per-node dispatch eligibility
# PURPOSE: Track whether a node may currently accept dispatched work
# CREATED: 18 OCT 2026
# ============================================================================
"""
Availability Slots

Each execution node has one slot. UNLOCKED means the orchestrator's
dispatch path may hand the node work; LOCKED means some holder (a running
build, the orchestrator's own scheduler) owns it.

Slots are independent of what the worker advertises: a worker releases its
slot during initialization, before anything is published, and the broker
simply has nothing to dispatch until the first reconciliation pass.

Usage:
    monitor = AvailabilityMonitor()
    slot = monitor.slot_for("precise-123")

    slot.unlock(worker)                 # worker initialization
    if slot.try_lock(scheduler):        # dispatch path
        ...
        slot.unlock(scheduler)
"""

import logging
import threading
from typing import Any, Dict, Optional

from core.contracts import SlotState

logger = logging.getLogger(__name__)


class AvailabilitySlot:
    """
    Lock-like eligibility flag for one node.

    New slots start LOCKED: a node is not eligible until its worker has
    initialized.
    """

    def __init__(self, node_name: str):
        self.node_name = node_name
        self._condition = threading.Condition()
        self._state = SlotState.LOCKED
        self._holder: Optional[Any] = None

    @property
    def state(self) -> SlotState:
        with self._condition:
            return self._state

    @property
    def is_unlocked(self) -> bool:
        return self.state == SlotState.UNLOCKED

    @property
    def holder(self) -> Optional[Any]:
        with self._condition:
            return self._holder

    def unlock(self, holder: Any = None) -> None:
        """
        Mark the node eligible for dispatch and wake any waiters.

        Args:
            holder: Who is releasing the slot (logged only)
        """
        with self._condition:
            self._state = SlotState.UNLOCKED
            self._holder = None
            self._condition.notify_all()
        logger.debug(f"Availability slot unlocked: node={self.node_name} by={holder!r}")

    def try_lock(self, holder: Any) -> bool:
        """
        Claim the slot without waiting.

        Returns:
            True if the slot was unlocked and is now held by `holder`
        """
        with self._condition:
            if self._state != SlotState.UNLOCKED:
                return False
            self._state = SlotState.LOCKED
            self._holder = holder
            return True

    def lock(self, holder: Any, timeout: Optional[float] = None) -> bool:
        """
        Claim the slot, waiting until it is released.

        Args:
            holder: New owner
            timeout: Seconds to wait, None waits forever

        Returns:
            True if acquired, False on timeout
        """
        with self._condition:
            acquired = self._condition.wait_for(
                lambda: self._state == SlotState.UNLOCKED,
                timeout=timeout,
            )
            if not acquired:
                return False
            self._state = SlotState.LOCKED
            self._holder = holder
            return True

    def __repr__(self) -> str:
        return f"AvailabilitySlot(node={self.node_name!r}, state={self._state.value})"


class AvailabilityMonitor:
    """Registry of one AvailabilitySlot per node."""

    def __init__(self):
        self._lock = threading.Lock()
        self._slots: Dict[str, AvailabilitySlot] = {}

    def slot_for(self, node_name: str) -> AvailabilitySlot:
        """Get the node's slot, creating it LOCKED on first use."""
        with self._lock:
            slot = self._slots.get(node_name)
            if slot is None:
                slot = AvailabilitySlot(node_name)
                self._slots[node_name] = slot
            return slot

    def unlock(self, node_name: str, holder: Any = None) -> None:
        self.slot_for(node_name).unlock(holder)

    def is_unlocked(self, node_name: str) -> bool:
        return self.slot_for(node_name).is_unlocked

    def snapshot(self) -> Dict[str, SlotState]:
        """Current state of every known slot."""
        with self._lock:
            slots = list(self._slots.values())
        return {slot.node_name: slot.state for slot in slots}


__all__ = ["AvailabilitySlot", "AvailabilityMonitor"]
