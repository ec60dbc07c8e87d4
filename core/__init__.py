# ============================================================================
# CLAUDE CONTEXT - CORE MODULE
# ============================================================================
# EPOCH: 1 - FUNCTION REGISTRATION
# STATUS: Core module initialization
# PURPOSE: Export core contracts, models and the label matcher
# LAST_REVIEWED: 18 OCT 2026
# ============================================================================

from core.contracts import NodeStatus, SlotState, WorkerState
from core.models import (
    BuildJob,
    ExecutionNode,
    FunctionRegistrationMessage,
    LabelExpression,
    LabelExpressionError,
    LabelKind,
)
from core.labels import matches

__all__ = [
    # Enums
    "NodeStatus",
    "SlotState",
    "WorkerState",
    "LabelKind",
    # Models
    "BuildJob",
    "ExecutionNode",
    "FunctionRegistrationMessage",
    "LabelExpression",
    "LabelExpressionError",
    # Matching
    "matches",
]
