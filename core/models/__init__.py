# ============================================================================
# CLAUDE CONTEXT - MODELS MODULE
# ============================================================================
# EPOCH: 1 - FUNCTION REGISTRATION
# STATUS: Model exports
# PURPOSE: Central export point for all Pydantic models
# LAST_REVIEWED: 18 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point

Pydantic models shared by the worker, the catalog backends and the broker.
Catalog models (BuildJob, ExecutionNode) are frozen: the worker reads them,
the orchestrator owns them.
"""

from core.models.label import LabelExpression, LabelKind, LabelExpressionError
from core.models.job import BuildJob
from core.models.node import ExecutionNode
from core.models.registration import FunctionRegistrationMessage

__all__ = [
    # Labels
    "LabelExpression",
    "LabelKind",
    "LabelExpressionError",
    # Catalog
    "BuildJob",
    "ExecutionNode",
    # Broker
    "FunctionRegistrationMessage",
]
