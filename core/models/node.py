# ============================================================================
# CLAUDE CONTEXT - EXECUTION NODE MODEL
# ============================================================================
# EPOCH: 1 - FUNCTION REGISTRATION
# STATUS: Core model - Orchestrator execution node
# PURPOSE: Identity of the node a worker thread serves
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: ExecutionNode
# DEPENDENCIES: pydantic
# ============================================================================
"""
Execution Node Model

ExecutionNode identifies a build host known to the orchestrator.

Key concept:
- ExecutionNode held by a worker = IDENTITY (which node this worker serves)
- JobCatalog.node_status / node_labels = LIVE STATE (re-read every pass)

The status and labels carried on the model are the values seen when the
node was listed; the reconciler never trusts them across passes.

Maps to: execution_nodes table (see repositories.catalog_repo)
"""

from typing import Any, FrozenSet

from pydantic import BaseModel, Field, field_validator

from core.contracts import NodeStatus


class ExecutionNode(BaseModel):
    """Build host with status and descriptive labels."""

    model_config = {"frozen": True, "extra": "forbid"}

    name: str = Field(..., min_length=1, max_length=255)
    status: NodeStatus = Field(default=NodeStatus.ONLINE)
    labels: FrozenSet[str] = Field(default_factory=frozenset)

    @field_validator("labels", mode="before")
    @classmethod
    def _split_labels(cls, value: Any) -> Any:
        # Orchestrators report labels as one space separated string
        if isinstance(value, str):
            return frozenset(value.split())
        return value

    @property
    def is_online(self) -> bool:
        return self.status.is_online()


__all__ = ["ExecutionNode"]
