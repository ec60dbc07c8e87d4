# ============================================================================
# CLAUDE CONTEXT - FUNCTION REGISTRATION MESSAGE
# ============================================================================
# EPOCH: 1 - FUNCTION REGISTRATION
# STATUS: Core model - Broker wire contract
# PURPOSE: Message that replaces a worker's advertised function set
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: FunctionRegistrationMessage
# DEPENDENCIES: pydantic
# ============================================================================
"""
Function Registration Message

Published by a worker whenever its registration set changes. The broker
replaces everything it holds for `worker_id` with `functions`; an empty list
withdraws every function.

Message Format:
{
    "worker_id": "master-01_exec-precise-123",
    "node_name": "precise-123",
    "master_name": "master-01",
    "functions": ["build:docs:scheduler", "build:pep8:scheduler"],
    "published_at": "2026-10-18T12:00:00Z"
}

Function names are part of the broker protocol: clients submit work to
"build:<job>:scheduler" and expect exactly that byte string.
"""

from datetime import datetime, timezone
from typing import Iterable, List

from pydantic import BaseModel, Field


class FunctionRegistrationMessage(BaseModel):
    """Replacement function set for one worker."""

    worker_id: str = Field(..., max_length=255)
    node_name: str = Field(..., max_length=255)
    master_name: str = Field(..., max_length=255)
    functions: List[str] = Field(default_factory=list, description="Sorted function names")
    published_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def for_functions(
        cls,
        worker_id: str,
        node_name: str,
        master_name: str,
        function_names: Iterable[str],
    ) -> "FunctionRegistrationMessage":
        """Build a message with names in deterministic order."""
        return cls(
            worker_id=worker_id,
            node_name=node_name,
            master_name=master_name,
            functions=sorted(function_names),
        )

    @property
    def is_withdrawal(self) -> bool:
        return not self.functions


__all__ = ["FunctionRegistrationMessage"]
