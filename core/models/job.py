# ============================================================================
# CLAUDE CONTEXT - BUILD JOB MODEL
# ============================================================================
# EPOCH: 1 - FUNCTION REGISTRATION
# STATUS: Core model - Orchestrator job catalog entry
# PURPOSE: Read-only view of one build job definition
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: BuildJob
# DEPENDENCIES: pydantic
# ============================================================================
"""
Build Job Model

A BuildJob is one entry in the orchestrator's job catalog. The worker never
mutates it; each reconciliation pass reads a fresh catalog snapshot.

Maps to: build_jobs table (see repositories.catalog_repo)
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from core.models.label import LabelExpression


class BuildJob(BaseModel):
    """
    Build job definition.

    Only `name` contributes to the advertised function name. Disabled jobs
    are never advertised.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    name: str = Field(..., min_length=1, max_length=255, description="Unique job name")
    enabled: bool = Field(default=True)
    label: LabelExpression = Field(
        default_factory=LabelExpression.any_node,
        description="Node restriction; text input is parsed",
    )

    @field_validator("label", mode="before")
    @classmethod
    def _parse_label(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return LabelExpression.parse(value)
        return value

    @property
    def is_disabled(self) -> bool:
        return not self.enabled


__all__ = ["BuildJob"]
