# ============================================================================
# CLAUDE CONTEXT - LABEL EXPRESSION MODEL
# ============================================================================
# EPOCH: 1 - FUNCTION REGISTRATION
# STATUS: Core model - Job label restriction
# PURPOSE: Represent and parse the node label expression attached to a job
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: LabelExpression, LabelKind, LabelExpressionError
# DEPENDENCIES: pydantic
# ============================================================================
"""
Label Expression Model

A build job may restrict the nodes it runs on with a label expression:

    (none)                    -> any node
    precise                   -> single label
    precise && x86            -> conjunction, treated as one label set
    precise && x86 || oneiric -> disjunction of groups

Text form uses the orchestrator's operators: '&&' binds tighter than '||'.
The model is frozen so expressions can be shared between worker threads.
"""

from enum import Enum
from typing import FrozenSet, Optional, Tuple

from pydantic import BaseModel, Field, model_validator


class LabelExpressionError(ValueError):
    """Raised for a malformed label expression."""

    def __init__(self, expression: Optional[str], reason: str):
        self.expression = expression
        self.reason = reason
        super().__init__(f"Invalid label expression {expression!r}: {reason}")


class LabelKind(str, Enum):
    """Shape of a label expression."""
    ANY = "any"          # No restriction
    SINGLE = "single"    # One label
    ALL = "all"          # Every label required
    EITHER = "either"    # Any group may match


class LabelExpression(BaseModel):
    """
    Boolean predicate over a node's label set.

    Construct through the classmethods rather than by hand:
        LabelExpression.any_node()
        LabelExpression.single("precise")
        LabelExpression.all_of("precise", "x86")
        LabelExpression.either(LabelExpression.single("a"), ...)
        LabelExpression.parse("precise && x86 || oneiric")
    """

    model_config = {"frozen": True}

    kind: LabelKind = Field(default=LabelKind.ANY)
    labels: FrozenSet[str] = Field(default_factory=frozenset)
    groups: Tuple["LabelExpression", ...] = Field(default=())

    @model_validator(mode="after")
    def _check_shape(self) -> "LabelExpression":
        if self.kind == LabelKind.ANY:
            if self.labels or self.groups:
                raise ValueError("'any' expression takes no labels or groups")
        elif self.kind == LabelKind.SINGLE:
            if len(self.labels) != 1 or self.groups:
                raise ValueError("'single' expression takes exactly one label")
        elif self.kind == LabelKind.ALL:
            if not self.labels or self.groups:
                raise ValueError("'all' expression takes one or more labels")
        elif self.kind == LabelKind.EITHER:
            if not self.groups or self.labels:
                raise ValueError("'either' expression takes one or more groups")
        return self

    # =========================================================================
    # CONSTRUCTORS
    # =========================================================================

    @classmethod
    def any_node(cls) -> "LabelExpression":
        return cls(kind=LabelKind.ANY)

    @classmethod
    def single(cls, label: str) -> "LabelExpression":
        return cls(kind=LabelKind.SINGLE, labels=frozenset([label]))

    @classmethod
    def all_of(cls, *labels: str) -> "LabelExpression":
        return cls(kind=LabelKind.ALL, labels=frozenset(labels))

    @classmethod
    def either(cls, *groups: "LabelExpression") -> "LabelExpression":
        return cls(kind=LabelKind.EITHER, groups=tuple(groups))

    @classmethod
    def parse(cls, text: Optional[str]) -> "LabelExpression":
        """
        Parse the orchestrator's text form.

        Args:
            text: Expression such as "precise && x86 || oneiric".
                  None or blank means any node.

        Returns:
            LabelExpression

        Raises:
            LabelExpressionError: On an empty term or a label with whitespace
        """
        if text is None or not text.strip():
            return cls.any_node()

        groups = []
        for term in text.split("||"):
            atoms = [atom.strip() for atom in term.split("&&")]
            for atom in atoms:
                if not atom:
                    raise LabelExpressionError(text, "empty label term")
                if any(ch.isspace() for ch in atom):
                    raise LabelExpressionError(text, f"label {atom!r} contains whitespace")
            if len(atoms) == 1:
                groups.append(cls.single(atoms[0]))
            else:
                groups.append(cls.all_of(*atoms))

        if len(groups) == 1:
            return groups[0]
        return cls.either(*groups)

    # =========================================================================
    # RENDERING
    # =========================================================================

    @property
    def is_any(self) -> bool:
        return self.kind == LabelKind.ANY

    def __str__(self) -> str:
        """Canonical text form (labels within a conjunction are sorted)."""
        if self.kind == LabelKind.ANY:
            return ""
        if self.kind == LabelKind.EITHER:
            return " || ".join(str(group) for group in self.groups)
        return " && ".join(sorted(self.labels))


LabelExpression.model_rebuild()


__all__ = ["LabelExpression", "LabelKind", "LabelExpressionError"]
