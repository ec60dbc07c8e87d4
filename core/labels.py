# ============================================================================
# LABEL MATCHER
# ============================================================================
# EPOCH: 1 - FUNCTION REGISTRATION
# STATUS: Core - Pure label predicate
# PURPOSE: Decide whether a node's labels satisfy a job's label expression
# CREATED: 18 OCT 2026
# ============================================================================
"""
Label Matcher

Pure functions, no side effects. Expressions are assumed well formed
(the orchestrator validates them); an unknown kind raises and the error
propagates to the caller.

Usage:
    from core.labels import matches

    matches({"precise", "x86"}, LabelExpression.parse("precise && x86"))
"""

from typing import AbstractSet, Iterable, List

from core.models import ExecutionNode, LabelExpression, LabelExpressionError, LabelKind


def matches(node_labels: AbstractSet[str], expr: LabelExpression) -> bool:
    """
    Evaluate a label expression against a node's labels.

    Args:
        node_labels: Labels currently assigned to the node
        expr: Job label expression

    Returns:
        True if the node is eligible for the job
    """
    if expr.kind == LabelKind.ANY:
        return True
    if expr.kind == LabelKind.SINGLE:
        (label,) = expr.labels
        return label in node_labels
    if expr.kind == LabelKind.ALL:
        return expr.labels <= frozenset(node_labels)
    if expr.kind == LabelKind.EITHER:
        return any(matches(node_labels, group) for group in expr.groups)
    raise LabelExpressionError(str(expr), f"unknown kind {expr.kind!r}")


def eligible_nodes(
    nodes: Iterable[ExecutionNode],
    expr: LabelExpression,
) -> List[ExecutionNode]:
    """Nodes whose listed labels satisfy `expr`, in input order."""
    return [node for node in nodes if matches(node.labels, expr)]


__all__ = ["matches", "eligible_nodes"]
