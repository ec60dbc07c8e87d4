# ============================================================================
# LABEL EXPRESSION TESTS
# ============================================================================
# EPOCH: 1 - FUNCTION REGISTRATION
# STATUS: Tests - Label parsing and matching
# PURPOSE: Verify LabelExpression parsing, rendering and the label matcher
# CREATED: 18 OCT 2026
# ============================================================================
"""
Label Expression Tests

Covers:
1. Parsing the orchestrator's text form ('&&' binds tighter than '||')
2. Shape validation on hand-built expressions
3. matches() for any / single / all / either
4. Catalog models that carry labels (BuildJob, ExecutionNode)

Run with:
    pytest tests/test_labels.py -v
"""

import pytest
from pydantic import ValidationError

from core.contracts import NodeStatus
from core.labels import eligible_nodes, matches
from core.models import (
    BuildJob,
    ExecutionNode,
    FunctionRegistrationMessage,
    LabelExpression,
    LabelExpressionError,
    LabelKind,
)


# ============================================================================
# PARSING
# ============================================================================

class TestParse:
    @pytest.mark.parametrize("text", [None, "", "   "])
    def test_blank_is_any(self, text):
        assert LabelExpression.parse(text).kind == LabelKind.ANY

    def test_single_label(self):
        expr = LabelExpression.parse("precise")
        assert expr.kind == LabelKind.SINGLE
        assert expr.labels == frozenset({"precise"})

    def test_conjunction_is_one_label_set(self):
        expr = LabelExpression.parse("precise && x86")
        assert expr.kind == LabelKind.ALL
        assert expr.labels == frozenset({"precise", "x86"})

    def test_disjunction_of_groups(self):
        expr = LabelExpression.parse("precise && x86 || oneiric")
        assert expr.kind == LabelKind.EITHER
        assert expr.groups == (
            LabelExpression.all_of("precise", "x86"),
            LabelExpression.single("oneiric"),
        )

    def test_whitespace_around_operators_ignored(self):
        assert LabelExpression.parse("  precise&&x86  ") == LabelExpression.all_of("precise", "x86")

    @pytest.mark.parametrize("text", ["precise ||", "&& x86", "a || || b", "a && && b"])
    def test_empty_term_rejected(self, text):
        with pytest.raises(LabelExpressionError) as exc_info:
            LabelExpression.parse(text)
        assert exc_info.value.expression == text

    def test_label_with_space_rejected(self):
        with pytest.raises(LabelExpressionError, match="whitespace"):
            LabelExpression.parse("precise x86")

    def test_label_expression_error_is_value_error(self):
        with pytest.raises(ValueError):
            LabelExpression.parse("||")


class TestRendering:
    def test_round_trip_canonical_form(self):
        expr = LabelExpression.parse("x86 && precise || oneiric")
        assert str(expr) == "precise && x86 || oneiric"
        assert LabelExpression.parse(str(expr)) == expr

    def test_any_renders_empty(self):
        assert str(LabelExpression.any_node()) == ""


class TestShapeValidation:
    def test_single_requires_exactly_one_label(self):
        with pytest.raises(ValidationError):
            LabelExpression(kind=LabelKind.SINGLE, labels=frozenset({"a", "b"}))

    def test_either_requires_groups(self):
        with pytest.raises(ValidationError):
            LabelExpression(kind=LabelKind.EITHER)

    def test_any_takes_nothing(self):
        with pytest.raises(ValidationError):
            LabelExpression(kind=LabelKind.ANY, labels=frozenset({"a"}))

    def test_expressions_are_hashable(self):
        exprs = {LabelExpression.parse("a && b"), LabelExpression.parse("b && a")}
        assert len(exprs) == 1


# ============================================================================
# MATCHING
# ============================================================================

class TestMatches:
    def test_any_matches_every_node(self):
        assert matches(frozenset(), LabelExpression.any_node())
        assert matches({"precise"}, LabelExpression.any_node())

    def test_single(self):
        expr = LabelExpression.single("precise")
        assert matches({"precise", "x86"}, expr)
        assert not matches({"oneiric"}, expr)

    def test_all_requires_every_label(self):
        expr = LabelExpression.all_of("precise", "x86")
        assert matches({"precise", "x86", "fast"}, expr)
        assert not matches({"precise"}, expr)

    def test_either_matches_any_group(self):
        expr = LabelExpression.parse("precise && x86 || oneiric")
        assert matches({"oneiric"}, expr)
        assert matches({"precise", "x86"}, expr)
        assert not matches({"precise"}, expr)
        assert not matches(set(), expr)

    def test_accepts_plain_set(self):
        assert matches({"a", "b"}, LabelExpression.all_of("a", "b"))

    def test_eligible_nodes_keeps_order(self):
        nodes = [
            ExecutionNode(name="oneiric-456", labels={"oneiric"}),
            ExecutionNode(name="precise-123", labels={"precise"}),
            ExecutionNode(name="precise-129", labels={"precise", "x86"}),
        ]
        result = eligible_nodes(nodes, LabelExpression.parse("precise"))
        assert [n.name for n in result] == ["precise-123", "precise-129"]


# ============================================================================
# CATALOG MODELS
# ============================================================================

class TestBuildJob:
    def test_defaults(self):
        job = BuildJob(name="pep8")
        assert job.enabled
        assert not job.is_disabled
        assert job.label.is_any

    def test_disabled_job(self):
        assert BuildJob(name="docs", enabled=False).is_disabled

    def test_text_label_is_parsed(self):
        job = BuildJob(name="pep8", label="precise || oneiric")
        assert job.label.kind == LabelKind.EITHER

    def test_malformed_label_rejected(self):
        with pytest.raises(ValueError):
            BuildJob(name="pep8", label="precise ||")

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            BuildJob(name="")

    def test_frozen(self):
        job = BuildJob(name="pep8")
        with pytest.raises(ValidationError):
            job.enabled = False


class TestExecutionNode:
    def test_space_separated_labels(self):
        node = ExecutionNode(name="precise-123", labels="precise  x86")
        assert node.labels == frozenset({"precise", "x86"})

    def test_online_by_default(self):
        assert ExecutionNode(name="n").is_online

    def test_offline(self):
        node = ExecutionNode(name="n", status="offline")
        assert node.status == NodeStatus.OFFLINE
        assert not node.is_online


class TestFunctionRegistrationMessage:
    def test_functions_sorted(self):
        msg = FunctionRegistrationMessage.for_functions(
            worker_id="m_exec-n",
            node_name="n",
            master_name="m",
            function_names={"build:pep8:scheduler", "build:docs:scheduler"},
        )
        assert msg.functions == ["build:docs:scheduler", "build:pep8:scheduler"]
        assert not msg.is_withdrawal

    def test_empty_is_withdrawal(self):
        msg = FunctionRegistrationMessage.for_functions("w", "n", "m", [])
        assert msg.is_withdrawal
