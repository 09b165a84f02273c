"""Tests for expression nodes, shared functions and derived fields."""

from __future__ import annotations

import math

import pytest
from pydantic import ValidationError
from pytest_check import check

from pmmlkit.document import Apply, Constant, DefineFunction, DerivedField, FieldRef, ParameterField


def _centered(field: str, mean: float) -> Apply:
    return Apply(function="-", expressions=(FieldRef(field=field), Constant(value=mean)))


class TestApply:
    """Tests for Apply construction, rendering and evaluation."""

    def test_nested_rendering(self) -> None:
        """Verify infix operators render with parentheses and other functions as calls."""
        product = Apply(function="*", expressions=(_centered("x", 1.5), Constant(value=0.5)))
        total = Apply(function="sum", expressions=(product, FieldRef(field="y")))

        with check:
            assert str(product) == "((x - 1.5) * 0.5)"
        with check:
            assert str(total) == "sum(((x - 1.5) * 0.5), y)"
        with check:
            assert str(Apply(function="exp", expressions=(FieldRef(field="z"),))) == "exp(z)"

    def test_builtin_evaluation(self) -> None:
        """Verify built-in operators compute the expected values."""
        bindings = {"x": 4.0, "y": 3.0}

        with check:
            assert _centered("x", 1.5).evaluate(bindings) == 2.5
        with check:
            assert Apply(function="-", expressions=(FieldRef(field="y"),)).evaluate(bindings) == -3.0
        with check:
            assert Apply(function="/", expressions=(FieldRef(field="x"), Constant(value=8.0))).evaluate(bindings) == 0.5
        with check:
            assert Apply(function="exp", expressions=(Constant(value=0.0),)).evaluate(bindings) == 1.0
        with check:
            assert Apply(
                function="sum",
                expressions=(FieldRef(field="x"), FieldRef(field="y"), Constant(value=-7.0)),
            ).evaluate(bindings) == 0.0

    @pytest.mark.parametrize(
        ("function", "count"),
        [("/", 1), ("/", 3), ("-", 3), ("exp", 2), ("sum", 0)],
        ids=["divide-unary", "divide-ternary", "minus-ternary", "exp-binary", "sum-empty"],
    )
    def test_builtin_arity_is_checked(self, function: str, count: int) -> None:
        """Verify built-in functions reject unsupported argument counts."""
        with pytest.raises(ValidationError, match="does not accept"):
            Apply(function=function, expressions=tuple(Constant(value=1.0) for _ in range(count)))

    def test_shared_function_is_resolved_by_name(self) -> None:
        """Verify a non-built-in name is looked up in the supplied functions."""
        double = DefineFunction(
            name="double",
            parameter_fields=(ParameterField(name="value"),),
            expression=Apply(function="*", expressions=(Constant(value=2.0), FieldRef(field="value"))),
        )
        call = Apply(function="double", expressions=(FieldRef(field="x"),))

        with check:
            assert call.evaluate({"x": 1.25}, {"double": double}) == 2.5
        with pytest.raises(KeyError, match="double"):
            call.evaluate({"x": 1.25})

    def test_unbound_field_raises_key_error(self) -> None:
        """Verify evaluating a reference to an unbound field raises KeyError."""
        with pytest.raises(KeyError, match="x"):
            _centered("x", 0.0).evaluate({})

    def test_union_members_are_rebuilt_from_dumps(self) -> None:
        """Verify nested expressions validate back to the same concrete node types."""
        expression = Apply(function="sum", expressions=(_centered("x", 1.0), Constant(value=2.0)))

        restored = Apply.model_validate(expression.model_dump())

        with check:
            assert restored == expression
        with check:
            assert isinstance(restored.expressions[0], Apply)
        with check:
            assert isinstance(restored.expressions[1], Constant)


class TestDefineFunction:
    """Tests for DefineFunction evaluation."""

    def test_argument_count_must_match(self) -> None:
        """Verify calling with the wrong number of arguments raises ValueError."""
        identity = DefineFunction(
            name="identity",
            parameter_fields=(ParameterField(name="value"),),
            expression=FieldRef(field="value"),
        )

        with check:
            assert identity.evaluate(3.5) == 3.5
        with pytest.raises(ValueError, match="expects 1 argument"):
            identity.evaluate(1.0, 2.0)

    def test_body_can_call_exp(self) -> None:
        """Verify function bodies evaluate built-ins over their parameters."""
        growth = DefineFunction(
            name="growth",
            parameter_fields=(ParameterField(name="rate"),),
            expression=Apply(function="exp", expressions=(FieldRef(field="rate"),)),
        )

        assert growth.evaluate(1.0) == pytest.approx(math.e)


class TestDerivedField:
    """Tests for DerivedField."""

    def test_defaults_to_continuous_double(self) -> None:
        """Verify derived fields default to continuous doubles and are immutable."""
        derived = DerivedField(name="pca_1", expression=_centered("x", 1.0))

        with check:
            assert (derived.op_type, derived.data_type) == ("continuous", "double")
        with pytest.raises(ValidationError):
            derived.name = "pca_2"  # type: ignore[misc]
