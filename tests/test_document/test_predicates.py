"""Tests for split predicates."""

from __future__ import annotations

import pytest
from pytest_check import check

from pmmlkit.document import SimplePredicate, TruePredicate


class TestSimplePredicate:
    """Tests for SimplePredicate evaluation and rendering."""

    @pytest.mark.parametrize(
        ("operator", "symbol", "below", "equal", "above"),
        [
            ("equal", "==", False, True, False),
            ("notEqual", "!=", True, False, True),
            ("lessThan", "<", True, False, False),
            ("lessOrEqual", "<=", True, True, False),
            ("greaterThan", ">", False, False, True),
            ("greaterOrEqual", ">=", False, True, True),
        ],
    )
    def test_operators(self, operator: str, symbol: str, below: bool, equal: bool, above: bool) -> None:
        """Verify each operator compares the bound value against the threshold."""
        predicate = SimplePredicate(field="petal_width", operator=operator, value="0.8")  # type: ignore[arg-type]

        with check:
            assert predicate.eval({"petal_width": 0.2}) is below
        with check:
            assert predicate.eval({"petal_width": 0.8}) is equal
        with check:
            assert predicate.eval({"petal_width": 1.9}) is above
        with check:
            assert str(predicate) == f"petal_width {symbol} 0.8"

    def test_sibling_predicates_partition_values(self) -> None:
        """Verify `<=` and `>` on the same threshold select exactly one side."""
        left = SimplePredicate(field="x", operator="lessOrEqual", value="2.45")
        right = SimplePredicate(field="x", operator="greaterThan", value="2.45")

        for value in (-1.0, 2.44, 2.45, 2.4500000000000002, 10.0):
            assert left.eval({"x": value}) != right.eval({"x": value})

    def test_unbound_field_raises(self) -> None:
        """Verify evaluating without the field bound raises KeyError."""
        with pytest.raises(KeyError):
            SimplePredicate(field="x", operator="equal", value="1").eval({"y": 1.0})


class TestTruePredicate:
    """Tests for TruePredicate."""

    def test_always_true(self) -> None:
        """Verify the predicate holds for any bindings."""
        predicate = TruePredicate()

        with check:
            assert predicate.eval({}) is True
        with check:
            assert str(predicate) == "True"
