"""Split predicates attached to tree nodes and ensemble segments."""

from __future__ import annotations

import operator
from collections.abc import Callable, Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

type SimplePredicateOp = Literal[
    "equal",
    "notEqual",
    "lessThan",
    "lessOrEqual",
    "greaterThan",
    "greaterOrEqual",
]


class TruePredicate(BaseModel):
    """A predicate that always holds.

    Used at the root of a tree and on every ensemble segment.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["true"] = "true"

    def __str__(self) -> str:
        return "True"

    def eval(self, bindings: Mapping[str, Any]) -> bool:
        """Return `True` for any input.

        Args:
            bindings (Mapping[str, Any]): Unused.

        Returns:
            bool: Always `True`.
        """
        return True


class SimplePredicate(BaseModel):
    """A comparison of one field against a formatted threshold.

    The threshold is kept as the canonical decimal string written into the
    document, so that sibling predicates compare against byte-identical
    values.

    Attributes:
        field (str): Name of the compared field.
        operator (SimplePredicateOp): Comparison operator.
        value (str): Threshold as a canonical decimal string.

    Examples:
        >>> p = SimplePredicate(field="petal_length", operator="lessOrEqual", value="2.45")
        >>> str(p)
        'petal_length <= 2.45'
        >>> p.eval({"petal_length": 1.4})
        True
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["simple"] = "simple"
    field: str = Field(min_length=1)
    operator: SimplePredicateOp
    value: str

    def __str__(self) -> str:
        return f"{self.field} {_OPERATOR_SYMBOLS[self.operator]} {self.value}"

    def eval(self, bindings: Mapping[str, Any]) -> bool:
        """Evaluate this predicate against the bound value of its field.

        Args:
            bindings (Mapping[str, Any]): Field name to value.

        Returns:
            bool: `True` if the comparison holds.

        Raises:
            KeyError: If the field is not bound.
        """
        return _SCALAR_OPS[self.operator](float(bindings[self.field]), float(self.value))


# Any predicate. Pydantic selects the concrete model by its `kind`.
type Predicate = TruePredicate | SimplePredicate

_SCALAR_OPS: dict[str, Callable[[Any, Any], bool]] = {
    "equal": operator.eq,
    "notEqual": operator.ne,
    "lessThan": operator.lt,
    "lessOrEqual": operator.le,
    "greaterThan": operator.gt,
    "greaterOrEqual": operator.ge,
}

_OPERATOR_SYMBOLS: dict[str, str] = {
    "equal": "==",
    "notEqual": "!=",
    "lessThan": "<",
    "lessOrEqual": "<=",
    "greaterThan": ">",
    "greaterOrEqual": ">=",
}
