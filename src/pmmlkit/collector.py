"""Collect the names of the fields a graph fragment actually references."""

from __future__ import annotations

from pmmlkit.document.expressions import Apply, Constant, DerivedField, FieldRef
from pmmlkit.document.models import MiningModel, Node, RegressionModel, RegressionTable, TreeModel
from pmmlkit.document.predicates import SimplePredicate, TruePredicate

type Collectable = (
    Node
    | TreeModel
    | RegressionModel
    | RegressionTable
    | MiningModel
    | Apply
    | Constant
    | FieldRef
    | DerivedField
    | SimplePredicate
    | TruePredicate
)


def collect_fields(fragment: Collectable) -> set[str]:
    """Return the names of all fields referenced inside a graph fragment.

    Split predicates, field references inside expressions and regression
    predictors count as references. Nested segmentations are walked
    recursively. Mining schemas and output declarations do not count: the
    result is what the scoring logic consumes, which is what schema
    derivation needs.

    Args:
        fragment (Collectable): A node, model, table, expression or predicate.

    Returns:
        set[str]: Referenced field names.

    Raises:
        TypeError: If `fragment` is not a graph element.

    Examples:
        >>> from pmmlkit.document import Apply, Constant, FieldRef
        >>> sorted(collect_fields(Apply(function="+", expressions=(FieldRef(field="b"), FieldRef(field="a")))))
        ['a', 'b']
        >>> collect_fields(Constant(value=1.0))
        set()
    """
    fields: set[str] = set()
    _collect(fragment, fields)
    return fields


def _collect(fragment: Collectable, fields: set[str]) -> None:
    """Add the fields referenced by `fragment` to `fields`.

    Args:
        fragment (Collectable): The graph element to walk.
        fields (set[str]): Accumulator; updated in place.

    Raises:
        TypeError: If `fragment` is not a graph element.
    """
    if isinstance(fragment, FieldRef):
        fields.add(fragment.field)
    elif isinstance(fragment, Apply):
        for expression in fragment.expressions:
            _collect(expression, fields)
    elif isinstance(fragment, SimplePredicate):
        fields.add(fragment.field)
    elif isinstance(fragment, Node):
        for node in fragment.iter_nodes():
            _collect(node.predicate, fields)
    elif isinstance(fragment, TreeModel):
        _collect(fragment.node, fields)
    elif isinstance(fragment, RegressionTable):
        fields.update(predictor.name for predictor in fragment.numeric_predictors)
    elif isinstance(fragment, RegressionModel):
        for table in fragment.regression_tables:
            _collect(table, fields)
    elif isinstance(fragment, MiningModel):
        for segment in fragment.segmentation.segments:
            _collect(segment.model, fields)
    elif isinstance(fragment, DerivedField):
        _collect(fragment.expression, fields)
    elif isinstance(fragment, (Constant, TruePredicate)):
        return
    else:
        raise TypeError(f"Cannot collect fields from {type(fragment).__name__}")
