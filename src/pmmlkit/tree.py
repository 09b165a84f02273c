"""Decision tree encoding: parallel topology arrays to a tree of scoring nodes.

A fitted tree is stored as index-aligned arrays: `children_left`,
`children_right`, `feature`, `threshold` and the flattened leaf `value`
matrix. A negative feature index marks a leaf. The encoder walks these
arrays depth first from index 0, building one fresh `Node` per visited
index; each recursive call returns the finished subtree it owns.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Final, NamedTuple

import numpy as np
from loguru import logger
from sklearn.base import is_classifier
from sklearn.tree import DecisionTreeClassifier, DecisionTreeRegressor

from pmmlkit.collector import collect_fields
from pmmlkit.document.models import Node, ScoreDistribution, TreeModel
from pmmlkit.document.predicates import SimplePredicate, TruePredicate
from pmmlkit.exceptions import ShapeMismatchError, UnsupportedTaskKindError
from pmmlkit.fields import DataField, MiningFunction
from pmmlkit.formatting import format_value
from pmmlkit.logging import ENCODE_ERROR_MSG, ENCODE_LEVEL, ENCODE_MSG, ENCODE_RESULT_MSG
from pmmlkit.params import ParameterStore
from pmmlkit.schema import encode_mining_schema

# ---------------------------------------------------------------------------
# Public type aliases and constants
# ---------------------------------------------------------------------------

type DecisionTree = DecisionTreeClassifier | DecisionTreeRegressor

TREE_KEYS: Final[tuple[str, ...]] = ("children_left", "children_right", "feature", "threshold", "value")

_ROOT_INDEX: Final[int] = 0

# ---------------------------------------------------------------------------
# Public interface
# ---------------------------------------------------------------------------


def tree_parameters(estimator: DecisionTree, *, name: str | None = None) -> ParameterStore:
    """Snapshot the topology arrays of a fitted scikit-learn decision tree.

    Args:
        estimator (DecisionTree): A fitted `DecisionTreeClassifier` or
            `DecisionTreeRegressor`.
        name (str | None): Store name; defaults to the estimator class name.

    Returns:
        ParameterStore: Store holding the `TREE_KEYS` arrays of `estimator.tree_`.
    """
    return ParameterStore.from_object(
        estimator.tree_,
        TREE_KEYS,
        name=name if name is not None else type(estimator).__name__,
    )


def mining_function_of(estimator: DecisionTree) -> MiningFunction:
    """Return the task kind a fitted scikit-learn tree was trained for.

    Args:
        estimator (DecisionTree): A fitted scikit-learn tree.

    Returns:
        MiningFunction: `"classification"` for classifiers, else `"regression"`.
    """
    return "classification" if is_classifier(estimator) else "regression"


def encode_tree_model(
    params: ParameterStore,
    mining_function: MiningFunction,
    data_fields: Sequence[DataField],
    *,
    standalone: bool = True,
) -> TreeModel:
    """Encode a fitted decision tree as a binary-split tree model.

    The root node gets id `"1"` and an always-true predicate. Node ids are the
    1-based array positions of the nodes. After the walk, the fields
    referenced by split predicates determine the active fields of the schema.

    Args:
        params (ParameterStore): Tree arrays under the `TREE_KEYS` names.
        mining_function (MiningFunction): `"classification"` or `"regression"`.
        data_fields (Sequence[DataField]): The field catalog. Position 0 is
            the target; for classification its `values` give the category
            order of the leaf value rows.
        standalone (bool): Whether the schema declares the target field.

    Returns:
        TreeModel: The encoded tree.

    Raises:
        ShapeMismatchError: If the arrays disagree in length, or a child,
            feature or value row index is out of range.
        UnsupportedTaskKindError: If `mining_function` is not supported.
    """
    operation = "encode_tree_model"
    logger.log(
        ENCODE_LEVEL,
        ENCODE_MSG.format(operation=operation),
        model=params.name,
        mining_function=mining_function,
    )
    if mining_function not in {"classification", "regression"}:
        logger.warning(ENCODE_ERROR_MSG.format(operation=operation), model=params.name, task_kind=mining_function)
        raise UnsupportedTaskKindError(mining_function, context=params.name)

    arrays = _load_tree_arrays(params, mining_function, data_fields)
    root = encode_node(_ROOT_INDEX, arrays, TruePredicate(), mining_function=mining_function, data_fields=data_fields)

    referenced_fields = collect_fields(root)
    model = TreeModel(
        mining_function=mining_function,
        mining_schema=encode_mining_schema(data_fields, referenced_fields, standalone=standalone),
        node=root,
        split_characteristic="binarySplit",
    )
    logger.debug(
        ENCODE_RESULT_MSG.format(operation=operation),
        model=params.name,
        nodes=sum(1 for _ in root.iter_nodes()),
        referenced_fields=sorted(referenced_fields),
    )
    return model


def encode_node(
    index: int,
    arrays: TreeArrays,
    predicate: TruePredicate | SimplePredicate,
    *,
    mining_function: MiningFunction,
    data_fields: Sequence[DataField],
) -> Node:
    """Recursively encode the subtree rooted at array position `index`.

    Internal nodes split on the catalog field at `feature + 1`: the left child
    is entered when the field is less than or equal to the formatted
    threshold, the right child when it is greater. Both children are encoded
    before the parent is built.

    Args:
        index (int): Array position of the node.
        arrays (TreeArrays): The tree topology arrays.
        predicate (TruePredicate | SimplePredicate): The predicate under which
            the parent enters this node.
        mining_function (MiningFunction): Leaf semantics to apply.
        data_fields (Sequence[DataField]): The field catalog, target first.

    Returns:
        Node: The encoded subtree.

    Raises:
        ShapeMismatchError: If a child or feature index is out of range.
        UnsupportedTaskKindError: If `mining_function` is not supported.
    """
    node_id = str(index + 1)
    feature = int(arrays.features[index])

    if feature < 0:
        return _encode_leaf(index, node_id, arrays, predicate, mining_function=mining_function, data_fields=data_fields)

    if feature + 1 >= len(data_fields):
        raise ShapeMismatchError(
            f"Feature index {feature} has no input field in a catalog of {len(data_fields)} field(s)",
            expected=len(data_fields) - 1,
            actual=feature,
            context=f"tree node {node_id}",
        )
    field_name = data_fields[feature + 1].name
    value = format_value(arrays.thresholds[index])

    left_index = _child_index(arrays.left_children, index, arrays.node_count)
    right_index = _child_index(arrays.right_children, index, arrays.node_count)

    left_child = encode_node(
        left_index,
        arrays,
        SimplePredicate(field=field_name, operator="lessOrEqual", value=value),
        mining_function=mining_function,
        data_fields=data_fields,
    )
    right_child = encode_node(
        right_index,
        arrays,
        SimplePredicate(field=field_name, operator="greaterThan", value=value),
        mining_function=mining_function,
        data_fields=data_fields,
    )
    return Node(id=node_id, predicate=predicate, nodes=(left_child, right_child))


class TreeArrays(NamedTuple):
    """Index-aligned topology arrays of one fitted tree.

    Attributes:
        left_children (np.ndarray): Left child position per node.
        right_children (np.ndarray): Right child position per node.
        features (np.ndarray): Split feature index per node; negative at leaves.
        thresholds (np.ndarray): Split threshold per node.
        values (np.ndarray): Flattened leaf values, `node_count` rows.
    """

    left_children: np.ndarray
    right_children: np.ndarray
    features: np.ndarray
    thresholds: np.ndarray
    values: np.ndarray

    @property
    def node_count(self) -> int:
        """Number of nodes in the tree."""
        return len(self.left_children)


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _load_tree_arrays(
    params: ParameterStore,
    mining_function: MiningFunction,
    data_fields: Sequence[DataField],
) -> TreeArrays:
    """Read the tree arrays and check that they are index-aligned.

    Args:
        params (ParameterStore): Tree arrays under the `TREE_KEYS` names.
        mining_function (MiningFunction): Determines the expected value row width.
        data_fields (Sequence[DataField]): The field catalog, target first.

    Returns:
        TreeArrays: The validated arrays.

    Raises:
        ShapeMismatchError: If the topology arrays differ in length, the tree
            is empty, or the value array does not hold one row per node.
    """
    arrays = TreeArrays(
        left_children=params.get_array("children_left"),
        right_children=params.get_array("children_right"),
        features=params.get_array("feature"),
        thresholds=params.get_array("threshold"),
        values=params.get_array("value"),
    )
    node_count = arrays.node_count
    lengths = {
        "children_left": node_count,
        "children_right": len(arrays.right_children),
        "feature": len(arrays.features),
        "threshold": len(arrays.thresholds),
    }
    if node_count == 0 or len(set(lengths.values())) != 1:
        raise ShapeMismatchError(
            "Tree topology arrays must be non-empty and of equal length",
            expected=node_count,
            actual=lengths,
            context=params.name,
        )

    columns = len(data_fields[0].values) if mining_function == "classification" else 1
    if len(arrays.values) != node_count * columns:
        raise ShapeMismatchError(
            f"Parameter 'value' must hold {node_count} row(s) of {columns} value(s)",
            expected=node_count * columns,
            actual=len(arrays.values),
            context=params.name,
        )
    return arrays


def _child_index(children: np.ndarray, index: int, node_count: int) -> int:
    """Return a validated child position.

    Args:
        children (np.ndarray): Left or right child array.
        index (int): Position of the parent node.
        node_count (int): Number of nodes in the tree.

    Returns:
        int: The child position.

    Raises:
        ShapeMismatchError: If the child position is outside the tree.
    """
    child = int(children[index])
    if not 0 <= child < node_count:
        raise ShapeMismatchError(
            f"Child index {child} is outside a tree of {node_count} node(s)",
            expected=node_count,
            actual=child,
            context=f"tree node {index + 1}",
        )
    return child


def _encode_leaf(
    index: int,
    node_id: str,
    arrays: TreeArrays,
    predicate: TruePredicate | SimplePredicate,
    *,
    mining_function: MiningFunction,
    data_fields: Sequence[DataField],
) -> Node:
    """Encode a leaf node for the requested task kind.

    Args:
        index (int): Array position of the leaf.
        node_id (str): Identifier of the leaf.
        arrays (TreeArrays): The tree topology arrays.
        predicate (TruePredicate | SimplePredicate): Predicate under which the
            parent enters this leaf.
        mining_function (MiningFunction): Leaf semantics to apply.
        data_fields (Sequence[DataField]): The field catalog, target first.

    Returns:
        Node: The leaf.

    Raises:
        UnsupportedTaskKindError: If `mining_function` is not supported.
    """
    if mining_function == "classification":
        categories = data_fields[0].values
        columns = len(categories)
        row = arrays.values[index * columns : (index + 1) * columns]
        return _encode_classification_leaf(node_id, predicate, categories, row)
    if mining_function == "regression":
        return Node(id=node_id, predicate=predicate, score=format_value(arrays.values[index]))
    raise UnsupportedTaskKindError(mining_function, context=f"tree node {node_id}")


def _encode_classification_leaf(
    node_id: str,
    predicate: TruePredicate | SimplePredicate,
    categories: Sequence[str],
    record_counts: np.ndarray,
) -> Node:
    """Encode a classification leaf with one score distribution entry per category.

    The score is the category with the greatest share of the leaf's records.
    Only a strictly greater share replaces the current leader, so on a tie the
    first category in catalog order is kept. A leaf with no records has an
    undefined share for every category and keeps the first one.

    Args:
        node_id (str): Identifier of the leaf.
        predicate (TruePredicate | SimplePredicate): Predicate under which the
            parent enters this leaf.
        categories (Sequence[str]): Category labels in catalog order.
        record_counts (np.ndarray): Per-category weights of this leaf, in
            category order.

    Returns:
        Node: The leaf with score, record count and score distributions.

    Examples:
        >>> leaf = _encode_classification_leaf("3", TruePredicate(), ["a", "b", "c"], np.array([2.0, 2.0, 1.0]))
        >>> leaf.score, leaf.record_count
        ('a', 5.0)
    """
    record_count = 0.0
    for count in record_counts:
        record_count += float(count)

    score: str | None = None
    probability: float | None = None
    distributions: list[ScoreDistribution] = []
    for category, count in zip(categories, record_counts, strict=True):
        distributions.append(ScoreDistribution(value=category, record_count=float(count)))
        category_probability = float(count) / record_count if record_count != 0.0 else math.nan
        if probability is None or probability < category_probability:
            score = category
            probability = category_probability

    return Node(
        id=node_id,
        predicate=predicate,
        score=score,
        record_count=record_count,
        score_distributions=tuple(distributions),
    )
