"""Scoring models of the output document: schemas, trees, regressions and segmentations.

Every model is frozen. Composition only creates new parent objects that
reference already-built children, so a finished sub-model can be shared by
several parents without copying.
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Mapping
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from pmmlkit.document.expressions import DefineFunction, DerivedField
from pmmlkit.document.predicates import SimplePredicate, TruePredicate
from pmmlkit.fields import MiningFunction

# ---------------------------------------------------------------------------
# Public type aliases
# ---------------------------------------------------------------------------

type UsageType = Literal["active", "target"]

type ResultFeature = Literal["predictedValue", "probability"]

type NormalizationMethod = Literal["simplemax", "softmax", "logit", "exp"]

type MultipleModelMethod = Literal[
    "majorityVote",
    "weightedMajorityVote",
    "average",
    "weightedAverage",
    "median",
    "max",
    "sum",
    "weightedSum",
    "selectFirst",
    "selectAll",
    "modelChain",
]

# ---------------------------------------------------------------------------
# Public models -- Schema and outputs
# ---------------------------------------------------------------------------


class MiningField(BaseModel):
    """A field consumed by a model, tagged with its role."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    usage_type: UsageType = "active"


class MiningSchema(BaseModel):
    """The fields a model consumes: at most one target followed by active inputs.

    Examples:
        >>> schema = MiningSchema(
        ...     mining_fields=(
        ...         MiningField(name="y", usage_type="target"),
        ...         MiningField(name="x1"),
        ...     )
        ... )
        >>> schema.target_field, schema.active_fields
        ('y', ['x1'])
    """

    model_config = ConfigDict(frozen=True)

    mining_fields: tuple[MiningField, ...] = ()

    @property
    def target_field(self) -> str | None:
        """Name of the target field, or `None` when the schema has no target."""
        for mining_field in self.mining_fields:
            if mining_field.usage_type == "target":
                return mining_field.name
        return None

    @property
    def active_fields(self) -> list[str]:
        """Names of the active fields, in schema order."""
        return [mining_field.name for mining_field in self.mining_fields if mining_field.usage_type == "active"]


class OutputField(BaseModel):
    """A result a model publishes under a field name.

    Attributes:
        name (str): Name later segments and callers refer to the result by.
        feature (ResultFeature): `"predictedValue"` for the model's raw
            prediction, `"probability"` for the probability of `value`.
        value (str | None): The category a probability field refers to.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    feature: ResultFeature = "predictedValue"
    value: str | None = None


class Output(BaseModel):
    """The ordered output declarations of a model."""

    model_config = ConfigDict(frozen=True)

    output_fields: tuple[OutputField, ...] = ()


# ---------------------------------------------------------------------------
# Public models -- Decision trees
# ---------------------------------------------------------------------------


class ScoreDistribution(BaseModel):
    """Record count of one category at a classification leaf."""

    model_config = ConfigDict(frozen=True)

    value: str
    record_count: float


class Node(BaseModel):
    """A decision tree node.

    Internal nodes have exactly two children whose predicates split on the
    same field and threshold. Leaves carry a score and, for classification,
    one score distribution entry per category.

    Attributes:
        id (str): Node identifier, the 1-based position of the node in the
            flattened tree arrays.
        predicate (TruePredicate | SimplePredicate): Condition under which
            this node is entered from its parent.
        nodes (tuple[Node, ...]): Children; empty at leaves.
        score (str | None): Leaf prediction.
        record_count (float | None): Total record count at a classification leaf.
        score_distributions (tuple[ScoreDistribution, ...]): Per-category
            record counts at a classification leaf, in category order.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    predicate: TruePredicate | SimplePredicate = Field(default_factory=TruePredicate)
    nodes: tuple[Node, ...] = ()
    score: str | None = None
    record_count: float | None = None
    score_distributions: tuple[ScoreDistribution, ...] = ()

    @model_validator(mode="after")
    def _validate_binary_split(self) -> Node:
        """Validate that a node is either a leaf or has exactly two children.

        Returns:
            Node: The validated model instance.

        Raises:
            ValueError: If the node has a number of children other than 0 or 2.
        """
        if len(self.nodes) not in {0, 2}:
            raise ValueError(f"Node {self.id} must have 0 or 2 children, got {len(self.nodes)}")
        return self

    @property
    def is_leaf(self) -> bool:
        """Whether the node has no children."""
        return not self.nodes

    def iter_nodes(self) -> Iterator[Node]:
        """Yield this node and all of its descendants in depth-first, left-to-right order."""
        yield self
        for child in self.nodes:
            yield from child.iter_nodes()


class TreeModel(BaseModel):
    """A decision tree sub-model."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["tree"] = "tree"
    mining_function: MiningFunction
    mining_schema: MiningSchema
    node: Node
    split_characteristic: Literal["binarySplit", "multiSplit"] = "binarySplit"
    output: Output | None = None


# ---------------------------------------------------------------------------
# Public models -- Regressions
# ---------------------------------------------------------------------------


class NumericPredictor(BaseModel):
    """A coefficient applied to one continuous field."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    coefficient: float


class RegressionTable(BaseModel):
    """An intercept plus a weighted sum of numeric predictors.

    Examples:
        >>> table = RegressionTable(
        ...     intercept=1.0,
        ...     numeric_predictors=(NumericPredictor(name="p0", coefficient=-1.0),),
        ... )
        >>> table.evaluate({"p0": 0.25})
        0.75
    """

    model_config = ConfigDict(frozen=True)

    intercept: float = 0.0
    numeric_predictors: tuple[NumericPredictor, ...] = ()
    target_category: str | None = None

    def evaluate(self, bindings: Mapping[str, float]) -> float:
        """Compute `intercept + sum(coefficient * value)` for the bound field values.

        Args:
            bindings (Mapping[str, float]): Field name to value.

        Returns:
            float: The linear combination.

        Raises:
            KeyError: If a predictor field is not bound.
        """
        terms = [predictor.coefficient * float(bindings[predictor.name]) for predictor in self.numeric_predictors]
        return math.fsum([self.intercept, *terms])


class RegressionModel(BaseModel):
    """A regression sub-model: one table for regression, one table per category for classification."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["regression"] = "regression"
    mining_function: MiningFunction
    mining_schema: MiningSchema
    regression_tables: tuple[RegressionTable, ...]
    normalization_method: NormalizationMethod | None = None
    output: Output | None = None


# ---------------------------------------------------------------------------
# Public models -- Ensembles
# ---------------------------------------------------------------------------


class Segment(BaseModel):
    """A member of a segmentation.

    Attributes:
        id (str): Sequential identifier, starting at `"1"`.
        predicate (TruePredicate): Selection predicate; always unconditional.
        model (TreeModel | RegressionModel | MiningModel): The member model.
        weight (float | None): Explicit weight; `None` means the default of 1.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    predicate: TruePredicate = Field(default_factory=TruePredicate)
    model: TreeModel | RegressionModel | MiningModel
    weight: float | None = None


class Segmentation(BaseModel):
    """Ordered segments plus the method used to combine their results."""

    model_config = ConfigDict(frozen=True)

    multiple_model_method: MultipleModelMethod
    segments: tuple[Segment, ...] = ()


class MiningModel(BaseModel):
    """A composite model whose result is produced by a segmentation of sub-models."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["mining"] = "mining"
    mining_function: MiningFunction
    mining_schema: MiningSchema
    segmentation: Segmentation
    output: Output | None = None


# Any scoring model. Pydantic selects the concrete model by its `kind`.
type Model = TreeModel | RegressionModel | MiningModel

# ---------------------------------------------------------------------------
# Public models -- Document
# ---------------------------------------------------------------------------


class ModelDocument(BaseModel):
    """The composed output document graph, ready for external serialization.

    Attributes:
        derived_fields (tuple[DerivedField, ...]): Fields computed ahead of
            the model, e.g. principal components.
        functions (tuple[DefineFunction, ...]): Shared-function catalog;
            each function is declared once and referenced by name.
        model (TreeModel | RegressionModel | MiningModel): The top-level model.
    """

    model_config = ConfigDict(frozen=True)

    derived_fields: tuple[DerivedField, ...] = ()
    functions: tuple[DefineFunction, ...] = ()
    model: TreeModel | RegressionModel | MiningModel


Node.model_rebuild()
Segment.model_rebuild()
Segmentation.model_rebuild()
MiningModel.model_rebuild()
ModelDocument.model_rebuild()
