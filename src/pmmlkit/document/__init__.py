"""Document sub-package: immutable expression, predicate and model graph nodes."""

from __future__ import annotations

from pmmlkit.document.expressions import (
    Apply,
    Constant,
    DefineFunction,
    DerivedField,
    Expression,
    FieldRef,
    ParameterField,
)
from pmmlkit.document.models import (
    MiningField,
    MiningModel,
    MiningSchema,
    Model,
    ModelDocument,
    MultipleModelMethod,
    Node,
    NormalizationMethod,
    NumericPredictor,
    Output,
    OutputField,
    RegressionModel,
    RegressionTable,
    ScoreDistribution,
    Segment,
    Segmentation,
    TreeModel,
)
from pmmlkit.document.predicates import Predicate, SimplePredicate, TruePredicate

__all__ = [
    "Apply",
    "Constant",
    "DefineFunction",
    "DerivedField",
    "Expression",
    "FieldRef",
    "MiningField",
    "MiningModel",
    "MiningSchema",
    "Model",
    "ModelDocument",
    "MultipleModelMethod",
    "Node",
    "NormalizationMethod",
    "NumericPredictor",
    "Output",
    "OutputField",
    "ParameterField",
    "Predicate",
    "RegressionModel",
    "RegressionTable",
    "ScoreDistribution",
    "Segment",
    "Segmentation",
    "SimplePredicate",
    "TreeModel",
    "TruePredicate",
]
