"""Ensemble and classifier composition.

Sub-models (trees, regressions, nested ensembles) are combined into a
`Segmentation`. Classifiers are composed as a model chain: the sub-models
publish one probability field per category, and a final classification
regression reads those fields back and turns them into a decision.
"""

from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from numbers import Real
from typing import Final

from loguru import logger

from pmmlkit.collector import collect_fields
from pmmlkit.document.expressions import DerivedField
from pmmlkit.document.models import (
    MiningModel,
    Model,
    ModelDocument,
    MultipleModelMethod,
    NormalizationMethod,
    NumericPredictor,
    Output,
    OutputField,
    RegressionModel,
    Segment,
    Segmentation,
    TreeModel,
)
from pmmlkit.document.predicates import TruePredicate
from pmmlkit.exceptions import LengthMismatchError
from pmmlkit.fields import DataField, MiningFunction
from pmmlkit.functions import FunctionCatalog
from pmmlkit.logging import ENCODE_ERROR_MSG, ENCODE_LEVEL, ENCODE_MSG, ENCODE_RESULT_MSG
from pmmlkit.params import ParameterStore
from pmmlkit.regression import encode_complement_model, encode_regression_table
from pmmlkit.schema import catalog_mining_schema, create_mining_schema, encode_mining_schema
from pmmlkit.tree import encode_tree_model

__all__ = [
    "compose_document",
    "encode_binomial_classifier",
    "encode_classifier",
    "encode_mining_schema",
    "encode_multinomial_classifier",
    "encode_probability_output",
    "encode_segmentation",
    "encode_tree_ensemble",
]

PROBABILITY_PREFIX: Final[str] = "probability_"
_BINOMIAL_CATEGORY_COUNT: Final[int] = 2
_DEFAULT_WEIGHT: Final[float] = 1.0

# ---------------------------------------------------------------------------
# Public interface -- Segmentation
# ---------------------------------------------------------------------------


def encode_segmentation(
    multiple_model_method: MultipleModelMethod,
    models: Sequence[Model],
    weights: Sequence[Real] | None = None,
) -> Segmentation:
    """Wrap sub-models into unconditional segments combined by `multiple_model_method`.

    Segment ids are `"1"`, `"2"`, ... in model order. A segment carries an
    explicit weight only when a weight is given and differs from 1.

    Args:
        multiple_model_method (MultipleModelMethod): How segment results are
            combined, e.g. `"weightedSum"` or `"modelChain"`.
        models (Sequence[Model]): Sub-models, in evaluation order.
        weights (Sequence[Real] | None): Optional weight per model.

    Returns:
        Segmentation: The segmentation.

    Raises:
        LengthMismatchError: If weights are given and their count differs from
            the model count.

    Examples:
        >>> from pmmlkit.regression import encode_complement_model
        >>> models = [encode_complement_model("p", f"q{i}") for i in range(3)]
        >>> segmentation = encode_segmentation("weightedSum", models, [1.0, 1.0, 2.0])
        >>> [(segment.id, segment.weight) for segment in segmentation.segments]
        [('1', None), ('2', None), ('3', 2.0)]
    """
    if weights is not None and len(models) != len(weights):
        logger.warning(
            ENCODE_ERROR_MSG.format(operation="encode_segmentation"),
            models=len(models),
            weights=len(weights),
        )
        raise LengthMismatchError(
            left_name="models",
            left_length=len(models),
            right_name="weights",
            right_length=len(weights),
            context=f"{multiple_model_method} segmentation",
        )

    segments: list[Segment] = []
    for index, model in enumerate(models):
        weight = float(weights[index]) if weights is not None and weights[index] is not None else None
        segments.append(
            Segment(
                id=str(index + 1),
                predicate=TruePredicate(),
                model=model,
                weight=weight if weight is not None and weight != _DEFAULT_WEIGHT else None,
            )
        )
    return Segmentation(multiple_model_method=multiple_model_method, segments=tuple(segments))


# ---------------------------------------------------------------------------
# Public interface -- Classifiers
# ---------------------------------------------------------------------------


def encode_binomial_classifier(
    target_categories: Sequence[str],
    probability_fields: Sequence[str],
    model: Model,
    data_fields: Sequence[DataField],
) -> MiningModel:
    """Compose a two-category classifier from a sub-model that publishes the first probability.

    A regression sub-model computing `1 - probability_fields[0]` is appended
    and publishes the second probability; the pair is then passed to
    `encode_classifier` without a normalization method.

    Args:
        target_categories (Sequence[str]): Exactly two category labels.
        probability_fields (Sequence[str]): Exactly two probability field
            names, paired with `target_categories`.
        model (Model): Sub-model whose output is `probability_fields[0]`.
        data_fields (Sequence[DataField]): The field catalog, target first.

    Returns:
        MiningModel: The composed classifier.

    Raises:
        LengthMismatchError: If there are not exactly two categories and two
            probability fields.
    """
    operation = "encode_binomial_classifier"
    logger.log(ENCODE_LEVEL, ENCODE_MSG.format(operation=operation), categories=list(target_categories))
    if len(target_categories) != _BINOMIAL_CATEGORY_COUNT:
        logger.warning(ENCODE_ERROR_MSG.format(operation=operation), categories=len(target_categories))
        raise LengthMismatchError(
            left_name="target_categories",
            left_length=len(target_categories),
            right_name="binomial categories",
            right_length=_BINOMIAL_CATEGORY_COUNT,
            context=operation,
        )
    _validate_paired_lengths(target_categories, probability_fields, operation=operation)

    complement = encode_complement_model(probability_fields[0], probability_fields[1])
    return encode_classifier(target_categories, probability_fields, [model, complement], None, data_fields)


def encode_multinomial_classifier(
    target_categories: Sequence[str],
    probability_fields: Sequence[str],
    models: Sequence[Model],
    data_fields: Sequence[DataField],
) -> MiningModel:
    """Compose an N-category classifier from N sub-models, one per category probability.

    Args:
        target_categories (Sequence[str]): Category labels.
        probability_fields (Sequence[str]): Probability field names, paired
            with `target_categories`.
        models (Sequence[Model]): Sub-models; together they publish every
            probability field.
        data_fields (Sequence[DataField]): The field catalog, target first.

    Returns:
        MiningModel: The composed classifier, normalized with `simplemax`.

    Raises:
        LengthMismatchError: If the category and probability field counts differ.
    """
    logger.log(
        ENCODE_LEVEL,
        ENCODE_MSG.format(operation="encode_multinomial_classifier"),
        categories=list(target_categories),
        models=len(models),
    )
    return encode_classifier(target_categories, probability_fields, models, "simplemax", data_fields)


def encode_classifier(
    target_categories: Sequence[str],
    probability_fields: Sequence[str],
    models: Sequence[Model],
    normalization_method: NormalizationMethod | None,
    data_fields: Sequence[DataField],
) -> MiningModel:
    """Chain probability sub-models into a classifier.

    A classification regression with one table per category (coefficient 1
    on the category's probability field, intercept 0) is appended after
    `models`, and all of them become one `modelChain` segmentation. The
    resulting model declares one probability output per target category.

    Args:
        target_categories (Sequence[str]): Category labels.
        probability_fields (Sequence[str]): Probability field names, paired
            with `target_categories`.
        models (Sequence[Model]): Sub-models that publish the probability fields.
        normalization_method (NormalizationMethod | None): Normalization of
            the final regression; `None` leaves the scores as they are.
        data_fields (Sequence[DataField]): The field catalog, target first.

    Returns:
        MiningModel: The composed classifier.

    Raises:
        LengthMismatchError: If the category and probability field counts differ.
    """
    operation = "encode_classifier"
    _validate_paired_lengths(target_categories, probability_fields, operation=operation)

    target_field = data_fields[0]
    regression_tables = [
        encode_regression_table(
            NumericPredictor(name=probability_field, coefficient=1.0),
            0.0,
            target_category=category,
        )
        for category, probability_field in zip(target_categories, probability_fields, strict=True)
    ]
    decision_model = RegressionModel(
        mining_function="classification",
        mining_schema=create_mining_schema(target_field.name, probability_fields),
        regression_tables=tuple(regression_tables),
        normalization_method=normalization_method,
    )

    segmentation = encode_segmentation("modelChain", [*models, decision_model])
    classifier = MiningModel(
        mining_function="classification",
        mining_schema=catalog_mining_schema(data_fields),
        segmentation=segmentation,
        output=encode_probability_output(target_field),
    )
    logger.debug(
        ENCODE_RESULT_MSG.format(operation=operation),
        segments=len(segmentation.segments),
        normalization_method=normalization_method,
    )
    return classifier


def encode_probability_output(target_field: DataField) -> Output:
    """Declare one probability output field per category of the target.

    Args:
        target_field (DataField): The categorical target field.

    Returns:
        Output: Fields named `"probability_<category>"`, in category order.
    """
    return Output(
        output_fields=tuple(
            OutputField(name=f"{PROBABILITY_PREFIX}{value}", feature="probability", value=value)
            for value in target_field.values
        )
    )


# ---------------------------------------------------------------------------
# Public interface -- Tree ensembles
# ---------------------------------------------------------------------------


def encode_tree_ensemble(
    tree_params: Sequence[ParameterStore],
    data_fields: Sequence[DataField],
    *,
    mining_function: MiningFunction,
    multiple_model_method: MultipleModelMethod,
    weights: Sequence[Real] | None = None,
    standalone: bool = True,
    max_workers: int | None = None,
) -> MiningModel:
    """Encode several fitted trees as one segmented ensemble.

    Each tree becomes an embedded tree model (no target in its schema). The
    ensemble schema lists the catalog inputs referenced by any member.
    Members may be encoded on a thread pool; segments always follow the order
    of `tree_params`.

    Args:
        tree_params (Sequence[ParameterStore]): Tree arrays of each member.
        data_fields (Sequence[DataField]): The field catalog, target first.
        mining_function (MiningFunction): Task kind of every member.
        multiple_model_method (MultipleModelMethod): How member results are
            combined, e.g. `"average"` for a random forest regressor.
        weights (Sequence[Real] | None): Optional weight per member.
        standalone (bool): Whether the ensemble schema declares the target.
        max_workers (int | None): Thread count for member encoding; `None`
            or 1 encodes sequentially.

    Returns:
        MiningModel: The ensemble.

    Raises:
        LengthMismatchError: If weights are given and their count differs from
            the member count.
        ShapeMismatchError: If a member's arrays are malformed.
        UnsupportedTaskKindError: If `mining_function` is not supported.
    """
    operation = "encode_tree_ensemble"
    logger.log(
        ENCODE_LEVEL,
        ENCODE_MSG.format(operation=operation),
        members=len(tree_params),
        multiple_model_method=multiple_model_method,
    )

    def _encode_member(params: ParameterStore) -> TreeModel:
        return encode_tree_model(params, mining_function, data_fields, standalone=False)

    if max_workers is None or max_workers <= 1 or len(tree_params) <= 1:
        members = [_encode_member(params) for params in tree_params]
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            members = list(pool.map(_encode_member, tree_params))

    referenced_fields: set[str] = set()
    for member in members:
        referenced_fields |= collect_fields(member)

    ensemble = MiningModel(
        mining_function=mining_function,
        mining_schema=encode_mining_schema(data_fields, referenced_fields, standalone=standalone),
        segmentation=encode_segmentation(multiple_model_method, members, weights),
    )
    logger.debug(ENCODE_RESULT_MSG.format(operation=operation), members=len(members))
    return ensemble


# ---------------------------------------------------------------------------
# Public interface -- Document
# ---------------------------------------------------------------------------


def compose_document(
    model: Model,
    *,
    catalog: FunctionCatalog | None = None,
    derived_fields: Sequence[DerivedField] = (),
) -> ModelDocument:
    """Attach the shared-function catalog and derived fields to a top-level model.

    Args:
        model (Model): The top-level model.
        catalog (FunctionCatalog | None): Shared functions to declare.
        derived_fields (Sequence[DerivedField]): Fields computed ahead of the model.

    Returns:
        ModelDocument: The output document graph.
    """
    functions = tuple(catalog) if catalog is not None else ()
    logger.debug("Document composed", functions=len(functions), derived_fields=len(derived_fields))
    return ModelDocument(derived_fields=tuple(derived_fields), functions=functions, model=model)


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _validate_paired_lengths(
    target_categories: Sequence[str],
    probability_fields: Sequence[str],
    *,
    operation: str,
) -> None:
    """Raise `LengthMismatchError` unless every category has exactly one probability field.

    Args:
        target_categories (Sequence[str]): Category labels.
        probability_fields (Sequence[str]): Probability field names.
        operation (str): Name of the calling operation, for diagnostics.

    Raises:
        LengthMismatchError: If the two lists differ in length.
    """
    if len(target_categories) != len(probability_fields):
        logger.warning(
            ENCODE_ERROR_MSG.format(operation=operation),
            categories=len(target_categories),
            probability_fields=len(probability_fields),
        )
        raise LengthMismatchError(
            left_name="target_categories",
            left_length=len(target_categories),
            right_name="probability_fields",
            right_length=len(probability_fields),
            context=operation,
        )
