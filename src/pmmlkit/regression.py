"""Regression tables and linear regression sub-models."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Final

from loguru import logger

from pmmlkit.collector import collect_fields
from pmmlkit.document.models import NumericPredictor, Output, OutputField, RegressionModel, RegressionTable
from pmmlkit.exceptions import ShapeMismatchError
from pmmlkit.fields import DataField, input_names
from pmmlkit.logging import ENCODE_ERROR_MSG, ENCODE_LEVEL, ENCODE_MSG, ENCODE_RESULT_MSG
from pmmlkit.params import ParameterStore
from pmmlkit.schema import create_mining_schema, encode_mining_schema

COEF_KEY: Final[str] = "coef_"
INTERCEPT_KEY: Final[str] = "intercept_"


def encode_regression_table(
    numeric_predictors: NumericPredictor | Iterable[NumericPredictor],
    intercept: float,
    *,
    target_category: str | None = None,
) -> RegressionTable:
    """Build a regression table from one or more predictors and an intercept.

    Args:
        numeric_predictors (NumericPredictor | Iterable[NumericPredictor]):
            A single predictor or predictors in field order.
        intercept (float): Constant term.
        target_category (str | None): Category the table scores, for
            classification regressions.

    Returns:
        RegressionTable: The table.
    """
    if isinstance(numeric_predictors, NumericPredictor):
        numeric_predictors = (numeric_predictors,)
    return RegressionTable(
        intercept=float(intercept),
        numeric_predictors=tuple(numeric_predictors),
        target_category=target_category,
    )


def encode_complement_model(source_field: str, result_field: str) -> RegressionModel:
    """Build a regression sub-model that publishes `1 - source_field` as `result_field`.

    Args:
        source_field (str): Field holding the value to complement, e.g. the
            probability of the first category.
        result_field (str): Output field name for the complement.

    Returns:
        RegressionModel: A single-table regression with coefficient -1 and intercept 1.

    Examples:
        >>> model = encode_complement_model("probability_no", "probability_yes")
        >>> model.regression_tables[0].evaluate({"probability_no": 0.25})
        0.75
    """
    table = encode_regression_table(NumericPredictor(name=source_field, coefficient=-1.0), 1.0)
    return RegressionModel(
        mining_function="regression",
        mining_schema=create_mining_schema(None, [source_field]),
        regression_tables=(table,),
        output=Output(output_fields=(OutputField(name=result_field, feature="predictedValue"),)),
    )


def encode_regression_model(
    params: ParameterStore,
    data_fields: Sequence[DataField],
    *,
    standalone: bool = True,
    output_field: str | None = None,
) -> RegressionModel:
    """Encode a fitted linear regressor (`coef_`, `intercept_`) as a regression sub-model.

    Predictors with a zero coefficient are dropped, so the derived schema only
    lists inputs the model really uses.

    Args:
        params (ParameterStore): Fitted linear model parameters. `coef_` must
            hold one coefficient per catalog input, as a vector or a `1 x m` matrix.
        data_fields (Sequence[DataField]): The field catalog, target first.
        standalone (bool): Whether the schema declares the target field.
        output_field (str | None): When given, the prediction is published
            under this name so that later segments can consume it.

    Returns:
        RegressionModel: The regression sub-model.

    Raises:
        ShapeMismatchError: If the coefficient count differs from the catalog
            input count, or more than one intercept is present.
    """
    operation = "encode_regression_model"
    logger.log(ENCODE_LEVEL, ENCODE_MSG.format(operation=operation), model=params.name)
    names = input_names(data_fields)
    shape = params.get_shape(COEF_KEY)
    coefficients = params.get_array(COEF_KEY)
    if len(shape) > 2 or (len(shape) == 2 and shape[0] != 1) or coefficients.size != len(names):
        logger.warning(ENCODE_ERROR_MSG.format(operation=operation), model=params.name, shape=shape)
        raise ShapeMismatchError(
            f"Parameter '{COEF_KEY}' must hold {len(names)} coefficient(s), got shape {shape}",
            expected=(len(names),),
            actual=shape,
            context=params.name,
        )
    intercept = params.get_scalar(INTERCEPT_KEY)

    predictors = [
        NumericPredictor(name=name, coefficient=float(coefficient))
        for name, coefficient in zip(names, coefficients, strict=True)
        if coefficient != 0.0
    ]
    table = encode_regression_table(predictors, intercept)
    output = Output(output_fields=(OutputField(name=output_field),)) if output_field is not None else None
    model = RegressionModel(
        mining_function="regression",
        mining_schema=encode_mining_schema(data_fields, collect_fields(table), standalone=standalone),
        regression_tables=(table,),
        output=output,
    )
    logger.debug(ENCODE_RESULT_MSG.format(operation=operation), model=params.name, predictors=len(predictors))
    return model
