"""Field catalog: typed variables of the scoring schema.

A field catalog is an ordered sequence of `DataField` objects. By convention
position 0 is the prediction target and positions 1..n are the candidate
inputs, in the column order the model was fitted on.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Literal

import polars as pl
from pydantic import BaseModel, ConfigDict, Field, model_validator

from pmmlkit.exceptions import UnsupportedTaskKindError

# ---------------------------------------------------------------------------
# Public type aliases
# ---------------------------------------------------------------------------

type DataType = Literal["double", "float", "integer", "string", "boolean"]

type OpType = Literal["continuous", "categorical", "ordinal"]

type MiningFunction = Literal["classification", "regression"]

# ---------------------------------------------------------------------------
# Public models
# ---------------------------------------------------------------------------


class DataField(BaseModel):
    """A named variable with a data type, an operational type and, if categorical, its labels.

    Attributes:
        name (str): Field name as it appears in the scoring schema.
        data_type (DataType): Storage type of the field values.
        op_type (OpType): Operational type; `"categorical"` and `"ordinal"`
            fields may declare `values`.
        values (tuple[str, ...]): Ordered category labels. The order is the
            category order of every array-valued parameter paired with this
            field (e.g. the columns of a classification tree's leaf values).

    Examples:
        >>> target = DataField(
        ...     name="species",
        ...     data_type="string",
        ...     op_type="categorical",
        ...     values=("setosa", "versicolor", "virginica"),
        ... )
        >>> target.values[0]
        'setosa'
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, description="Field name as it appears in the scoring schema.")
    data_type: DataType = Field(default="double", description="Storage type of the field values.")
    op_type: OpType = Field(default="continuous", description="Operational type of the field.")
    values: tuple[str, ...] = Field(
        default=(),
        description="Ordered category labels; empty for continuous fields.",
    )

    @model_validator(mode="after")
    def _validate_values_for_op_type(self) -> DataField:
        """Validate that only categorical or ordinal fields declare category labels.

        Returns:
            DataField: The validated model instance.

        Raises:
            ValueError: If a continuous field declares values, or if the
                declared values contain duplicates.
        """
        if self.values and self.op_type == "continuous":
            raise ValueError(f"Continuous field '{self.name}' cannot declare category values")
        if len(set(self.values)) != len(self.values):
            raise ValueError(f"Field '{self.name}' declares duplicate category values")
        return self


# ---------------------------------------------------------------------------
# Public interface -- Catalog helpers
# ---------------------------------------------------------------------------


def field_names(data_fields: Sequence[DataField]) -> list[str]:
    """Return the names of a field catalog, in catalog order.

    Args:
        data_fields (Sequence[DataField]): The field catalog.

    Returns:
        list[str]: Field names, target first.
    """
    return [data_field.name for data_field in data_fields]


def input_names(data_fields: Sequence[DataField]) -> list[str]:
    """Return the names of the input fields of a catalog (everything but the target).

    Args:
        data_fields (Sequence[DataField]): The field catalog.

    Returns:
        list[str]: Input field names in catalog order.
    """
    return field_names(data_fields[1:])


def catalog_from_frame(
    df: pl.DataFrame,
    target: str,
    *,
    features: list[str] | None = None,
    mining_function: MiningFunction,
) -> list[DataField]:
    """Build a field catalog from the columns of a polars DataFrame.

    The target column comes first. For classification it is declared
    categorical with its sorted unique non-null labels as category values,
    which is the class order scikit-learn classifiers store in `classes_`.
    Feature columns follow in the requested order.

    Args:
        df (pl.DataFrame): Training data whose schema describes the fields.
        target (str): Name of the target column.
        features (list[str] | None): Feature column names. When `None`, all
            columns except `target` are used, in frame order.
        mining_function (MiningFunction): Whether the target is a class label
            or a continuous value.

    Returns:
        list[DataField]: The field catalog, target at position 0.

    Raises:
        ValueError: If the target or a feature column is missing from `df`.
        UnsupportedTaskKindError: If `mining_function` is not a supported kind.
    """
    if target not in df.columns:
        raise ValueError(f"Target column '{target}' not found in DataFrame.")
    feature_columns = features if features is not None else [col for col in df.columns if col != target]
    missing_columns = [col for col in feature_columns if col not in df.columns]
    if missing_columns:
        raise ValueError(f"Requested feature columns not found in DataFrame: {missing_columns}")

    target_series = df[target]
    if mining_function == "classification":
        labels = sorted(target_series.drop_nulls().unique().to_list())
        target_field = DataField(
            name=target,
            data_type=_data_type_of(target_series.dtype),
            op_type="categorical",
            values=tuple(str(label) for label in labels),
        )
    elif mining_function == "regression":
        target_field = DataField(name=target, data_type="double", op_type="continuous")
    else:
        raise UnsupportedTaskKindError(mining_function, context=f"target '{target}'")

    return [target_field, *(_feature_field(df[col]) for col in feature_columns)]


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------

_DTYPE_TO_DATA_TYPE: dict[type[pl.DataType] | pl.DataType, DataType] = {
    pl.Int8: "integer",
    pl.Int16: "integer",
    pl.Int32: "integer",
    pl.Int64: "integer",
    pl.UInt8: "integer",
    pl.UInt16: "integer",
    pl.UInt32: "integer",
    pl.UInt64: "integer",
    pl.Float32: "float",
    pl.Float64: "double",
    pl.Boolean: "boolean",
    pl.String: "string",
    pl.Categorical: "string",
}


def _data_type_of(dtype: pl.DataType) -> DataType:
    """Map a polars dtype to a document data type.

    Args:
        dtype (pl.DataType): The polars dtype of the column.

    Returns:
        DataType: The matching data type; `"string"` for enums and `"double"`
            for anything without a closer match.
    """
    result = _DTYPE_TO_DATA_TYPE.get(dtype)
    if result is not None:
        return result
    if isinstance(dtype, (pl.Enum, pl.Categorical)):
        return "string"
    return "double"


def _feature_field(series: pl.Series) -> DataField:
    """Describe one feature column as a continuous or categorical input field.

    Args:
        series (pl.Series): The feature column.

    Returns:
        DataField: A categorical field with sorted labels for string-like
            columns, otherwise a continuous field.
    """
    data_type = _data_type_of(series.dtype)
    if data_type == "string":
        labels = sorted(str(label) for label in series.drop_nulls().unique().to_list())
        return DataField(name=series.name, data_type="string", op_type="categorical", values=tuple(labels))
    return DataField(name=series.name, data_type=data_type, op_type="continuous")
