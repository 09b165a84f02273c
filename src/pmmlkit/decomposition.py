"""Linear projection transforms (PCA) as per-component sum expressions.

A fitted PCA exposes a component matrix of shape `(n_components, n_features)`
and a mean vector of length `n_features`. Component `i` of an input row `x`
is `sum_j (x_j - mean_j) * components[i][j]`, which this module writes out as
one `sum` expression per component.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Final

from loguru import logger

from pmmlkit.document.expressions import Apply, Constant, DerivedField, FieldRef
from pmmlkit.exceptions import ShapeMismatchError, UnsupportedConfigurationError
from pmmlkit.fields import DataField, input_names
from pmmlkit.logging import ENCODE_ERROR_MSG, ENCODE_LEVEL, ENCODE_MSG, ENCODE_RESULT_MSG
from pmmlkit.params import ParameterStore

# ---------------------------------------------------------------------------
# Module-level constants
# ---------------------------------------------------------------------------

COMPONENTS_KEY: Final[str] = "components_"
MEAN_KEY: Final[str] = "mean_"
WHITEN_KEY: Final[str] = "whiten"
DEFAULT_NAME_PREFIX: Final[str] = "pca"

# ---------------------------------------------------------------------------
# Public interface -- Shape
# ---------------------------------------------------------------------------


def get_number_of_inputs(params: ParameterStore) -> int:
    """Return the number of input features the transform consumes.

    Args:
        params (ParameterStore): Fitted PCA parameters.

    Returns:
        int: Column count of the component matrix.

    Raises:
        ShapeMismatchError: If the component matrix is not 2-D.
    """
    return _components_shape(params)[1]


def get_number_of_outputs(params: ParameterStore) -> int:
    """Return the number of components the transform produces.

    Args:
        params (ParameterStore): Fitted PCA parameters.

    Returns:
        int: Row count of the component matrix.

    Raises:
        ShapeMismatchError: If the component matrix is not 2-D.
    """
    return _components_shape(params)[0]


# ---------------------------------------------------------------------------
# Public interface -- Encoding
# ---------------------------------------------------------------------------


def encode_component(params: ParameterStore, index: int, names: Sequence[str]) -> Apply:
    """Encode one principal component as a sum expression over the input fields.

    The summands follow the order of `names`: summand `j` is
    `(names[j] - mean[j]) * components[index][j]`.

    Args:
        params (ParameterStore): Fitted PCA parameters (`components_`,
            `mean_` and optionally `whiten`).
        index (int): Zero-based component (row) index.
        names (Sequence[str]): Input field names, one per matrix column.

    Returns:
        Apply: A `sum` application with one summand per input field.

    Raises:
        ShapeMismatchError: If the number of names or the mean vector length
            differs from the column count, or `index` is out of range.
        UnsupportedConfigurationError: If whitening is enabled.
    """
    n_components, n_features = _components_shape(params)
    _validate_inputs(params, names, n_features)
    if not 0 <= index < n_components:
        raise ShapeMismatchError(
            f"Component index {index} is out of range for {n_components} component(s)",
            expected=n_components,
            actual=index,
            context=params.name,
        )

    components = params.get_array(COMPONENTS_KEY)
    mean = params.get_array(MEAN_KEY)
    row = components[index * n_features : (index + 1) * n_features]

    summands = tuple(
        Apply(
            function="*",
            expressions=(
                Apply(function="-", expressions=(FieldRef(field=name), Constant(value=float(mean[j])))),
                Constant(value=float(row[j])),
            ),
        )
        for j, name in enumerate(names)
    )
    return Apply(function="sum", expressions=summands)


def encode_components(params: ParameterStore, names: Sequence[str]) -> list[Apply]:
    """Encode every principal component, in component order.

    Args:
        params (ParameterStore): Fitted PCA parameters.
        names (Sequence[str]): Input field names, one per matrix column.

    Returns:
        list[Apply]: One sum expression per component row.

    Raises:
        ShapeMismatchError: If the inputs disagree with the component matrix.
        UnsupportedConfigurationError: If whitening is enabled.
    """
    operation = "encode_components"
    logger.log(ENCODE_LEVEL, ENCODE_MSG.format(operation=operation), model=params.name, inputs=len(names))
    n_components, n_features = _components_shape(params)
    _validate_inputs(params, names, n_features)
    expressions = [encode_component(params, index, names) for index in range(n_components)]
    logger.debug(ENCODE_RESULT_MSG.format(operation=operation), model=params.name, outputs=len(expressions))
    return expressions


def encode_derived_fields(
    params: ParameterStore,
    data_fields: Sequence[DataField],
    *,
    name_prefix: str = DEFAULT_NAME_PREFIX,
) -> list[DerivedField]:
    """Encode every component as a derived field over the catalog inputs.

    The catalog inputs (everything but the target) must match the component
    matrix columns one to one. Component `i` is published as
    `"{name_prefix}_{i + 1}"`.

    Args:
        params (ParameterStore): Fitted PCA parameters.
        data_fields (Sequence[DataField]): The field catalog, target first.
        name_prefix (str): Prefix of the derived field names.

    Returns:
        list[DerivedField]: One continuous double field per component.

    Raises:
        ShapeMismatchError: If the catalog inputs disagree with the component matrix.
        UnsupportedConfigurationError: If whitening is enabled.
    """
    expressions = encode_components(params, input_names(data_fields))
    return [
        DerivedField(name=f"{name_prefix}_{index + 1}", expression=expression)
        for index, expression in enumerate(expressions)
    ]


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _components_shape(params: ParameterStore) -> tuple[int, int]:
    """Return `(n_components, n_features)` of the component matrix.

    Args:
        params (ParameterStore): Fitted PCA parameters.

    Returns:
        tuple[int, int]: The matrix shape.

    Raises:
        ShapeMismatchError: If the component matrix is not 2-D.
    """
    shape = params.get_shape(COMPONENTS_KEY)
    if len(shape) != 2:
        raise ShapeMismatchError(
            f"Parameter '{COMPONENTS_KEY}' must be a 2-D matrix",
            expected="(n_components, n_features)",
            actual=shape,
            context=params.name,
        )
    return shape[0], shape[1]


def _validate_inputs(params: ParameterStore, names: Sequence[str], n_features: int) -> None:
    """Check the input names, the mean vector and the whitening flag against the matrix.

    Args:
        params (ParameterStore): Fitted PCA parameters.
        names (Sequence[str]): Input field names supplied by the caller.
        n_features (int): Column count of the component matrix.

    Raises:
        ShapeMismatchError: If the name count or mean length differs from `n_features`.
        UnsupportedConfigurationError: If whitening is enabled.
    """
    if len(names) != n_features:
        logger.warning(ENCODE_ERROR_MSG.format(operation="encode_component"), model=params.name, reason="inputs")
        raise ShapeMismatchError(
            f"Component matrix has {n_features} column(s) but {len(names)} input field(s) were supplied",
            expected=n_features,
            actual=len(names),
            context=params.name,
        )
    mean_length = params.get_array(MEAN_KEY).size
    if mean_length != n_features:
        raise ShapeMismatchError(
            f"Parameter '{MEAN_KEY}' has {mean_length} value(s), expected {n_features}",
            expected=n_features,
            actual=mean_length,
            context=params.name,
        )
    if params.get_flag(WHITEN_KEY):
        logger.warning(ENCODE_ERROR_MSG.format(operation="encode_component"), model=params.name, reason="whiten")
        raise UnsupportedConfigurationError(
            "Whitened PCA transforms cannot be encoded",
            option=WHITEN_KEY,
            context=params.name,
        )
