"""Transfer functions and the shared-function catalog of a document.

Two sigmoid-style response transforms are provided, each of one parameter
`value`:

- `logit(value) = 1 / (1 + exp(-1 * value))`
- `adaboost(value) = 1 / (1 + exp(-2 * value))`

Each definition is built once and shared; regressions refer to them by name,
and a document declares each of them once in its `FunctionCatalog`.
"""

from __future__ import annotations

import functools
from collections.abc import Iterator
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Final

from loguru import logger

from pmmlkit.document.expressions import Apply, Constant, DefineFunction, FieldRef, ParameterField

LOGIT_FUNCTION: Final[str] = "logit"
ADABOOST_FUNCTION: Final[str] = "adaboost"
PARAMETER_NAME: Final[str] = "value"

_LOGIT_MULTIPLIER: Final[float] = -1.0
_ADABOOST_MULTIPLIER: Final[float] = -2.0


@functools.cache
def encode_logit_function() -> DefineFunction:
    """Return the shared `logit` transfer function.

    Returns:
        DefineFunction: `1 / (1 + exp(-1 * value))`.

    Examples:
        >>> encode_logit_function().evaluate(0.0)
        0.5
    """
    return _encode_loss_function(LOGIT_FUNCTION, _LOGIT_MULTIPLIER)


@functools.cache
def encode_adaboost_function() -> DefineFunction:
    """Return the shared `adaboost` transfer function.

    Returns:
        DefineFunction: `1 / (1 + exp(-2 * value))`.

    Examples:
        >>> encode_adaboost_function().evaluate(0.0)
        0.5
    """
    return _encode_loss_function(ADABOOST_FUNCTION, _ADABOOST_MULTIPLIER)


def standard_functions() -> list[DefineFunction]:
    """Return every built-in transfer function, in declaration order."""
    return [encode_logit_function(), encode_adaboost_function()]


def _encode_loss_function(name: str, multiplier: float) -> DefineFunction:
    # 1 / (1 + exp(multiplier * value))
    expression = Apply(
        function="/",
        expressions=(
            Constant(value=1.0),
            Apply(
                function="+",
                expressions=(
                    Constant(value=1.0),
                    Apply(
                        function="exp",
                        expressions=(
                            Apply(
                                function="*",
                                expressions=(Constant(value=multiplier), FieldRef(field=PARAMETER_NAME)),
                            ),
                        ),
                    ),
                ),
            ),
        ),
    )
    return DefineFunction(
        name=name,
        op_type="continuous",
        data_type="double",
        parameter_fields=(ParameterField(name=PARAMETER_NAME, data_type="double", op_type="continuous"),),
        expression=expression,
    )


@dataclass
class FunctionCatalog:
    """Shared-function catalog of one output document.

    Functions are registered once by name. Registering an identical
    definition again is a no-op; a different definition under a taken name
    is rejected.

    Examples:
        >>> catalog = FunctionCatalog()
        >>> _ = catalog.register(encode_logit_function())
        >>> _ = catalog.register(encode_logit_function())
        >>> list(catalog.functions)
        ['logit']
    """

    _functions: dict[str, DefineFunction] = field(default_factory=dict)

    @property
    def functions(self) -> MappingProxyType[str, DefineFunction]:
        """Read-only view of registered functions, in registration order."""
        return MappingProxyType(self._functions)

    def register(self, function: DefineFunction) -> DefineFunction:
        """Declare a function in the catalog.

        Args:
            function (DefineFunction): The definition to declare.

        Returns:
            DefineFunction: The catalog's definition under that name.

        Raises:
            ValueError: If a different definition is already registered under
                the same name.
        """
        existing = self._functions.get(function.name)
        if existing is not None:
            if existing != function:
                raise ValueError(f"Function '{function.name}' is already defined differently")
            return existing
        self._functions[function.name] = function
        logger.debug("Function registered", function=function.name, count=len(self._functions))
        return function

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def __iter__(self) -> Iterator[DefineFunction]:
        return iter(self._functions.values())

    def __len__(self) -> int:
        return len(self._functions)
