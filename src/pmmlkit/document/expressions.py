"""Arithmetic expression trees, shared functions and derived fields."""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from pmmlkit.fields import DataType, OpType
from pmmlkit.formatting import format_value

# ---------------------------------------------------------------------------
# Public models -- Expression nodes
# ---------------------------------------------------------------------------


class Constant(BaseModel):
    """A numeric literal.

    Examples:
        >>> str(Constant(value=1.0))
        '1'
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["constant"] = "constant"
    value: float

    def __str__(self) -> str:
        return format_value(self.value)

    def evaluate(
        self,
        bindings: Mapping[str, float],
        functions: Mapping[str, DefineFunction] | None = None,
    ) -> float:
        """Return the literal value.

        Args:
            bindings (Mapping[str, float]): Unused; present for a uniform interface.
            functions (Mapping[str, DefineFunction] | None): Unused.

        Returns:
            float: The constant.
        """
        return self.value


class FieldRef(BaseModel):
    """A reference to a field or function parameter by name.

    Examples:
        >>> FieldRef(field="x1").evaluate({"x1": 2.5})
        2.5
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["field_ref"] = "field_ref"
    field: str = Field(min_length=1)

    def __str__(self) -> str:
        return self.field

    def evaluate(
        self,
        bindings: Mapping[str, float],
        functions: Mapping[str, DefineFunction] | None = None,
    ) -> float:
        """Look up the bound value of the referenced field.

        Args:
            bindings (Mapping[str, float]): Field name to value.
            functions (Mapping[str, DefineFunction] | None): Unused.

        Returns:
            float: The bound value.

        Raises:
            KeyError: If the field is not bound.
        """
        return float(bindings[self.field])


class Apply(BaseModel):
    """Application of a built-in operator or a shared function to argument expressions.

    Built-in functions are `+`, `-`, `*`, `/`, `exp` and `sum`; their arity
    is checked on construction. Any other name refers to a `DefineFunction`
    resolved at evaluation time.

    Attributes:
        function (str): Operator or shared-function name.
        expressions (tuple[Expression, ...]): Argument expressions, in order.

    Examples:
        >>> apply = Apply(function="-", expressions=(FieldRef(field="x"), Constant(value=1.5)))
        >>> str(apply)
        '(x - 1.5)'
        >>> apply.evaluate({"x": 4.0})
        2.5
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["apply"] = "apply"
    function: str = Field(min_length=1)
    expressions: tuple[Constant | FieldRef | Apply, ...] = ()

    @model_validator(mode="after")
    def _validate_builtin_arity(self) -> Apply:
        """Validate the argument count of built-in functions.

        Returns:
            Apply: The validated model instance.

        Raises:
            ValueError: If a built-in function receives an unsupported number
                of arguments.
        """
        arity = _BUILTIN_ARITY.get(self.function)
        if arity is None:
            return self
        min_count, max_count = arity
        count = len(self.expressions)
        if count < min_count or (max_count is not None and count > max_count):
            raise ValueError(f"Function '{self.function}' does not accept {count} argument(s)")
        return self

    def __str__(self) -> str:
        arguments = [str(expression) for expression in self.expressions]
        if self.function in {"+", "*", "/"} or (self.function == "-" and len(arguments) == 2):
            return "(" + f" {self.function} ".join(arguments) + ")"
        return f"{self.function}({', '.join(arguments)})"

    def evaluate(
        self,
        bindings: Mapping[str, float],
        functions: Mapping[str, DefineFunction] | None = None,
    ) -> float:
        """Evaluate the application for the given field values.

        Args:
            bindings (Mapping[str, float]): Field name to value.
            functions (Mapping[str, DefineFunction] | None): Shared functions
                available by name.

        Returns:
            float: The result.

        Raises:
            KeyError: If a referenced field or shared function is unknown.
        """
        arguments = [expression.evaluate(bindings, functions) for expression in self.expressions]
        builtin = _BUILTINS.get(self.function)
        if builtin is not None:
            return builtin(arguments)
        if functions is None or self.function not in functions:
            raise KeyError(self.function)
        return functions[self.function].evaluate(*arguments, functions=functions)


# Any expression node. Pydantic selects the concrete model by its `kind`.
type Expression = Constant | FieldRef | Apply

# ---------------------------------------------------------------------------
# Public models -- Functions and derived fields
# ---------------------------------------------------------------------------


class ParameterField(BaseModel):
    """A formal parameter of a shared function."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    data_type: DataType = "double"
    op_type: OpType = "continuous"


class DefineFunction(BaseModel):
    """A named, reusable scalar formula.

    Attributes:
        name (str): Name the function is referenced by.
        op_type (OpType): Operational type of the result.
        data_type (DataType): Data type of the result.
        parameter_fields (tuple[ParameterField, ...]): Formal parameters, in
            call order.
        expression (Expression): Body; refers to parameters via `FieldRef`.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    op_type: OpType = "continuous"
    data_type: DataType = "double"
    parameter_fields: tuple[ParameterField, ...]
    expression: Constant | FieldRef | Apply

    def evaluate(self, *arguments: float, functions: Mapping[str, DefineFunction] | None = None) -> float:
        """Call the function with positional arguments.

        Args:
            *arguments (float): One value per parameter field.
            functions (Mapping[str, DefineFunction] | None): Shared functions
                the body may call.

        Returns:
            float: The function value.

        Raises:
            ValueError: If the argument count differs from the parameter count.
        """
        if len(arguments) != len(self.parameter_fields):
            raise ValueError(
                f"Function '{self.name}' expects {len(self.parameter_fields)} argument(s), got {len(arguments)}"
            )
        bindings = {
            parameter.name: argument for parameter, argument in zip(self.parameter_fields, arguments, strict=True)
        }
        return self.expression.evaluate(bindings, functions)


class DerivedField(BaseModel):
    """A named field computed from other fields by an expression."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    op_type: OpType = "continuous"
    data_type: DataType = "double"
    expression: Constant | FieldRef | Apply


# ---------------------------------------------------------------------------
# Private helpers -- Built-in function table
# ---------------------------------------------------------------------------


def _subtract(arguments: list[float]) -> float:
    if len(arguments) == 1:
        return -arguments[0]
    return arguments[0] - arguments[1]


_BUILTINS: dict[str, Callable[[list[float]], float]] = {
    "+": math.fsum,
    "-": _subtract,
    "*": math.prod,
    "/": lambda arguments: arguments[0] / arguments[1],
    "exp": lambda arguments: math.exp(arguments[0]),
    "sum": math.fsum,
}

# (minimum, maximum) argument count; `None` means unbounded.
_BUILTIN_ARITY: dict[str, tuple[int, int | None]] = {
    "+": (1, None),
    "-": (1, 2),
    "*": (1, None),
    "/": (2, 2),
    "exp": (1, 1),
    "sum": (1, None),
}

Apply.model_rebuild()
DefineFunction.model_rebuild()
DerivedField.model_rebuild()
