"""Custom exceptions for the model encoders.

Every encoder fails fast with one of the exceptions below when its inputs
violate the parameter or field contract. All of them subclass
`EncodingError`, which itself subclasses `ValueError`:

- EncodingError: Base class for all encoding failures. Catch this to handle
  any rejected sub-model.
- ShapeMismatchError: Raised when array or matrix dimensions disagree with the
  field catalog or with each other.
- LengthMismatchError: Raised when two paired lists (categories and
  probability fields, models and weights) differ in length.
- UnsupportedConfigurationError: Raised when a requested option has no valid
  encoding, e.g. PCA whitening.
- UnsupportedTaskKindError: Raised when a task kind other than classification
  or regression is requested.
"""

from __future__ import annotations


class EncodingError(ValueError):
    """Base exception for all encoding errors.

    Attributes:
        context (str | None): Identifies the sub-model, node or field that
            triggered the error, e.g. `"tree node 7"` or `"pca"`.
    """

    context: str | None

    def __init__(self, message: str, *, context: str | None = None) -> None:
        """Initialize EncodingError.

        Args:
            message (str): Description of the encoding error.
            context (str | None): The sub-model, node or field that triggered the error.
        """
        if context is not None:
            message = f"{message} [{context}]"
        super().__init__(message)
        self.context = context

    def __repr__(self) -> str:
        """Return detailed representation for debugging.

        Returns:
            str: Detailed string representation including message and context.
        """
        return f"{self.__class__.__name__}(message={str(self)!r}, context={self.context!r})"


class ShapeMismatchError(EncodingError):
    """Raised when array dimensions disagree with the field catalog or with each other.

    Attributes:
        expected (object): The expected shape, length or index bound.
        actual (object): The shape, length or index actually found.

    Examples:
        >>> err = ShapeMismatchError(
        ...     "Component matrix has 3 columns but 2 input fields were supplied",
        ...     expected=3,
        ...     actual=2,
        ...     context="pca",
        ... )
        >>> err.expected, err.actual
        (3, 2)
    """

    expected: object
    actual: object

    def __init__(
        self,
        message: str,
        *,
        expected: object = None,
        actual: object = None,
        context: str | None = None,
    ) -> None:
        """Initialize ShapeMismatchError.

        Args:
            message (str): Description of the shape mismatch.
            expected (object): The expected shape, length or index bound.
            actual (object): The shape, length or index actually found.
            context (str | None): The sub-model, node or field that triggered the error.
        """
        super().__init__(message, context=context)
        self.expected = expected
        self.actual = actual

    def __repr__(self) -> str:
        """Return detailed representation for debugging.

        Returns:
            str: Detailed string representation including expected and actual shapes.
        """
        return (
            f"{self.__class__.__name__}("
            f"message={str(self)!r}, context={self.context!r}, "
            f"expected={self.expected!r}, actual={self.actual!r})"
        )


class LengthMismatchError(EncodingError):
    """Raised when two paired lists differ in length.

    Attributes:
        left_name (str): Name of the first list, e.g. `"target_categories"`.
        left_length (int): Length of the first list.
        right_name (str): Name of the second list, e.g. `"probability_fields"`.
        right_length (int): Length of the second list.

    Examples:
        >>> err = LengthMismatchError(
        ...     left_name="target_categories",
        ...     left_length=3,
        ...     right_name="probability_fields",
        ...     right_length=2,
        ... )
        >>> str(err)
        'target_categories (3) and probability_fields (2) must have the same length'
    """

    left_name: str
    left_length: int
    right_name: str
    right_length: int

    def __init__(
        self,
        *,
        left_name: str,
        left_length: int,
        right_name: str,
        right_length: int,
        context: str | None = None,
    ) -> None:
        """Initialize LengthMismatchError.

        Args:
            left_name (str): Name of the first list.
            left_length (int): Length of the first list.
            right_name (str): Name of the second list.
            right_length (int): Length of the second list.
            context (str | None): The sub-model that triggered the error.
        """
        super().__init__(
            f"{left_name} ({left_length}) and {right_name} ({right_length}) must have the same length",
            context=context,
        )
        self.left_name = left_name
        self.left_length = left_length
        self.right_name = right_name
        self.right_length = right_length

    def __repr__(self) -> str:
        """Return detailed representation for debugging.

        Returns:
            str: Detailed string representation including both list names and lengths.
        """
        return (
            f"{self.__class__.__name__}("
            f"message={str(self)!r}, context={self.context!r}, "
            f"left_name={self.left_name!r}, left_length={self.left_length!r}, "
            f"right_name={self.right_name!r}, right_length={self.right_length!r})"
        )


class UnsupportedConfigurationError(EncodingError):
    """Raised when a requested option has no valid encoding.

    Attributes:
        option (str): Name of the unsupported option, e.g. `"whiten"`.
    """

    option: str

    def __init__(self, message: str, *, option: str, context: str | None = None) -> None:
        """Initialize UnsupportedConfigurationError.

        Args:
            message (str): Description of the unsupported configuration.
            option (str): Name of the unsupported option.
            context (str | None): The sub-model that triggered the error.
        """
        super().__init__(message, context=context)
        self.option = option

    def __repr__(self) -> str:
        """Return detailed representation for debugging.

        Returns:
            str: Detailed string representation including the option name.
        """
        return f"{self.__class__.__name__}(message={str(self)!r}, context={self.context!r}, option={self.option!r})"


class UnsupportedTaskKindError(EncodingError):
    """Raised when a task kind other than classification or regression is requested.

    Attributes:
        task_kind (str): The rejected task kind.
    """

    task_kind: str

    def __init__(self, task_kind: str, *, context: str | None = None) -> None:
        """Initialize UnsupportedTaskKindError.

        Args:
            task_kind (str): The rejected task kind.
            context (str | None): The sub-model that triggered the error.
        """
        super().__init__(
            f"Unsupported task kind {task_kind!r}; expected 'classification' or 'regression'",
            context=context,
        )
        self.task_kind = task_kind

    def __repr__(self) -> str:
        """Return detailed representation for debugging.

        Returns:
            str: Detailed string representation including the task kind.
        """
        return (
            f"{self.__class__.__name__}(message={str(self)!r}, context={self.context!r}, task_kind={self.task_kind!r})"
        )
