"""Read-only store of a fitted model's named arrays and scalars."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import Any

import numpy as np

from pmmlkit.exceptions import ShapeMismatchError


class ParameterStore(Mapping[str, np.ndarray]):
    """Immutable key to array map with shape metadata.

    Every value is held as a read-only numpy array, so scalars are 0-d arrays
    and matrices keep their original shape. `get_array` returns the values
    flattened in row-major order, `get_shape` the original dimensions.

    Attributes:
        name (str): Name of the fitted model the parameters belong to; used to
            identify the sub-model in error messages and logs.

    Examples:
        >>> params = ParameterStore(
        ...     {"components_": [[0.6, 0.8], [-0.8, 0.6]], "mean_": [1.0, 2.0], "whiten": False},
        ...     name="pca",
        ... )
        >>> params.get_shape("components_")
        (2, 2)
        >>> params.get_flag("whiten")
        False
    """

    def __init__(self, values: Mapping[str, Any], *, name: str = "model") -> None:
        """Snapshot `values` into read-only arrays.

        Args:
            values (Mapping[str, Any]): Parameter name to array-like or scalar.
            name (str): Name of the fitted model the parameters belong to.
        """
        arrays: dict[str, np.ndarray] = {}
        for key, value in values.items():
            array = np.array(value)
            array.setflags(write=False)
            arrays[key] = array
        self._arrays = MappingProxyType(arrays)
        self.name = name

    @classmethod
    def from_object(cls, obj: object, keys: Iterable[str], *, name: str | None = None) -> ParameterStore:
        """Snapshot named attributes of an object, e.g. a fitted estimator or its `tree_`.

        Args:
            obj (object): The object holding the fitted parameters.
            keys (Iterable[str]): Attribute names to copy.
            name (str | None): Store name; defaults to the object's class name.

        Returns:
            ParameterStore: A store holding one entry per key.

        Raises:
            KeyError: If `obj` has no attribute for one of the keys.
        """
        values: dict[str, Any] = {}
        for key in keys:
            if not hasattr(obj, key):
                raise KeyError(key)
            values[key] = getattr(obj, key)
        return cls(values, name=name if name is not None else type(obj).__name__)

    def __getitem__(self, key: str) -> np.ndarray:
        return self._arrays[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._arrays)

    def __len__(self) -> int:
        return len(self._arrays)

    def __repr__(self) -> str:
        shapes = {key: array.shape for key, array in self._arrays.items()}
        return f"{self.__class__.__name__}(name={self.name!r}, shapes={shapes!r})"

    def get_shape(self, key: str) -> tuple[int, ...]:
        """Return the shape of a parameter.

        Args:
            key (str): Parameter name.

        Returns:
            tuple[int, ...]: The parameter's dimensions; `()` for scalars.
        """
        return self[key].shape

    def get_array(self, key: str) -> np.ndarray:
        """Return a parameter flattened in row-major order.

        Args:
            key (str): Parameter name.

        Returns:
            np.ndarray: 1-D read-only view of the values.
        """
        return self[key].reshape(-1)

    def get_scalar(self, key: str) -> float:
        """Return a single-valued parameter as a float.

        Args:
            key (str): Parameter name.

        Returns:
            float: The value.

        Raises:
            ShapeMismatchError: If the parameter holds more than one value.
        """
        array = self[key]
        if array.size != 1:
            raise ShapeMismatchError(
                f"Parameter '{key}' is not a scalar",
                expected=(),
                actual=array.shape,
                context=self.name,
            )
        return float(array.reshape(-1)[0])

    def get_flag(self, key: str, default: bool = False) -> bool:
        """Return a boolean parameter, or `default` when the key is absent or null.

        Args:
            key (str): Parameter name.
            default (bool): Value to use when the parameter is missing.

        Returns:
            bool: The flag value.
        """
        if key not in self._arrays:
            return default
        value = self._arrays[key].item() if self._arrays[key].size == 1 else None
        return default if value is None else bool(value)
