"""Canonical decimal formatting for numeric values written into a document."""

from __future__ import annotations

import numbers


def format_value(value: float | numbers.Real) -> str:
    """Format a number as the shortest decimal string that round-trips as a double.

    Integral values drop their trailing `".0"` so that thresholds and scores
    read as `"3"` rather than `"3.0"`. numpy scalars are converted to a
    Python float first, so `np.float32(0.5)` and `0.5` format identically.

    Args:
        value (float | numbers.Real): The number to format.

    Returns:
        str: The canonical decimal string. `float(format_value(x)) == float(x)`
            holds for every finite `x`.

    Examples:
        >>> format_value(2.5)
        '2.5'
        >>> format_value(3.0)
        '3'
        >>> format_value(-0.1)
        '-0.1'
        >>> format_value(1e-07)
        '1e-07'
    """
    text = repr(float(value))
    if text.endswith(".0"):
        text = text[:-2]
    return text
