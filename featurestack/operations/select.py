"""Subsetter.

Selects pairs from an AttributedFeatureCollection by row predicate,
boolean mask, or index set. Survivors keep their original relative
order and their positional pairing, and the result shares the source
collection's (immutable) CRS descriptor.
"""

from __future__ import annotations

import numbers
import operator
from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

import numpy as np

from featurestack.core.exceptions import InvalidSelectionError
from featurestack.models.attributed import AttributedFeatureCollection

if TYPE_CHECKING:
    from featurestack.models.attributes import Scalar

    Predicate = Callable[[Mapping[str, Scalar]], bool]

_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "in": lambda value, options: value in options,
}


def select(
    attributed: AttributedFeatureCollection,
    selector: Predicate | Iterable[int] | Iterable[bool],
) -> AttributedFeatureCollection:
    """Return the pairs of ``attributed`` chosen by ``selector``.

    Args:
        attributed: Source collection (left unchanged).
        selector: One of
            - a callable taking a row mapping and returning a truthy value;
            - a boolean mask with one entry per row;
            - an iterable of integer positions (negative allowed,
              duplicates collapsed, order ignored).

    Returns:
        A new AttributedFeatureCollection, ``len <= len(attributed)``.

    Raises:
        InvalidSelectionError: If an index is out of range or a mask has
            the wrong length.
    """
    n = len(attributed)

    if callable(selector):
        keep = [i for i, row in enumerate(attributed.table.rows()) if selector(row)]
        return attributed.take(keep)

    items = list(selector)
    if items and all(isinstance(x, bool | np.bool_) for x in items):
        if len(items) != n:
            msg = f"Boolean mask has {len(items)} entries for {n} row(s)"
            raise InvalidSelectionError(msg)
        return attributed.take(i for i, flag in enumerate(items) if flag)

    positions: set[int] = set()
    for idx in items:
        if isinstance(idx, bool | np.bool_) or not isinstance(idx, numbers.Integral):
            msg = f"Selection index {idx!r} is not an integer"
            raise InvalidSelectionError(msg)
        if not -n <= idx < n:
            msg = f"Selection index {idx} out of range for {n} row(s)"
            raise InvalidSelectionError(msg)
        positions.add(int(idx) % n)
    return attributed.take(sorted(positions))


def where(column: str, op: str, value: object) -> Predicate:
    """Build a row predicate comparing ``column`` against ``value``.

    Rows whose value is ``None`` never match, except for ``==``/``!=``
    comparisons against ``None`` itself.

    Raises:
        InvalidSelectionError: If ``op`` is not a supported operator, or
            (when applied) if a row has no ``column``.
    """
    try:
        compare = _OPERATORS[op]
    except KeyError:
        msg = f"Unsupported operator {op!r}; expected one of {sorted(_OPERATORS)}"
        raise InvalidSelectionError(msg) from None

    def predicate(row: Mapping[str, Scalar]) -> bool:
        if column not in row:
            msg = f"Unknown column {column!r}; available columns: {sorted(row)}"
            raise InvalidSelectionError(msg)
        actual = row[column]
        if actual is None and op not in ("==", "!="):
            return False
        return bool(compare(actual, value))

    return predicate
