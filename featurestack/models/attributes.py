"""Tabular attribute store.

An AttributeTable holds columns of scalar values (``str``, ``int``,
``float``, ``bool`` or ``None``), all of equal length. Rows may carry
out-of-band identifiers (like data-frame row names) which the join
engine matches against geometry unit identifiers.

Tables are immutable: ``take``, ``sort_by`` and ``with_column`` return
new tables. Once a table is paired with geometries, the pairing is
positional; see ``AttributedFeatureCollection`` for what that implies
for reordered tables.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import TYPE_CHECKING

from featurestack.core.exceptions import (
    AttributeTableError,
    DuplicateIdentifierError,
    InvalidSelectionError,
)

if TYPE_CHECKING:
    import pandas as pd

Scalar = str | int | float | bool | None
Row = dict[str, Scalar]

_SCALAR_TYPES = (str, int, float, bool)


class AttributeTable:
    """Column-oriented table of scalar attributes.

    Args:
        columns: Mapping of column name to values. Column order is kept.
        row_ids: Optional row identifiers, one per row.

    Raises:
        AttributeTableError: If columns differ in length or hold non-scalars.
        DuplicateIdentifierError: If ``row_ids`` repeats an identifier.
    """

    __slots__ = ("_columns", "_n_rows", "_row_ids")

    def __init__(
        self,
        columns: Mapping[str, Sequence[Scalar]],
        row_ids: Sequence[str] | None = None,
        *,
        n_rows: int | None = None,
    ) -> None:
        cols: dict[str, tuple[Scalar, ...]] = {}
        expected = n_rows
        n_rows = None
        for name, values in columns.items():
            if not isinstance(name, str) or not name:
                msg = f"Column names must be non-empty strings, got {name!r}"
                raise AttributeTableError(msg)
            values = tuple(values)
            if n_rows is None:
                n_rows = len(values)
            elif len(values) != n_rows:
                msg = f"Column '{name}' has {len(values)} value(s), expected {n_rows}"
                raise AttributeTableError(msg)
            for idx, v in enumerate(values):
                if v is not None and not isinstance(v, _SCALAR_TYPES):
                    msg = (
                        f"Column '{name}' row {idx} holds {type(v).__name__}; "
                        "only str, int, float, bool and None are allowed"
                    )
                    raise AttributeTableError(msg)
            cols[name] = values

        if row_ids is not None:
            row_ids = tuple(str(r) for r in row_ids)
            if n_rows is None:
                n_rows = len(row_ids)
            elif len(row_ids) != n_rows:
                msg = f"Got {len(row_ids)} row identifier(s) for {n_rows} row(s)"
                raise AttributeTableError(msg)
            counts = Counter(row_ids)
            duplicates = [rid for rid, n in counts.items() if n > 1]
            if duplicates:
                raise DuplicateIdentifierError(
                    duplicates, where="attribute table", operation="attribute_table"
                )

        self._columns = cols
        self._row_ids: tuple[str, ...] | None = row_ids
        if n_rows is None:
            n_rows = expected or 0
        elif expected is not None and expected != n_rows:
            msg = f"Table has {n_rows} row(s), expected {expected}"
            raise AttributeTableError(msg)
        self._n_rows = n_rows

    # ------------------------------------------------------------------
    # Alternative constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_rows(
        cls,
        rows: Iterable[Mapping[str, Scalar]],
        row_ids: Sequence[str] | None = None,
    ) -> AttributeTable:
        """Build a table from row mappings.

        Columns are the union of row keys in first-seen order; missing
        values become ``None``.
        """
        rows = list(rows)
        names: dict[str, None] = {}
        for row in rows:
            for key in row:
                names.setdefault(key, None)
        columns = {name: [row.get(name) for row in rows] for name in names}
        if not columns and row_ids is None and rows:
            msg = "Rows have no columns and no row identifiers were given"
            raise AttributeTableError(msg)
        return cls(columns, row_ids)

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, *, use_index: bool = True) -> AttributeTable:
        """Build a table from a pandas DataFrame.

        With ``use_index`` the DataFrame index becomes the row identifiers.
        """
        columns = {str(name): df[name].tolist() for name in df.columns}
        row_ids = [str(i) for i in df.index] if use_index else None
        return cls(columns, row_ids)

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to a pandas DataFrame indexed by row identifiers (if any)."""
        import pandas as pd

        index = list(self._row_ids) if self._row_ids is not None else None
        return pd.DataFrame({k: list(v) for k, v in self._columns.items()}, index=index)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return self._n_rows

    def __iter__(self) -> Iterator[Row]:
        return iter(self.rows())

    def __repr__(self) -> str:
        return f"AttributeTable({self._n_rows} row(s), columns={self.column_names})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AttributeTable):
            return NotImplemented
        return (
            self._n_rows == other._n_rows
            and self._columns == other._columns
            and self._row_ids == other._row_ids
        )

    __hash__ = None  # type: ignore[assignment]

    @property
    def row_ids(self) -> tuple[str, ...] | None:
        return self._row_ids

    @property
    def column_names(self) -> list[str]:
        return list(self._columns)

    def column(self, name: str) -> tuple[Scalar, ...]:
        """Values of column ``name``.

        Raises:
            KeyError: If there is no such column.
        """
        try:
            return self._columns[name]
        except KeyError:
            msg = f"No column {name!r}; available: {self.column_names}"
            raise KeyError(msg) from None

    def row(self, index: int) -> Row:
        if not -self._n_rows <= index < self._n_rows:
            msg = f"Row {index} out of range for table of {self._n_rows} row(s)"
            raise IndexError(msg)
        return {name: values[index] for name, values in self._columns.items()}

    def rows(self) -> list[Row]:
        return [self.row(i) for i in range(self._n_rows)]

    # ------------------------------------------------------------------
    # Derived tables
    # ------------------------------------------------------------------

    def take(self, indices: Iterable[int]) -> AttributeTable:
        """Return a new table of the rows at ``indices``, in that order.

        Raises:
            InvalidSelectionError: If an index is out of range.
        """
        picked = list(indices)
        for i in picked:
            if not -self._n_rows <= i < self._n_rows:
                msg = f"Index {i} out of range for table of {self._n_rows} row(s)"
                raise InvalidSelectionError(msg)
        columns = {name: [values[i] for i in picked] for name, values in self._columns.items()}
        row_ids = [self._row_ids[i] for i in picked] if self._row_ids is not None else None
        return AttributeTable(columns, row_ids, n_rows=len(picked))

    def sort_by(self, name: str, *, descending: bool = False) -> AttributeTable:
        """Return a copy sorted by column ``name`` (``None`` values last)."""
        values = self.column(name)
        present = [i for i, v in enumerate(values) if v is not None]
        missing = [i for i, v in enumerate(values) if v is None]
        present.sort(key=lambda i: values[i], reverse=descending)  # type: ignore[arg-type, return-value]
        return self.take(present + missing)

    def with_column(self, name: str, values: Sequence[Scalar]) -> AttributeTable:
        """Return a copy with column ``name`` added or replaced."""
        columns: dict[str, Sequence[Scalar]] = dict(self._columns)
        columns[name] = values
        return AttributeTable(columns, self._row_ids, n_rows=self._n_rows)

    def with_row_ids(self, row_ids: Sequence[str] | None) -> AttributeTable:
        return AttributeTable(self._columns, row_ids, n_rows=self._n_rows)
