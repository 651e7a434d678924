"""Data model for an attributed feature collection.

An AttributedFeatureCollection pairs the i-th geometry unit of a
FeatureCollection with the i-th row of an AttributeTable.

Identifiers are only consulted once, when ``operations.join.attach``
builds the pairing. From then on the pairing is **positional**. Swapping
in a reordered table through the ``table`` setter keeps every geometry
where it was and silently moves the attributes, so geometries and rows
drift apart. The setter only checks that the row count still matches;
treat it as an escape hatch and prefer building a new collection with
``attach``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import TYPE_CHECKING, overload

from featurestack.core.exceptions import UnmatchedIdentifierError
from featurestack.models.attributes import AttributeTable, Row, Scalar
from featurestack.models.collection import FeatureCollection

if TYPE_CHECKING:
    from featurestack.models.collection import CRSLike
    from featurestack.models.crs import CRSDescriptor
    from featurestack.models.geometry import GeometryUnit

    Selector = Callable[[Mapping[str, Scalar]], bool] | Iterable[int] | Iterable[bool]


class AttributedFeatureCollection:
    """A FeatureCollection paired row-for-row with an AttributeTable.

    Args:
        collection: Geometry units in pairing order.
        table: Attribute rows in the same order.

    Raises:
        UnmatchedIdentifierError: If the row count differs from the unit count.
    """

    __slots__ = ("_collection", "_table")

    def __init__(self, collection: FeatureCollection, table: AttributeTable) -> None:
        _check_lengths(collection, table)
        self._collection = collection
        self._table = table

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    @property
    def collection(self) -> FeatureCollection:
        return self._collection

    @property
    def table(self) -> AttributeTable:
        return self._table

    @table.setter
    def table(self, value: AttributeTable) -> None:
        # Positional replacement: row i is now attached to unit i,
        # whatever order ``value`` is in.
        _check_lengths(self._collection, value)
        self._table = value

    @property
    def crs(self) -> CRSDescriptor | None:
        return self._collection.crs

    @crs.setter
    def crs(self, value: CRSLike) -> None:
        self._collection.set_crs(value)

    def set_crs(self, value: CRSLike, *, strict: bool | None = None) -> None:
        self._collection.set_crs(value, strict=strict)

    # ------------------------------------------------------------------
    # Sequence protocol
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._collection)

    def __iter__(self) -> Iterator[tuple[GeometryUnit, Row]]:
        return iter(zip(self._collection, self._table.rows(), strict=True))

    @overload
    def __getitem__(self, key: int) -> tuple[GeometryUnit, Row]: ...

    @overload
    def __getitem__(self, key: slice) -> AttributedFeatureCollection: ...

    def __getitem__(
        self, key: int | slice
    ) -> tuple[GeometryUnit, Row] | AttributedFeatureCollection:
        if isinstance(key, slice):
            indices = range(len(self))[key]
            return AttributedFeatureCollection(
                self._collection.take(indices), self._table.take(indices)
            )
        return self._collection[key], self._table.row(key)

    def __repr__(self) -> str:
        return (
            f"AttributedFeatureCollection({len(self)} unit(s), "
            f"columns={self._table.column_names}, crs={self.crs!s})"
        )

    @property
    def ids(self) -> list[str]:
        return self._collection.ids

    @property
    def geometries(self) -> tuple[GeometryUnit, ...]:
        return self._collection.units

    def column(self, name: str) -> tuple[Scalar, ...]:
        return self._table.column(name)

    def row(self, index: int) -> Row:
        return self._table.row(index)

    def take(self, indices: Iterable[int]) -> AttributedFeatureCollection:
        """Return the pairs at ``indices`` (in that order) as a new collection."""
        picked = list(indices)
        return AttributedFeatureCollection(
            self._collection.take(picked), self._table.take(picked)
        )

    def select(self, selector: Selector) -> AttributedFeatureCollection:
        """Shorthand for ``operations.select.select(self, selector)``."""
        from featurestack.operations.select import select

        return select(self, selector)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def to_geojson(self) -> dict[str, object]:
        """GeoJSON ``FeatureCollection`` with rows as properties."""
        from shapely.geometry import mapping

        return {
            "type": "FeatureCollection",
            "features": [
                {
                    "type": "Feature",
                    "id": unit.unit_id,
                    "geometry": mapping(unit.to_shapely()),
                    "properties": dict(row),
                }
                for unit, row in self
            ],
        }


def _check_lengths(collection: FeatureCollection, table: AttributeTable) -> None:
    if len(collection) != len(table):
        msg = (
            f"Cannot pair {len(collection)} geometry unit(s) with "
            f"{len(table)} attribute row(s)"
        )
        raise UnmatchedIdentifierError(message=msg)
