"""Data model for a feature collection.

A FeatureCollection is an ordered sequence of GeometryUnits sharing one
Coordinate Reference descriptor. Order is meaningful: it is the order
attribute rows are paired with once a table is attached.

The descriptor belongs to the collection, not to individual units.
Setting it reinterprets every coordinate in the collection without
transforming any of them; use ``operations.reproject`` to transform.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Iterator, Sequence
from typing import TYPE_CHECKING, overload

from featurestack.core.config import get_config
from featurestack.core.exceptions import (
    DuplicateIdentifierError,
    IncompatibleDescriptorError,
    InvalidSelectionError,
    UnmatchedIdentifierError,
)
from featurestack.models.crs import CRSDescriptor
from featurestack.models.geometry import GeometryUnit

if TYPE_CHECKING:
    from pyproj import CRS
    from shapely.geometry.base import BaseGeometry

    CRSLike = CRSDescriptor | str | CRS | None

logger = logging.getLogger("featurestack.models.collection")


class FeatureCollection:
    """Ordered, identifier-unique sequence of geometry units.

    Args:
        units: Geometry units in collection order.
        crs: Optional descriptor (``None`` means undefined).

    Raises:
        DuplicateIdentifierError: If two units share an identifier.
    """

    __slots__ = ("_crs", "_index", "_units")

    def __init__(self, units: Iterable[GeometryUnit], crs: CRSLike = None) -> None:
        units = tuple(units)
        for idx, unit in enumerate(units):
            if not isinstance(unit, GeometryUnit):
                msg = f"Item {idx} is {type(unit).__name__}, expected GeometryUnit"
                raise TypeError(msg)

        counts = Counter(u.unit_id for u in units)
        duplicates = [uid for uid, n in counts.items() if n > 1]
        if duplicates:
            raise DuplicateIdentifierError(duplicates)

        self._units: tuple[GeometryUnit, ...] = units
        self._index: dict[str, int] = {u.unit_id: i for i, u in enumerate(units)}
        self._crs: CRSDescriptor | None = CRSDescriptor.coerce(crs)

    # ------------------------------------------------------------------
    # Sequence protocol
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._units)

    def __iter__(self) -> Iterator[GeometryUnit]:
        return iter(self._units)

    @overload
    def __getitem__(self, key: int) -> GeometryUnit: ...

    @overload
    def __getitem__(self, key: slice) -> FeatureCollection: ...

    def __getitem__(self, key: int | slice) -> GeometryUnit | FeatureCollection:
        if isinstance(key, slice):
            return FeatureCollection(self._units[key], self._crs)
        return self._units[key]

    def __contains__(self, unit_id: object) -> bool:
        return unit_id in self._index

    def __repr__(self) -> str:
        return f"FeatureCollection({len(self)} unit(s), crs={self._crs!s})"

    @property
    def units(self) -> tuple[GeometryUnit, ...]:
        return self._units

    @property
    def ids(self) -> list[str]:
        """Unit identifiers in collection order."""
        return [u.unit_id for u in self._units]

    def get(self, unit_id: str) -> GeometryUnit | None:
        idx = self._index.get(unit_id)
        return None if idx is None else self._units[idx]

    def index_of(self, unit_id: str) -> int:
        """Position of ``unit_id``.

        Raises:
            KeyError: If no unit has that identifier.
        """
        return self._index[unit_id]

    # ------------------------------------------------------------------
    # Coordinate reference descriptor
    # ------------------------------------------------------------------

    @property
    def crs(self) -> CRSDescriptor | None:
        return self._crs

    @crs.setter
    def crs(self, value: CRSLike) -> None:
        self.set_crs(value)

    def set_crs(self, value: CRSLike, *, strict: bool | None = None) -> None:
        """Assign a descriptor to the whole collection.

        Coordinates are not transformed. Overwriting a defined descriptor
        with a non-equivalent one is logged as a warning, or rejected when
        ``strict`` is set. ``strict=None`` defers to
        ``FeatureStackConfig.strict_crs_overwrite``.

        Raises:
            IncompatibleDescriptorError: On a strict overwrite.
            InvalidDescriptorError: If ``value`` is not a valid CRS.
        """
        new = CRSDescriptor.coerce(value)
        old = self._crs
        if old is not None and not old.equivalent_to(new):
            if strict is None:
                strict = get_config().strict_crs_overwrite
            if strict:
                msg = (
                    f"Refusing to overwrite CRS {old} with {new}: this reinterprets "
                    "coordinates without reprojecting them"
                )
                raise IncompatibleDescriptorError(msg)
            logger.warning(
                "Overwriting CRS %s with %s on %d unit(s) without reprojecting",
                old,
                new,
                len(self),
            )
        self._crs = new

    # ------------------------------------------------------------------
    # Derived collections
    # ------------------------------------------------------------------

    def reorder(self, unit_ids: Sequence[str]) -> FeatureCollection:
        """Return a new collection with units in the order of ``unit_ids``.

        Raises:
            UnmatchedIdentifierError: If ``unit_ids`` is not a permutation
                of this collection's identifiers.
        """
        wanted = set(unit_ids)
        have = set(self._index)
        if wanted != have or len(unit_ids) != len(self):
            raise UnmatchedIdentifierError(
                missing_in_table=have - wanted,
                missing_in_collection=wanted - have,
                message=(
                    f"Cannot reorder {len(self)} unit(s) by {len(unit_ids)} identifier(s): "
                    f"missing {sorted(have - wanted)}, unknown {sorted(wanted - have)}"
                ),
            )
        return FeatureCollection((self._units[self._index[uid]] for uid in unit_ids), self._crs)

    def take(self, indices: Iterable[int]) -> FeatureCollection:
        """Return a new collection of the units at ``indices``, in that order.

        Raises:
            InvalidSelectionError: If an index is out of range.
        """
        picked = []
        for i in indices:
            if not -len(self) <= i < len(self):
                msg = f"Index {i} out of range for collection of {len(self)} unit(s)"
                raise InvalidSelectionError(msg)
            picked.append(self._units[i])
        return FeatureCollection(picked, self._crs)

    def with_units(self, units: Iterable[GeometryUnit]) -> FeatureCollection:
        """Return a new collection of ``units`` carrying this collection's CRS."""
        return FeatureCollection(units, self._crs)

    # ------------------------------------------------------------------
    # Geometry views
    # ------------------------------------------------------------------

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """``(min_x, min_y, max_x, max_y)`` over all units.

        Raises:
            ValueError: If the collection is empty.
        """
        if not self._units:
            msg = "Empty collection has no bounds"
            raise ValueError(msg)
        boxes = [u.bounds for u in self._units]
        return (
            min(b[0] for b in boxes),
            min(b[1] for b in boxes),
            max(b[2] for b in boxes),
            max(b[3] for b in boxes),
        )

    def to_shapely(self) -> list[BaseGeometry]:
        return [u.to_shapely() for u in self._units]

    def to_geojson(self) -> dict[str, object]:
        """GeoJSON ``FeatureCollection`` with empty properties."""
        from shapely.geometry import mapping

        return {
            "type": "FeatureCollection",
            "features": [
                {"type": "Feature", "id": u.unit_id, "geometry": mapping(u.to_shapely()), "properties": {}}
                for u in self._units
            ],
        }
