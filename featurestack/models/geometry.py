"""Data model for a geometry unit.

A GeometryUnit is one observation's shape: an identifier plus one or
more Rings. It may be multi-part (several disjoint solid rings, e.g.
the islands making up "Hawaii") and may include hole rings.

Units are immutable; the only way to change one is whole-object
replacement (``replace_rings``). A unit has no knowledge of the
collection it will join, so identifier uniqueness is checked later, at
collection assembly.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from featurestack.core.exceptions import InvalidGeometryError
from featurestack.models.ring import Ring, RingKind

if TYPE_CHECKING:
    from shapely.geometry.base import BaseGeometry


@dataclass(frozen=True, slots=True)
class GeometryUnit:
    """A named group of rings forming a single observation.

    Attributes:
        unit_id: Identifier, unique within the eventual FeatureCollection.
        rings: Rings in the order they were supplied.
    """

    unit_id: str
    rings: tuple[Ring, ...]

    def __post_init__(self) -> None:
        if not isinstance(self.unit_id, str) or not self.unit_id:
            msg = f"Geometry unit identifier must be a non-empty string, got {self.unit_id!r}"
            raise InvalidGeometryError(msg)

        rings = tuple(self.rings)
        object.__setattr__(self, "rings", rings)

        if not rings:
            msg = f"Geometry unit '{self.unit_id}' needs at least one ring"
            raise InvalidGeometryError(msg)
        for idx, ring in enumerate(rings):
            if not isinstance(ring, Ring):
                msg = (
                    f"Geometry unit '{self.unit_id}' ring {idx} is "
                    f"{type(ring).__name__}, expected Ring"
                )
                raise InvalidGeometryError(msg)

        kinds = {ring.kind for ring in rings}
        if len(kinds) > 1:
            msg = f"Geometry unit '{self.unit_id}' mixes polygon and line rings"
            raise InvalidGeometryError(msg)

        if all(ring.is_hole for ring in rings):
            msg = f"Geometry unit '{self.unit_id}' has only hole rings"
            raise InvalidGeometryError(msg)

    @classmethod
    def of(cls, unit_id: str, *rings: Ring) -> GeometryUnit:
        """Build a unit from rings given as positional arguments."""
        return cls(unit_id, rings)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def kind(self) -> RingKind:
        return self.rings[0].kind

    @property
    def solids(self) -> tuple[Ring, ...]:
        """Rings that contribute area (or all rings, for line units)."""
        return tuple(r for r in self.rings if not r.is_hole)

    @property
    def holes(self) -> tuple[Ring, ...]:
        return tuple(r for r in self.rings if r.is_hole)

    @property
    def is_multipart(self) -> bool:
        """Whether the unit has more than one solid ring."""
        return len(self.solids) > 1

    @property
    def has_holes(self) -> bool:
        return any(r.is_hole for r in self.rings)

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """``(min_x, min_y, max_x, max_y)`` over every ring."""
        boxes = [r.bounds for r in self.rings]
        return (
            min(b[0] for b in boxes),
            min(b[1] for b in boxes),
            max(b[2] for b in boxes),
            max(b[3] for b in boxes),
        )

    def replace_rings(self, rings: Iterable[Ring]) -> GeometryUnit:
        """Return a new unit with the same identifier and different rings."""
        return GeometryUnit(self.unit_id, tuple(rings))

    # ------------------------------------------------------------------
    # shapely interop
    # ------------------------------------------------------------------

    def to_shapely(self) -> BaseGeometry:
        """Convert to a shapely geometry.

        Each hole ring belongs to the smallest solid ring containing it,
        so an island sitting in another part's hole survives. The
        resulting parts are unioned (``Polygon`` or ``MultiPolygon``).
        Holes contained by no solid are subtracted from the whole union.
        Line units become a ``LineString`` or ``MultiLineString``.
        """
        from shapely.geometry import LineString, MultiLineString, Polygon
        from shapely.ops import unary_union

        if self.kind is RingKind.LINE:
            lines = [LineString(r.coords) for r in self.rings]
            return lines[0] if len(lines) == 1 else MultiLineString(lines)

        shells = [Polygon(r.coords) for r in self.solids]
        if not self.has_holes and len(shells) == 1:
            return shells[0]

        owned: list[list[tuple[tuple[float, float], ...]]] = [[] for _ in shells]
        orphans = []
        for ring in self.holes:
            hole = Polygon(ring.coords)
            owners = [i for i, shell in enumerate(shells) if shell.contains(hole)]
            if owners:
                owned[min(owners, key=lambda i: shells[i].area)].append(ring.coords)
            else:
                orphans.append(hole)

        parts = [
            Polygon(shell.exterior.coords, holes)
            for shell, holes in zip(shells, owned, strict=True)
        ]
        area = parts[0] if len(parts) == 1 else unary_union(parts)
        if orphans:
            area = area.difference(unary_union(orphans))
        return area

    @classmethod
    def from_shapely(cls, unit_id: str, geom: BaseGeometry) -> GeometryUnit:
        """Build a unit from a shapely geometry.

        Supports Polygon, MultiPolygon, LineString, MultiLineString and
        GeometryCollections made of those. Z values are dropped.

        Raises:
            InvalidGeometryError: For empty or unsupported geometries.
        """
        if geom is None or geom.is_empty:
            msg = f"Cannot build geometry unit '{unit_id}' from an empty geometry"
            raise InvalidGeometryError(msg)
        return cls(unit_id, tuple(_rings_from_shapely(unit_id, geom)))

    # ------------------------------------------------------------------
    # dict transport
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, object]:
        return {
            "unit_id": self.unit_id,
            "rings": [r.to_dict() for r in self.rings],
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> GeometryUnit:
        """Deserialise from a plain dict.

        Raises:
            InvalidGeometryError: If the payload is malformed.
        """
        rings_raw = data.get("rings", [])
        if not isinstance(rings_raw, list):
            msg = f"rings must be a list, got {type(rings_raw).__name__}"
            raise InvalidGeometryError(msg)
        return cls(
            str(data.get("unit_id", "")),
            tuple(Ring.from_dict(r) for r in rings_raw),
        )


def _rings_from_shapely(unit_id: str, geom: BaseGeometry) -> list[Ring]:
    geom_type = geom.geom_type

    if geom_type == "Polygon":
        rings = [Ring.polygon(geom.exterior.coords)]
        rings.extend(Ring.polygon(interior.coords, hole=True) for interior in geom.interiors)
        return rings

    if geom_type == "LineString":
        return [Ring.line(geom.coords)]

    if geom_type in ("MultiPolygon", "MultiLineString", "GeometryCollection"):
        rings = []
        for part in geom.geoms:
            if part.is_empty:
                continue
            rings.extend(_rings_from_shapely(unit_id, part))
        return rings

    msg = f"Unsupported geometry type {geom_type} for unit '{unit_id}'"
    raise InvalidGeometryError(msg)
