"""Data model for a single ring.

A Ring is an ordered sequence of ``(x, y)`` coordinate pairs describing
one simple boundary: a line, a polygon outline, or a polygon hole.
Coordinates are kept exactly as given. Rings are never auto-closed or
re-oriented, so reading them back always yields the input sequence.

A hole ring is expected to lie inside a solid ring of the same
GeometryUnit. That containment is advisory and is not checked.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass

from featurestack.core.constants import MIN_LINE_RING_POINTS, MIN_POLYGON_RING_POINTS
from featurestack.core.exceptions import InvalidGeometryError

Coordinate = tuple[float, float]


class RingKind(enum.Enum):
    """Whether a ring bounds an area or traces a path.

    Values:
        POLYGON: Closed boundary of solid area (or of a hole).
        LINE:    Open path.
    """

    POLYGON = "polygon"
    LINE = "line"

    @property
    def min_points(self) -> int:
        if self is RingKind.POLYGON:
            return MIN_POLYGON_RING_POINTS
        return MIN_LINE_RING_POINTS


@dataclass(frozen=True, slots=True)
class Ring:
    """One boundary of a geometry unit.

    Attributes:
        coords: Ordered ``(x, y)`` pairs.
        kind: ``RingKind.POLYGON`` (default) or ``RingKind.LINE``.
        is_hole: Whether this ring excludes area rather than adding it.
            Only polygon rings may be holes.
    """

    coords: tuple[Coordinate, ...]
    kind: RingKind = RingKind.POLYGON
    is_hole: bool = False

    def __post_init__(self) -> None:
        kind = self.kind if isinstance(self.kind, RingKind) else _coerce_kind(self.kind)
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "coords", normalise_coords(self.coords))

        if len(self.coords) < kind.min_points:
            msg = (
                f"{kind.value.capitalize()} ring has only {len(self.coords)} point(s), "
                f"need at least {kind.min_points}"
            )
            raise InvalidGeometryError(msg)

        if self.is_hole and kind is not RingKind.POLYGON:
            msg = "Only polygon rings can be holes"
            raise InvalidGeometryError(msg)

    @classmethod
    def polygon(cls, coords: Iterable[Sequence[float]], *, hole: bool = False) -> Ring:
        """Build a polygon outline (or a hole when ``hole=True``)."""
        return cls(tuple(coords), RingKind.POLYGON, hole)  # type: ignore[arg-type]

    @classmethod
    def line(cls, coords: Iterable[Sequence[float]]) -> Ring:
        """Build an open line ring."""
        return cls(tuple(coords), RingKind.LINE)  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self.coords)

    def __iter__(self) -> Iterator[Coordinate]:
        return iter(self.coords)

    @property
    def is_closed(self) -> bool:
        """Whether the first and last coordinates coincide."""
        return self.coords[0] == self.coords[-1]

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """``(min_x, min_y, max_x, max_y)`` of this ring."""
        xs = [c[0] for c in self.coords]
        ys = [c[1] for c in self.coords]
        return (min(xs), min(ys), max(xs), max(ys))

    def to_dict(self) -> dict[str, object]:
        return {
            "coords": [list(c) for c in self.coords],
            "kind": self.kind.value,
            "is_hole": self.is_hole,
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> Ring:
        """Deserialise from a plain dict.

        Raises:
            InvalidGeometryError: If the payload is malformed.
        """
        coords_raw = data.get("coords", [])
        if not isinstance(coords_raw, list):
            msg = f"coords must be a list, got {type(coords_raw).__name__}"
            raise InvalidGeometryError(msg)
        return cls(
            tuple(coords_raw),  # type: ignore[arg-type]
            _coerce_kind(data.get("kind", RingKind.POLYGON.value)),
            bool(data.get("is_hole", False)),
        )


def normalise_coords(raw_coords: object) -> tuple[Coordinate, ...]:
    """Convert a coordinate sequence to a tuple of ``(x, y)`` float pairs.

    A third (z) element is dropped if present.

    Raises:
        InvalidGeometryError: If any coordinate element is malformed.
    """
    if isinstance(raw_coords, str) or not isinstance(raw_coords, Iterable):
        msg = f"Coordinates must be a sequence of pairs, got {type(raw_coords).__name__}"
        raise InvalidGeometryError(msg)
    coords: list[Coordinate] = []
    for idx, c in enumerate(raw_coords):
        if isinstance(c, str) or not hasattr(c, "__getitem__") or not hasattr(c, "__len__"):
            msg = f"Malformed coordinate at index {idx}: expected a pair, got {type(c).__name__}"
            raise InvalidGeometryError(msg)
        if len(c) < 2:
            msg = f"Malformed coordinate at index {idx}: expected at least 2 elements, got {len(c)}"
            raise InvalidGeometryError(msg)
        try:
            coords.append((float(c[0]), float(c[1])))
        except (TypeError, ValueError) as exc:
            msg = f"Malformed coordinate at index {idx}: cannot convert ({c[0]!r}, {c[1]!r})"
            raise InvalidGeometryError(msg) from exc
    return tuple(coords)


def _coerce_kind(value: object) -> RingKind:
    try:
        return RingKind(value)
    except ValueError as exc:
        msg = f"Unknown ring kind {value!r}"
        raise InvalidGeometryError(msg) from exc
