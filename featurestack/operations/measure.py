"""Measurements over geometry units and collections.

Bounds and centroids are computed directly from coordinates (via
shapely for centroids). Area depends on the collection's CRS: geodesic
on the WGS 84 ellipsoid for geographic descriptors, planar for
projected ones. Metric buffers are applied in a local UTM zone and
projected back, never by adding degrees.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from featurestack.core.constants import WGS84
from featurestack.core.exceptions import IncompatibleDescriptorError, InvalidGeometryError
from featurestack.models.collection import FeatureCollection
from featurestack.models.crs import CRSDescriptor
from featurestack.models.geometry import GeometryUnit
from featurestack.models.ring import RingKind

if TYPE_CHECKING:
    from featurestack.models.attributed import AttributedFeatureCollection

logger = logging.getLogger("featurestack.operations.measure")


# ---------------------------------------------------------------------------
# Bounds and centroid
# ---------------------------------------------------------------------------


def compute_bounds(
    collection: FeatureCollection | AttributedFeatureCollection,
) -> tuple[float, float, float, float]:
    """``(min_x, min_y, max_x, max_y)`` over every unit of ``collection``."""
    if not isinstance(collection, FeatureCollection):
        collection = collection.collection
    return collection.bounds


def compute_centroid(unit: GeometryUnit) -> tuple[float, float]:
    """Centroid of the unit's shapely geometry as ``(x, y)``.

    Raises:
        InvalidGeometryError: If the geometry collapses to empty (e.g.
            holes covering every solid ring).
    """
    geom = unit.to_shapely()
    if geom.is_empty:
        msg = f"Cannot compute centroid of empty geometry '{unit.unit_id}'"
        raise InvalidGeometryError(msg, operation="measure")
    centroid = geom.centroid
    return (centroid.x, centroid.y)


# ---------------------------------------------------------------------------
# Area
# ---------------------------------------------------------------------------


def compute_area(unit: GeometryUnit, crs: CRSDescriptor | str | None) -> float:
    """Area of a polygon unit in square CRS units (square metres if geographic).

    Holes are subtracted. Line units have zero area.

    Raises:
        IncompatibleDescriptorError: If ``crs`` is undefined.
    """
    descriptor = CRSDescriptor.coerce(crs)
    if descriptor is None:
        msg = f"Cannot measure area of '{unit.unit_id}' without a CRS"
        raise IncompatibleDescriptorError(msg, operation="measure")

    if unit.kind is RingKind.LINE:
        return 0.0

    geom = unit.to_shapely()
    if not descriptor.is_geographic:
        return float(geom.area)

    from pyproj import Geod
    from shapely.geometry import MultiPolygon
    from shapely.geometry.polygon import orient

    # Geod sums signed ring areas; counter-clockwise exteriors with
    # clockwise holes make the holes subtract.
    if geom.geom_type == "Polygon":
        geom = orient(geom, sign=1.0)
    elif geom.geom_type == "MultiPolygon":
        geom = MultiPolygon([orient(part, sign=1.0) for part in geom.geoms])

    geod = Geod(ellps="WGS84")
    area_m2, _perimeter = geod.geometry_area_perimeter(geom)
    return abs(area_m2)


def compute_areas(collection: FeatureCollection) -> list[float]:
    """``compute_area`` for each unit, in collection order."""
    return [compute_area(unit, collection.crs) for unit in collection]


# ---------------------------------------------------------------------------
# Metric buffer
# ---------------------------------------------------------------------------


def buffer_metres(collection: FeatureCollection, distance_m: float) -> FeatureCollection:
    """Grow (or shrink, if negative) every unit by ``distance_m`` metres.

    Each unit is projected to the UTM zone of its centre, buffered with
    shapely, and projected back to the collection's CRS. Line units
    become polygons.

    Raises:
        IncompatibleDescriptorError: If the collection's CRS is undefined.
        InvalidGeometryError: If a unit vanishes (negative buffer).
    """
    source = collection.crs
    if source is None:
        msg = "Cannot apply a metric buffer to a collection whose CRS is undefined"
        raise IncompatibleDescriptorError(msg, operation="buffer")

    from pyproj import Transformer
    from shapely.ops import transform

    to_wgs = Transformer.from_crs(source.to_pyproj(), WGS84, always_xy=True)

    units = []
    for unit in collection:
        min_x, min_y, max_x, max_y = unit.bounds
        centre_lon, centre_lat = to_wgs.transform((min_x + max_x) / 2, (min_y + max_y) / 2)
        utm_crs = _get_utm_crs(centre_lon, centre_lat)

        to_utm = Transformer.from_crs(source.to_pyproj(), utm_crs, always_xy=True)
        from_utm = Transformer.from_crs(utm_crs, source.to_pyproj(), always_xy=True)

        projected = transform(to_utm.transform, unit.to_shapely())
        buffered = transform(from_utm.transform, projected.buffer(distance_m))
        units.append(GeometryUnit.from_shapely(unit.unit_id, buffered))

    logger.info("Buffered %d unit(s) by %.1f m", len(units), distance_m)
    return collection.with_units(units)


def _get_utm_crs(lon: float, lat: float) -> str:
    """UTM EPSG code for a WGS 84 coordinate (``"EPSG:326xx"`` north, ``"EPSG:327xx"`` south)."""
    zone_number = int((lon + 180) / 6) + 1
    zone_number = max(1, min(60, zone_number))

    if lat >= 0:
        return f"EPSG:{32600 + zone_number}"
    return f"EPSG:{32700 + zone_number}"
