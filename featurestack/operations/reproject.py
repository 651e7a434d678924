"""Reprojection of feature collections.

Transforms every coordinate of every ring with a ``pyproj.Transformer``
(``always_xy=True``, so coordinates stay ``(x, y)`` / ``(lon, lat)``)
and returns a new collection carrying the target descriptor. The source
is never modified.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TypeVar

from featurestack.core.exceptions import IncompatibleDescriptorError
from featurestack.models.attributed import AttributedFeatureCollection
from featurestack.models.collection import FeatureCollection
from featurestack.models.crs import CRSDescriptor
from featurestack.models.geometry import GeometryUnit
from featurestack.models.ring import Ring

if TYPE_CHECKING:
    from pyproj import Transformer

    from featurestack.models.collection import CRSLike

logger = logging.getLogger("featurestack.operations.reproject")

C = TypeVar("C", FeatureCollection, AttributedFeatureCollection)


def reproject(collection: C, target_crs: CRSLike) -> C:
    """Transform ``collection`` into ``target_crs``.

    Attributed collections keep their table and positional pairing.

    Raises:
        IncompatibleDescriptorError: If the source CRS is undefined.
        InvalidDescriptorError: If ``target_crs`` is not a valid CRS.
    """
    target = CRSDescriptor.coerce(target_crs)
    if target is None:
        msg = "Reprojection needs a target CRS"
        raise IncompatibleDescriptorError(msg, operation="reproject")

    if isinstance(collection, AttributedFeatureCollection):
        projected = reproject(collection.collection, target)
        return AttributedFeatureCollection(projected, collection.table)

    source = collection.crs
    if source is None:
        msg = "Cannot reproject a collection whose CRS is undefined; assign one with set_crs()"
        raise IncompatibleDescriptorError(msg, operation="reproject")

    if source.equivalent_to(target):
        return FeatureCollection(collection, target)

    from pyproj import Transformer

    transformer = Transformer.from_crs(source.to_pyproj(), target.to_pyproj(), always_xy=True)
    units = [transform_unit(unit, transformer) for unit in collection]

    logger.info("Reprojected %d unit(s) | %s -> %s", len(units), source, target)
    return FeatureCollection(units, target)


def transform_unit(unit: GeometryUnit, transformer: Transformer) -> GeometryUnit:
    """Apply ``transformer`` to every ring of ``unit``."""
    rings = []
    for ring in unit.rings:
        xs = [c[0] for c in ring.coords]
        ys = [c[1] for c in ring.coords]
        tx, ty = transformer.transform(xs, ys)
        rings.append(Ring(tuple(zip(tx, ty, strict=True)), ring.kind, ring.is_hole))
    return unit.replace_rings(rings)
