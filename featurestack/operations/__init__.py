"""Operations over the data model.

- join: Identifier join of an attribute table onto a feature collection
- select: Predicate / mask / index subsetting
- reproject: Coordinate transformation between CRSs (pyproj)
- measure: Bounds, area, centroid and metric buffering (shapely, pyproj)
- vector_io: Vector dataset reading and writing (fiona)
"""

from featurestack.operations.join import attach
from featurestack.operations.measure import (
    buffer_metres,
    compute_area,
    compute_areas,
    compute_bounds,
    compute_centroid,
)
from featurestack.operations.reproject import reproject
from featurestack.operations.select import select, where
from featurestack.operations.vector_io import read_vector_dataset, write_vector_dataset

__all__ = [
    "attach",
    "buffer_metres",
    "compute_area",
    "compute_areas",
    "compute_bounds",
    "compute_centroid",
    "read_vector_dataset",
    "reproject",
    "select",
    "where",
    "write_vector_dataset",
]
