"""featurestack: layered vector-feature data model.

Coordinates compose into rings, rings into geometry units, units into
feature collections sharing one coordinate reference descriptor, and
collections join an attribute table to become attributed feature
collections. Vector file I/O (fiona), reprojection (pyproj) and
measurements (shapely) sit on top.
"""

__version__ = "0.1.0"
