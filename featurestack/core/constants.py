"""Shared constants.

Centralises ring minimums, default field names, and driver names used
across the models and the vector I/O layer.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Ring construction
# ---------------------------------------------------------------------------

MIN_POLYGON_RING_POINTS: int = 3
"""Minimum coordinate pairs for a polygon outline or hole ring."""

MIN_LINE_RING_POINTS: int = 2
"""Minimum coordinate pairs for a line ring."""

# ---------------------------------------------------------------------------
# Vector I/O
# ---------------------------------------------------------------------------

DEFAULT_ID_FIELD: str = "id"
"""Attribute field used to carry unit identifiers in vector files."""

DEFAULT_VECTOR_DRIVER: str = "ESRI Shapefile"
"""Default fiona/OGR driver for ``write_vector_dataset``."""

# ---------------------------------------------------------------------------
# Measurements
# ---------------------------------------------------------------------------

WGS84: str = "EPSG:4326"
"""Geographic CRS used as the pivot for metric buffering."""
