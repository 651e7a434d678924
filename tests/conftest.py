"""Shared pytest fixtures for the featurestack test suite."""

import pytest

from featurestack.core.config import get_config
from featurestack.models.attributes import AttributeTable
from featurestack.models.collection import FeatureCollection
from featurestack.models.geometry import GeometryUnit
from featurestack.models.ring import Ring

# ---------------------------------------------------------------------------
# Reference rings: two houses, each a rectangle with a triangular roof
# ---------------------------------------------------------------------------

HOUSE1_WALLS = [(0, 0), (0, 2), (3, 2), (3, 0)]
HOUSE1_ROOF = [(0, 2), (1.5, 3), (3, 2)]

HOUSE2_WALLS = [(5, 0), (5, 2), (8, 2), (8, 0)]
HOUSE2_ROOF = [(5, 2), (6.5, 3), (8, 2)]
HOUSE2_WINDOW = [(6, 0.5), (6, 1.5), (7, 1.5), (7, 0.5)]


@pytest.fixture(autouse=True)
def _fresh_config():
    """Reload configuration from the (possibly monkeypatched) environment."""
    get_config.cache_clear()
    yield
    get_config.cache_clear()


# ---------------------------------------------------------------------------
# Geometry fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def house1() -> GeometryUnit:
    """Rectangle plus roof triangle."""
    return GeometryUnit.of("house1", Ring.polygon(HOUSE1_WALLS), Ring.polygon(HOUSE1_ROOF))


@pytest.fixture()
def house2() -> GeometryUnit:
    """Rectangle plus roof triangle with a square hole (window)."""
    return GeometryUnit.of(
        "house2",
        Ring.polygon(HOUSE2_WALLS),
        Ring.polygon(HOUSE2_ROOF),
        Ring.polygon(HOUSE2_WINDOW, hole=True),
    )


@pytest.fixture()
def houses(house1: GeometryUnit, house2: GeometryUnit) -> FeatureCollection:
    """Feature collection of both houses, CRS undefined."""
    return FeatureCollection([house1, house2])


@pytest.fixture()
def house_table() -> AttributeTable:
    """Attribute table listing house2 before house1."""
    return AttributeTable({"attr1": [1, 2], "attr2": [6, 5]}, row_ids=["house2", "house1"])


@pytest.fixture()
def unit_square() -> GeometryUnit:
    """1 x 1 square at the origin."""
    return GeometryUnit.of("square", Ring.polygon([(0, 0), (0, 1), (1, 1), (1, 0)]))
