"""Data models.

Defines the layered vector-feature data model, leaf-first:
- CRSDescriptor: Immutable coordinate reference identifier
- Ring: Ordered coordinate sequence, optionally a hole
- GeometryUnit: One observation's rings under a single identifier
- FeatureCollection: Identifier-unique units sharing one CRS
- AttributeTable: Column-oriented scalar attributes
- AttributedFeatureCollection: Units paired positionally with table rows
"""

from featurestack.models.attributed import AttributedFeatureCollection
from featurestack.models.attributes import AttributeTable
from featurestack.models.collection import FeatureCollection
from featurestack.models.crs import CRSDescriptor
from featurestack.models.geometry import GeometryUnit
from featurestack.models.ring import Ring, RingKind

__all__ = [
    "AttributeTable",
    "AttributedFeatureCollection",
    "CRSDescriptor",
    "FeatureCollection",
    "GeometryUnit",
    "Ring",
    "RingKind",
]
