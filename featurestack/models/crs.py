"""Coordinate Reference descriptor.

A ``CRSDescriptor`` is an opaque, immutable identifier of a geographic or
projected coordinate system (e.g. ``"EPSG:4326"`` or a PROJ string). It
has no internal structure beyond validity and equality: validity is
checked by parsing with pyproj at construction, equality is value-based
on the definition string.

An undefined CRS is modelled as ``None`` on the owning collection. That
is distinct from a defined geographic (non-projected) descriptor.

Because descriptors are immutable values, sharing one between a
collection and its subsets can never leak a mutation from one to the
other.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from featurestack.core.exceptions import InvalidDescriptorError

if TYPE_CHECKING:
    from pyproj import CRS


@dataclass(frozen=True, slots=True)
class CRSDescriptor:
    """Immutable coordinate reference descriptor.

    Attributes:
        definition: The user-supplied CRS definition, whitespace-stripped
            (EPSG code, PROJ string, or WKT).
    """

    definition: str

    def __post_init__(self) -> None:
        if not isinstance(self.definition, str) or not self.definition.strip():
            msg = f"CRS definition must be a non-empty string, got {self.definition!r}"
            raise InvalidDescriptorError(msg)
        object.__setattr__(self, "definition", self.definition.strip())
        # Parse once to fail fast on unknown definitions.
        self.to_pyproj()

    def __str__(self) -> str:
        return self.definition

    @classmethod
    def coerce(cls, value: object) -> CRSDescriptor | None:
        """Normalise ``None``, a descriptor, a string, or a ``pyproj.CRS``.

        Raises:
            InvalidDescriptorError: If the value cannot be interpreted as a CRS.
        """
        if value is None or isinstance(value, CRSDescriptor):
            return value
        if isinstance(value, str):
            return cls(value)

        from pyproj import CRS

        if isinstance(value, CRS):
            epsg = value.to_epsg()
            return cls(f"EPSG:{epsg}" if epsg is not None else value.to_wkt())

        msg = f"Cannot interpret {type(value).__name__} as a CRS"
        raise InvalidDescriptorError(msg)

    def to_pyproj(self) -> CRS:
        """Return the parsed ``pyproj.CRS``.

        Raises:
            InvalidDescriptorError: If pyproj cannot parse the definition.
        """
        from pyproj import CRS
        from pyproj.exceptions import CRSError

        try:
            return CRS.from_user_input(self.definition)
        except CRSError as exc:
            msg = f"Unrecognised CRS definition {self.definition!r}: {exc}"
            raise InvalidDescriptorError(msg) from exc

    @property
    def is_geographic(self) -> bool:
        """Whether coordinates are longitude/latitude degrees."""
        return bool(self.to_pyproj().is_geographic)

    @property
    def is_projected(self) -> bool:
        """Whether coordinates are in a projected (planar) system."""
        return bool(self.to_pyproj().is_projected)

    def to_epsg(self) -> int | None:
        """EPSG code if the definition maps to one, else ``None``."""
        return self.to_pyproj().to_epsg()

    def to_wkt(self) -> str:
        return self.to_pyproj().to_wkt()

    def equivalent_to(self, other: CRSDescriptor | None) -> bool:
        """Whether ``other`` describes the same CRS, even if spelled differently."""
        if other is None:
            return False
        if other.definition == self.definition:
            return True
        return self.to_pyproj() == other.to_pyproj()
