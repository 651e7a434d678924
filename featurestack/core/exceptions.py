"""Unified exception taxonomy.

Every error raised by the data model and its collaborators inherits from
``FeatureStackError`` and carries structured context fields for
consistent diagnostics.

Taxonomy categories
-------------------
- ``ValidationError``: input/contract violations (malformed rings,
  identifier collisions, unmatched joins). Never retryable.
- ``PermanentError``: failures from the I/O collaborators.

All errors are raised at the call that detects them. There is no
partial-construction state: assembly and join operations are
all-or-nothing.

Every exception exposes ``to_error_dict()`` for a stable structured
error payload suitable for logging.
"""

from __future__ import annotations

from collections.abc import Iterable


class FeatureStackError(Exception):
    """Base exception for all featurestack errors.

    Attributes:
        message: Human-readable error description.
        operation: Operation where the error occurred
            (e.g. ``"attach"``, ``"read_vector_dataset"``).
        code: Machine-readable error code (e.g. ``"UNMATCHED_IDENTIFIER"``).
    """

    #: Default operation for subclasses (override via class attribute or kwarg).
    default_operation: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        operation: str = "",
        code: str = "",
    ) -> None:
        self.message = message
        self.operation = operation or self.default_operation
        self.code = code or self.default_code
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, ValidationError):
            return "validation"
        return "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "operation": self.operation,
            "message": self.message,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ValidationError(FeatureStackError):
    """Input or domain-model validation failure."""


class PermanentError(FeatureStackError):
    """Unrecoverable failure from an external collaborator."""


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


class InvalidGeometryError(ValidationError):
    """Raised when a Ring or GeometryUnit is malformed."""

    default_operation = "build_geometry"
    default_code = "INVALID_GEOMETRY"


class DuplicateIdentifierError(ValidationError):
    """Raised when identifiers collide within one collection or table.

    Attributes:
        duplicates: Sorted list of the identifiers that occur more than once.
    """

    default_operation = "assemble_collection"
    default_code = "DUPLICATE_IDENTIFIER"

    def __init__(self, duplicates: Iterable[str], *, where: str = "collection", **kwargs: str) -> None:
        self.duplicates = sorted(set(duplicates))
        joined = ", ".join(repr(d) for d in self.duplicates)
        super().__init__(f"Duplicate identifier(s) in {where}: {joined}", **kwargs)


class UnmatchedIdentifierError(ValidationError):
    """Raised when attribute-table and geometry identifiers differ at join time.

    Attributes:
        missing_in_table: Geometry identifiers with no attribute row.
        missing_in_collection: Attribute row identifiers with no geometry.
        mismatched: Sorted symmetric difference of both identifier sets.
    """

    default_operation = "attach"
    default_code = "UNMATCHED_IDENTIFIER"

    def __init__(
        self,
        missing_in_table: Iterable[str] = (),
        missing_in_collection: Iterable[str] = (),
        *,
        message: str = "",
    ) -> None:
        self.missing_in_table = sorted(missing_in_table)
        self.missing_in_collection = sorted(missing_in_collection)
        self.mismatched = sorted({*self.missing_in_table, *self.missing_in_collection})
        if not message:
            message = (
                f"Identifiers do not match: {self.mismatched} "
                f"(no attribute row for {self.missing_in_table}, "
                f"no geometry for {self.missing_in_collection})"
            )
        super().__init__(message)


# ---------------------------------------------------------------------------
# Coordinate reference descriptors
# ---------------------------------------------------------------------------


class InvalidDescriptorError(ValidationError):
    """Raised when a CRS definition cannot be parsed."""

    default_operation = "crs"
    default_code = "INVALID_CRS"


class IncompatibleDescriptorError(ValidationError):
    """Raised when an operation conflicts with a collection's CRS.

    Covers a strict overwrite of an already-defined descriptor and
    operations that need a defined descriptor but find none.
    """

    default_operation = "crs"
    default_code = "INCOMPATIBLE_CRS"


# ---------------------------------------------------------------------------
# Attributes and selection
# ---------------------------------------------------------------------------


class AttributeTableError(ValidationError):
    """Raised when an attribute table has ragged columns or non-scalar values."""

    default_operation = "attribute_table"
    default_code = "INVALID_ATTRIBUTE_TABLE"


class InvalidSelectionError(ValidationError):
    """Raised when a selection index or mask does not fit the collection."""

    default_operation = "select"
    default_code = "INVALID_SELECTION"


# ---------------------------------------------------------------------------
# I/O
# ---------------------------------------------------------------------------


class VectorIOError(PermanentError):
    """Raised when a vector dataset cannot be read or written."""

    default_operation = "vector_io"
    default_code = "VECTOR_IO_FAILED"
