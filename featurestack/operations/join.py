"""Attribute-join engine.

Pairs a FeatureCollection with an AttributeTable by identifier, then
freezes the pairing positionally.

The table's row order always wins: geometry units are reordered to
follow the table, never the other way round. After the join, identifiers
are no longer consulted (see ``AttributedFeatureCollection``).

Row identifiers come from, in order of precedence:
1. ``id_column``: values of that column, stringified.
2. ``table.row_ids``: out-of-band row identifiers.
3. Neither: rows are taken to be in the collection's own order and
   matched positionally.

Matching is case-sensitive exact string equality. The operation is
all-or-nothing: neither input is modified, and any mismatch raises
before a result is built.
"""

from __future__ import annotations

import logging
from collections import Counter

from featurestack.core.exceptions import DuplicateIdentifierError, UnmatchedIdentifierError
from featurestack.models.attributed import AttributedFeatureCollection
from featurestack.models.attributes import AttributeTable
from featurestack.models.collection import FeatureCollection

logger = logging.getLogger("featurestack.operations.join")


def attach(
    collection: FeatureCollection,
    table: AttributeTable,
    id_column: str | None = None,
) -> AttributedFeatureCollection:
    """Join ``table`` to ``collection`` by identifier.

    Args:
        collection: Geometry units to attribute.
        table: Attribute rows, one per unit.
        id_column: Optional column holding each row's unit identifier.

    Returns:
        An AttributedFeatureCollection whose units follow the table's row
        order, with the collection's CRS.

    Raises:
        UnmatchedIdentifierError: If the identifier sets (or counts) differ.
        DuplicateIdentifierError: If ``id_column`` repeats an identifier.
        KeyError: If ``id_column`` is not a column of ``table``.
    """
    row_ids = resolve_row_ids(collection, table, id_column)

    unit_ids = set(collection.ids)
    table_ids = set(row_ids)
    if unit_ids != table_ids:
        missing_in_table = unit_ids - table_ids
        missing_in_collection = table_ids - unit_ids
        logger.warning(
            "Attribute join failed | no row for %s | no geometry for %s",
            sorted(missing_in_table),
            sorted(missing_in_collection),
        )
        raise UnmatchedIdentifierError(missing_in_table, missing_in_collection)

    ordered = collection.reorder(row_ids)
    logger.info(
        "Attached %d attribute row(s) with %d column(s) | reordered=%s",
        len(table),
        len(table.column_names),
        ordered.ids != collection.ids,
    )
    return AttributedFeatureCollection(ordered, table)


def resolve_row_ids(
    collection: FeatureCollection,
    table: AttributeTable,
    id_column: str | None = None,
) -> list[str]:
    """Return the identifier of every table row, in row order.

    Raises:
        UnmatchedIdentifierError: If the table has no identifiers and its
            row count differs from the collection's unit count.
        DuplicateIdentifierError: If ``id_column`` repeats an identifier.
    """
    if id_column is not None:
        row_ids = ["" if v is None else str(v) for v in table.column(id_column)]
        counts = Counter(row_ids)
        duplicates = [rid for rid, n in counts.items() if n > 1]
        if duplicates:
            raise DuplicateIdentifierError(
                duplicates, where=f"attribute column '{id_column}'", operation="attach"
            )
        return row_ids

    if table.row_ids is not None:
        return list(table.row_ids)

    if len(table) != len(collection):
        msg = (
            f"Table without row identifiers has {len(table)} row(s) but the "
            f"collection has {len(collection)} unit(s)"
        )
        raise UnmatchedIdentifierError(message=msg)
    return collection.ids
