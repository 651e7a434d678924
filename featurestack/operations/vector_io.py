"""Vector dataset reader/writer built on fiona (OGR/GDAL).

Reads shapefiles, GeoJSON, GeoPackages and any other OGR vector format
into an AttributedFeatureCollection, and writes one back out.

Reading:
- Unit identifiers come from ``id_field`` when given, otherwise from
  the OGR feature id.
- The dataset CRS becomes the collection's descriptor (undefined when
  the dataset declares none).
- Records without geometry are skipped with a warning.

Writing:
- The schema is inferred from the attribute table. Booleans are written
  as integers because several drivers (shapefile among them) have no
  boolean field type.
- The unit identifier is written to ``id_field`` unless the table
  already has a column of that name.
- One geometry type is declared per layer. When single and multi-part
  units are mixed, single parts are written as one-part multi geometries.

Any fiona/GDAL failure surfaces as ``VectorIOError``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from featurestack.core.config import get_config
from featurestack.core.exceptions import InvalidGeometryError, VectorIOError
from featurestack.models.attributed import AttributedFeatureCollection
from featurestack.models.attributes import AttributeTable, Scalar
from featurestack.models.collection import FeatureCollection
from featurestack.models.crs import CRSDescriptor
from featurestack.models.geometry import GeometryUnit

if TYPE_CHECKING:
    from collections.abc import Sequence

    from shapely.geometry.base import BaseGeometry

logger = logging.getLogger("featurestack.operations.vector_io")


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------


def read_vector_dataset(
    path: Path | str,
    *,
    id_field: str | None = None,
    layer: str | int | None = None,
    skip_invalid: bool = False,
) -> AttributedFeatureCollection:
    """Read a vector dataset into an AttributedFeatureCollection.

    Args:
        path: Dataset path (file or directory, depending on the driver).
        id_field: Attribute field holding unit identifiers. Defaults to
            the OGR feature id.
        layer: Layer name or index for multi-layer datasets.
        skip_invalid: Log and skip records whose geometry cannot be
            represented (e.g. points) instead of raising.

    Raises:
        VectorIOError: If the dataset cannot be opened or ``id_field``
            is missing from a record.
        InvalidGeometryError: For an unsupported geometry when
            ``skip_invalid`` is false.
        DuplicateIdentifierError: If identifiers repeat.
    """
    import fiona
    from fiona.errors import FionaError

    path = Path(path)
    units: list[GeometryUnit] = []
    rows: list[dict[str, Scalar]] = []

    try:
        with fiona.open(str(path), layer=layer) as source:
            crs = _descriptor_from_wkt(source.crs_wkt)
            for idx, record in enumerate(source):
                geom = record.get("geometry")
                props = dict(record.get("properties") or {})

                if geom is None:
                    logger.warning("Skipping record %d without geometry in %s", idx, path.name)
                    continue

                unit_id = _record_id(record, props, id_field, idx, path)
                try:
                    unit = _unit_from_record(unit_id, geom)
                except InvalidGeometryError as exc:
                    if not skip_invalid:
                        raise
                    logger.warning("Skipping record '%s' in %s: %s", unit_id, path.name, exc)
                    continue

                units.append(unit)
                rows.append({str(k): _to_scalar(v) for k, v in props.items()})
    except (FionaError, OSError) as exc:
        msg = f"Cannot read vector dataset {path}: {exc}"
        raise VectorIOError(msg, operation="read_vector_dataset") from exc

    collection = FeatureCollection(units, crs)
    table = AttributeTable.from_rows(rows, row_ids=collection.ids)
    logger.info(
        "Read %d unit(s) from %s | columns=%s | crs=%s",
        len(collection),
        path.name,
        table.column_names,
        crs,
    )
    return AttributedFeatureCollection(collection, table)


def _descriptor_from_wkt(wkt: str | None) -> CRSDescriptor | None:
    if not wkt:
        return None
    from pyproj import CRS

    return CRSDescriptor.coerce(CRS.from_wkt(wkt))


def _record_id(
    record: Any,
    props: dict[str, Any],
    id_field: str | None,
    idx: int,
    path: Path,
) -> str:
    if id_field is None:
        rid = record.get("id")
        return str(idx) if rid is None else str(rid)
    if props.get(id_field) is None:
        msg = f"Record {idx} in {path.name} has no value for id field '{id_field}'"
        raise VectorIOError(msg, operation="read_vector_dataset")
    return str(props[id_field])


def _unit_from_record(unit_id: str, geom: Any) -> GeometryUnit:
    from shapely.geometry import shape

    return GeometryUnit.from_shapely(unit_id, shape(geom))


def _to_scalar(value: Any) -> Scalar:
    if value is None or isinstance(value, str | int | float | bool):
        return value
    return str(value)


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------


def write_vector_dataset(
    attributed: AttributedFeatureCollection,
    path: Path | str,
    *,
    driver: str | None = None,
    id_field: str | None = None,
) -> Path:
    """Write ``attributed`` to a vector dataset.

    Args:
        attributed: Units and rows to write, in positional order.
        path: Output path. Existing files are overwritten by the driver.
        driver: OGR driver name (default from ``FeatureStackConfig``).
        id_field: Field receiving unit identifiers (default from
            ``FeatureStackConfig``).

    Returns:
        The output path.

    Raises:
        VectorIOError: If the driver rejects the schema or a record.
    """
    import fiona
    from fiona.errors import FionaError
    from shapely.geometry import mapping

    config = get_config()
    driver = driver or config.vector_driver
    id_field = id_field or config.id_field
    path = Path(path)

    table = attributed.table
    column_types = {name: _field_type(table.column(name)) for name in table.column_names}
    write_ids = id_field not in column_types

    properties_schema: dict[str, str] = {}
    if write_ids:
        properties_schema[id_field] = "str"
    properties_schema.update(column_types)

    geometry_type, geometries = _schema_geometries(attributed.geometries)
    schema = {
        "geometry": geometry_type,
        "properties": properties_schema,
    }
    open_kwargs: dict[str, Any] = {"driver": driver, "schema": schema}
    if attributed.crs is not None:
        open_kwargs["crs_wkt"] = attributed.crs.to_wkt()

    records = []
    rows = attributed.table.rows()
    for unit, geom, row in zip(attributed.geometries, geometries, rows, strict=True):
        props: dict[str, Scalar] = {id_field: unit.unit_id} if write_ids else {}
        for name, value in row.items():
            props[name] = _coerce_value(value, column_types[name])
        records.append(
            fiona.Feature.from_dict(
                {"geometry": mapping(geom), "properties": props}
            )
        )

    try:
        with fiona.open(str(path), "w", **open_kwargs) as sink:
            sink.writerecords(records)
    except (FionaError, OSError, ValueError) as exc:
        msg = f"Cannot write vector dataset {path} with driver {driver!r}: {exc}"
        raise VectorIOError(msg, operation="write_vector_dataset") from exc

    logger.info("Wrote %d unit(s) to %s | driver=%s", len(records), path.name, driver)
    return path


def _schema_geometries(units: Sequence[GeometryUnit]) -> tuple[str, list[BaseGeometry]]:
    """Pick one schema geometry type for every unit.

    Most drivers enforce the declared type per record, so when single
    and multi-part units are mixed the single parts are promoted.
    """
    from shapely.geometry import MultiLineString, MultiPolygon

    geoms = [unit.to_shapely() for unit in units]
    types = {g.geom_type for g in geoms}
    if len(types) == 1:
        return types.pop(), geoms
    if types == {"Polygon", "MultiPolygon"}:
        return "MultiPolygon", [
            MultiPolygon([g]) if g.geom_type == "Polygon" else g for g in geoms
        ]
    if types == {"LineString", "MultiLineString"}:
        return "MultiLineString", [
            MultiLineString([g]) if g.geom_type == "LineString" else g for g in geoms
        ]
    return "Unknown", geoms


def _field_type(values: Sequence[Scalar]) -> str:
    present = [v for v in values if v is not None]
    if not present:
        return "str"
    if all(isinstance(v, bool) for v in present):
        return "int"
    if all(isinstance(v, int) for v in present):
        return "int"
    if all(isinstance(v, int | float) for v in present):
        return "float"
    return "str"


def _coerce_value(value: Scalar, field_type: str) -> Scalar:
    if value is None:
        return None
    if field_type == "int":
        return int(value)
    if field_type == "float":
        return float(value)
    return str(value)
