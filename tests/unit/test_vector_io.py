"""Tests for the fiona-backed vector reader/writer."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from featurestack.core.exceptions import InvalidGeometryError, VectorIOError
from featurestack.models.attributed import AttributedFeatureCollection
from featurestack.models.attributes import AttributeTable
from featurestack.models.collection import FeatureCollection
from featurestack.models.geometry import GeometryUnit
from featurestack.models.ring import Ring
from featurestack.operations.join import attach
from featurestack.operations.measure import compute_area
from featurestack.operations.vector_io import read_vector_dataset, write_vector_dataset


@pytest.fixture()
def attributed(
    houses: FeatureCollection, house_table: AttributeTable
) -> AttributedFeatureCollection:
    houses.set_crs("EPSG:4326")
    return attach(houses, house_table)


def _write_geojson(path: Path, features: list[dict]) -> Path:
    path.write_text(json.dumps({"type": "FeatureCollection", "features": features}))
    return path


class TestShapefileRoundTrip:
    """Write then read an ESRI Shapefile."""

    def test_ids_and_attributes(self, attributed: AttributedFeatureCollection, tmp_path: Path) -> None:
        out = write_vector_dataset(attributed, tmp_path / "houses.shp")
        assert out.exists()

        loaded = read_vector_dataset(out, id_field="id")
        assert loaded.ids == ["house2", "house1"]
        assert loaded.column("attr1") == (1, 2)
        assert loaded.column("attr2") == (6, 5)

    def test_hole_preserved(self, attributed: AttributedFeatureCollection, tmp_path: Path) -> None:
        out = write_vector_dataset(attributed, tmp_path / "houses.shp")
        loaded = read_vector_dataset(out, id_field="id")
        house2 = loaded.collection.get("house2")
        assert house2 is not None
        assert house2.has_holes is True
        assert house2.to_shapely().area == pytest.approx(6.5)

    def test_crs_preserved(self, attributed: AttributedFeatureCollection, tmp_path: Path) -> None:
        out = write_vector_dataset(attributed, tmp_path / "houses.shp")
        loaded = read_vector_dataset(out, id_field="id")
        assert loaded.crs is not None
        assert loaded.crs.is_geographic

    def test_default_ids_are_feature_ids(
        self, attributed: AttributedFeatureCollection, tmp_path: Path
    ) -> None:
        out = write_vector_dataset(attributed, tmp_path / "houses.shp")
        assert read_vector_dataset(out).ids == ["0", "1"]

    def test_undefined_crs_written_without_projection(
        self, houses: FeatureCollection, house_table: AttributeTable, tmp_path: Path
    ) -> None:
        out = write_vector_dataset(attach(houses, house_table), tmp_path / "plain.shp")
        assert read_vector_dataset(out, id_field="id").crs is None


class TestGeoPackage:
    """GeoPackage output through an explicit driver."""

    def test_round_trip(self, unit_square: GeometryUnit, tmp_path: Path) -> None:
        fc = FeatureCollection([unit_square], crs="EPSG:4326")
        table = AttributeTable({"name": ["unit"], "score": [0.5], "ok": [True]})
        out = write_vector_dataset(attach(fc, table), tmp_path / "square.gpkg", driver="GPKG")

        loaded = read_vector_dataset(out, id_field="id")
        assert loaded.ids == ["square"]
        assert loaded.crs is not None
        assert loaded.crs.to_epsg() == 4326
        assert loaded.row(0)["score"] == pytest.approx(0.5)
        assert loaded.row(0)["ok"] == 1
        assert compute_area(loaded[0][0], loaded.crs) == pytest.approx(1.2308e10, rel=0.01)

    def test_driver_from_config(
        self,
        unit_square: GeometryUnit,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("FEATURESTACK_VECTOR_DRIVER", "GPKG")
        fc = FeatureCollection([unit_square], crs="EPSG:4326")
        out = write_vector_dataset(
            attach(fc, AttributeTable({"n": [1]})), tmp_path / "square.gpkg"
        )
        assert read_vector_dataset(out, id_field="id").ids == ["square"]


class TestMultiPartWriting:
    """Single and multi-part units in one layer."""

    @pytest.mark.parametrize(
        ("driver", "filename"),
        [
            ("GPKG", "islands.gpkg"),
            ("GeoJSON", "islands.geojson"),
            ("ESRI Shapefile", "islands.shp"),
        ],
    )
    def test_mixed_parts_round_trip(
        self, unit_square: GeometryUnit, driver: str, filename: str, tmp_path: Path
    ) -> None:
        islands = GeometryUnit.of(
            "islands",
            Ring.polygon([(5, 5), (5, 6), (6, 6), (6, 5)]),
            Ring.polygon([(8, 8), (8, 9), (9, 9), (9, 8)]),
        )
        fc = FeatureCollection([unit_square, islands], crs="EPSG:4326")
        table = AttributeTable({"parts": [1, 2]})
        out = write_vector_dataset(
            attach(fc, table), tmp_path / filename, driver=driver, id_field="uid"
        )

        loaded = read_vector_dataset(out, id_field="uid")
        assert loaded.ids == ["square", "islands"]
        assert [len(unit.solids) for unit in loaded.geometries] == [1, 2]
        assert loaded.column("parts") == (1, 2)

    def test_mixed_line_parts(self, tmp_path: Path) -> None:
        road = GeometryUnit.of("road", Ring.line([(0, 0), (1, 1)]))
        forks = GeometryUnit.of(
            "forks", Ring.line([(2, 0), (3, 1)]), Ring.line([(2, 1), (3, 0)])
        )
        fc = FeatureCollection([road, forks], crs="EPSG:4326")
        out = write_vector_dataset(
            attach(fc, AttributeTable({"lanes": [2, 1]})),
            tmp_path / "roads.gpkg",
            driver="GPKG",
        )
        loaded = read_vector_dataset(out, id_field="id")
        assert [len(unit.rings) for unit in loaded.geometries] == [1, 2]


class TestGeoJsonReading:
    """Reading hand-written GeoJSON."""

    FEATURES = [
        {
            "type": "Feature",
            "properties": {"name": "pin", "height": 3},
            "geometry": {"type": "Point", "coordinates": [0.0, 0.0]},
        },
        {
            "type": "Feature",
            "properties": {"name": "plot", "height": 7},
            "geometry": {
                "type": "Polygon",
                "coordinates": [[[0, 0], [0, 1], [1, 1], [1, 0], [0, 0]]],
            },
        },
        {"type": "Feature", "properties": {"name": "ghost", "height": 0}, "geometry": None},
    ]

    def test_point_rejected(self, tmp_path: Path) -> None:
        path = _write_geojson(tmp_path / "mixed.geojson", self.FEATURES)
        with pytest.raises(InvalidGeometryError, match="Point"):
            read_vector_dataset(path, id_field="name")

    def test_skip_invalid(self, tmp_path: Path) -> None:
        path = _write_geojson(tmp_path / "mixed.geojson", self.FEATURES)
        loaded = read_vector_dataset(path, id_field="name", skip_invalid=True)
        assert loaded.ids == ["plot"]
        assert loaded.row(0)["height"] == 7
        assert loaded.table.row_ids == ("plot",)

    def test_geojson_defaults_to_wgs84(self, tmp_path: Path) -> None:
        path = _write_geojson(tmp_path / "plot.geojson", self.FEATURES[1:2])
        loaded = read_vector_dataset(path, id_field="name")
        assert loaded.crs is not None
        assert loaded.crs.is_geographic

    def test_missing_id_value(self, tmp_path: Path) -> None:
        features = [dict(self.FEATURES[1], properties={"height": 1})]
        path = _write_geojson(tmp_path / "anon.geojson", features)
        with pytest.raises(VectorIOError, match="no value for id field"):
            read_vector_dataset(path, id_field="name")


class TestErrors:
    """fiona failures surface as VectorIOError."""

    def test_missing_path(self, tmp_path: Path) -> None:
        with pytest.raises(VectorIOError) as exc_info:
            read_vector_dataset(tmp_path / "nope.shp")
        assert exc_info.value.category == "permanent"

    def test_unknown_driver(self, attributed: AttributedFeatureCollection, tmp_path: Path) -> None:
        with pytest.raises(VectorIOError):
            write_vector_dataset(attributed, tmp_path / "x.out", driver="NoSuchDriver")
