"""Tests for the subsetter."""

from __future__ import annotations

import numpy as np
import pytest

from featurestack.core.exceptions import InvalidSelectionError
from featurestack.models.attributed import AttributedFeatureCollection
from featurestack.models.attributes import AttributeTable
from featurestack.models.collection import FeatureCollection
from featurestack.operations.join import attach
from featurestack.operations.select import select, where


@pytest.fixture()
def attributed(
    houses: FeatureCollection, house_table: AttributeTable
) -> AttributedFeatureCollection:
    """Both houses joined to the attribute table (house2 first)."""
    houses.set_crs("EPSG:4326")
    return attach(houses, house_table)


class TestSelectByPredicate:
    """Row predicates."""

    def test_attr2_greater_than_five(self, attributed: AttributedFeatureCollection) -> None:
        subset = select(attributed, lambda row: row["attr2"] > 5)
        assert subset.ids == ["house2"]
        assert subset.row(0)["attr2"] == 6
        assert len(subset) == 1

    def test_keeps_all_in_order(self, attributed: AttributedFeatureCollection) -> None:
        subset = select(attributed, lambda row: True)
        assert subset.ids == attributed.ids

    def test_keeps_none(self, attributed: AttributedFeatureCollection) -> None:
        subset = select(attributed, lambda row: False)
        assert len(subset) == 0
        assert subset.crs is attributed.crs

    def test_source_unchanged(self, attributed: AttributedFeatureCollection) -> None:
        select(attributed, lambda row: row["attr1"] == 2)
        assert len(attributed) == 2

    def test_method_shorthand(self, attributed: AttributedFeatureCollection) -> None:
        assert attributed.select(lambda row: row["attr1"] == 2).ids == ["house1"]

    def test_crs_shared(self, attributed: AttributedFeatureCollection) -> None:
        subset = select(attributed, lambda row: row["attr2"] > 5)
        assert subset.crs is attributed.crs


class TestSelectByIndex:
    """Index sets and boolean masks."""

    def test_indices_restored_to_original_order(
        self, attributed: AttributedFeatureCollection
    ) -> None:
        assert select(attributed, [1, 0, 1]).ids == ["house2", "house1"]

    def test_negative_index(self, attributed: AttributedFeatureCollection) -> None:
        assert select(attributed, [-1]).ids == ["house1"]

    def test_index_out_of_range(self, attributed: AttributedFeatureCollection) -> None:
        with pytest.raises(InvalidSelectionError, match="out of range"):
            select(attributed, [5])

    def test_non_integer_index(self, attributed: AttributedFeatureCollection) -> None:
        with pytest.raises(InvalidSelectionError, match="not an integer"):
            select(attributed, ["house1"])  # type: ignore[list-item]

    def test_boolean_mask(self, attributed: AttributedFeatureCollection) -> None:
        subset = select(attributed, [False, True])
        assert subset.ids == ["house1"]
        assert subset.row(0) == {"attr1": 2, "attr2": 5}

    def test_mask_wrong_length(self, attributed: AttributedFeatureCollection) -> None:
        with pytest.raises(InvalidSelectionError, match="mask"):
            select(attributed, [True])

    def test_empty_index_set(self, attributed: AttributedFeatureCollection) -> None:
        assert len(select(attributed, [])) == 0


class TestWhere:
    """Comparison predicates."""

    def test_greater_than(self, attributed: AttributedFeatureCollection) -> None:
        assert select(attributed, where("attr2", ">", 5)).ids == ["house2"]

    def test_in(self, attributed: AttributedFeatureCollection) -> None:
        assert select(attributed, where("attr1", "in", {2, 3})).ids == ["house1"]

    def test_none_never_ordered(self) -> None:
        predicate = where("v", ">", 0)
        assert predicate({"v": None}) is False
        assert where("v", "==", None)({"v": None}) is True

    def test_unknown_operator(self) -> None:
        with pytest.raises(InvalidSelectionError, match="Unsupported operator"):
            where("attr1", "~", 1)

    def test_unknown_column(self, attributed: AttributedFeatureCollection) -> None:
        with pytest.raises(InvalidSelectionError, match="'attr9'"):
            select(attributed, where("attr9", ">", 1))


class TestArraySelectors:
    """numpy arrays and pandas Series as selectors."""

    def test_numpy_boolean_mask(self, attributed: AttributedFeatureCollection) -> None:
        mask = np.array(attributed.column("attr2")) > 5
        assert select(attributed, mask).ids == ["house2"]

    def test_pandas_boolean_mask(self, attributed: AttributedFeatureCollection) -> None:
        df = attributed.table.to_dataframe()
        assert select(attributed, df["attr1"] == 2).ids == ["house1"]

    def test_numpy_indices(self, attributed: AttributedFeatureCollection) -> None:
        assert select(attributed, np.array([0])).ids == ["house2"]
        assert select(attributed, np.array([-1], dtype=np.int64)).ids == ["house1"]

    def test_numpy_mask_wrong_length(self, attributed: AttributedFeatureCollection) -> None:
        with pytest.raises(InvalidSelectionError, match="mask"):
            select(attributed, np.array([True, False, True]))


class TestAttributedSlicing:
    """Slices of an attributed collection keep pairs together."""

    def test_slice(self, attributed: AttributedFeatureCollection) -> None:
        tail = attributed[1:]
        assert isinstance(tail, AttributedFeatureCollection)
        assert tail.ids == ["house1"]
        assert tail.row(0)["attr1"] == 2

    def test_iteration_yields_pairs(self, attributed: AttributedFeatureCollection) -> None:
        pairs = [(unit.unit_id, row["attr2"]) for unit, row in attributed]
        assert pairs == [("house2", 6), ("house1", 5)]

    def test_geojson_properties(self, attributed: AttributedFeatureCollection) -> None:
        features = attributed.to_geojson()["features"]
        assert features[0]["id"] == "house2"  # type: ignore[index]
        assert features[0]["properties"] == {"attr1": 1, "attr2": 6}  # type: ignore[index]
