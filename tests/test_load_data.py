import json

import numpy as np
import pytest
import requests

from bikemap import load_data
from bikemap.load_data import (
    LANE_STREETS,
    STREETS,
    DataSourceUnavailable,
    accident_frame,
    bike_lane_frame,
    fetch_feature_collection,
    generate_bike_lanes,
    generate_synthetic_accidents,
    load_accidents,
    normalize_features,
)
from bikemap.models import CATEGORIES, FATAL, INJURY, PROPERTY_DAMAGE, BikeLaneSegment


def _feature(lon, lat, **props):
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [lon, lat]},
        "properties": props,
    }


def _write_collection(path, features):
    path.write_text(json.dumps({"type": "FeatureCollection", "features": features}), encoding="utf-8")
    return str(path)


def test_normalize_maps_properties():
    features = [
        _feature(-73.99, 40.71, id=17, type="fatal", street="Broadway", date="2020-01-01",
                 severity="severe", description="hit by van", onProtectedLane=True),
    ]
    [record] = normalize_features(features)
    assert record.id == 17
    assert (record.longitude, record.latitude) == (-73.99, 40.71)
    assert record.category == FATAL
    assert record.street == "Broadway"
    assert record.severity == "severe"
    assert record.description == "hit by van"
    assert record.time_index == 0
    assert record.on_protected_lane is True


def test_normalize_defaults():
    [record] = normalize_features([_feature(-74.0, 40.7)], rng=np.random.default_rng(1))
    assert record.id == 0
    assert record.category == PROPERTY_DAMAGE
    assert record.street == ""
    assert record.date == ""
    assert record.on_protected_lane is False
    assert 0 <= record.time_index <= 100


def test_normalize_category_spellings():
    features = [
        _feature(-74.0, 40.7, type="property", date="2021-01-01"),
        _feature(-74.0, 40.7, type="INJURY", date="2021-01-01"),
        _feature(-74.0, 40.7, type="scooter", date="2021-01-01"),
    ]
    assert [r.category for r in normalize_features(features)] == [PROPERTY_DAMAGE, INJURY, PROPERTY_DAMAGE]


def test_normalize_protected_lane_strings():
    features = [
        _feature(-74.0, 40.7, onProtectedLane="true", date="2021-01-01"),
        _feature(-74.0, 40.7, onProtectedLane="no", date="2021-01-01"),
        _feature(-74.0, 40.7, onProtectedLane=1, date="2021-01-01"),
    ]
    assert [r.on_protected_lane for r in normalize_features(features)] == [True, False, True]


def test_normalize_skips_non_points_and_keeps_order():
    features = [
        _feature(-74.0, 40.7, street="A", date="2021-01-01"),
        {"type": "Feature", "geometry": {"type": "LineString", "coordinates": [[0, 0], [1, 1]]}, "properties": {}},
        _feature(-74.0, 40.7, street="C", date="2021-01-01"),
        {"type": "Feature", "geometry": None, "properties": {}},
    ]
    records = normalize_features(features)
    assert [r.street for r in records] == ["A", "C"]
    assert [r.id for r in records] == [0, 2]


def test_fetch_reads_local_file(tmp_path):
    path = _write_collection(tmp_path / "a.geojson", [_feature(-74.0, 40.7)])
    assert len(fetch_feature_collection(path)) == 1


def test_fetch_missing_file(tmp_path):
    with pytest.raises(DataSourceUnavailable):
        fetch_feature_collection(str(tmp_path / "nope.geojson"))


def test_fetch_malformed_json(tmp_path):
    path = tmp_path / "bad.geojson"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(DataSourceUnavailable):
        fetch_feature_collection(str(path))


def test_fetch_not_a_feature_collection(tmp_path):
    path = tmp_path / "list.geojson"
    path.write_text(json.dumps([1, 2, 3]), encoding="utf-8")
    with pytest.raises(DataSourceUnavailable):
        fetch_feature_collection(str(path))


def test_fetch_url_failure(monkeypatch):
    def fail(*args, **kwargs):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(load_data.requests, "get", fail)
    with pytest.raises(DataSourceUnavailable):
        fetch_feature_collection("https://example.org/graph3.geojson")


def test_load_from_file(tmp_path):
    path = _write_collection(tmp_path / "a.geojson", [
        _feature(-74.0, 40.7, type="fatal", date="2022-01-01"),
        _feature(-73.9, 40.8, type="injury", date="2022-06-01"),
    ])
    result = load_accidents(path, rng=np.random.default_rng(0))
    assert result.source == "file"
    assert not result.is_fallback
    assert len(result.records) == 2
    assert len(result.frame) == 2
    assert "2 accidents" in result.diagnostic


def test_load_falls_back_to_synthetic(tmp_path):
    missing = str(tmp_path / "missing.geojson")
    result = load_accidents(missing, rng=np.random.default_rng(0))
    assert result.is_fallback
    assert len(result.records) == 200
    assert len(result.bike_lanes) == 8
    assert missing in result.diagnostic


def test_synthetic_accidents_shape():
    records = generate_synthetic_accidents(rng=np.random.default_rng(11))
    assert len(records) == 200
    assert [r.id for r in records] == list(range(200))
    for r in records:
        assert 40.66 <= r.latitude <= 40.74
        assert -74.04 <= r.longitude <= -73.96
        assert r.category in CATEGORIES
        assert r.street in STREETS
        assert 0 <= r.time_index <= 100
        assert r.date.startswith("202")


def test_synthetic_bike_lanes():
    lanes = generate_bike_lanes(np.random.default_rng(2))
    assert [lane.name for lane in lanes] == LANE_STREETS
    for lane in lanes:
        assert len(lane.path) == 2
        (lon0, lat0), (lon1, lat1) = lane.path
        assert lon1 - lon0 == pytest.approx(0.015)
        assert lat0 == lat1


def test_bike_lane_needs_two_points():
    with pytest.raises(ValueError):
        BikeLaneSegment(name="Broadway", is_protected=True, path=((-74.0, 40.7),))


def test_bike_lane_frame_geometry():
    lanes = generate_bike_lanes(np.random.default_rng(2))
    gdf = bike_lane_frame(lanes)
    assert len(gdf) == 8
    assert all(geom.geom_type == "LineString" for geom in gdf.geometry)
    assert gdf["path"].iloc[0] == [list(p) for p in lanes[0].path]


def test_empty_accident_frame_has_columns():
    df = accident_frame([])
    assert df.empty
    assert {"category", "street", "time_index", "on_protected_lane"} <= set(df.columns)


def test_normalize_skips_geometry_that_is_not_an_object():
    features = [
        {"type": "Feature", "geometry": [1, 2], "properties": {"street": "A"}},
        _feature(-74.0, 40.7, street="B", date="2021-01-01"),
    ]
    records = normalize_features(features)
    assert [r.street for r in records] == ["B"]
    assert [r.id for r in records] == [1]


def test_normalize_defaults_properties_that_are_not_an_object():
    feature = {"type": "Feature", "geometry": {"type": "Point", "coordinates": [-74.0, 40.7]}, "properties": "oops"}
    [record] = normalize_features([feature], rng=np.random.default_rng(4))
    assert record.id == 0
    assert record.category == PROPERTY_DAMAGE
    assert record.street == ""
    assert record.on_protected_lane is False


def test_load_with_malformed_features_does_not_raise(tmp_path):
    path = _write_collection(tmp_path / "odd.geojson", [
        {"type": "Feature", "geometry": [1, 2], "properties": {}},
        {"type": "Feature", "geometry": {"type": "Point", "coordinates": [-74.0, 40.7]}, "properties": "oops"},
    ])
    result = load_accidents(path, rng=np.random.default_rng(0))
    assert result.source == "file"
    assert len(result.records) == 1
