# tests/test_boundaries.py
"""Tests for the GeoJSON municipal boundary check"""
import json

import pytest

from participium_bot.core.engine.domain import Location
from participium_bot.infra.boundaries import CityBoundary, is_valid_coordinate, load_boundary


SQUARE = [[0.0, 0.0], [10.0, 0.0], [10.0, 10.0], [0.0, 10.0], [0.0, 0.0]]
HOLE = [[4.0, 4.0], [6.0, 4.0], [6.0, 6.0], [4.0, 6.0], [4.0, 4.0]]


class TestIsValidCoordinate:
    @pytest.mark.parametrize("lat,lon", [(0, 0), (90, 180), (-90, -180), (45.07, 7.68)])
    def test_valid(self, lat, lon):
        assert is_valid_coordinate(lat, lon)

    @pytest.mark.parametrize("lat,lon", [(90.1, 0), (0, 180.1), (-91, 0), (float("nan"), 0)])
    def test_invalid(self, lat, lon):
        assert not is_valid_coordinate(lat, lon)


class TestCityBoundary:
    def test_polygon_geometry(self):
        boundary = CityBoundary.from_geojson({"type": "Polygon", "coordinates": [SQUARE]})
        assert boundary.contains(Location(latitude=5.0, longitude=5.0))
        assert not boundary.contains(Location(latitude=15.0, longitude=5.0))

    def test_hole_is_outside(self):
        boundary = CityBoundary.from_geojson({"type": "Polygon", "coordinates": [SQUARE, HOLE]})
        assert not boundary.contains(Location(latitude=5.0, longitude=5.0))
        assert boundary.contains(Location(latitude=2.0, longitude=2.0))

    def test_multipolygon(self):
        far_square = [[[20.0, 20.0], [30.0, 20.0], [30.0, 30.0], [20.0, 30.0], [20.0, 20.0]]]
        boundary = CityBoundary.from_geojson({
            "type": "MultiPolygon",
            "coordinates": [[SQUARE], far_square],
        })
        assert boundary.contains(Location(latitude=25.0, longitude=25.0))
        assert not boundary.contains(Location(latitude=15.0, longitude=15.0))

    def test_rings_are_lon_lat(self):
        # Tall thin strip: longitude 0..1, latitude 0..50
        strip = [[0.0, 0.0], [1.0, 0.0], [1.0, 50.0], [0.0, 50.0], [0.0, 0.0]]
        boundary = CityBoundary.from_geojson({"type": "Polygon", "coordinates": [strip]})
        assert boundary.contains(Location(latitude=40.0, longitude=0.5))
        assert not boundary.contains(Location(latitude=0.5, longitude=40.0))

    def test_feature_collection_takes_name(self):
        data = {
            "type": "FeatureCollection",
            "features": [{
                "type": "Feature",
                "properties": {"name": "Testville"},
                "geometry": {"type": "Polygon", "coordinates": [SQUARE]},
            }],
        }
        assert CityBoundary.from_geojson(data).name == "Testville"

    def test_invalid_point_is_outside(self):
        boundary = CityBoundary.from_geojson({"type": "Polygon", "coordinates": [SQUARE]})
        assert not boundary.contains(Location(latitude=float("nan"), longitude=5.0))

    @pytest.mark.parametrize("data", [
        {"type": "FeatureCollection", "features": []},
        {"type": "Point", "coordinates": [1.0, 2.0]},
        {"type": "Polygon", "coordinates": []},
    ])
    def test_unsupported_geometry(self, data):
        with pytest.raises(ValueError):
            CityBoundary.from_geojson(data)


class TestLoadBoundary:
    def test_bundled_turin_boundary(self):
        boundary = load_boundary()
        assert boundary.name == "Torino"
        # Piazza Castello
        assert boundary.contains(Location(latitude=45.0703, longitude=7.6869))
        # Rome, Milan
        assert not boundary.contains(Location(latitude=41.9028, longitude=12.4964))
        assert not boundary.contains(Location(latitude=45.4642, longitude=9.19))

    def test_custom_path(self, tmp_path):
        path = tmp_path / "town.geojson"
        path.write_text(json.dumps({"type": "Polygon", "coordinates": [SQUARE]}), encoding="utf-8")

        boundary = load_boundary(path)
        assert boundary.name == "town"
        assert boundary.contains(Location(latitude=1.0, longitude=1.0))
