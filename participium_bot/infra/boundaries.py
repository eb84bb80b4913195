# participium_bot/infra/boundaries.py
"""
Municipal boundary check.

The boundary is a GeoJSON ``Polygon`` or ``MultiPolygon`` (first feature of
a FeatureCollection, a bare Feature, or a bare geometry).  Points are tested
with even-odd ray casting; inner rings are holes.  GeoJSON rings are
``[longitude, latitude]`` pairs.

The bundled ``data/turin_boundaries.geojson`` is a simplified outline of the
Comune di Torino; set ``CITY_BOUNDARY_PATH`` to use a surveyed one.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from participium_bot.core.engine.domain import Location
from participium_bot.infra.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_BOUNDARY_PATH = Path(__file__).parent / "data" / "turin_boundaries.geojson"

Ring = list[tuple[float, float]]  # (lon, lat)


def is_valid_coordinate(latitude: float, longitude: float) -> bool:
    """Latitude in [-90, 90] and longitude in [-180, 180], NaN rejected."""
    return -90 <= latitude <= 90 and -180 <= longitude <= 180


def _point_in_ring(lon: float, lat: float, ring: Ring) -> bool:
    inside = False
    n = len(ring)
    j = n - 1
    for i in range(n):
        xi, yi = ring[i]
        xj, yj = ring[j]
        if (yi > lat) != (yj > lat):
            x_cross = (xj - xi) * (lat - yi) / (yj - yi) + xi
            if lon < x_cross:
                inside = not inside
        j = i
    return inside


@dataclass(frozen=True)
class CityBoundary:
    """List of polygons, each ``[outer_ring, *holes]``."""

    name: str
    polygons: list[list[Ring]]

    def contains(self, location: Location) -> bool:
        lat, lon = location.latitude, location.longitude
        if not is_valid_coordinate(lat, lon):
            return False
        for rings in self.polygons:
            outer, holes = rings[0], rings[1:]
            if _point_in_ring(lon, lat, outer) and not any(
                _point_in_ring(lon, lat, hole) for hole in holes
            ):
                return True
        return False

    @classmethod
    def from_geojson(cls, data: dict[str, Any], name: str = "city") -> "CityBoundary":
        if data.get("type") == "FeatureCollection":
            features = data.get("features") or []
            if not features:
                raise ValueError("Boundary FeatureCollection has no features")
            data = features[0]
        if data.get("type") == "Feature":
            name = (data.get("properties") or {}).get("name", name)
            data = data.get("geometry") or {}

        geom_type = data.get("type")
        coords = data.get("coordinates")
        if not coords:
            raise ValueError("Boundary geometry has no coordinates")

        if geom_type == "Polygon":
            raw_polygons = [coords]
        elif geom_type == "MultiPolygon":
            raw_polygons = coords
        else:
            raise ValueError(f"Unsupported boundary geometry type: {geom_type}")

        polygons = [
            [[(float(pt[0]), float(pt[1])) for pt in ring] for ring in polygon]
            for polygon in raw_polygons
        ]
        return cls(name=name, polygons=polygons)


def load_boundary(path: str | Path | None = None) -> CityBoundary:
    """Read a boundary GeoJSON file (bundled Turin outline by default)."""
    boundary_path = Path(path) if path else DEFAULT_BOUNDARY_PATH
    with boundary_path.open(encoding="utf-8") as fh:
        data = json.load(fh)
    boundary = CityBoundary.from_geojson(data, name=boundary_path.stem)
    logger.info(
        "City boundary loaded: %s (%d polygon(s))",
        boundary.name, len(boundary.polygons),
    )
    return boundary
