# participium_bot/infra/geocoding.py
"""
Address resolution via Nominatim (OpenStreetMap).

- ``parse_coordinates(text)``: ``"45.0703, 7.6869"`` → Location, no network.
- ``NominatimResolver.geocode(address)``: free text → (Location, display address).
  Raises ``AddressNotFoundError`` when Nominatim finds nothing and
  ``GeocodingError`` on timeouts / transport errors.
- ``NominatimResolver.reverse_geocode(location)``: Location → short address.
  Never raises; falls back to the ``"lat, lng"`` string.
- ``NominatimResolver.is_within_boundary(location)``: municipal polygon test.

Nominatim usage policy: max 1 req/sec, requires User-Agent.
"""
from __future__ import annotations

import re

import aiohttp

from participium_bot.core.engine.domain import Location
from participium_bot.core.engine.errors import AddressNotFoundError, GeocodingError
from participium_bot.infra.boundaries import CityBoundary, is_valid_coordinate
from participium_bot.infra.http_client import get_geocoder_session
from participium_bot.infra.logging_config import get_logger, mask_coordinates

logger = get_logger(__name__)

_TIMEOUT_SECONDS = 5  # don't keep the user waiting on a slow geocoder

_COORDINATES_RE = re.compile(
    r"^\s*(-?[0-9]+(?:\.[0-9]+)?)\s*,\s*(-?[0-9]+(?:\.[0-9]+)?)\s*$"
)


def parse_coordinates(text: str) -> Location | None:
    """
    Parse ``"lat, lng"`` into a Location.

    Exactly two decimal numbers separated by a comma; whitespace around
    either is ignored.  Out-of-range values yield None so the caller can
    fall back to treating the text as an address.
    """
    if not text:
        return None
    match = _COORDINATES_RE.match(text)
    if not match:
        return None

    latitude = float(match.group(1))
    longitude = float(match.group(2))
    if not is_valid_coordinate(latitude, longitude):
        return None
    return Location(latitude=latitude, longitude=longitude)


def format_coordinates(location: Location) -> str:
    return f"{location.latitude}, {location.longitude}"


def _format_address(data: dict) -> str | None:
    """Extract a short address from a Nominatim result.

    Prefers: ``"{road} {house_number}, {city}"``
    Falls back to ``display_name`` (truncated if very long).
    """
    address = data.get("address") or {}

    parts: list[str] = []

    road = (
        address.get("road")
        or address.get("pedestrian")
        or address.get("footway")
        or address.get("path")
    )
    house = address.get("house_number")
    if road:
        parts.append(f"{road} {house}" if house else road)

    city = (
        address.get("city")
        or address.get("town")
        or address.get("village")
        or address.get("municipality")
    )
    if city:
        parts.append(city)

    if parts:
        return ", ".join(parts)

    display = data.get("display_name")
    if display and len(display) > 120:
        display = display[:117] + "..."
    return display


class NominatimResolver:
    """AddressResolver backed by Nominatim and a local boundary polygon."""

    def __init__(
        self,
        boundary: CityBoundary,
        *,
        base_url: str = "https://nominatim.openstreetmap.org",
        user_agent: str = "ParticipiumBot/1.0",
        city: str = "Torino",
        country: str = "Italia",
    ) -> None:
        self.boundary = boundary
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.city = city
        self.country = country

    def parse_coordinates(self, text: str) -> Location | None:
        return parse_coordinates(text)

    def is_within_boundary(self, location: Location) -> bool:
        return self.boundary.contains(location)

    async def geocode(self, address: str) -> tuple[Location, str]:
        query = address.strip()
        params = {
            "q": f"{query}, {self.city}, {self.country}",
            "format": "jsonv2",
            "limit": "1",
            "addressdetails": "1",
        }

        results = await self._get_json("/search", params)
        if not isinstance(results, list) or not results:
            logger.info("Nominatim found no match for address query (len=%d)", len(query))
            raise AddressNotFoundError(f"Address not found: {query[:60]}")

        first = results[0]
        try:
            location = Location(
                latitude=float(first["lat"]),
                longitude=float(first["lon"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise GeocodingError(f"Malformed Nominatim result: {exc}") from exc

        display = first.get("display_name") or _format_address(first) or format_coordinates(location)
        logger.info("Geocoded address → (%s)", mask_coordinates(location.latitude, location.longitude))
        return location, display

    async def reverse_geocode(self, location: Location) -> str:
        params = {
            "lat": str(location.latitude),
            "lon": str(location.longitude),
            "format": "jsonv2",
            "zoom": "18",
            "addressdetails": "1",
        }
        masked = mask_coordinates(location.latitude, location.longitude)

        try:
            data = await self._get_json("/reverse", params)
        except GeocodingError as exc:
            logger.warning("Reverse geocoding failed for (%s): %s", masked, exc)
            return format_coordinates(location)

        result = _format_address(data) if isinstance(data, dict) else None
        if not result:
            return format_coordinates(location)

        logger.info("Reverse geocoded (%s) → %s", masked, result[:60])
        return result

    async def _get_json(self, path: str, params: dict):
        url = f"{self.base_url}{path}"
        headers = {"User-Agent": self.user_agent}

        try:
            session = get_geocoder_session()
            timeout = aiohttp.ClientTimeout(total=_TIMEOUT_SECONDS)

            async with session.get(url, params=params, headers=headers, timeout=timeout) as resp:
                if resp.status != 200:
                    raise GeocodingError(f"Nominatim returned status {resp.status}")
                return await resp.json(content_type=None)

        except GeocodingError:
            raise
        except TimeoutError as exc:
            raise GeocodingError("Nominatim timeout") from exc
        except aiohttp.ClientError as exc:
            raise GeocodingError(f"Nominatim network error: {exc}") from exc
        except ValueError as exc:
            raise GeocodingError(f"Nominatim returned invalid JSON: {exc}") from exc
