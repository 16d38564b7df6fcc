"""Provider interface and shared HTTP plumbing."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from hybrid_route_planner.config import RoutingSettings
from hybrid_route_planner.errors import ProviderUnavailable
from hybrid_route_planner.models import Coordinate, RoutingPreferences, RoutingProfile, SegmentResult

logger = logging.getLogger(__name__)


class RoutingProvider(ABC):
    """A path-finding service adapted to SegmentResult."""

    name: str = "provider"

    def __init__(self, settings: RoutingSettings):
        self.settings = settings

    @abstractmethod
    async def compute_segment(
        self,
        start: Coordinate,
        end: Coordinate,
        profile: RoutingProfile,
        preferences: RoutingPreferences,
    ) -> SegmentResult:
        """Return a SegmentResult or raise a ProviderError."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def lonlat_pair(start: Coordinate, end: Coordinate) -> str:
    return f"{start.lon},{start.lat};{end.lon},{end.lat}"


def geojson_to_coordinates(coords: list) -> list[Coordinate]:
    """GeoJSON [lon, lat(, ele)] positions to Coordinates."""
    return [Coordinate(lat=c[1], lon=c[0]) for c in coords]


async def request_json(
    method: str,
    url: str,
    *,
    provider: str,
    timeout: float,
    user_agent: str,
    params: Optional[dict] = None,
    json: Optional[dict] = None,
    headers: Optional[dict] = None,
) -> Any:
    """Perform one HTTP request and decode JSON, mapping transport errors to ProviderUnavailable."""
    all_headers = {"User-Agent": user_agent, "Accept": "application/json"}
    if headers:
        all_headers.update(headers)

    async with httpx.AsyncClient(timeout=timeout, headers=all_headers) as client:
        try:
            response = await client.request(method, url, params=params, json=json)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as exc:
            logger.warning("%s timed out: %s", provider, exc)
            raise ProviderUnavailable(f"timed out after {timeout:.0f}s", provider) from exc
        except httpx.HTTPStatusError as exc:
            logger.warning("%s returned HTTP %s", provider, exc.response.status_code)
            raise ProviderUnavailable(f"HTTP {exc.response.status_code}", provider) from exc
        except httpx.HTTPError as exc:
            logger.warning("%s request failed: %s", provider, exc)
            raise ProviderUnavailable(str(exc) or type(exc).__name__, provider) from exc
        except ValueError as exc:
            logger.warning("%s returned a non-JSON body: %s", provider, exc)
            raise ProviderUnavailable("invalid JSON response", provider) from exc
